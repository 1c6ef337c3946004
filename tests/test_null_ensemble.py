"""
Tests for permutation null ensembles.

Most tests use the pearson method so that each ensemble member is a pair of
correlation matrices and a least-squares solve.
"""

import numpy as np
import pandas as pd
import pytest

from netstate.core.errors import ConvergenceError, InvalidOptionError
from netstate.core.randomization import RandomizationMode
from netstate.stats.design import resolve_design, split_by_design
from netstate.stats.null_ensemble import (
    NullEnsemble,
    NullOptions,
    build_label_null_ensemble,
    build_null_ensemble,
    derive_seeds,
    generate_label_null_member,
    generate_null_member,
)

import netstate.stats.null_ensemble as null_module


@pytest.fixture
def conditions(paired_dataset):
    motifs, expression = paired_dataset
    design = resolve_design(expression, "condition", "baseline", "alternate")
    baseline, alternate = split_by_design(expression, design)
    return motifs, baseline, alternate


class TestSeeds:
    """Seed derivation."""

    def test_reproducible(self):
        assert derive_seeds(42, 5) == derive_seeds(42, 5)

    def test_distinct(self):
        seeds = derive_seeds(42, 50)
        assert len(set(seeds)) == 50
        assert all(isinstance(s, int) for s in seeds)

    def test_prefix_stable(self):
        """Asking for more members keeps the earlier seeds."""
        assert derive_seeds(7, 10)[:4] == derive_seeds(7, 4)

    def test_zero(self):
        assert derive_seeds(1, 0) == []


class TestNullOptions:
    """Validation of NullOptions."""

    def test_none_rejected(self):
        with pytest.raises(InvalidOptionError, match="none"):
            NullOptions(randomize="none")

    def test_aliases_parsed(self):
        assert NullOptions(randomize="by.genes").randomize is RandomizationMode.BY_GENE_LABEL

    def test_from_dict(self):
        options = NullOptions.from_dict({"n_permutations": 3, "seed": 1, "n_jobs": 2})
        assert options.n_permutations == 3
        with pytest.raises(InvalidOptionError, match="workers"):
            NullOptions.from_dict({"workers": 4})


class TestGenerateMember:
    """A single null member is a pure function of its seed."""

    def test_same_seed_same_member(self, conditions):
        motifs, baseline, alternate = conditions
        a = generate_null_member(motifs, baseline, alternate, seed=123, method="pearson")
        b = generate_null_member(motifs, baseline, alternate, seed=123, method="pearson")
        pd.testing.assert_frame_equal(a, b)

    def test_different_seeds_differ(self, conditions):
        motifs, baseline, alternate = conditions
        a = generate_null_member(motifs, baseline, alternate, seed=1, method="pearson")
        b = generate_null_member(motifs, baseline, alternate, seed=2, method="pearson")
        assert not np.allclose(a.to_numpy(), b.to_numpy())

    def test_square_over_tfs(self, conditions):
        motifs, baseline, alternate = conditions
        member = generate_null_member(
            motifs, baseline, alternate, seed=9,
            randomize="by-gene-label", method="pearson",
        )
        tfs = sorted(motifs["tf"].unique())
        assert list(member.index) == tfs
        assert list(member.columns) == tfs

    @pytest.mark.parametrize("mode", ["none", "sample-labels"])
    def test_rejects_non_gene_modes(self, conditions, mode):
        motifs, baseline, alternate = conditions
        with pytest.raises(InvalidOptionError):
            generate_null_member(motifs, baseline, alternate, seed=1, randomize=mode)

    def test_label_member_reproducible(self, paired_dataset):
        motifs, expression = paired_dataset
        design = resolve_design(expression, "condition")
        a = generate_label_null_member(motifs, expression, design, seed=4, method="pearson")
        b = generate_label_null_member(motifs, expression, design, seed=4, method="pearson")
        pd.testing.assert_frame_equal(a, b)


class TestBuildEnsemble:
    """Ensemble construction, parallelism and failure isolation."""

    def test_size_and_seeds(self, conditions):
        motifs, baseline, alternate = conditions
        ensemble = build_null_ensemble(
            motifs, baseline, alternate,
            NullOptions(n_permutations=4, seed=10),
            method="pearson",
        )

        assert isinstance(ensemble, NullEnsemble)
        assert len(ensemble) == 4
        assert ensemble.seeds == derive_seeds(10, 4)
        assert ensemble.as_array().shape == (4, 4, 4)
        assert ensemble.n_failed == 0

    def test_members_regenerate_from_seed(self, conditions):
        motifs, baseline, alternate = conditions
        ensemble = build_null_ensemble(
            motifs, baseline, alternate,
            NullOptions(n_permutations=3, seed=5),
            method="pearson",
        )
        again = generate_null_member(
            motifs, baseline, alternate, ensemble.seeds[2], method="pearson"
        )
        pd.testing.assert_frame_equal(ensemble[2], again)

    def test_threads_match_sequential(self, conditions):
        motifs, baseline, alternate = conditions
        sequential = build_null_ensemble(
            motifs, baseline, alternate,
            NullOptions(n_permutations=4, seed=3, n_jobs=1),
            method="pearson",
        )
        threaded = build_null_ensemble(
            motifs, baseline, alternate,
            NullOptions(n_permutations=4, seed=3, n_jobs=3),
            method="pearson",
        )
        np.testing.assert_array_equal(sequential.as_array(), threaded.as_array())

    def test_bere_members(self, conditions):
        motifs, baseline, alternate = conditions
        ensemble = build_null_ensemble(
            motifs, baseline, alternate,
            NullOptions(n_permutations=2, seed=0),
        )
        assert len(ensemble) == 2
        assert np.isfinite(ensemble.as_array()).all()

    def test_failed_members_dropped(self, conditions, monkeypatch, caplog):
        motifs, baseline, alternate = conditions
        seeds = derive_seeds(8, 4)
        real = null_module.generate_null_member

        def flaky(*args, **kwargs):
            if args[3] == seeds[1]:
                raise ConvergenceError("did not converge")
            return real(*args, **kwargs)

        monkeypatch.setattr(null_module, "generate_null_member", flaky)
        with caplog.at_level("WARNING", logger="netstate.stats.null_ensemble"):
            ensemble = build_null_ensemble(
                motifs, baseline, alternate,
                NullOptions(n_permutations=4, seed=8),
                method="pearson",
            )

        assert len(ensemble) == 3
        assert ensemble.failed_seeds == [seeds[1]]
        assert seeds[1] not in ensemble.seeds
        assert "Dropped 1/4" in caplog.text

    def test_all_failed_raises(self, conditions, monkeypatch):
        motifs, baseline, alternate = conditions

        def always_fails(*args, **kwargs):
            raise ConvergenceError("did not converge")

        monkeypatch.setattr(null_module, "generate_null_member", always_fails)
        with pytest.raises(ConvergenceError, match="All null ensemble members failed"):
            build_null_ensemble(
                motifs, baseline, alternate,
                NullOptions(n_permutations=2, seed=1),
                method="pearson",
            )

    def test_sample_labels_needs_design(self, conditions):
        motifs, baseline, alternate = conditions
        with pytest.raises(InvalidOptionError, match="build_label_null_ensemble"):
            build_null_ensemble(
                motifs, baseline, alternate,
                NullOptions(n_permutations=2, randomize="sample-labels"),
            )

    def test_unknown_method_fails_before_members(self, conditions, recording_progress):
        motifs, baseline, alternate = conditions
        with pytest.raises(InvalidOptionError):
            build_null_ensemble(
                motifs, baseline, alternate,
                NullOptions(n_permutations=2),
                method="lasso",
                progress=recording_progress,
            )
        assert recording_progress.loops == []

    def test_progress(self, conditions, recording_progress):
        motifs, baseline, alternate = conditions
        build_null_ensemble(
            motifs, baseline, alternate,
            NullOptions(n_permutations=3, seed=2),
            method="pearson",
            progress=recording_progress,
        )
        assert recording_progress.loops == [("Null ensemble (within-gene)", 3)]
        assert recording_progress.advanced == 3
        assert recording_progress.closed == 1

    def test_label_ensemble(self, paired_dataset):
        motifs, expression = paired_dataset
        design = resolve_design(expression, "condition", "baseline", "alternate")
        ensemble = build_label_null_ensemble(
            motifs, expression, design,
            NullOptions(n_permutations=3, seed=6, randomize="sample-labels"),
            method="pearson",
        )

        assert ensemble.randomize is RandomizationMode.SAMPLE_LABELS
        assert len(ensemble) == 3
        assert ensemble.to_dict()["randomize"] == "sample-labels"
