"""Tests for transition matrix estimation and differential TF involvement."""

import numpy as np
import pandas as pd
import pytest

from netstate.core.errors import ConvergenceError, InvalidOptionError, ValidationError
from netstate.stats.transition import (
    TransitionOptions,
    differential_tf_involvement,
    estimate_transition,
)

import netstate.stats.transition as transition_module


def network(values, tfs=None, genes=None):
    values = np.asarray(values, dtype=float)
    tfs = tfs or [f"TF{i}" for i in range(values.shape[0])]
    genes = genes or [f"G{j:02d}" for j in range(values.shape[1])]
    return pd.DataFrame(values, index=tfs, columns=genes)


@pytest.fixture
def baseline():
    rng = np.random.default_rng(11)
    return network(rng.normal(size=(4, 30)))


class TestEstimateTransition:
    """Least-squares fit of alternate ≈ T @ baseline."""

    def test_identical_networks_give_identity(self, baseline):
        T = estimate_transition(baseline, baseline)

        np.testing.assert_allclose(T.to_numpy(), np.eye(4), atol=1e-10)
        assert list(T.index) == list(baseline.index)
        assert list(T.columns) == list(baseline.index)

    def test_recovers_known_transition(self, baseline):
        true_T = np.array([
            [1.0, 0.5, 0.0, 0.0],
            [0.0, 1.0, 0.0, -0.3],
            [0.2, 0.0, 0.8, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ])
        alternate = network(true_T @ baseline.to_numpy())

        T = estimate_transition(baseline, alternate)
        np.testing.assert_allclose(T.to_numpy(), true_T, atol=1e-10)

    def test_alternate_reordered_to_baseline(self, baseline):
        true_T = np.diag([1.0, 2.0, 3.0, 4.0])
        alternate = network(true_T @ baseline.to_numpy())
        shuffled = alternate.iloc[[2, 0, 3, 1], ::-1]

        T = estimate_transition(baseline, shuffled)
        np.testing.assert_allclose(T.to_numpy(), true_T, atol=1e-10)

    def test_ridge_closed_form(self, baseline):
        rng = np.random.default_rng(2)
        alternate = network(rng.normal(size=(4, 30)))
        lam = 2.5

        T = estimate_transition(baseline, alternate, TransitionOptions(ridge=lam))

        b = baseline.to_numpy()
        a = alternate.to_numpy()
        expected = a @ b.T @ np.linalg.inv(b @ b.T + lam * np.eye(4))
        np.testing.assert_allclose(T.to_numpy(), expected, atol=1e-10)

    def test_ridge_shrinks(self, baseline):
        ols = estimate_transition(baseline, baseline)
        ridge = estimate_transition(baseline, baseline, TransitionOptions(ridge=100.0))
        assert np.linalg.norm(ridge.to_numpy()) < np.linalg.norm(ols.to_numpy())

    def test_underdetermined_switches_to_ridge(self, caplog):
        rng = np.random.default_rng(5)
        b = network(rng.normal(size=(5, 3)))
        a = network(rng.normal(size=(5, 3)))

        with caplog.at_level("WARNING", logger="netstate.stats.transition"):
            T = estimate_transition(b, a, TransitionOptions(underdetermined_ridge=0.5))

        assert "underdetermined" in caplog.text
        expected = estimate_transition(b, a, TransitionOptions(ridge=0.5))
        pd.testing.assert_frame_equal(T, expected)

    def test_remove_diagonal(self, baseline):
        T = estimate_transition(baseline, baseline, TransitionOptions(remove_diagonal=True))
        np.testing.assert_array_equal(np.diag(T.to_numpy()), 0.0)

    def test_standardize_ignores_row_scale(self, baseline):
        scaled = baseline.mul([1.0, 10.0, 0.1, 3.0], axis=0) + 7.0
        T = estimate_transition(baseline, scaled, TransitionOptions(standardize=True))
        np.testing.assert_allclose(T.to_numpy(), np.eye(4), atol=1e-10)

    def test_solver_failure_is_convergence_error(self, baseline, monkeypatch):
        def broken(*args, **kwargs):
            raise np.linalg.LinAlgError("SVD did not converge")

        monkeypatch.setattr(transition_module.linalg, "lstsq", broken)
        with pytest.raises(ConvergenceError, match="SVD did not converge"):
            estimate_transition(baseline, baseline)


class TestValidation:
    """Mismatched or non-finite networks are rejected."""

    def test_tf_mismatch(self, baseline):
        other = baseline.rename(index={"TF3": "TF9"})
        with pytest.raises(ValidationError, match="share TFs"):
            estimate_transition(baseline, other)

    def test_gene_mismatch(self, baseline):
        other = baseline.rename(columns={"G00": "GX"})
        with pytest.raises(ValidationError, match="share genes"):
            estimate_transition(baseline, other)

    def test_non_finite(self, baseline):
        other = baseline.copy()
        other.iloc[1, 1] = np.nan
        with pytest.raises(ValidationError, match="non-finite"):
            estimate_transition(baseline, other)

    def test_negative_ridge(self):
        with pytest.raises(InvalidOptionError, match="ridge"):
            TransitionOptions(ridge=-1.0)

    def test_from_dict_rejects_unknown(self):
        with pytest.raises(InvalidOptionError, match="alpha"):
            TransitionOptions.from_dict({"alpha": 1.0})


class TestDifferentialTFInvolvement:
    """Per-TF off-diagonal transition mass."""

    def test_identity_is_zero(self):
        T = network(np.eye(3), genes=["TF0", "TF1", "TF2"])
        dtfi = differential_tf_involvement(T)

        assert dtfi.name == "dTFI"
        np.testing.assert_array_equal(dtfi.to_numpy(), 0.0)

    def test_row_sums_of_squares(self):
        T = network(
            [[1.0, 2.0, 0.0], [0.5, 9.0, -1.0], [0.0, 0.0, 4.0]],
            genes=["TF0", "TF1", "TF2"],
        )
        dtfi = differential_tf_involvement(T)

        assert list(dtfi.index) == ["TF0", "TF1", "TF2"]
        np.testing.assert_allclose(dtfi.to_numpy(), [4.0, 1.25, 0.0])
        assert T.iloc[1, 1] == 9.0
