"""
Permutation null ensembles of transition matrices.

Each ensemble member re-runs the whole pipeline (alignment → inference for
both conditions → transition estimate) on randomized inputs:

    within-gene    -- each gene's values shuffled across samples, per condition
    by-gene-label  -- gene labels shuffled across rows, per condition
    sample-labels  -- baseline/alternate assignment of samples shuffled before
                      splitting one expression matrix

A member is a pure function of (motif data, expression data, seed), so
members share no state and run on a thread pool. Integer seeds for all
members are derived from one base seed with numpy's SeedSequence, and each
member can be regenerated alone from its seed.

A member that fails with a NetStateError (usually ConvergenceError) is
dropped and counted. If every member fails the build raises.

Scoring the observed transition against the ensemble (z-scores, empirical
ranks) is left to the caller.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Iterator, Optional

import numpy as np
import pandas as pd

from netstate.core.alignment import ExpressionSource, align, as_expression_matrix
from netstate.core.errors import ConvergenceError, InvalidOptionError, NetStateError
from netstate.core.motif import MotifSource
from netstate.core.randomization import RandomizationMode
from netstate.inference.engine import infer_aligned
from netstate.inference.options import InferenceMethod, InferenceOptions
from netstate.stats.design import ConditionDesign, generate_free_permutation, split_by_design
from netstate.stats.transition import TransitionOptions, estimate_transition
from netstate.utils.progress import ProgressReporter, resolve_progress

__all__ = [
    'NullOptions',
    'NullEnsemble',
    'derive_seeds',
    'generate_null_member',
    'generate_label_null_member',
    'build_null_ensemble',
    'build_label_null_ensemble',
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NullOptions:
    """
    Null ensemble parameters.

    Attributes:
        n_permutations: Number of members to generate
        randomize: Randomization applied in each member
        seed: Base seed; member seeds are derived from it
        n_jobs: Worker threads (1 = sequential)
    """

    n_permutations: int = 100
    randomize: RandomizationMode = RandomizationMode.WITHIN_GENE
    seed: Optional[int] = None
    n_jobs: int = 1

    def __post_init__(self):
        object.__setattr__(self, "randomize", RandomizationMode.parse(self.randomize))
        if self.randomize is RandomizationMode.NONE:
            raise InvalidOptionError("a null ensemble needs a randomization mode other than 'none'")
        if self.n_permutations < 0:
            raise InvalidOptionError(f"n_permutations must be >= 0, got {self.n_permutations}")
        if self.n_jobs < 1:
            raise InvalidOptionError(f"n_jobs must be >= 1, got {self.n_jobs}")

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> NullOptions:
        """Build options from a config mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidOptionError(f"Unknown null option(s): {', '.join(unknown)}")
        return cls(**values)


@dataclass
class NullEnsemble:
    """
    Transition matrices from randomized runs.

    Attributes:
        members: Successful transition matrices, in seed order
        seeds: Seed of each successful member
        randomize: Randomization used
        n_requested: Number of members requested
        failed_seeds: Seeds whose member failed and was dropped
    """

    members: list[pd.DataFrame]
    seeds: list[int]
    randomize: RandomizationMode
    n_requested: int
    failed_seeds: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[pd.DataFrame]:
        return iter(self.members)

    def __getitem__(self, index: int) -> pd.DataFrame:
        return self.members[index]

    @property
    def n_failed(self) -> int:
        return len(self.failed_seeds)

    def as_array(self) -> np.ndarray:
        """Stack members into an array of shape (n_members, n_tfs, n_tfs)."""
        if not self.members:
            return np.empty((0, 0, 0))
        return np.stack([m.to_numpy() for m in self.members])

    def to_dict(self) -> dict:
        """Serialize summary to JSON-compatible dict."""
        return {
            "n_requested": self.n_requested,
            "n_members": len(self.members),
            "n_failed": self.n_failed,
            "randomize": self.randomize.value,
            "seeds": list(self.seeds),
        }


def derive_seeds(seed: Optional[int], n: int) -> list[int]:
    """Independent integer seeds for ``n`` members from one base seed."""
    if n == 0:
        return []
    return [int(s) for s in np.random.SeedSequence(seed).generate_state(n)]


def _networks_and_transition(
    motif_edges: MotifSource,
    baseline_expression: ExpressionSource,
    alternate_expression: ExpressionSource,
    randomize: RandomizationMode,
    seed: Optional[int],
    method: InferenceMethod | str,
    inference_options: InferenceOptions,
    transition_options: TransitionOptions,
) -> pd.DataFrame:
    baseline_seed, alternate_seed = np.random.SeedSequence(seed).spawn(2)
    networks = []
    for expression, child_seed in (
        (baseline_expression, baseline_seed),
        (alternate_expression, alternate_seed),
    ):
        aligned = align(
            motif_edges,
            expression,
            randomize=randomize,
            seed=child_seed,
            aggregate=inference_options.motif_aggregation,
        )
        networks.append(infer_aligned(aligned, method, inference_options))
    return estimate_transition(networks[0], networks[1], transition_options)


def generate_null_member(
    motif_edges: MotifSource,
    baseline_expression: ExpressionSource,
    alternate_expression: ExpressionSource,
    seed: int,
    randomize: RandomizationMode | str = RandomizationMode.WITHIN_GENE,
    method: InferenceMethod | str = InferenceMethod.BERE,
    inference_options: Optional[InferenceOptions] = None,
    transition_options: Optional[TransitionOptions] = None,
) -> pd.DataFrame:
    """
    One null transition matrix from gene-level randomized expression.

    Both conditions are randomized independently with child seeds spawned
    from ``seed``, so the same seed always reproduces the same member.

    Raises:
        InvalidOptionError: For 'none' or 'sample-labels' randomization
            (see generate_label_null_member)
    """
    mode = RandomizationMode.parse(randomize)
    if mode in (RandomizationMode.NONE, RandomizationMode.SAMPLE_LABELS):
        raise InvalidOptionError(
            f"generate_null_member needs 'within-gene' or 'by-gene-label' randomization, got '{mode.value}'"
        )
    return _networks_and_transition(
        motif_edges,
        baseline_expression,
        alternate_expression,
        mode,
        seed,
        method,
        inference_options or InferenceOptions(),
        transition_options or TransitionOptions(),
    )


def generate_label_null_member(
    motif_edges: MotifSource,
    expression: ExpressionSource,
    design: ConditionDesign,
    seed: int,
    method: InferenceMethod | str = InferenceMethod.BERE,
    inference_options: Optional[InferenceOptions] = None,
    transition_options: Optional[TransitionOptions] = None,
) -> pd.DataFrame:
    """One null transition matrix after freely permuting the sample design."""
    rng = np.random.default_rng(seed)
    permuted = design.with_labels(generate_free_permutation(design.labels, rng))
    baseline, alternate = split_by_design(as_expression_matrix(expression), permuted)
    return _networks_and_transition(
        motif_edges,
        baseline,
        alternate,
        RandomizationMode.NONE,
        None,
        method,
        inference_options or InferenceOptions(),
        transition_options or TransitionOptions(),
    )


def _run_members(
    member: Callable[[int], pd.DataFrame],
    seeds: list[int],
    randomize: RandomizationMode,
    n_jobs: int,
    progress: ProgressReporter,
) -> NullEnsemble:
    def run_one(seed: int) -> Optional[pd.DataFrame]:
        try:
            return member(seed)
        except NetStateError as e:
            logger.warning(f"Null member with seed {seed} failed: {type(e).__name__}: {e}")
            return None
        finally:
            progress.advance()

    progress.start(len(seeds), f"Null ensemble ({randomize.value})")
    try:
        if n_jobs > 1:
            with ThreadPoolExecutor(max_workers=n_jobs) as executor:
                results = list(executor.map(run_one, seeds))
        else:
            results = [run_one(s) for s in seeds]
    finally:
        progress.close()

    members = [r for r in results if r is not None]
    ok_seeds = [s for s, r in zip(seeds, results) if r is not None]
    failed = [s for s, r in zip(seeds, results) if r is None]

    if seeds and not members:
        raise ConvergenceError("All null ensemble members failed; cannot build null distribution")
    if failed:
        logger.warning(f"Dropped {len(failed)}/{len(seeds)} failed null ensemble members")

    return NullEnsemble(
        members=members,
        seeds=ok_seeds,
        randomize=randomize,
        n_requested=len(seeds),
        failed_seeds=failed,
    )


def build_null_ensemble(
    motif_edges: MotifSource,
    baseline_expression: ExpressionSource,
    alternate_expression: ExpressionSource,
    null_options: Optional[NullOptions] = None,
    method: InferenceMethod | str = InferenceMethod.BERE,
    inference_options: Optional[InferenceOptions] = None,
    transition_options: Optional[TransitionOptions] = None,
    progress: Optional[ProgressReporter] = None,
) -> NullEnsemble:
    """
    Null ensemble from gene-level randomization of both conditions.

    Args:
        motif_edges: Motif table shared by both conditions
        baseline_expression: Expression for the baseline condition
        alternate_expression: Expression for the alternate condition
        null_options: Count, randomization mode, base seed, workers
        method: Inference method used in every member
        inference_options: Inference options used in every member
        transition_options: Transition options used in every member
        progress: Optional progress reporter (one step per member)

    Returns:
        NullEnsemble with successful members in seed order

    Raises:
        InvalidOptionError: For 'sample-labels' (use build_label_null_ensemble)
        ConvergenceError: If every member failed
    """
    null_options = null_options or NullOptions()
    method = InferenceMethod.parse(method)
    if null_options.randomize is RandomizationMode.SAMPLE_LABELS:
        raise InvalidOptionError(
            "sample-labels randomization needs a design; use build_label_null_ensemble()"
        )

    baseline_expression = as_expression_matrix(baseline_expression)
    alternate_expression = as_expression_matrix(alternate_expression)

    def member(seed: int) -> pd.DataFrame:
        return generate_null_member(
            motif_edges,
            baseline_expression,
            alternate_expression,
            seed,
            randomize=null_options.randomize,
            method=method,
            inference_options=inference_options,
            transition_options=transition_options,
        )

    return _run_members(
        member,
        derive_seeds(null_options.seed, null_options.n_permutations),
        null_options.randomize,
        null_options.n_jobs,
        resolve_progress(progress),
    )


def build_label_null_ensemble(
    motif_edges: MotifSource,
    expression: ExpressionSource,
    design: ConditionDesign,
    null_options: Optional[NullOptions] = None,
    method: InferenceMethod | str = InferenceMethod.BERE,
    inference_options: Optional[InferenceOptions] = None,
    transition_options: Optional[TransitionOptions] = None,
    progress: Optional[ProgressReporter] = None,
) -> NullEnsemble:
    """
    Null ensemble from free permutation of the baseline/alternate design.

    ``null_options.randomize`` is ignored; members always permute sample labels.
    """
    null_options = null_options or NullOptions(randomize=RandomizationMode.SAMPLE_LABELS)
    method = InferenceMethod.parse(method)
    expression = as_expression_matrix(expression)

    def member(seed: int) -> pd.DataFrame:
        return generate_label_null_member(
            motif_edges,
            expression,
            design,
            seed,
            method=method,
            inference_options=inference_options,
            transition_options=transition_options,
        )

    return _run_members(
        member,
        derive_seeds(null_options.seed, null_options.n_permutations),
        RandomizationMode.SAMPLE_LABELS,
        null_options.n_jobs,
        resolve_progress(progress),
    )
