"""
End-to-end transition analysis between two conditions.

Given motif edges, one expression matrix and a design assigning samples to
a baseline and an alternate condition:

    1. Split expression by the design
    2. Align and infer one network per condition
    3. Estimate the TF × TF transition matrix and its dTFI summary
    4. Optionally build a permutation null ensemble

The observed run and the null share no state; the null is only consumed by
the caller's significance scoring.

    >>> result = run_transition_analysis(motifs, expression, design="condition",
    ...                                  null_options=NullOptions(n_permutations=200, n_jobs=4))
    >>> result.tf_involvement.sort_values(ascending=False).head()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import pandas as pd

from netstate.core.alignment import ExpressionSource, align, as_expression_matrix
from netstate.core.motif import MotifSource
from netstate.core.randomization import RandomizationMode
from netstate.inference.engine import infer_aligned
from netstate.inference.options import InferenceMethod, InferenceOptions
from netstate.stats.design import DesignSource, resolve_design, split_by_design
from netstate.stats.null_ensemble import (
    NullEnsemble,
    NullOptions,
    build_label_null_ensemble,
    build_null_ensemble,
)
from netstate.stats.transition import (
    TransitionOptions,
    differential_tf_involvement,
    estimate_transition,
)
from netstate.utils.progress import ProgressReporter, resolve_progress

__all__ = [
    'TransitionAnalysisResult',
    'run_transition_analysis',
]

logger = logging.getLogger(__name__)


@dataclass
class TransitionAnalysisResult:
    """Result of a two-condition transition analysis.

    Attributes:
        method: Inference method used for both networks.
        baseline_network: Inferred TF × gene network, baseline samples.
        alternate_network: Inferred TF × gene network, alternate samples.
        transition: TF × TF transition matrix (baseline → alternate).
        tf_involvement: Differential TF involvement per TF.
        null_ensemble: Permutation null, if one was requested.
        baseline_label: Design label of the baseline condition.
        alternate_label: Design label of the alternate condition.
    """

    method: InferenceMethod
    baseline_network: pd.DataFrame
    alternate_network: pd.DataFrame
    transition: pd.DataFrame
    tf_involvement: pd.Series
    null_ensemble: Optional[NullEnsemble] = None
    baseline_label: Any = None
    alternate_label: Any = None

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "method": self.method.value,
            "baseline_label": str(self.baseline_label),
            "alternate_label": str(self.alternate_label),
            "n_tfs": int(self.transition.shape[0]),
            "n_genes": int(self.baseline_network.shape[1]),
            "tf_involvement": {str(k): float(v) for k, v in self.tf_involvement.items()},
            "null_ensemble": None if self.null_ensemble is None else self.null_ensemble.to_dict(),
        }


def run_transition_analysis(
    motif_edges: MotifSource,
    expression: ExpressionSource,
    design: DesignSource,
    baseline_label: Optional[Any] = None,
    alternate_label: Optional[Any] = None,
    method: InferenceMethod | str = InferenceMethod.BERE,
    inference_options: Optional[InferenceOptions] = None,
    transition_options: Optional[TransitionOptions] = None,
    null_options: Optional[NullOptions] = None,
    progress: Optional[ProgressReporter] = None,
) -> TransitionAnalysisResult:
    """
    Infer networks for two conditions and estimate the transition between them.

    Args:
        motif_edges: Motif table (TF, gene, score)
        expression: Genes × samples expression covering both conditions
        design: Per-sample condition labels, or a sample_metadata column name
        baseline_label: Label of baseline samples (inferred if None)
        alternate_label: Label of alternate samples (inferred if None)
        method: Inference method for both networks
        inference_options: Inference options for both networks
        transition_options: Transition estimation options
        null_options: Null ensemble parameters; no null is built if None or
            n_permutations is 0
        progress: Optional progress reporter

    Returns:
        TransitionAnalysisResult

    Raises:
        ValidationError: For invalid designs or inputs (see align/infer)
    """
    method = InferenceMethod.parse(method)
    inference_options = inference_options or InferenceOptions()
    transition_options = transition_options or TransitionOptions()
    progress = resolve_progress(progress)

    expression = as_expression_matrix(expression)
    condition_design = resolve_design(expression, design, baseline_label, alternate_label)
    baseline_expression, alternate_expression = split_by_design(expression, condition_design)

    logger.info(
        f"Transition analysis: {baseline_expression.n_samples} baseline "
        f"({condition_design.baseline_label!r}) vs {alternate_expression.n_samples} alternate "
        f"({condition_design.alternate_label!r}) samples"
    )

    networks = []
    for condition in (baseline_expression, alternate_expression):
        aligned = align(
            motif_edges,
            condition,
            aggregate=inference_options.motif_aggregation,
            progress=progress,
        )
        networks.append(infer_aligned(aligned, method, inference_options, progress=progress))
    baseline_network, alternate_network = networks

    transition = estimate_transition(baseline_network, alternate_network, transition_options)

    null_ensemble = None
    if null_options is not None and null_options.n_permutations > 0:
        if null_options.randomize is RandomizationMode.SAMPLE_LABELS:
            null_ensemble = build_label_null_ensemble(
                motif_edges, expression, condition_design,
                null_options=null_options,
                method=method,
                inference_options=inference_options,
                transition_options=transition_options,
                progress=progress,
            )
        else:
            null_ensemble = build_null_ensemble(
                motif_edges, baseline_expression, alternate_expression,
                null_options=null_options,
                method=method,
                inference_options=inference_options,
                transition_options=transition_options,
                progress=progress,
            )

    return TransitionAnalysisResult(
        method=method,
        baseline_network=baseline_network,
        alternate_network=alternate_network,
        transition=transition,
        tf_involvement=differential_tf_involvement(transition),
        null_ensemble=null_ensemble,
        baseline_label=condition_design.baseline_label,
        alternate_label=condition_design.alternate_label,
    )
