"""
Correlation-based evidence matrices.

direct_evidence:
    Squared Pearson correlation between each TF's expression profile and
    each gene's profile. Undefined correlations (constant profiles, too few
    shared observations) count as 0.

correlation_difference:
    For each TF, the average gene-gene correlation profile of its motif
    targets minus that of its non-targets:

        cd = (P / rowSums(P)) @ C - ((1 - P) / rowSums(1 - P)) @ C

    where P is the 0/1 motif indicator (raw motif scores are not used as
    weights, so every target counts equally) and C the gene-gene correlation
    matrix with NaN replaced by 0. Each gene column is then divided by its
    standard deviation across TFs. A TF with no targets (or no non-targets)
    contributes zero for the empty side.

motif_boost:
    Adds the observed score range to every motif-supported edge so those
    edges rank at or above every other edge.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from netstate.core.alignment import AlignedData
from netstate.utils.correlation import (
    CorrelationStrategy,
    correlation_matrix,
    cross_correlation,
    fill_undefined,
)
from netstate.utils.progress import ProgressReporter
from netstate.utils.statistics import scale_columns

__all__ = [
    'direct_evidence',
    'correlation_difference',
    'motif_boost',
]

logger = logging.getLogger(__name__)


def direct_evidence(
    aligned: AlignedData,
    strategy: CorrelationStrategy | str = CorrelationStrategy.AUTO,
    progress: Optional[ProgressReporter] = None,
) -> np.ndarray:
    """
    Squared TF-gene correlation (TF × gene).

    Raises:
        TFExpressionMismatchError: If a TF has no row in the expression
            data
    """
    tf_profiles = aligned.tf_expression()
    corr = cross_correlation(tf_profiles, aligned.expression.data, strategy=strategy, progress=progress)
    return fill_undefined(corr) ** 2


def _row_normalize(weights: np.ndarray) -> np.ndarray:
    totals = weights.sum(axis=1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        normalized = weights / totals
    normalized[(totals == 0).ravel(), :] = 0.0
    return normalized


def correlation_difference(
    aligned: AlignedData,
    strategy: CorrelationStrategy | str = CorrelationStrategy.AUTO,
    progress: Optional[ProgressReporter] = None,
) -> np.ndarray:
    """Target-minus-non-target correlation profile per TF (TF × gene), column-scaled."""
    presence = aligned.presence.to_numpy()
    gene_coreg = fill_undefined(
        correlation_matrix(aligned.expression.data, strategy=strategy, progress=progress)
    )

    empty_rows = (presence.sum(axis=1) == 0) | (presence.sum(axis=1) == presence.shape[1])
    if empty_rows.any():
        logger.debug(f"{int(empty_rows.sum())} TF(s) target all or none of the genes")

    difference = (
        _row_normalize(presence) @ gene_coreg
        - _row_normalize(1.0 - presence) @ gene_coreg
    )
    return scale_columns(difference, ddof=1)


def motif_boost(scores: np.ndarray, presence: np.ndarray) -> np.ndarray:
    """
    Raise motif-supported edges by the observed score range.

    After boosting, every edge with presence 1 scores at least max(scores),
    i.e. at or above every edge without a motif. A zero range (constant
    scores) uses a boost of 1.0.

    ``presence`` is the 0/1 indicator (score > 0), not the raw motif score.
    With non-binary motif scores this departs from ``scores + range * network``:
    a weak motif gets the same boost as a strong one.
    """
    score_range = float(np.max(scores) - np.min(scores))
    if score_range == 0:
        score_range = 1.0
    return scores + score_range * presence
