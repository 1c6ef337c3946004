"""
Baseline/alternate sample design.

A transition analysis compares two conditions drawn from one expression
matrix. The design assigns every sample to one of them, either as an
explicit label vector or as the name of a ``sample_metadata`` column.

Label permutation (free permutation of the design vector) provides the
sample-label null: the same samples are split into two groups of the same
sizes, but group membership no longer reflects biology.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from netstate.core.errors import ValidationError
from netstate.core.expression import ExpressionMatrix

__all__ = [
    'ConditionDesign',
    'resolve_design',
    'generate_free_permutation',
    'split_by_design',
]

DesignSource = Union[str, Sequence[Any], NDArray, pd.Series]


@dataclass(frozen=True)
class ConditionDesign:
    """
    Sample assignment to baseline and alternate conditions.

    Attributes:
        labels: One label per sample, in sample order
        baseline_label: Label marking baseline samples
        alternate_label: Label marking alternate samples
    """

    labels: NDArray
    baseline_label: Any
    alternate_label: Any

    @property
    def baseline_mask(self) -> NDArray[np.bool_]:
        return self.labels == self.baseline_label

    @property
    def alternate_mask(self) -> NDArray[np.bool_]:
        return self.labels == self.alternate_label

    def with_labels(self, labels: NDArray) -> ConditionDesign:
        return ConditionDesign(labels, self.baseline_label, self.alternate_label)


def resolve_design(
    expression: ExpressionMatrix,
    design: DesignSource,
    baseline_label: Optional[Any] = None,
    alternate_label: Optional[Any] = None,
) -> ConditionDesign:
    """
    Resolve a design vector or metadata column into a ConditionDesign.

    When labels are not given, the design must contain exactly two distinct
    values; the smaller (after sorting) is the baseline, so a 0/1 design
    treats 0 as baseline.

    Raises:
        ValidationError: If the design length, column or labels are invalid
    """
    if isinstance(design, str):
        if design not in expression.sample_metadata.columns:
            raise ValidationError(
                f"design column '{design}' not in sample metadata "
                f"(available: {list(expression.sample_metadata.columns)})"
            )
        labels = expression.sample_metadata[design].to_numpy()
    else:
        labels = np.asarray(design.values if isinstance(design, pd.Series) else design)

    if labels.ndim != 1 or len(labels) != expression.n_samples:
        raise ValidationError(
            f"design must have one label per sample ({expression.n_samples}), got shape {labels.shape}"
        )

    if baseline_label is None or alternate_label is None:
        distinct = sorted(pd.unique(labels).tolist())
        if len(distinct) != 2:
            raise ValidationError(
                f"design must contain exactly two conditions when labels are not given, "
                f"found {len(distinct)}: {distinct[:5]}"
            )
        baseline_label, alternate_label = distinct

    if baseline_label == alternate_label:
        raise ValidationError("baseline and alternate labels must differ")
    for label in (baseline_label, alternate_label):
        if not np.any(labels == label):
            raise ValidationError(f"design has no samples labelled {label!r}")

    return ConditionDesign(labels, baseline_label, alternate_label)


def generate_free_permutation(
    labels: NDArray,
    rng: np.random.Generator,
) -> NDArray:
    """
    Permute labels freely (no stratification).

    Args:
        labels: Condition labels (n_samples,).
        rng: NumPy random generator.

    Returns:
        Permuted labels array.
    """
    return rng.permutation(labels)


def split_by_design(
    expression: ExpressionMatrix,
    design: ConditionDesign,
) -> tuple[ExpressionMatrix, ExpressionMatrix]:
    """Split into (baseline, alternate) matrices; other labels are dropped."""
    return (
        expression.select_samples(design.baseline_mask),
        expression.select_samples(design.alternate_mask),
    )
