"""
Expression randomizations used to build permutation nulls.

Two gene-level randomizations are provided as Transforms:

    WithinGenePermutation -- shuffles each gene's values across samples
        independently. Every gene keeps its marginal distribution, but the
        shared condition structure that produces co-expression is destroyed.

    GeneLabelPermutation -- shuffles which identifier labels which row. Each
        row keeps its values, but the link between a gene and its motif
        evidence is broken.

A third mode, SAMPLE_LABELS, permutes which samples belong to the baseline
and the alternate condition. It acts on a sample design vector rather than on
an aligned matrix, so it is implemented in the transition analysis layer and
rejected by the aligner.
"""

from __future__ import annotations

from enum import Enum

import numpy as np
import pandas as pd

from netstate.core.errors import InvalidOptionError
from netstate.core.expression import ExpressionMatrix
from netstate.core.transform import Transform

__all__ = [
    'RandomizationMode',
    'WithinGenePermutation',
    'GeneLabelPermutation',
    'make_randomizer',
]


class RandomizationMode(Enum):
    """Randomization applied to expression data after alignment."""

    NONE = "none"
    WITHIN_GENE = "within-gene"
    BY_GENE_LABEL = "by-gene-label"
    SAMPLE_LABELS = "sample-labels"

    @classmethod
    def parse(cls, value: RandomizationMode | str | None) -> RandomizationMode:
        """Accept enum members, their values, or the dotted aliases (within.gene, by.genes)."""
        if value is None:
            return cls.NONE
        if isinstance(value, cls):
            return value
        aliases = {"within.gene": cls.WITHIN_GENE, "by.genes": cls.BY_GENE_LABEL}
        if value in aliases:
            return aliases[value]
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise InvalidOptionError(
                f"Unknown randomization mode '{value}'. Expected one of: {valid}"
            ) from None


class WithinGenePermutation(Transform):
    """Independently permute each gene's values across samples."""

    def __init__(self, seed: int | np.random.SeedSequence | None = None):
        super().__init__(name="WithinGenePermutation", params={"seed": seed})
        self.seed = seed

    def apply(self, matrix: ExpressionMatrix) -> ExpressionMatrix:
        rng = np.random.default_rng(self.seed)
        # Generator.permuted shuffles every row along axis 1 independently
        data = rng.permuted(matrix.data, axis=1)
        return matrix.with_data(data)


class GeneLabelPermutation(Transform):
    """
    Shuffle gene labels across rows, then restore sorted label order.

    The returned matrix has exactly the input's gene_ids (in the same sorted
    order) but each label now points at another gene's values.
    """

    def __init__(self, seed: int | np.random.SeedSequence | None = None):
        super().__init__(name="GeneLabelPermutation", params={"seed": seed})
        self.seed = seed

    def apply(self, matrix: ExpressionMatrix) -> ExpressionMatrix:
        rng = np.random.default_rng(self.seed)
        shuffled_labels = matrix.gene_ids[rng.permutation(matrix.n_genes)]
        order = np.argsort(shuffled_labels.to_numpy(), kind="stable")
        return matrix.with_data(
            matrix.data[order, :],
            gene_ids=pd.Index(shuffled_labels[order]),
        )


def make_randomizer(
    mode: RandomizationMode | str | None,
    seed: int | np.random.SeedSequence | None = None,
) -> Transform | None:
    """
    Build the Transform for a gene-level randomization mode.

    Returns None for RandomizationMode.NONE.

    Raises:
        InvalidOptionError: For SAMPLE_LABELS, which needs a sample design and
            cannot be applied to a single matrix.
    """
    mode = RandomizationMode.parse(mode)
    if mode is RandomizationMode.NONE:
        return None
    if mode is RandomizationMode.WITHIN_GENE:
        return WithinGenePermutation(seed)
    if mode is RandomizationMode.BY_GENE_LABEL:
        return GeneLabelPermutation(seed)
    raise InvalidOptionError(
        "sample-labels randomization permutes the baseline/alternate sample "
        "design and is only available through run_transition_analysis()"
    )
