"""
Expression data container.

ExpressionMatrix holds a genes × samples array together with its gene and
sample identifiers and optional per-sample annotations (for example the
condition each sample belongs to).

Rows include the genes encoding transcription factors: a TF's expression
profile is looked up by identifier among the rows. Alignment, randomization
and condition splits all return new matrices, so the permutation nulls can
derive many shuffled copies from one loaded matrix without copying it up
front.

    >>> matrix = ExpressionMatrix.from_dataframe(frame)
    >>> early = matrix.select_samples(matrix.sample_metadata["time"] < 3)
    >>> targets = matrix.select_genes(["G1", "G2"])
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from netstate.core.errors import ValidationError

__all__ = ['ExpressionMatrix']


class ExpressionMatrix:
    """
    Genes × samples values with identifiers; every operation returns a new instance.

    The constructor enforces: one gene id per row (unique), one sample id per
    column, and sample_metadata indexed exactly by sample_ids. Values are
    stored as float64 with NaN marking missing measurements.
    """

    def __init__(
        self,
        data: np.ndarray,
        gene_ids: pd.Index,
        sample_ids: pd.Index,
        sample_metadata: Optional[pd.DataFrame] = None,
    ):
        """
        Raises:
            TypeError: If data is not an ndarray or the ids are not pd.Index
            ValueError: On shape or metadata index mismatches
            ValidationError: On duplicated gene ids
        """
        if not isinstance(data, np.ndarray):
            raise TypeError(f"data must be np.ndarray, got {type(data)}")
        if not isinstance(gene_ids, pd.Index):
            raise TypeError(f"gene_ids must be pd.Index, got {type(gene_ids)}")
        if not isinstance(sample_ids, pd.Index):
            raise TypeError(f"sample_ids must be pd.Index, got {type(sample_ids)}")

        if data.ndim != 2:
            raise ValueError(f"data must be 2D, got shape {data.shape}")

        n_genes, n_samples = data.shape

        if len(gene_ids) != n_genes:
            raise ValueError(
                f"gene_ids length ({len(gene_ids)}) must match data rows ({n_genes})"
            )
        if len(sample_ids) != n_samples:
            raise ValueError(
                f"sample_ids length ({len(sample_ids)}) must match data columns ({n_samples})"
            )
        if not gene_ids.is_unique:
            duplicated = gene_ids[gene_ids.duplicated()].unique()
            raise ValidationError(
                f"gene_ids must be unique, found {len(duplicated)} duplicated "
                f"identifier(s) such as {list(duplicated[:3])}"
            )

        if sample_metadata is None:
            sample_metadata = pd.DataFrame(index=sample_ids)
        elif not isinstance(sample_metadata, pd.DataFrame):
            raise TypeError(f"sample_metadata must be pd.DataFrame, got {type(sample_metadata)}")
        elif not sample_metadata.index.equals(sample_ids):
            raise ValueError(
                "sample_metadata.index must match sample_ids exactly. "
                f"Got {len(sample_metadata.index)} metadata rows for {len(sample_ids)} samples."
            )

        self._data = data.astype(np.float64, copy=False)
        self._gene_ids = gene_ids
        self._sample_ids = sample_ids
        self._sample_metadata = sample_metadata

    @classmethod
    def from_dataframe(
        cls,
        frame: pd.DataFrame,
        sample_metadata: Optional[pd.DataFrame] = None,
    ) -> ExpressionMatrix:
        """
        Build a matrix from a genes × samples DataFrame.

        Gene identifiers are taken from the index and coerced to strings so
        that downstream sorting is a total order.
        """
        return cls(
            data=frame.to_numpy(dtype=np.float64),
            gene_ids=pd.Index(frame.index.astype(str)),
            sample_ids=pd.Index(frame.columns.astype(str)),
            sample_metadata=sample_metadata,
        )

    @property
    def data(self) -> np.ndarray:
        """Expression matrix (genes × samples)."""
        return self._data

    @property
    def gene_ids(self) -> pd.Index:
        """Row identifiers."""
        return self._gene_ids

    @property
    def sample_ids(self) -> pd.Index:
        """Column identifiers."""
        return self._sample_ids

    @property
    def sample_metadata(self) -> pd.DataFrame:
        """Sample annotations."""
        return self._sample_metadata

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_genes, n_samples)."""
        return self._data.shape

    @property
    def n_genes(self) -> int:
        """Number of genes."""
        return self._data.shape[0]

    @property
    def n_samples(self) -> int:
        """Number of samples (conditions)."""
        return self._data.shape[1]

    @property
    def has_missing(self) -> bool:
        """True if any value is NaN."""
        return bool(np.isnan(self._data).any())

    def select_samples(self, mask: np.ndarray | pd.Series) -> ExpressionMatrix:
        """Keep the columns where ``mask`` is True (a Series mask is used positionally)."""
        if isinstance(mask, pd.Series):
            mask = mask.values
        mask = np.asarray(mask, dtype=bool)

        if len(mask) != self.n_samples:
            raise ValueError(
                f"mask length ({len(mask)}) must match n_samples ({self.n_samples})"
            )

        return ExpressionMatrix(
            data=self._data[:, mask],
            gene_ids=self._gene_ids,
            sample_ids=self._sample_ids[mask],
            sample_metadata=self._sample_metadata.loc[self._sample_ids[mask]],
        )

    def select_genes(self, gene_ids: list[str] | pd.Index) -> ExpressionMatrix:
        """
        Subset and reorder rows to the given identifiers.

        Args:
            gene_ids: Identifiers to keep, in the desired output order.
                Every identifier must be present.

        Returns:
            New ExpressionMatrix whose rows follow gene_ids

        Raises:
            KeyError: If an identifier is not in the matrix
        """
        positions = self._gene_ids.get_indexer(gene_ids)
        if np.any(positions < 0):
            missing = [g for g, p in zip(gene_ids, positions) if p < 0]
            raise KeyError(f"{len(missing)} gene(s) not in matrix: {missing[:5]}")

        return ExpressionMatrix(
            data=self._data[positions, :],
            gene_ids=pd.Index(gene_ids),
            sample_ids=self._sample_ids,
            sample_metadata=self._sample_metadata,
        )

    def with_data(
        self,
        data: np.ndarray,
        gene_ids: Optional[pd.Index] = None,
    ) -> ExpressionMatrix:
        """Return a new matrix with replaced values (and optionally relabelled rows)."""
        return ExpressionMatrix(
            data=data,
            gene_ids=self._gene_ids if gene_ids is None else gene_ids,
            sample_ids=self._sample_ids,
            sample_metadata=self._sample_metadata,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Genes × samples DataFrame view of the values."""
        return pd.DataFrame(self._data, index=self._gene_ids, columns=self._sample_ids)

    def copy(self) -> ExpressionMatrix:
        """Deep copy (values, identifiers and metadata)."""
        return ExpressionMatrix(
            data=self._data.copy(),
            gene_ids=self._gene_ids.copy(),
            sample_ids=self._sample_ids.copy(),
            sample_metadata=self._sample_metadata.copy(),
        )

    def __repr__(self) -> str:
        summary = f"ExpressionMatrix({self.n_genes} genes × {self.n_samples} samples)"
        if self.n_genes == 0 or self.n_samples == 0:
            return summary
        return (
            f"{summary} genes {self.gene_ids[0]}..{self.gene_ids[-1]}, "
            f"metadata {list(self.sample_metadata.columns)}"
        )
