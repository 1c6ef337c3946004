"""
Pearson correlation matrices over expression rows.

Two interchangeable strategies compute the same quantity:

    STANDARDIZED:
        Z = (X - mean) / std (ddof=1) per row, then corr = Z @ Z.T / (m - 1).
        One BLAS matrix product per chunk of rows. Requires complete data.

    PAIRWISE:
        Direct Pearson for every pair of rows using only the columns where
        both rows are observed (pairwise-complete observations). Pairs with
        fewer than 2 shared columns are NaN.

    AUTO (default):
        STANDARDIZED when the data has no NaN, PAIRWISE otherwise.

On complete data the two agree to floating-point precision. Rows with zero
variance have undefined correlation (NaN) under both strategies. Consumers
that combine correlations into evidence scores must call fill_undefined()
first so NaN never propagates into an inferred network.

USAGE:
    >>> from netstate.utils.correlation import correlation_matrix, fill_undefined
    >>> corr = fill_undefined(correlation_matrix(expression.data))
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

import numpy as np

from netstate.core.errors import InvalidOptionError
from netstate.utils.progress import ProgressReporter, resolve_progress

__all__ = [
    'CorrelationStrategy',
    'correlation_matrix',
    'cross_correlation',
    'fill_undefined',
]

logger = logging.getLogger(__name__)


class CorrelationStrategy(Enum):
    """How correlations are computed."""

    AUTO = "auto"
    STANDARDIZED = "standardized"
    PAIRWISE = "pairwise"

    @classmethod
    def parse(cls, value: CorrelationStrategy | str) -> CorrelationStrategy:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise InvalidOptionError(
                f"Unknown correlation strategy '{value}'. Expected one of: {valid}"
            ) from None


def _standardize(data: np.ndarray) -> np.ndarray:
    """Row z-scores with ddof=1; zero-variance rows become NaN."""
    n_samples = data.shape[1]
    mean = data.mean(axis=1, keepdims=True)
    centered = data - mean
    std = np.sqrt((centered ** 2).sum(axis=1, keepdims=True) / (n_samples - 1))
    with np.errstate(invalid="ignore", divide="ignore"):
        z = centered / std
    z[(std == 0).ravel(), :] = np.nan
    return z


def _resolve_strategy(
    strategy: CorrelationStrategy | str,
    *arrays: np.ndarray,
) -> CorrelationStrategy:
    strategy = CorrelationStrategy.parse(strategy)
    has_missing = any(np.isnan(a).any() for a in arrays)

    if strategy is CorrelationStrategy.AUTO:
        return CorrelationStrategy.PAIRWISE if has_missing else CorrelationStrategy.STANDARDIZED
    if strategy is CorrelationStrategy.STANDARDIZED and has_missing:
        logger.info("Missing values present; falling back to pairwise correlation")
        return CorrelationStrategy.PAIRWISE
    return strategy


def _pairwise_row(x: np.ndarray, others: np.ndarray) -> np.ndarray:
    """
    Pearson correlation of one row against many using pairwise-complete columns.

    Args:
        x: Row vector (m,), may contain NaN
        others: Matrix (k × m), may contain NaN

    Returns:
        Correlations (k,), NaN where fewer than 2 shared columns or zero variance
    """
    valid = ~np.isnan(others) & ~np.isnan(x)[np.newaxis, :]
    n_shared = valid.sum(axis=1)

    x_filled = np.where(valid, x[np.newaxis, :], 0.0)
    y_filled = np.where(valid, others, 0.0)

    with np.errstate(invalid="ignore", divide="ignore"):
        mean_x = x_filled.sum(axis=1) / n_shared
        mean_y = y_filled.sum(axis=1) / n_shared

        dx = np.where(valid, x_filled - mean_x[:, np.newaxis], 0.0)
        dy = np.where(valid, y_filled - mean_y[:, np.newaxis], 0.0)

        cov = (dx * dy).sum(axis=1)
        var_x = (dx * dx).sum(axis=1)
        var_y = (dy * dy).sum(axis=1)

        corr = cov / np.sqrt(var_x * var_y)

    undefined = (n_shared < 2) | (var_x == 0) | (var_y == 0)
    corr[undefined] = np.nan
    return np.clip(corr, -1.0, 1.0)


def correlation_matrix(
    data: np.ndarray,
    strategy: CorrelationStrategy | str = CorrelationStrategy.AUTO,
    chunk_size: int = 500,
    progress: Optional[ProgressReporter] = None,
) -> np.ndarray:
    """
    Square Pearson correlation matrix over the rows of ``data``.

    Args:
        data: Matrix (n_rows × n_conditions), NaN marks missing values
        strategy: STANDARDIZED, PAIRWISE or AUTO (see module docstring)
        chunk_size: Rows per matrix product in the standardized path
        progress: Optional progress reporter

    Returns:
        Symmetric float64 matrix (n_rows × n_rows). May contain NaN for rows
        with zero variance or too few shared observations.

    Raises:
        ValueError: If data is not 2D
    """
    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 2:
        raise ValueError(f"data must be 2D, got shape {data.shape}")

    n_rows, n_samples = data.shape
    progress = resolve_progress(progress)
    strategy = _resolve_strategy(strategy, data)
    result = np.empty((n_rows, n_rows), dtype=np.float64)

    if n_samples < 2:
        result.fill(np.nan)
        return result

    if strategy is CorrelationStrategy.STANDARDIZED:
        z = _standardize(data)
        n_chunks = (n_rows + chunk_size - 1) // chunk_size
        progress.start(n_chunks, "Computing correlations")
        for chunk_idx in range(n_chunks):
            start = chunk_idx * chunk_size
            end = min(start + chunk_size, n_rows)
            result[start:end, :] = (z[start:end, :] @ z.T) / (n_samples - 1)
            progress.advance()
        progress.close()
        np.clip(result, -1.0, 1.0, out=result)
        # Products of NaN rows are already NaN; keep the defined diagonal exact
        defined = ~np.isnan(np.diag(result))
        result[np.diag_indices(n_rows)] = np.where(defined, 1.0, np.nan)
        return result

    # Pairwise: fill the upper triangle row by row, then mirror
    progress.start(n_rows, "Computing pairwise correlations")
    for i in range(n_rows):
        row = _pairwise_row(data[i], data[i:])
        result[i, i:] = row
        result[i:, i] = row
        progress.advance()
    progress.close()

    diagonal = np.diag(result).copy()
    result[np.diag_indices(n_rows)] = np.where(np.isnan(diagonal), np.nan, 1.0)
    return result


def cross_correlation(
    rows: np.ndarray,
    columns: np.ndarray,
    strategy: CorrelationStrategy | str = CorrelationStrategy.AUTO,
    progress: Optional[ProgressReporter] = None,
) -> np.ndarray:
    """
    Rectangular Pearson correlation between two row sets sharing conditions.

    Args:
        rows: Matrix (p × m), e.g. TF expression profiles
        columns: Matrix (q × m), e.g. gene expression profiles

    Returns:
        Matrix (p × q) with corr(rows[i], columns[j]); NaN where undefined
    """
    rows = np.asarray(rows, dtype=np.float64)
    columns = np.asarray(columns, dtype=np.float64)
    if rows.ndim != 2 or columns.ndim != 2:
        raise ValueError("rows and columns must both be 2D")
    if rows.shape[1] != columns.shape[1]:
        raise ValueError(
            f"rows and columns must share conditions, got {rows.shape[1]} and {columns.shape[1]}"
        )

    n_samples = rows.shape[1]
    if n_samples < 2:
        return np.full((rows.shape[0], columns.shape[0]), np.nan)

    strategy = _resolve_strategy(strategy, rows, columns)
    if strategy is CorrelationStrategy.STANDARDIZED:
        result = (_standardize(rows) @ _standardize(columns).T) / (n_samples - 1)
        return np.clip(result, -1.0, 1.0)

    progress = resolve_progress(progress)
    result = np.empty((rows.shape[0], columns.shape[0]), dtype=np.float64)
    progress.start(rows.shape[0], "Computing pairwise correlations")
    for i in range(rows.shape[0]):
        result[i, :] = _pairwise_row(rows[i], columns)
        progress.advance()
    progress.close()
    return result


def fill_undefined(corr: np.ndarray, value: float = 0.0) -> np.ndarray:
    """Copy of ``corr`` with NaN (undefined correlations) replaced by ``value``."""
    return np.where(np.isnan(corr), value, corr)
