"""
Shared statistical utilities for network scoring.

Functions:
    rank_matrix: Rank all entries of a matrix jointly (average ties)
    logistic: Numerically stable inverse-logit
    scale_columns: Divide each column by its standard deviation
"""

from __future__ import annotations

import numpy as np
from scipy import stats
from scipy.special import expit

__all__ = [
    'rank_matrix',
    'logistic',
    'scale_columns',
]


def rank_matrix(values: np.ndarray) -> np.ndarray:
    """
    Rank every entry of a matrix within the whole matrix.

    Ties receive the average of the ranks they span, so two evidence matrices
    on different scales become directly comparable after ranking.

    Args:
        values: 2D array without NaN

    Returns:
        Array of the same shape holding ranks 1..values.size

    Example:
        >>> rank_matrix(np.array([[0.1, 0.5], [0.5, 0.9]]))
        array([[1. , 2.5],
               [2.5, 4. ]])
    """
    values = np.asarray(values, dtype=np.float64)
    if np.isnan(values).any():
        raise ValueError("Cannot rank a matrix containing NaN")
    return stats.rankdata(values, method="average").reshape(values.shape)


def logistic(linear_predictor: np.ndarray) -> np.ndarray:
    """Inverse of the logit link: 1 / (1 + exp(-eta))."""
    return expit(linear_predictor)


def scale_columns(values: np.ndarray, ddof: int = 1) -> np.ndarray:
    """
    Divide each column by its standard deviation.

    Columns with zero (or undefined) standard deviation are set to 0 instead of
    producing inf/NaN.
    """
    values = np.asarray(values, dtype=np.float64)
    if values.shape[0] <= ddof:
        return np.zeros_like(values)
    sd = values.std(axis=0, ddof=ddof)
    with np.errstate(invalid="ignore", divide="ignore"):
        scaled = values / sd[np.newaxis, :]
    scaled[:, ~(sd > 0)] = 0.0
    return scaled
