"""
Transition matrix between two inferred networks.

Each TF's row of an inferred network is its regulatory profile: a point in
gene space. The transition matrix T is the linear map that best carries the
baseline profiles onto the alternate profiles:

    alternate ≈ T @ baseline        (TF × gene) ≈ (TF × TF) @ (TF × gene)

Row i of T says how TF i's alternate profile is assembled from the baseline
profiles of all TFs. Without reorganization T is the identity; off-diagonal
mass marks regulatory influence moving between TFs.

Solvers:
    ridge == 0: ordinary least squares via scipy.linalg.lstsq on
        baseline.T @ T.T = alternate.T
    ridge > 0: closed form T = A Bᵀ (B Bᵀ + λI)⁻¹

If there are fewer genes than TFs the OLS system is underdetermined, so the
estimator switches to ridge with ``underdetermined_ridge`` and logs it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any

import numpy as np
import pandas as pd
from scipy import linalg

from netstate.core.errors import ConvergenceError, InvalidOptionError, ValidationError

__all__ = [
    'TransitionOptions',
    'estimate_transition',
    'differential_tf_involvement',
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionOptions:
    """
    Transition estimation parameters.

    Attributes:
        ridge: L2 penalty λ; 0 means ordinary least squares
        underdetermined_ridge: λ used when ridge is 0 but genes < TFs
        standardize: Z-score each TF profile (row) of both networks first
        remove_diagonal: Zero the diagonal of the result, keeping only
            between-TF transitions
    """

    ridge: float = 0.0
    underdetermined_ridge: float = 1.0
    standardize: bool = False
    remove_diagonal: bool = False

    def __post_init__(self):
        if self.ridge < 0:
            raise InvalidOptionError(f"ridge must be >= 0, got {self.ridge}")
        if self.underdetermined_ridge <= 0:
            raise InvalidOptionError(
                f"underdetermined_ridge must be positive, got {self.underdetermined_ridge}"
            )

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> TransitionOptions:
        """Build options from a config mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidOptionError(f"Unknown transition option(s): {', '.join(unknown)}")
        return cls(**values)


def _check_networks(baseline: pd.DataFrame, alternate: pd.DataFrame) -> pd.DataFrame:
    """Validate labels and return ``alternate`` in baseline's row/column order."""
    if set(baseline.index) != set(alternate.index):
        only_base = sorted(set(baseline.index) - set(alternate.index))
        only_alt = sorted(set(alternate.index) - set(baseline.index))
        raise ValidationError(
            f"networks must share TFs: {len(only_base)} only in baseline {only_base[:5]}, "
            f"{len(only_alt)} only in alternate {only_alt[:5]}"
        )
    if set(baseline.columns) != set(alternate.columns):
        n_diff = len(set(baseline.columns) ^ set(alternate.columns))
        raise ValidationError(f"networks must share genes: {n_diff} gene(s) differ")

    alternate = alternate.loc[baseline.index, baseline.columns]
    for name, frame in (("baseline", baseline), ("alternate", alternate)):
        if not np.all(np.isfinite(frame.to_numpy(dtype=np.float64))):
            raise ValidationError(f"{name} network contains non-finite values")
    return alternate


def _standardize_rows(values: np.ndarray) -> np.ndarray:
    if values.shape[1] < 2:
        return np.zeros_like(values)
    mean = values.mean(axis=1, keepdims=True)
    sd = values.std(axis=1, ddof=1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        z = (values - mean) / sd
    z[(sd == 0).ravel(), :] = 0.0
    return z


def estimate_transition(
    baseline: pd.DataFrame,
    alternate: pd.DataFrame,
    options: TransitionOptions | None = None,
) -> pd.DataFrame:
    """
    Least-squares transition matrix mapping baseline onto alternate.

    Args:
        baseline: Inferred network for the baseline condition (TF × gene)
        alternate: Inferred network for the alternate condition (TF × gene)
        options: Solver options (OLS defaults if None)

    Returns:
        Square DataFrame (TF × TF) labelled with baseline's TF order

    Raises:
        ValidationError: If TF or gene labels differ or values are not finite
        ConvergenceError: If the least-squares solver fails

    Examples:
        >>> T = estimate_transition(net, net)
        >>> np.allclose(T.to_numpy(), np.eye(len(net)))
        True
    """
    options = options or TransitionOptions()
    alternate = _check_networks(baseline, alternate)

    b = baseline.to_numpy(dtype=np.float64)
    a = alternate.to_numpy(dtype=np.float64)
    if options.standardize:
        b = _standardize_rows(b)
        a = _standardize_rows(a)

    n_tfs, n_genes = b.shape
    ridge = options.ridge
    if ridge == 0 and n_genes < n_tfs:
        ridge = options.underdetermined_ridge
        logger.warning(
            f"Transition system is underdetermined ({n_genes} genes < {n_tfs} TFs); "
            f"using ridge penalty {ridge}"
        )

    try:
        if ridge == 0:
            solution, _, rank, _ = linalg.lstsq(b.T, a.T)
            if rank < n_tfs:
                logger.info(
                    f"Baseline network has rank {rank} < {n_tfs} TFs; "
                    f"returning the minimum-norm least-squares solution"
                )
            transition = solution.T
        else:
            gram = b @ b.T + ridge * np.eye(n_tfs)
            transition = linalg.solve(gram, b @ a.T, assume_a="pos").T
    except (linalg.LinAlgError, ValueError) as e:
        raise ConvergenceError(f"least-squares transition estimate failed: {e}") from e

    if not np.all(np.isfinite(transition)):
        raise ConvergenceError("least-squares transition estimate is not finite")

    if options.remove_diagonal:
        np.fill_diagonal(transition, 0.0)

    return pd.DataFrame(transition, index=baseline.index.copy(), columns=baseline.index.copy())


def differential_tf_involvement(transition: pd.DataFrame) -> pd.Series:
    """
    Per-TF sum of squared off-diagonal transition weights.

    For TF i this is sum_{j != i} T[i, j]^2: how much of TF i's alternate
    profile is drawn from other TFs' baseline profiles. Zero for an identity
    transition.

    Returns:
        Series indexed by TF, named "dTFI"
    """
    values = transition.to_numpy(dtype=np.float64).copy()
    np.fill_diagonal(values, 0.0)
    return pd.Series((values ** 2).sum(axis=1), index=transition.index.copy(), name="dTFI")
