"""
Exception hierarchy for network inference and transition estimation.

Two families of failure are distinguished:

    ValidationError  -- bad or mismatched input. Always fatal to the current
                        call and never retried. The message names the
                        specific mismatch (missing identifiers, condition
                        counts, offending option).
    ConvergenceError -- a regression or least-squares fit did not converge
                        within its iteration budget. Fatal to that fit only;
                        per-TF callers isolate it and fall back to a
                        documented constant value.
"""

from __future__ import annotations

from typing import Iterable

__all__ = [
    'NetStateError',
    'ValidationError',
    'NoMatchedGenesError',
    'InsufficientConditionsError',
    'TFExpressionMismatchError',
    'InvalidOptionError',
    'ConvergenceError',
]


def _preview(ids: Iterable[str], limit: int = 5) -> str:
    ids = list(ids)
    shown = ", ".join(str(i) for i in ids[:limit])
    if len(ids) > limit:
        shown += f", ... ({len(ids) - limit} more)"
    return shown


class NetStateError(Exception):
    """Base class for all errors raised by netstate."""
    pass


class ValidationError(NetStateError, ValueError):
    """Raised when inputs are malformed or do not line up with each other."""
    pass


class NoMatchedGenesError(ValidationError):
    """Raised when motif genes and expression genes do not intersect."""

    def __init__(self, n_motif_genes: int, n_expression_genes: int):
        self.n_motif_genes = n_motif_genes
        self.n_expression_genes = n_expression_genes
        super().__init__(
            f"Error validating data: no matched genes between {n_motif_genes} "
            f"motif genes and {n_expression_genes} expression genes. Please "
            f"ensure that gene names in the expression data match gene names "
            f"in the motif data."
        )


class InsufficientConditionsError(ValidationError):
    """Raised when the expression matrix has too few columns for correlation."""

    def __init__(self, n_conditions: int, minimum: int = 3):
        self.n_conditions = n_conditions
        self.minimum = minimum
        super().__init__(
            f"insufficient conditions: {n_conditions} expression conditions "
            f"detected, at least {minimum} are needed to calculate correlation"
        )


class TFExpressionMismatchError(ValidationError):
    """Raised when TFs needed for direct evidence have no expression profile."""

    def __init__(self, missing_tfs: Iterable[str]):
        self.missing_tfs = sorted(missing_tfs)
        super().__init__(
            f"TF/expression identifier mismatch: {len(self.missing_tfs)} "
            f"transcription factor(s) have no row in the expression data: "
            f"{_preview(self.missing_tfs)}"
        )


class InvalidOptionError(ValidationError):
    """Raised when a method name or option value is not recognized."""
    pass


class ConvergenceError(NetStateError, RuntimeError):
    """Raised when a regression or least-squares fit fails to converge."""

    def __init__(self, message: str, entity: str | None = None):
        self.entity = entity
        if entity is not None:
            message = f"{entity}: {message}"
        super().__init__(message)
