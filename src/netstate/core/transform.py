"""
Seedable operations on expression matrices.

A Transform maps one ExpressionMatrix to a new one and never touches its
input. The randomizations behind every permutation null are Transforms, so a
single loaded matrix can feed any number of shuffled copies, including from
worker threads.

A Transform records the parameters it was built with (for randomizations,
the seed), which makes ``repr(transform)`` enough to regenerate its output:

    >>> WithinGenePermutation(seed=42)
    WithinGenePermutation(seed=42)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from netstate.core.expression import ExpressionMatrix

__all__ = ['Transform']


class Transform(ABC):
    """
    Base class for ExpressionMatrix → ExpressionMatrix operations.

    Attributes:
        name: Label used in logs and repr
        params: Parameters that fully determine the output for a given input
    """

    def __init__(self, name: str, params: dict[str, Any]) -> None:
        self.name = name
        self.params = params

    @abstractmethod
    def apply(self, matrix: ExpressionMatrix) -> ExpressionMatrix:
        """Return the transformed copy of ``matrix``."""
        ...

    def validate(self, matrix: ExpressionMatrix) -> list[str]:
        """
        Problems that prevent applying this transform (empty list = ok).

        Subclasses extending the checks should start from super().validate().
        """
        if matrix.n_genes == 0 or matrix.n_samples == 0:
            return [f"empty matrix ({matrix.n_genes} genes × {matrix.n_samples} samples)"]
        return []

    def __call__(self, matrix: ExpressionMatrix) -> ExpressionMatrix:
        problems = self.validate(matrix)
        if problems:
            raise ValueError(f"{self.name} cannot be applied: " + "; ".join(problems))
        return self.apply(matrix)

    def __repr__(self) -> str:
        args = ", ".join(f"{key}={value}" for key, value in self.params.items())
        return f"{self.name}({args})"
