"""
Inference method selection and options.

Method names are parsed into InferenceMethod when options or strategies are
built, so a misspelled method fails immediately with InvalidOptionError
instead of deep inside a computation.

Per-method defaults:

    +---------+-----------------+----------------+
    | method  | rank_transform  | motif_included |
    +=========+=================+================+
    | pearson | n/a             | False          |
    | bere    | True if L2,     | True           |
    |         | False if none   |                |
    | cd      | n/a             | False          |
    +---------+-----------------+----------------+

Both can be forced on or off through InferenceOptions.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Optional

from netstate.core.errors import InvalidOptionError
from netstate.utils.correlation import CorrelationStrategy

__all__ = [
    'InferenceMethod',
    'Regularization',
    'InferenceOptions',
]


class InferenceMethod(Enum):
    """
    Registered network inference methods.

    Attributes:
        PEARSON: Squared TF-gene Pearson correlation (direct evidence only)
        BERE: Bipartite Edge Reconstruction from Expression; combines direct
            evidence with logistic-regression indirect evidence
        CD: Correlation difference between each TF's motif targets and
            non-targets
    """

    PEARSON = "pearson"
    BERE = "bere"
    CD = "cd"

    @classmethod
    def parse(cls, value: InferenceMethod | str) -> InferenceMethod:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise InvalidOptionError(
                f"Unknown inference method '{value}'. Expected one of: {valid}"
            ) from None


class Regularization(Enum):
    """Regression back-end for BERE indirect evidence."""

    NONE = "none"
    L2 = "L2"

    @classmethod
    def parse(cls, value: Regularization | str | None) -> Regularization:
        if value is None:
            return cls.NONE
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value.lower() == str(value).lower():
                return member
        valid = ", ".join(m.value for m in cls)
        raise InvalidOptionError(
            f"Unknown regularization '{value}'. Expected one of: {valid}"
        )


@dataclass(frozen=True)
class InferenceOptions:
    """
    Tuning parameters shared by the inference methods.

    Attributes:
        regularization: BERE regression back-end (NONE = statsmodels GLM,
            L2 = ridge-penalized logistic regression via scikit-learn)
        weight: Weight of indirect evidence in [0, 1]; the consensus is
            ``direct * (1 - weight) + indirect * weight``
        penalty: L2 penalty strength (lambda) for the ridge back-end
        coefficient_cutoff: Optional p-value cutoff; GLM coefficients with a
            larger p-value are zeroed before predicting
        rank_transform: Rank both evidence matrices before combining.
            None selects the per-back-end default.
        motif_included: Add the consensus range to motif-supported edges.
            None selects the per-method default.
        max_iter: Iteration budget for each regression fit
        strict: Re-raise ConvergenceError instead of using the per-TF fallback
        correlation_strategy: Correlation engine strategy for evidence
        motif_aggregation: Rule for duplicated (TF, gene) motif pairs
    """

    regularization: Regularization = Regularization.NONE
    weight: float = 1.0
    penalty: float = 10.0
    coefficient_cutoff: Optional[float] = None
    rank_transform: Optional[bool] = None
    motif_included: Optional[bool] = None
    max_iter: int = 100
    strict: bool = False
    correlation_strategy: CorrelationStrategy = CorrelationStrategy.AUTO
    motif_aggregation: str = "max"

    def __post_init__(self):
        # Frozen dataclass: normalize enum-typed fields via object.__setattr__
        object.__setattr__(self, "regularization", Regularization.parse(self.regularization))
        object.__setattr__(
            self, "correlation_strategy", CorrelationStrategy.parse(self.correlation_strategy)
        )

        if not 0.0 <= self.weight <= 1.0:
            raise InvalidOptionError(f"weight must be in [0, 1], got {self.weight}")
        if self.penalty <= 0:
            raise InvalidOptionError(f"penalty must be positive, got {self.penalty}")
        if self.coefficient_cutoff is not None and not 0.0 < self.coefficient_cutoff <= 1.0:
            raise InvalidOptionError(
                f"coefficient_cutoff must be in (0, 1], got {self.coefficient_cutoff}"
            )
        if self.max_iter < 1:
            raise InvalidOptionError(f"max_iter must be >= 1, got {self.max_iter}")

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> InferenceOptions:
        """Build options from a config mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidOptionError(f"Unknown inference option(s): {', '.join(unknown)}")
        return cls(**values)

    def resolve_rank_transform(self) -> bool:
        if self.rank_transform is not None:
            return self.rank_transform
        return self.regularization is Regularization.L2

    def resolve_motif_included(self, method: InferenceMethod) -> bool:
        if self.motif_included is not None:
            return self.motif_included
        return method is InferenceMethod.BERE
