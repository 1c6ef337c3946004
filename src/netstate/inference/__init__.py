"""
Network inference engine.

Three interchangeable methods reconstruct TF → gene edges:

* ``pearson`` -- squared TF-gene correlation (:class:`PearsonStrategy`)
* ``bere`` -- direct + logistic-regression indirect evidence (:class:`BereStrategy`)
* ``cd`` -- correlation difference of motif targets (:class:`CorrelationDifferenceStrategy`)
"""

from __future__ import annotations

from .engine import infer, infer_aligned
from .evidence import correlation_difference, direct_evidence, motif_boost
from .options import InferenceMethod, InferenceOptions, Regularization
from .regression import fit_ridge, fit_unregularized, indirect_evidence
from .strategies import (
    BereStrategy,
    CorrelationDifferenceStrategy,
    InferenceStrategy,
    PearsonStrategy,
    get_strategy,
)

__all__ = [
    "infer",
    "infer_aligned",
    "InferenceMethod",
    "InferenceOptions",
    "Regularization",
    "InferenceStrategy",
    "PearsonStrategy",
    "BereStrategy",
    "CorrelationDifferenceStrategy",
    "get_strategy",
    "direct_evidence",
    "indirect_evidence",
    "correlation_difference",
    "motif_boost",
    "fit_unregularized",
    "fit_ridge",
]
