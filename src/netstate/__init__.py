"""
netstate - Regulatory network inference and state transitions

Infers bipartite TF → gene networks from expression and motif data, then
estimates the transition matrix that reorganizes one condition's network
into another's, with permutation nulls for significance testing.
"""

__version__ = "0.1.0"

from netstate.analysis import TransitionAnalysisResult, run_transition_analysis
from netstate.core.alignment import AlignedData, align
from netstate.core.errors import ConvergenceError, ValidationError
from netstate.core.expression import ExpressionMatrix
from netstate.core.motif import MotifEdge
from netstate.core.randomization import RandomizationMode
from netstate.inference import InferenceMethod, InferenceOptions, Regularization, infer
from netstate.stats import (
    NullEnsemble,
    NullOptions,
    TransitionOptions,
    build_null_ensemble,
    estimate_transition,
)

__all__ = [
    "ExpressionMatrix",
    "MotifEdge",
    "AlignedData",
    "align",
    "RandomizationMode",
    "infer",
    "InferenceMethod",
    "InferenceOptions",
    "Regularization",
    "estimate_transition",
    "TransitionOptions",
    "build_null_ensemble",
    "NullOptions",
    "NullEnsemble",
    "run_transition_analysis",
    "TransitionAnalysisResult",
    "ValidationError",
    "ConvergenceError",
]
