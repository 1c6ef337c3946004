"""
Transition estimation between inferred networks and its permutation nulls.

Modules:
    transition: least-squares TF × TF transition matrix, dTFI summary
    null_ensemble: randomized re-runs producing a NullEnsemble
    design: baseline/alternate sample assignment and label permutation
"""

from .design import ConditionDesign, generate_free_permutation, resolve_design, split_by_design
from .null_ensemble import (
    NullEnsemble,
    NullOptions,
    build_label_null_ensemble,
    build_null_ensemble,
    derive_seeds,
    generate_label_null_member,
    generate_null_member,
)
from .transition import TransitionOptions, differential_tf_involvement, estimate_transition

__all__ = [
    # Transition
    "TransitionOptions",
    "estimate_transition",
    "differential_tf_involvement",
    # Null ensemble
    "NullOptions",
    "NullEnsemble",
    "derive_seeds",
    "generate_null_member",
    "generate_label_null_member",
    "build_null_ensemble",
    "build_label_null_ensemble",
    # Design
    "ConditionDesign",
    "resolve_design",
    "generate_free_permutation",
    "split_by_design",
]
