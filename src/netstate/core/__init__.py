"""
Core data structures shared by every inference method.

1. ExpressionMatrix: immutable gene × condition matrix with identifiers
2. Motif edges and the RegulatoryNetwork pivot
3. AlignedData / align(): the validated, sorted common gene universe
4. Transform and the randomizations used for permutation nulls
5. The error hierarchy (ValidationError, ConvergenceError)

Examples:
    >>> from netstate.core import align
    >>> aligned = align(motifs, expression)
    >>> aligned.regulatory_network.shape
    (n_tfs, n_genes)
"""

from netstate.core.alignment import AlignedData, MIN_CONDITIONS, align, as_expression_matrix
from netstate.core.errors import (
    ConvergenceError,
    InsufficientConditionsError,
    InvalidOptionError,
    NetStateError,
    NoMatchedGenesError,
    TFExpressionMismatchError,
    ValidationError,
)
from netstate.core.expression import ExpressionMatrix
from netstate.core.motif import MotifEdge, motif_presence, motif_table, regulatory_network
from netstate.core.randomization import (
    GeneLabelPermutation,
    RandomizationMode,
    WithinGenePermutation,
    make_randomizer,
)
from netstate.core.transform import Transform

__all__ = [
    'AlignedData',
    'MIN_CONDITIONS',
    'align',
    'as_expression_matrix',
    'ExpressionMatrix',
    'MotifEdge',
    'motif_presence',
    'motif_table',
    'regulatory_network',
    'RandomizationMode',
    'WithinGenePermutation',
    'GeneLabelPermutation',
    'make_randomizer',
    'Transform',
    'NetStateError',
    'ValidationError',
    'NoMatchedGenesError',
    'InsufficientConditionsError',
    'TFExpressionMismatchError',
    'InvalidOptionError',
    'ConvergenceError',
]
