"""Utility modules: correlation engine, statistics helpers, progress reporting."""

from netstate.utils.correlation import (
    CorrelationStrategy,
    correlation_matrix,
    cross_correlation,
    fill_undefined,
)
from netstate.utils.progress import (
    ProgressReporter,
    NullProgress,
    TqdmProgress,
    LoggingProgress,
)
from netstate.utils.statistics import (
    rank_matrix,
    logistic,
    scale_columns,
)

__all__ = [
    # Correlation engine
    'CorrelationStrategy',
    'correlation_matrix',
    'cross_correlation',
    'fill_undefined',
    # Progress reporting
    'ProgressReporter',
    'NullProgress',
    'TqdmProgress',
    'LoggingProgress',
    # Statistics helpers
    'rank_matrix',
    'logistic',
    'scale_columns',
]
