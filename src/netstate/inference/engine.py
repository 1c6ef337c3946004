"""
Network inference entry points.

    >>> from netstate.inference import infer, InferenceOptions
    >>> network = infer(motifs, expression, method="bere",
    ...                 options=InferenceOptions(weight=0.5, regularization="L2"))

infer() aligns the inputs and dispatches to the strategy for ``method``.
infer_aligned() skips alignment for callers that already hold AlignedData
(the transition analysis aligns once per condition and reuses it).
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import numpy as np
import pandas as pd

from netstate.core.alignment import AlignedData, ExpressionSource, align
from netstate.core.motif import MotifSource
from netstate.core.randomization import RandomizationMode
from netstate.inference.options import InferenceMethod, InferenceOptions
from netstate.inference.strategies import get_strategy
from netstate.utils.progress import ProgressReporter, resolve_progress

__all__ = [
    'infer',
    'infer_aligned',
]

logger = logging.getLogger(__name__)


def infer_aligned(
    aligned: AlignedData,
    method: InferenceMethod | str = InferenceMethod.BERE,
    options: Optional[InferenceOptions] = None,
    progress: Optional[ProgressReporter] = None,
) -> pd.DataFrame:
    """
    Infer a TF × gene network from already aligned data.

    Raises:
        InvalidOptionError: For an unknown method
        TFExpressionMismatchError: If the method needs TF expression profiles
            that are not rows of the expression data
    """
    strategy = get_strategy(method)
    options = options or InferenceOptions()

    start = time.perf_counter()
    network = strategy.infer(aligned, options, progress=progress)
    logger.info(
        f"Inferred {network.shape[0]} × {network.shape[1]} network with "
        f"{strategy.method.value} in {time.perf_counter() - start:.2f}s"
    )
    return network


def infer(
    motif_edges: MotifSource,
    expression: ExpressionSource,
    method: InferenceMethod | str = InferenceMethod.BERE,
    options: Optional[InferenceOptions] = None,
    randomize: RandomizationMode | str | None = RandomizationMode.NONE,
    seed: int | np.random.SeedSequence | None = None,
    progress: Optional[ProgressReporter] = None,
) -> pd.DataFrame:
    """
    Bipartite edge reconstruction from expression and motif data.

    Args:
        motif_edges: Three-column motif table (TF, gene, score)
        expression: Genes × conditions expression data
        method: "pearson", "bere" or "cd"
        options: Method options (InferenceOptions defaults if None)
        randomize: Optional post-alignment randomization for null runs
        seed: Seed for the randomization
        progress: Optional progress reporter

    Returns:
        DataFrame of edge scores, TFs as rows and genes as columns, both
        sorted

    Raises:
        InvalidOptionError: For an unknown method, checked before alignment
        NoMatchedGenesError: If motif and expression genes do not overlap
        InsufficientConditionsError: If expression has fewer than 3 conditions
        TFExpressionMismatchError: If direct evidence is required and a TF has
            no expression profile
    """
    method = InferenceMethod.parse(method)
    options = options or InferenceOptions()
    progress = resolve_progress(progress)

    aligned = align(
        motif_edges,
        expression,
        randomize=randomize,
        seed=seed,
        aggregate=options.motif_aggregation,
        progress=progress,
    )
    return infer_aligned(aligned, method, options, progress=progress)
