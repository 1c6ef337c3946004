"""
Alignment of motif data and expression data.

Every inference method works on the same aligned inputs:

    1. Pivot motif edges into the RegulatoryNetwork (TF × gene).
    2. Gene universe = sorted(motif genes ∩ expression genes).
    3. Filter expression rows and RegulatoryNetwork columns to the universe,
       in the same lexicographic order.
    4. Keep the expression rows of every TF found in the expression data,
       whether or not the TF is itself a motif gene.
    5. Optionally randomize the kept rows together (null distributions only).

The result is an AlignedData instance. Inference functions accept AlignedData
rather than raw inputs, so running alignment first is enforced by type.

Validation:
    - Empty gene universe           -> NoMatchedGenesError
    - Fewer than 3 conditions       -> InsufficientConditionsError
    - Motif genes absent from expression are dropped silently (logged at
      debug level) as long as the universe stays non-empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import pandas as pd

from netstate.core.errors import (
    InsufficientConditionsError,
    NoMatchedGenesError,
    TFExpressionMismatchError,
)
from netstate.core.expression import ExpressionMatrix
from netstate.core.motif import Aggregation, MotifSource, motif_presence, regulatory_network
from netstate.core.randomization import RandomizationMode, make_randomizer
from netstate.utils.progress import ProgressReporter, resolve_progress

__all__ = [
    'MIN_CONDITIONS',
    'AlignedData',
    'align',
    'as_expression_matrix',
]

logger = logging.getLogger(__name__)

# Correlation is undefined or unstable below this many conditions
MIN_CONDITIONS = 3

ExpressionSource = Union[ExpressionMatrix, pd.DataFrame]


@dataclass(frozen=True)
class AlignedData:
    """
    Motif and expression data over one shared, sorted gene universe.

    Attributes:
        regulatory_network: TF × gene motif scores, columns equal to
            expression.gene_ids, rows sorted
        expression: Gene × condition expression, rows sorted
        randomization: Randomization applied after alignment
        tf_profiles: TF × condition expression for the TFs present in the
            expression data, rows sorted; None means look TFs up in
            ``expression``
    """

    regulatory_network: pd.DataFrame
    expression: ExpressionMatrix
    randomization: RandomizationMode = RandomizationMode.NONE
    tf_profiles: Optional[ExpressionMatrix] = None

    def __post_init__(self):
        if not self.regulatory_network.columns.equals(self.expression.gene_ids):
            raise ValueError(
                "regulatory_network columns must equal expression gene_ids "
                "(construct AlignedData through align())"
            )

    @property
    def gene_ids(self) -> pd.Index:
        """Gene universe, sorted."""
        return self.expression.gene_ids

    @property
    def tf_ids(self) -> pd.Index:
        """Transcription factors, sorted."""
        return self.regulatory_network.index

    @property
    def n_conditions(self) -> int:
        return self.expression.n_samples

    @property
    def presence(self) -> pd.DataFrame:
        """0/1 motif indicator over the aligned network."""
        return motif_presence(self.regulatory_network)

    def tf_expression(self) -> np.ndarray:
        """
        Expression profiles of every TF (TF × condition), in tf_ids order.

        Raises:
            TFExpressionMismatchError: If a TF is not a row of the expression data
        """
        source = self.expression if self.tf_profiles is None else self.tf_profiles
        positions = source.gene_ids.get_indexer(self.tf_ids)
        missing = self.tf_ids[positions < 0]
        if len(missing) > 0:
            raise TFExpressionMismatchError(missing)
        return source.data[positions, :]


def as_expression_matrix(expression: ExpressionSource) -> ExpressionMatrix:
    """Accept an ExpressionMatrix or a genes × samples DataFrame."""
    if isinstance(expression, ExpressionMatrix):
        return expression
    if isinstance(expression, pd.DataFrame):
        return ExpressionMatrix.from_dataframe(expression)
    raise TypeError(
        f"expression must be ExpressionMatrix or pd.DataFrame, got {type(expression)}"
    )


def align(
    motif_edges: MotifSource,
    expression: ExpressionSource,
    randomize: RandomizationMode | str | None = RandomizationMode.NONE,
    seed: int | np.random.SeedSequence | None = None,
    aggregate: Aggregation = "max",
    progress: Optional[ProgressReporter] = None,
) -> AlignedData:
    """
    Align motif edges and expression data on a shared gene universe.

    Args:
        motif_edges: Three-column motif table or iterable of MotifEdge
        expression: Genes × conditions expression data
        randomize: Optional post-alignment randomization ("within-gene" or
            "by-gene-label"); only for building null distributions
        seed: Seed for the randomization
        aggregate: Rule for duplicated (TF, gene) motif pairs
        progress: Optional progress reporter

    Returns:
        AlignedData over the sorted gene universe

    Raises:
        NoMatchedGenesError: If no motif gene appears in the expression data
        InsufficientConditionsError: If expression has fewer than 3 conditions
        InvalidOptionError: For unknown or matrix-incompatible randomization

    Examples:
        >>> aligned = align(motifs, expression)
        >>> aligned.regulatory_network.columns.equals(aligned.gene_ids)
        True
    """
    progress = resolve_progress(progress)
    progress.message("Initializing and validating")

    mode = RandomizationMode.parse(randomize)
    randomizer = make_randomizer(mode, seed)
    expression = as_expression_matrix(expression)
    network = regulatory_network(motif_edges, aggregate=aggregate)

    expression_genes = set(expression.gene_ids)
    universe = sorted(g for g in network.columns if g in expression_genes)

    if not universe:
        raise NoMatchedGenesError(network.shape[1], expression.n_genes)
    if expression.n_samples < MIN_CONDITIONS:
        raise InsufficientConditionsError(expression.n_samples, MIN_CONDITIONS)

    n_dropped = network.shape[1] - len(universe)
    if n_dropped:
        logger.debug(f"Dropped {n_dropped} motif genes absent from expression data")

    expressed_tfs = sorted(tf for tf in network.index if tf in expression_genes)
    n_tf_only = len(set(expressed_tfs).difference(universe))
    if n_tf_only:
        logger.debug(f"Keeping {n_tf_only} TF expression rows outside the gene universe")

    # TF rows are shuffled with the universe so nulls see one randomized matrix
    working = expression.select_genes(sorted(set(universe).union(expressed_tfs)))
    if randomizer is not None:
        progress.message(f"Randomizing expression: {randomizer}")
        working = randomizer(working)

    aligned_expression = working.select_genes(universe)
    tf_profiles = working.select_genes(expressed_tfs)

    aligned_network = network.loc[:, universe].copy()
    aligned_network.columns = aligned_expression.gene_ids

    logger.info(
        f"Aligned {aligned_network.shape[0]} TFs × {len(universe)} genes "
        f"over {expression.n_samples} conditions"
    )

    return AlignedData(
        regulatory_network=aligned_network,
        expression=aligned_expression,
        randomization=mode,
        tf_profiles=tf_profiles,
    )
