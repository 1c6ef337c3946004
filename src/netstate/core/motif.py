"""
Motif edges and their matrix form.

Motif data arrives as a three-column table: transcription factor, target gene
and a motif score. Pivoting it yields the RegulatoryNetwork, a TF × gene
matrix with 0 wherever no motif was reported.

The input does not guarantee unique (TF, gene) pairs. Duplicates are combined
with an explicit aggregation rule (``max`` by default) rather than relying on
whatever the pivot would happen to keep.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Union

import numpy as np
import pandas as pd

from netstate.core.errors import InvalidOptionError, ValidationError

__all__ = [
    'MotifEdge',
    'MOTIF_COLUMNS',
    'motif_table',
    'regulatory_network',
    'motif_presence',
]

MOTIF_COLUMNS = ("tf", "gene", "score")

Aggregation = Literal["max", "sum", "mean", "first"]
_AGGREGATIONS = ("max", "sum", "mean", "first")


@dataclass(frozen=True)
class MotifEdge:
    """A single motif between a transcription factor and a target gene."""

    transcription_factor: str
    gene: str
    score: float = 1.0


MotifSource = Union[pd.DataFrame, Iterable[MotifEdge], Iterable[tuple]]


def motif_table(edges: MotifSource) -> pd.DataFrame:
    """
    Normalize motif input into a ``tf``/``gene``/``score`` DataFrame.

    Accepts a DataFrame (its first three columns are used, whatever their
    names) or an iterable of MotifEdge objects or (tf, gene, score) tuples.
    Identifiers are coerced to strings so that sorting is a total order.

    Raises:
        ValidationError: If the table has fewer than three columns, is empty,
            or has non-numeric scores.
    """
    if isinstance(edges, pd.DataFrame):
        if edges.shape[1] < 3:
            raise ValidationError(
                f"motif data must have 3 columns (TF, gene, score), got {edges.shape[1]}"
            )
        table = edges.iloc[:, :3].copy()
        table.columns = list(MOTIF_COLUMNS)
    else:
        rows = [
            (e.transcription_factor, e.gene, e.score) if isinstance(e, MotifEdge) else tuple(e)
            for e in edges
        ]
        table = pd.DataFrame(rows, columns=list(MOTIF_COLUMNS))

    if table.empty:
        raise ValidationError("motif data is empty")

    table["tf"] = table["tf"].astype(str)
    table["gene"] = table["gene"].astype(str)
    try:
        table["score"] = pd.to_numeric(table["score"]).astype(np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"motif scores must be numeric: {e}") from e

    return table.reset_index(drop=True)


def regulatory_network(
    edges: MotifSource,
    aggregate: Aggregation = "max",
) -> pd.DataFrame:
    """
    Pivot motif edges into a TF × gene matrix.

    Args:
        edges: Motif edges (see motif_table)
        aggregate: How duplicated (TF, gene) pairs are combined

    Returns:
        DataFrame indexed by TF with one column per gene, both axes sorted
        lexicographically, 0.0 where no motif exists.

    Examples:
        >>> net = regulatory_network([("TF1", "G1", 1), ("TF1", "G2", 1), ("TF2", "G2", 1)])
        >>> net.to_numpy().tolist()
        [[1.0, 1.0], [0.0, 1.0]]
    """
    if aggregate not in _AGGREGATIONS:
        raise InvalidOptionError(
            f"Unknown motif aggregation '{aggregate}'. Expected one of: {', '.join(_AGGREGATIONS)}"
        )

    table = motif_table(edges)
    network = table.pivot_table(
        index="tf",
        columns="gene",
        values="score",
        aggfunc=aggregate,
        fill_value=0.0,
    )
    network = network.sort_index(axis=0).sort_index(axis=1).astype(np.float64)
    network.index.name = None
    network.columns.name = None
    return network


def motif_presence(network: pd.DataFrame) -> pd.DataFrame:
    """0/1 indicator of motif presence (score > 0)."""
    return (network > 0).astype(np.float64)
