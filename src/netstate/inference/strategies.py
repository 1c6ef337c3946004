"""
Inference strategies, one per InferenceMethod.

All strategies share one ``infer()`` skeleton:

    1. Compute the method's score matrix from AlignedData (``_score``)
    2. Optionally add the motif boost
    3. Label the result with TF rows and gene columns

Subclasses implement:
    * ``method`` property (InferenceMethod)
    * ``_score`` (TF × gene ndarray)
"""

from __future__ import annotations

import abc
import logging
from typing import Optional

import numpy as np
import pandas as pd

from netstate.core.alignment import AlignedData
from netstate.inference.evidence import correlation_difference, direct_evidence, motif_boost
from netstate.inference.options import InferenceMethod, InferenceOptions
from netstate.inference.regression import indirect_evidence
from netstate.utils.progress import ProgressReporter, resolve_progress
from netstate.utils.statistics import rank_matrix

__all__ = [
    'InferenceStrategy',
    'PearsonStrategy',
    'BereStrategy',
    'CorrelationDifferenceStrategy',
    'get_strategy',
]

logger = logging.getLogger(__name__)


class InferenceStrategy(abc.ABC):
    """Shared skeleton for network inference methods."""

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @property
    @abc.abstractmethod
    def method(self) -> InferenceMethod:  # pragma: no cover
        ...

    @abc.abstractmethod
    def _score(
        self,
        aligned: AlignedData,
        options: InferenceOptions,
        progress: ProgressReporter,
    ) -> np.ndarray:
        """Return the TF × gene score matrix before motif boosting."""
        ...

    # ------------------------------------------------------------------
    # Shared infer() implementation
    # ------------------------------------------------------------------

    def infer(
        self,
        aligned: AlignedData,
        options: Optional[InferenceOptions] = None,
        progress: Optional[ProgressReporter] = None,
    ) -> pd.DataFrame:
        """
        Infer the TF × gene network from aligned data.

        Args:
            aligned: Output of align()
            options: Method options (defaults if None)
            progress: Optional progress reporter

        Returns:
            DataFrame of edge scores indexed by TF, one column per gene
        """
        options = options or InferenceOptions()
        progress = resolve_progress(progress)

        progress.message(f"Main calculation ({self.method.value})")
        scores = self._score(aligned, options, progress)

        if options.resolve_motif_included(self.method):
            scores = motif_boost(scores, aligned.presence.to_numpy())

        return pd.DataFrame(scores, index=aligned.tf_ids.copy(), columns=aligned.gene_ids.copy())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(method={self.method.value!r})"


class PearsonStrategy(InferenceStrategy):
    """Direct evidence only: squared TF-gene Pearson correlation."""

    @property
    def method(self) -> InferenceMethod:
        return InferenceMethod.PEARSON

    def _score(self, aligned, options, progress):
        return direct_evidence(aligned, strategy=options.correlation_strategy, progress=progress)


class BereStrategy(InferenceStrategy):
    """
    Bipartite Edge Reconstruction from Expression.

    consensus = direct * (1 - weight) + indirect * weight

    Evidence that receives zero weight is not computed, so weight=1 does not
    require TF expression profiles. With rank_transform enabled both matrices
    are ranked over all entries (average ties) before combining.
    """

    @property
    def method(self) -> InferenceMethod:
        return InferenceMethod.BERE

    def _score(self, aligned, options, progress):
        weight = options.weight
        shape = aligned.regulatory_network.shape
        rank = options.resolve_rank_transform()

        if weight < 1.0:
            direct = direct_evidence(aligned, strategy=options.correlation_strategy, progress=progress)
        else:
            direct = np.zeros(shape)

        if weight > 0.0:
            indirect = indirect_evidence(aligned, options, progress=progress)
        else:
            indirect = np.zeros(shape)

        if rank:
            if weight < 1.0:
                direct = rank_matrix(direct)
            if weight > 0.0:
                indirect = rank_matrix(indirect)

        logger.debug(f"Combining evidence with weight={weight}, rank_transform={rank}")
        return direct * (1.0 - weight) + indirect * weight


class CorrelationDifferenceStrategy(InferenceStrategy):
    """Motif-target versus non-target correlation difference, column-scaled."""

    @property
    def method(self) -> InferenceMethod:
        return InferenceMethod.CD

    def _score(self, aligned, options, progress):
        return correlation_difference(aligned, strategy=options.correlation_strategy, progress=progress)


_STRATEGIES: dict[InferenceMethod, type[InferenceStrategy]] = {
    InferenceMethod.PEARSON: PearsonStrategy,
    InferenceMethod.BERE: BereStrategy,
    InferenceMethod.CD: CorrelationDifferenceStrategy,
}


def get_strategy(method: InferenceMethod | str) -> InferenceStrategy:
    """
    Instantiate the strategy for ``method``.

    Raises:
        InvalidOptionError: For unknown method names
    """
    return _STRATEGIES[InferenceMethod.parse(method)]()
