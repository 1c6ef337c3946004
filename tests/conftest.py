"""
Pytest configuration and shared fixtures.

This module provides synthetic motif/expression generators and shared fixtures
for all test suites.
"""

import numpy as np
import pandas as pd
import pytest

from netstate.core.expression import ExpressionMatrix


def generate_synthetic_dataset(
    n_tfs: int = 5,
    n_genes: int = 60,
    n_samples: int = 10,
    targets_per_tf: int = 15,
    noise: float = 1.0,
    seed: int = 42,
) -> tuple[pd.DataFrame, ExpressionMatrix]:
    """
    Generate motif edges and expression with TF-driven co-expression.

    Args:
        n_tfs: Number of transcription factors
        n_genes: Number of non-TF genes
        n_samples: Number of samples (conditions)
        targets_per_tf: Motif targets drawn for each TF
        noise: Standard deviation of the gene-level noise
        seed: Random seed for reproducibility

    Returns:
        (motif table with columns tf/gene/score, ExpressionMatrix)

    Design:
        - Every TF is itself an expressed gene and the motif target of the
          next TF, so TF profiles are part of the aligned gene universe
        - Each TF has a latent activity pattern across samples; its motif
          targets follow that pattern plus noise
        - A few motif genes are absent from the expression data
    """
    rng = np.random.RandomState(seed)

    tf_ids = [f"TF_{i:02d}" for i in range(n_tfs)]
    gene_ids = [f"GENE_{i:04d}" for i in range(n_genes)]

    activity = rng.randn(n_tfs, n_samples)

    edges = []
    loadings = np.zeros((n_genes, n_tfs))
    for t, tf in enumerate(tf_ids):
        targets = rng.choice(n_genes, size=targets_per_tf, replace=False)
        for g in targets:
            edges.append((tf, gene_ids[g], 1.0))
            loadings[g, t] = rng.uniform(0.5, 1.5)
        edges.append((tf, tf_ids[(t + 1) % n_tfs], 1.0))
        # Motif genes without expression data
        edges.append((tf, f"ABSENT_{t}", 1.0))

    gene_data = loadings @ activity + noise * rng.randn(n_genes, n_samples)
    tf_data = activity + 0.3 * rng.randn(n_tfs, n_samples)

    data = np.vstack([tf_data, gene_data]) + 5.0
    sample_ids = pd.Index([f"S{i:02d}" for i in range(n_samples)])
    sample_metadata = pd.DataFrame(
        {"condition": ["baseline" if i % 2 == 0 else "alternate" for i in range(n_samples)]},
        index=sample_ids,
    )

    expression = ExpressionMatrix(
        data=data,
        gene_ids=pd.Index(tf_ids + gene_ids),
        sample_ids=sample_ids,
        sample_metadata=sample_metadata,
    )
    motifs = pd.DataFrame(edges, columns=["tf", "gene", "score"])
    return motifs, expression


@pytest.fixture
def small_dataset():
    """Small dataset (5 TFs, 60 genes, 10 samples) for fast unit tests."""
    return generate_synthetic_dataset(n_tfs=5, n_genes=60, n_samples=10, seed=42)


@pytest.fixture
def paired_dataset():
    """Dataset with 16 samples split 8/8 by the 'condition' metadata column."""
    return generate_synthetic_dataset(n_tfs=4, n_genes=40, n_samples=16, targets_per_tf=10, seed=7)


@pytest.fixture
def scenario_motifs():
    """The three-edge motif scenario: TF1→G1, TF1→G2, TF2→G2."""
    return pd.DataFrame(
        [("TF1", "G1", 1.0), ("TF1", "G2", 1.0), ("TF2", "G2", 1.0)],
        columns=["tf", "gene", "score"],
    )


@pytest.fixture
def scenario_expression():
    """Expression for G1, G2 (plus TF1, TF2) over 4 conditions."""
    frame = pd.DataFrame(
        {
            "c1": [1.0, 2.0, 0.5, 3.0],
            "c2": [2.0, 1.0, 1.5, 2.0],
            "c3": [3.0, 4.0, 2.5, 1.0],
            "c4": [4.0, 3.0, 3.5, 0.0],
        },
        index=["G1", "G2", "TF1", "TF2"],
    )
    return ExpressionMatrix.from_dataframe(frame)


class RecordingProgress:
    """ProgressReporter that records every call."""

    def __init__(self):
        self.messages = []
        self.loops = []
        self.advanced = 0
        self.closed = 0

    def message(self, text):
        self.messages.append(text)

    def start(self, total, desc):
        self.loops.append((desc, total))

    def advance(self, n=1):
        self.advanced += n

    def close(self):
        self.closed += 1


@pytest.fixture
def recording_progress():
    return RecordingProgress()
