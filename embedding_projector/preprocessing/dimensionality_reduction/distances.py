"""Pairwise Euclidean distances shared by the neighbour-based reducers."""

from __future__ import annotations

import numpy as np
from scipy.spatial.distance import pdist, squareform


def pairwise_distances(features: np.ndarray) -> np.ndarray:
    """Return the symmetric ``(n, n)`` Euclidean distance matrix.

    Only the condensed upper triangle is evaluated; ``squareform`` mirrors it
    and leaves an exact zero diagonal.
    """

    n_samples = features.shape[0]
    if n_samples < 2:
        return np.zeros((n_samples, n_samples), dtype=np.float64)
    condensed = pdist(np.asarray(features, dtype=np.float64), metric="euclidean")
    return squareform(condensed, checks=False)


__all__ = ["pairwise_distances"]
