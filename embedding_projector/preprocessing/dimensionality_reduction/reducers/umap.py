"""UMAP dimensionality reduction strategy.

A compact UMAP: a k-nearest-neighbour fuzzy simplicial set over exact
Euclidean distances, laid out with stochastic gradient descent using the
``a = b = 1`` attraction curve. All randomness (initial layout, edge order,
negative samples) comes from a stream seeded by the input vectors.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .base import N_COMPONENTS, DimensionalityReducer
from ..config import default_n_epochs, default_n_neighbors
from ..distances import pairwise_distances
from ..registry import register_reducer
from ....utils.seeded_random import SeededRandom, derive_seed, seeded_shuffle

DEFAULT_LEARNING_RATE = 1.0
DEFAULT_NEGATIVE_SAMPLE_RATE = 5

SIGMA_BOUNDS = (1e-10, 1000.0)
BANDWIDTH_SEARCH_STEPS = 50
REPULSION_EPSILON = 0.001
INIT_SCALE = 0.01

CURVE_A = 1.0
CURVE_B = 1.0


@dataclass
class FuzzyGraph:
    """Undirected weighted edge list; ``sources[e] < targets[e]``."""

    sources: List[int]
    targets: List[int]
    weights: List[float]

    def __len__(self) -> int:
        return len(self.weights)


def nearest_neighbors(distances: np.ndarray, n_neighbors: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return indices and distances of each point's ``n_neighbors`` closest others.

    Ties keep index order. A point is never its own neighbour.
    """

    n_samples = distances.shape[0]
    k = min(n_neighbors, n_samples - 1)
    masked = distances.copy()
    np.fill_diagonal(masked, np.inf)
    indices = np.argsort(masked, axis=1, kind="stable")[:, :k]
    return indices, np.take_along_axis(distances, indices, axis=1)


def neighbor_bandwidths(knn_distances: np.ndarray, n_neighbors: int) -> np.ndarray:
    """Bisect ``sigma_i`` so that ``sum_k exp(-d_ik / sigma_i)`` meets ``log2(n_neighbors)``."""

    n_samples = knn_distances.shape[0]
    target = math.log2(n_neighbors)
    low = np.full(n_samples, SIGMA_BOUNDS[0])
    high = np.full(n_samples, SIGMA_BOUNDS[1])

    for _ in range(BANDWIDTH_SEARCH_STEPS):
        sigma = (low + high) / 2.0
        totals = np.exp(-knn_distances / sigma[:, None]).sum(axis=1)
        too_wide = totals > target
        high = np.where(too_wide, sigma, high)
        low = np.where(too_wide, low, sigma)

    return (low + high) / 2.0


def fuzzy_simplicial_set(
    knn_indices: np.ndarray,
    knn_distances: np.ndarray,
    sigmas: np.ndarray,
) -> FuzzyGraph:
    """Merge directed memberships into undirected edges with a probabilistic OR.

    Each pair is keyed by ``(min, max)``; memberships accumulate as
    ``w = w + p - w * p``, so every kept weight lies in ``(0, 1]``.
    """

    memberships = np.exp(-knn_distances / sigmas[:, None])
    graph: Dict[Tuple[int, int], float] = {}
    for i, (neighbors, row) in enumerate(zip(knn_indices.tolist(), memberships.tolist())):
        for j, membership in zip(neighbors, row):
            key = (i, j) if i < j else (j, i)
            existing = graph.get(key, 0.0)
            graph[key] = existing + membership - existing * membership

    sources: List[int] = []
    targets: List[int] = []
    weights: List[float] = []
    for (source, target), weight in graph.items():
        if weight > 0:
            sources.append(source)
            targets.append(target)
            weights.append(weight)
    return FuzzyGraph(sources, targets, weights)


def _reset_unstable(positions: List[List[float]], rng: SeededRandom) -> int:
    resets = 0
    for point in positions:
        if not (math.isfinite(point[0]) and math.isfinite(point[1])):
            point[0] = rng.centered(INIT_SCALE)
            point[1] = rng.centered(INIT_SCALE)
            resets += 1
    return resets


@register_reducer("umap", label="UMAP")
class UMAPReducer(DimensionalityReducer):
    """Project with a simplified UMAP.

    Each epoch visits every edge once in a freshly shuffled order. The edge
    pulls its endpoints together, then ``negative_sample_rate`` random points
    push the edge's source away. The learning rate decays linearly to zero
    over the run. Points that turn non-finite are redrawn near the origin at
    the end of the epoch.
    """

    method = "umap"

    def __init__(
        self,
        *,
        n_neighbors: Optional[int] = None,
        n_epochs: Optional[int] = None,
        learning_rate: Optional[float] = None,
        negative_sample_rate: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.n_neighbors = n_neighbors
        self.n_epochs = n_epochs
        self.learning_rate = learning_rate
        self.negative_sample_rate = negative_sample_rate

    def _fit_transform(self, features: np.ndarray) -> tuple[np.ndarray, Dict[str, object]]:
        n_samples = features.shape[0]
        n_neighbors = (
            default_n_neighbors(n_samples) if self.n_neighbors is None else int(self.n_neighbors)
        )
        n_epochs = default_n_epochs(n_samples) if self.n_epochs is None else int(self.n_epochs)
        learning_rate = (
            DEFAULT_LEARNING_RATE if self.learning_rate is None else float(self.learning_rate)
        )
        negative_sample_rate = (
            DEFAULT_NEGATIVE_SAMPLE_RATE
            if self.negative_sample_rate is None
            else int(self.negative_sample_rate)
        )

        rng = SeededRandom(derive_seed(features))
        self.logger.info("Running UMAP with n_neighbors=%d, epochs=%d", n_neighbors, n_epochs)

        distances = pairwise_distances(features)
        knn_indices, knn_distances = nearest_neighbors(distances, n_neighbors)
        self.logger.event("umap.knn", k=int(knn_indices.shape[1]))

        sigmas = neighbor_bandwidths(knn_distances, n_neighbors)
        graph = fuzzy_simplicial_set(knn_indices, knn_distances, sigmas)
        self.logger.event("umap.graph", edges=len(graph))

        positions = [
            [rng.centered(INIT_SCALE), rng.centered(INIT_SCALE)] for _ in range(n_samples)
        ]
        resets = self._optimize(
            positions, graph, rng, n_epochs, learning_rate, negative_sample_rate
        )

        embedding = np.array(positions, dtype=np.float64).reshape(n_samples, N_COMPONENTS)
        summary = {
            "n_neighbors": n_neighbors,
            "n_epochs": n_epochs,
            "learning_rate": learning_rate,
            "negative_sample_rate": negative_sample_rate,
            "n_edges": len(graph),
            "resets": resets,
        }
        self.logger.event("umap.completed", edges=len(graph), resets=resets)
        return embedding, summary

    def _optimize(
        self,
        positions: List[List[float]],
        graph: FuzzyGraph,
        rng: SeededRandom,
        n_epochs: int,
        learning_rate: float,
        negative_sample_rate: int,
    ) -> int:
        n_samples = len(positions)
        order = list(range(len(graph)))
        sources, targets, weights = graph.sources, graph.targets, graph.weights
        resets = 0

        for epoch in range(n_epochs):
            seeded_shuffle(order, rng)
            alpha = learning_rate * (1.0 - epoch / n_epochs)

            for edge in order:
                head = positions[sources[edge]]
                tail = positions[targets[edge]]
                scale = alpha * weights[edge]

                dx = head[0] - tail[0]
                dy = head[1] - tail[1]
                dist_sq = dx * dx + dy * dy
                attraction = (
                    -2.0 * CURVE_A * CURVE_B * dist_sq ** (CURVE_B - 1.0)
                    / (CURVE_A + dist_sq**CURVE_B)
                )
                head[0] += scale * attraction * dx
                tail[0] -= scale * attraction * dx
                head[1] += scale * attraction * dy
                tail[1] -= scale * attraction * dy

                for _ in range(negative_sample_rate):
                    sample = rng.next_index(n_samples)
                    if sample == sources[edge] or sample == targets[edge]:
                        continue
                    other = positions[sample]
                    dx = head[0] - other[0]
                    dy = head[1] - other[1]
                    dist_sq = dx * dx + dy * dy
                    repulsion = (2.0 * CURVE_B) / (
                        (REPULSION_EPSILON + dist_sq) * (CURVE_A + dist_sq**CURVE_B)
                    )
                    head[0] += scale * repulsion * dx
                    other[0] -= scale * repulsion * dx
                    head[1] += scale * repulsion * dy
                    other[1] -= scale * repulsion * dy

            resets += _reset_unstable(positions, rng)

            if epoch % 100 == 0 or epoch == n_epochs - 1:
                self.logger.event("umap.epoch", step=epoch, epoch=epoch + 1, total=n_epochs)

        return resets


__all__ = [
    "FuzzyGraph",
    "UMAPReducer",
    "fuzzy_simplicial_set",
    "nearest_neighbors",
    "neighbor_bandwidths",
]
