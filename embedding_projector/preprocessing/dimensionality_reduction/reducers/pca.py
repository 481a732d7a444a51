"""Covariance-free PCA via power iteration."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import numpy as np

from .base import DimensionalityReducer
from ..registry import register_reducer

DEFAULT_POWER_ITERATIONS = 20

# Directions whose norm falls below this are left unchanged
_MIN_NORM = 1e-12

_INITIAL_PATTERN = np.array([1.0, 0.0, -1.0, 0.0])


def _initial_directions(n_features: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return the fixed ``[1, 0, -1, 0]`` starting pair, the second one phase-shifted."""

    positions = np.arange(n_features)
    first = _INITIAL_PATTERN[positions % _INITIAL_PATTERN.size]
    second = _INITIAL_PATTERN[(positions + 1) % _INITIAL_PATTERN.size]
    return _normalise(first, first), _normalise(second, second)


def _normalise(candidate: np.ndarray, previous: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(candidate))
    if norm < _MIN_NORM or not np.isfinite(norm):
        return previous
    return candidate / norm


@register_reducer("pca", label="PCA")
class PCAReducer(DimensionalityReducer):
    """Project onto the two leading principal directions.

    The covariance matrix is never formed: each power step evaluates
    ``C v = sum_i x_i (x_i . v)`` over the centred samples. The second
    direction is Gram-Schmidt orthogonalised against the freshly updated first
    one before it is normalised.

    A direction whose update has (near) zero norm, as happens for identical
    samples, keeps its previous value. Coordinates along it then come out as
    zero instead of NaN.
    """

    method = "pca"

    def __init__(self, *, power_iterations: Optional[int] = None) -> None:
        super().__init__()
        self.power_iterations = power_iterations

    def _fit_transform(self, features: np.ndarray) -> tuple[np.ndarray, Dict[str, object]]:
        n_samples, n_features = features.shape
        iterations = (
            DEFAULT_POWER_ITERATIONS if self.power_iterations is None else int(self.power_iterations)
        )
        self.logger.info("Running power-iteration PCA for %dx%d data", n_samples, n_features)

        pc1, pc2 = _initial_directions(n_features)

        mean = features.mean(axis=0)
        mean_magnitude = float(np.linalg.norm(mean))
        self.logger.event("pca.mean", magnitude=mean_magnitude)

        centered = features - mean

        for iteration in range(iterations):
            pc1 = _normalise(centered.T @ (centered @ pc1), pc1)

            candidate = centered.T @ (centered @ pc2)
            candidate = candidate - float(pc1 @ candidate) * pc1
            pc2 = _normalise(candidate, pc2)

            if iteration % 5 == 0 or iteration == iterations - 1:
                self.logger.event(
                    "pca.power_iteration",
                    step=iteration,
                    iteration=iteration + 1,
                    total=iterations,
                )

        embedding = np.column_stack((centered @ pc1, centered @ pc2))
        explained_variance = (embedding**2).sum(axis=0) / n_samples
        summary = {
            "power_iterations": iterations,
            "mean_magnitude": mean_magnitude,
            "explained_variance": explained_variance.tolist(),
        }
        self.logger.event("pca.completed", samples=n_samples)
        return embedding, summary


__all__ = ["PCAReducer", "DEFAULT_POWER_ITERATIONS"]
