"""t-SNE dimensionality reduction strategy."""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np

from .base import N_COMPONENTS, DimensionalityReducer
from ..config import (
    default_exaggeration_iterations,
    default_perplexity,
    default_tsne_iterations,
)
from ..distances import pairwise_distances
from ..registry import register_reducer
from ....utils.seeded_random import SeededRandom, derive_seed

DEFAULT_LEARNING_RATE = 500.0
DEFAULT_MOMENTUM = 0.8
DEFAULT_EARLY_EXAGGERATION = 4.0
INITIAL_MOMENTUM = 0.5
INITIAL_MOMENTUM_ITERATIONS = 20

SIGMA_BOUNDS = (1e-10, 1000.0)
BANDWIDTH_SEARCH_STEPS = 50

GAIN_INCREMENT = 0.2
GAIN_DECAY = 0.8
MIN_GAIN = 0.01
MAX_STEP = 50.0
MAX_POSITION = 1000.0
INIT_SCALE = 0.01


def _gaussian_rows(sq_distances: np.ndarray, sigma: np.ndarray) -> np.ndarray:
    affinities = np.exp(-sq_distances / (2.0 * sigma[:, None] ** 2))
    np.fill_diagonal(affinities, 0.0)
    return affinities


def conditional_probabilities(distances: np.ndarray, perplexity: float) -> np.ndarray:
    """Calibrate one Gaussian bandwidth per row and return ``p_{j|i}``.

    Each row's bandwidth is bisected inside :data:`SIGMA_BOUNDS` until the
    Shannon entropy of the normalised row approaches ``ln(perplexity)``.
    """

    n_samples = distances.shape[0]
    sq_distances = distances**2
    target_entropy = np.log(perplexity)

    low = np.full(n_samples, SIGMA_BOUNDS[0])
    high = np.full(n_samples, SIGMA_BOUNDS[1])
    sigma = np.ones(n_samples)

    with np.errstate(divide="ignore", invalid="ignore"):
        for _ in range(BANDWIDTH_SEARCH_STEPS):
            sigma = (low + high) / 2.0
            affinities = _gaussian_rows(sq_distances, sigma)
            probabilities = affinities / affinities.sum(axis=1, keepdims=True)
            significant = probabilities > 1e-10
            entropy = -np.where(
                significant, probabilities * np.log(np.where(significant, probabilities, 1.0)), 0.0
            ).sum(axis=1)
            too_wide = entropy > target_entropy
            high = np.where(too_wide, sigma, high)
            low = np.where(too_wide, low, sigma)

        affinities = _gaussian_rows(sq_distances, sigma)
        row_sums = affinities.sum(axis=1, keepdims=True)
        conditional = affinities / row_sums

    # Rows that underflowed entirely fall back to uniform weights
    degenerate = ~np.isfinite(conditional).all(axis=1) | (row_sums[:, 0] <= 0.0)
    if degenerate.any():
        uniform = np.full(n_samples, 1.0 / (n_samples - 1))
        uniform_rows = np.tile(uniform, (int(degenerate.sum()), 1))
        conditional[degenerate] = uniform_rows
        conditional[np.flatnonzero(degenerate), np.flatnonzero(degenerate)] = 0.0
    return conditional


def joint_probabilities(distances: np.ndarray, perplexity: float) -> np.ndarray:
    """Return ``P_ij = (p_{j|i} + p_{i|j}) / 2n``; the off-diagonal sums to one."""

    n_samples = distances.shape[0]
    conditional = conditional_probabilities(distances, perplexity)
    joint = (conditional + conditional.T) / (2.0 * n_samples)
    np.fill_diagonal(joint, 0.0)
    return joint


def _student_t_kernel(embedding: np.ndarray) -> np.ndarray:
    dx = embedding[:, 0, None] - embedding[None, :, 0]
    dy = embedding[:, 1, None] - embedding[None, :, 1]
    kernel = 1.0 / (1.0 + dx * dx + dy * dy)
    np.fill_diagonal(kernel, 0.0)
    return kernel


def student_t_affinities(embedding: np.ndarray) -> np.ndarray:
    """Return the ``Q`` used by the gradient.

    ``Q`` is normalised by the kernel sum over unique pairs ``i < j``, so the
    full off-diagonal matrix sums to two.
    """

    kernel = _student_t_kernel(embedding)
    return kernel / (kernel.sum() / 2.0)


def _kl_divergence(joint: np.ndarray, embedding: np.ndarray) -> float:
    kernel = _student_t_kernel(embedding)
    low_dim = kernel / kernel.sum()
    mask = joint > 0
    with np.errstate(divide="ignore", invalid="ignore"):
        terms = joint[mask] * np.log(joint[mask] / np.maximum(low_dim[mask], 1e-300))
    return float(terms.sum())


def gradient_step(
    embedding: np.ndarray,
    step: np.ndarray,
    gains: np.ndarray,
    gradient: np.ndarray,
    momentum: float,
    learning_rate: float,
    rng: SeededRandom,
) -> int:
    """Apply one gains/momentum update in place; return how many points were reset.

    Points that turn non-finite are redrawn near the origin with a zero step
    and unit gains before positions are clamped.
    """

    flipped = np.sign(gradient) != np.sign(step)
    gains[:] = np.where(flipped, gains + GAIN_INCREMENT, np.maximum(gains * GAIN_DECAY, MIN_GAIN))

    with np.errstate(invalid="ignore", over="ignore"):
        step[:] = np.clip(momentum * step - learning_rate * gains * gradient, -MAX_STEP, MAX_STEP)
        embedding += step

    unstable = np.flatnonzero(~np.isfinite(embedding).all(axis=1))
    for index in unstable:
        embedding[index] = [rng.centered(INIT_SCALE) for _ in range(N_COMPONENTS)]
        step[index] = 0.0
        gains[index] = 1.0
    np.clip(embedding, -MAX_POSITION, MAX_POSITION, out=embedding)
    return len(unstable)


@register_reducer("tsne", label="TSNE")
class TSNEReducer(DimensionalityReducer):
    """Perplexity-calibrated t-SNE with momentum and adaptive gains.

    Gains grow by ``0.2`` when the gradient's sign differs from the previous
    step's sign and decay by ``x0.8`` otherwise, with a floor of ``0.01``.
    Steps are clamped to ``+-50`` and positions to ``+-1000``; a point that
    still turns non-finite is redrawn near the origin from the run's seeded
    stream. The layout is re-centred after every iteration.
    """

    method = "tsne"

    def __init__(
        self,
        *,
        perplexity: Optional[float] = None,
        learning_rate: Optional[float] = None,
        iterations: Optional[int] = None,
        early_exaggeration: Optional[float] = None,
        momentum: Optional[float] = None,
    ) -> None:
        super().__init__()
        self.perplexity = perplexity
        self.learning_rate = learning_rate
        self.iterations = iterations
        self.early_exaggeration = early_exaggeration
        self.momentum = momentum

    def _fit_transform(self, features: np.ndarray) -> tuple[np.ndarray, Dict[str, object]]:
        n_samples = features.shape[0]
        perplexity = (
            default_perplexity(n_samples) if self.perplexity is None else float(self.perplexity)
        )
        eta = DEFAULT_LEARNING_RATE if self.learning_rate is None else float(self.learning_rate)
        momentum = DEFAULT_MOMENTUM if self.momentum is None else float(self.momentum)
        iterations = (
            default_tsne_iterations(n_samples) if self.iterations is None else int(self.iterations)
        )
        exaggeration = (
            DEFAULT_EARLY_EXAGGERATION
            if self.early_exaggeration is None
            else float(self.early_exaggeration)
        )
        exaggeration_phase = default_exaggeration_iterations(n_samples)

        self.logger.info(
            "Running t-SNE with perplexity=%.1f, iterations=%d", perplexity, iterations
        )

        distances = pairwise_distances(features)
        joint = joint_probabilities(distances, perplexity)
        self.logger.event("tsne.affinities", perplexity=perplexity, total=float(joint.sum()))

        rng = SeededRandom(derive_seed(features))
        embedding = np.array(
            [[rng.centered(INIT_SCALE) for _ in range(N_COMPONENTS)] for _ in range(n_samples)],
            dtype=np.float64,
        ).reshape(n_samples, N_COMPONENTS)

        gains = np.ones_like(embedding)
        step = np.zeros_like(embedding)
        resets = 0

        for iteration in range(iterations):
            low_dim = student_t_affinities(embedding)
            current_exaggeration = exaggeration if iteration < exaggeration_phase else 1.0
            current_momentum = (
                INITIAL_MOMENTUM if iteration < INITIAL_MOMENTUM_ITERATIONS else momentum
            )

            forces = current_exaggeration * joint - low_dim
            np.fill_diagonal(forces, 0.0)
            gradient = forces.sum(axis=1)[:, None] * embedding - forces @ embedding

            resets += gradient_step(
                embedding, step, gains, gradient, current_momentum, eta, rng
            )
            embedding -= embedding.mean(axis=0)

            if iteration % 100 == 0 or iteration == iterations - 1:
                self.logger.event(
                    "tsne.iteration",
                    step=iteration,
                    iteration=iteration + 1,
                    total=iterations,
                    mean_gain=float(gains.mean()),
                )

        kl_divergence = _kl_divergence(joint, embedding)
        summary = {
            "perplexity": perplexity,
            "iterations": iterations,
            "learning_rate": eta,
            "kl_divergence": kl_divergence,
            "resets": resets,
        }
        self.logger.event("tsne.completed", kl_divergence=kl_divergence, resets=resets)
        return embedding, summary


__all__ = [
    "TSNEReducer",
    "conditional_probabilities",
    "gradient_step",
    "joint_probabilities",
    "student_t_affinities",
]
