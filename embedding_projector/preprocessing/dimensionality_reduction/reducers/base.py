"""Abstract base classes for dimensionality reduction strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Tuple

import numpy as np

from ....utils.logging.logging_manager import LoggingManager, get_logger

#: Projections are always planar.
N_COMPONENTS = 2


class DimensionalityReducer(ABC):
    """Shared interface for dimensionality reduction strategies.

    Reducers operate on a fully-prepared ``(n_samples, n_features)`` matrix
    and return an ``(n_samples, 2)`` embedding along with a summary
    dictionary. Empty and single-sample inputs never reach the algorithm:
    they map to an empty embedding and to the origin respectively.
    """

    #: Canonical string identifier for the reducer. Subclasses must override.
    method: str

    def __init__(self) -> None:
        self.logger: LoggingManager = get_logger(f"embedding_projector.{self.method}")

    def fit_transform(self, features: np.ndarray) -> Tuple[np.ndarray, Dict[str, object]]:
        """Return the planar embedding and summary metrics for ``features``."""

        features = np.asarray(features, dtype=np.float64)
        n_samples = features.shape[0]
        if n_samples < 2:
            return np.zeros((n_samples, N_COMPONENTS), dtype=np.float64), {}
        return self._fit_transform(features)

    @abstractmethod
    def _fit_transform(self, features: np.ndarray) -> Tuple[np.ndarray, Dict[str, object]]:
        """Run the algorithm on at least two samples."""


__all__ = ["DimensionalityReducer", "N_COMPONENTS"]
