"""Reducer implementations for dimensionality reduction."""

from .base import DimensionalityReducer
from .pca import PCAReducer  # noqa: F401
from .tsne import TSNEReducer  # noqa: F401
from .umap import UMAPReducer  # noqa: F401

__all__ = [
    "DimensionalityReducer",
    "PCAReducer",
    "TSNEReducer",
    "UMAPReducer",
]
