"""Dimensionality reduction strategies for embedding projection."""

from .config import AlgorithmOptions, AlgorithmParams, PCAParams, TSNEParams, UMAPParams
from .executor import (  # noqa: F401
    ProjectionCancelledError,
    ProjectionExecutor,
    ProjectionWorkerError,
)
from .projector import advisory_warning, project_dataset, project_to_2d, resolve_algorithm
from .reducers import DimensionalityReducer, PCAReducer, TSNEReducer, UMAPReducer
from .registry import global_reducer_registry, register_reducer

__all__ = [
    "AlgorithmOptions",
    "AlgorithmParams",
    "DimensionalityReducer",
    "PCAParams",
    "PCAReducer",
    "ProjectionCancelledError",
    "ProjectionExecutor",
    "ProjectionWorkerError",
    "TSNEParams",
    "TSNEReducer",
    "UMAPParams",
    "UMAPReducer",
    "advisory_warning",
    "global_reducer_registry",
    "project_dataset",
    "project_to_2d",
    "register_reducer",
    "resolve_algorithm",
]
