"""Projection orchestration: algorithm choice, timing and output checks."""

from __future__ import annotations

import math
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from ...types import Dataset, Document, ProjectedPoint, ProjectionResult, as_feature_matrix
from ...utils.logging.logging_manager import get_logger
from .config import AlgorithmOptions
from .registry import global_reducer_registry

# Ensure default reducers are registered when the module is imported.
from .reducers import pca as _pca_reducer  # noqa: F401
from .reducers import tsne as _tsne_reducer  # noqa: F401
from .reducers import umap as _umap_reducer  # noqa: F401

logger = get_logger("embedding_projector.projector")

#: ``auto`` switches from UMAP to PCA above this many samples.
AUTO_PCA_THRESHOLD = 8000
PCA_SMALL_DATASET = 1000
TSNE_LARGE_DATASET = 1000

NO_DATA_LABEL = "No data"
SINGLE_POINT_LABEL = "Single point"


def resolve_algorithm(requested: str, n_samples: int) -> str:
    """Return the concrete method for ``requested`` on ``n_samples`` points."""

    requested = requested.lower()
    if requested != "auto":
        return requested
    return "pca" if n_samples > AUTO_PCA_THRESHOLD else "umap"


def advisory_warning(algorithm: str, n_samples: int) -> Optional[str]:
    """Return a hint when ``algorithm`` is a poor match for the dataset size."""

    if algorithm == "pca" and n_samples <= PCA_SMALL_DATASET:
        return (
            f"PCA is recommended for datasets > {AUTO_PCA_THRESHOLD} samples. "
            f"Current: {n_samples} samples. "
            "Consider using UMAP or t-SNE for better clustering."
        )
    if algorithm == "umap" and n_samples > AUTO_PCA_THRESHOLD:
        return (
            f"UMAP may be slow for datasets > {AUTO_PCA_THRESHOLD} samples. "
            f"Current: {n_samples} samples. Consider using PCA for faster results."
        )
    if algorithm == "tsne" and n_samples > TSNE_LARGE_DATASET:
        return (
            f"t-SNE is recommended for datasets < {TSNE_LARGE_DATASET} samples. "
            f"Current: {n_samples} samples. Consider using UMAP for better performance."
        )
    return None


def _label_for(labels: Sequence[Any], index: int) -> Document:
    label = labels[index] if index < len(labels) else None
    if label is None:
        return Document(title=f"Document {index + 1}", text="")
    if isinstance(label, Mapping):
        title, text = label.get("title"), label.get("text")
    else:
        title, text = label.title, label.text
    return Document(title=title or f"Document {index + 1}", text=text or "")


def _build_points(
    embedding: np.ndarray, labels: Sequence[Any]
) -> List[ProjectedPoint]:
    points = []
    for index, (x, y) in enumerate(embedding.tolist()):
        label = _label_for(labels, index)
        points.append(ProjectedPoint(x=x, y=y, title=label.title, text=label.text, index=index))
    return points


def _count_invalid(points: Sequence[ProjectedPoint]) -> Dict[str, int]:
    counts = {"valid": 0, "nan": 0, "infinite": 0}
    for point in points:
        if math.isnan(point.x) or math.isnan(point.y):
            counts["nan"] += 1
        elif math.isinf(point.x) or math.isinf(point.y):
            counts["infinite"] += 1
        else:
            counts["valid"] += 1
    return counts


def project_to_2d(
    vectors: Any,
    labels: Optional[Sequence[Any]] = None,
    options: Optional[AlgorithmOptions] = None,
) -> ProjectionResult:
    """Project ``vectors`` onto the plane.

    Args:
        vectors: ``(n_samples, n_features)`` array-like of finite floats.
        labels: Labels aligned with ``vectors``. Missing entries get a
            ``"Document {i+1}"`` title.
        options: Algorithm choice and parameters; ``auto`` when omitted.

    Returns:
        A :class:`ProjectionResult` whose points follow the input order.

    Raises:
        ValueError: If the requested algorithm has no registered reducer.
    """

    options = options or AlgorithmOptions()
    labels = list(labels) if labels is not None else []
    features = as_feature_matrix(vectors)
    n_samples = features.shape[0]

    if n_samples == 0:
        return ProjectionResult(points=[], algorithm=NO_DATA_LABEL, time_ms=0.0)
    if n_samples == 1:
        label = _label_for(labels, 0)
        point = ProjectedPoint(x=0.0, y=0.0, title=label.title, text=label.text, index=0)
        return ProjectionResult(
            points=[point],
            algorithm=SINGLE_POINT_LABEL,
            time_ms=0.0,
            diagnostics={"valid": 1, "nan": 0, "infinite": 0},
        )

    method = resolve_algorithm(options.algorithm, n_samples)
    logger.info(
        "Dimensionality reduction: %d samples, %d dimensions, method=%s (requested %s)",
        n_samples,
        features.shape[1],
        method,
        options.algorithm,
    )

    warning = advisory_warning(method, n_samples)
    if warning:
        logger.warning(warning)

    try:
        reducer = global_reducer_registry.create_from_options(method, options)
        label = global_reducer_registry.label(method)
    except KeyError as exc:
        available = ", ".join(sorted(global_reducer_registry.available_methods().keys())) or "<none>"
        raise ValueError(
            f"Unsupported reduction method '{method}'. Available methods: {available}."
        ) from exc

    start = time.perf_counter()
    embedding, summary = reducer.fit_transform(features)
    time_ms = (time.perf_counter() - start) * 1000.0

    points = _build_points(embedding, labels)
    diagnostics = _count_invalid(points)

    logger.info("%s completed in %.2fms", label, time_ms)
    logger.info(
        "Valid points: %d/%d (%.1f%%)",
        diagnostics["valid"],
        n_samples,
        100.0 * diagnostics["valid"] / n_samples,
    )
    if diagnostics["nan"] or diagnostics["infinite"]:
        logger.warning(
            "Dimensionality reduction produced invalid points: %d NaN, %d infinite",
            diagnostics["nan"],
            diagnostics["infinite"],
        )

    return ProjectionResult(
        points=points,
        algorithm=label,
        time_ms=time_ms,
        warning=warning,
        diagnostics=diagnostics,
        summary=summary,
    )


def project_dataset(dataset: Dataset, options: Optional[AlgorithmOptions] = None) -> ProjectionResult:
    """Project an immutable :class:`Dataset` snapshot."""

    return project_to_2d(dataset.vectors, dataset.labels, options)


__all__ = [
    "AUTO_PCA_THRESHOLD",
    "NO_DATA_LABEL",
    "SINGLE_POINT_LABEL",
    "advisory_warning",
    "project_dataset",
    "project_to_2d",
    "resolve_algorithm",
]
