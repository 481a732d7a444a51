"""Shared dataclasses describing datasets and projection results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Document:
    """Label attached to a single embedding."""

    title: str = ""
    text: str = ""


@dataclass(frozen=True, eq=False)
class Dataset:
    """Immutable snapshot of vectors and their labels.

    ``vectors`` is stored as a read-only ``float64`` matrix of shape
    ``(n_samples, n_features)`` so that a projection run can never mutate the
    caller's data.
    """

    vectors: np.ndarray
    labels: Tuple[Document, ...] = ()

    def __post_init__(self) -> None:
        if len(self.labels) != self.vectors.shape[0]:
            raise ValueError(
                f"Dataset has {self.vectors.shape[0]} vectors but {len(self.labels)} labels."
            )

    @classmethod
    def from_records(
        cls,
        vectors: Sequence[Sequence[float]],
        labels: Optional[Sequence[Document]] = None,
    ) -> "Dataset":
        matrix = as_feature_matrix(vectors)
        if labels is None:
            labels = [Document() for _ in range(matrix.shape[0])]
        return cls(vectors=matrix, labels=tuple(labels))

    def __len__(self) -> int:
        return int(self.vectors.shape[0])


@dataclass
class ProjectedPoint:
    """A document placed on the 2D plane."""

    x: float
    y: float
    title: str
    text: str
    index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "title": self.title,
            "text": self.text,
            "index": self.index,
        }


@dataclass
class ProjectionResult:
    """Outcome of one projection call.

    Attributes:
        points: Projected points in input order.
        algorithm: Display name of the algorithm that ran (e.g. ``"UMAP"``).
        time_ms: Wall-clock time spent inside the reducer.
        warning: Advisory message when the algorithm does not suit the
            dataset size.
        diagnostics: Counts of ``valid``, ``nan`` and ``infinite`` points.
        summary: Reducer-specific statistics.
    """

    points: List[ProjectedPoint]
    algorithm: str
    time_ms: float
    warning: Optional[str] = None
    diagnostics: Dict[str, int] = field(default_factory=dict)
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "points": [point.to_dict() for point in self.points],
            "algorithm": self.algorithm,
            "timeMs": self.time_ms,
        }
        if self.warning is not None:
            payload["warning"] = self.warning
        if self.diagnostics:
            payload["diagnostics"] = dict(self.diagnostics)
        if self.summary:
            payload["summary"] = dict(self.summary)
        return payload


def as_feature_matrix(vectors: Any) -> np.ndarray:
    """Return ``vectors`` as a read-only 2D ``float64`` array."""

    matrix = np.array(vectors, dtype=np.float64)
    if matrix.size == 0 and matrix.ndim < 2:
        matrix = matrix.reshape(len(matrix), 0)
    if matrix.ndim != 2:
        raise ValueError(f"Expected a 2D collection of vectors, got ndim={matrix.ndim}.")
    matrix.setflags(write=False)
    return matrix


__all__ = [
    "Dataset",
    "Document",
    "ProjectedPoint",
    "ProjectionResult",
    "as_feature_matrix",
]
