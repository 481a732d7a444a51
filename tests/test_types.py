import numpy as np
import pytest

from embedding_projector.types import (
    Dataset,
    Document,
    ProjectedPoint,
    ProjectionResult,
    as_feature_matrix,
)


def test_feature_matrix_is_read_only_copy() -> None:
    source = np.arange(6, dtype=np.float32).reshape(3, 2)

    matrix = as_feature_matrix(source)

    assert matrix.dtype == np.float64
    assert not matrix.flags.writeable
    assert source.flags.writeable
    assert as_feature_matrix([]).shape == (0, 0)
    with pytest.raises(ValueError):
        as_feature_matrix([1.0, 2.0])


def test_dataset_requires_aligned_labels() -> None:
    with pytest.raises(ValueError):
        Dataset(vectors=np.zeros((2, 3)), labels=(Document(),))

    dataset = Dataset.from_records([[1.0], [2.0]])
    assert len(dataset) == 2
    assert dataset.labels == (Document(), Document())


def test_result_dict_omits_unset_fields() -> None:
    result = ProjectionResult(
        points=[ProjectedPoint(x=1.0, y=-1.0, title="a", text="b", index=0)],
        algorithm="UMAP",
        time_ms=12.5,
    )

    assert result.to_dict() == {
        "points": [{"x": 1.0, "y": -1.0, "title": "a", "text": "b", "index": 0}],
        "algorithm": "UMAP",
        "timeMs": 12.5,
    }
