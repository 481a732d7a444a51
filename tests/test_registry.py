import numpy as np
import pytest

from embedding_projector.preprocessing.dimensionality_reduction import (
    AlgorithmOptions,
    PCAReducer,
    TSNEReducer,
    UMAPReducer,
)
from embedding_projector.preprocessing.dimensionality_reduction.reducers.base import (
    DimensionalityReducer,
)
from embedding_projector.preprocessing.dimensionality_reduction.registry import (
    DimensionalityReducerRegistry,
    global_reducer_registry,
)


class _MidpointReducer(DimensionalityReducer):
    method = "midpoint"

    def __init__(self, scale: float = 1.0) -> None:
        super().__init__()
        self.scale = scale

    def _fit_transform(self, features):
        return features[:, :2] * self.scale, {"scale": self.scale}


def test_builtin_reducers_are_registered() -> None:
    methods = global_reducer_registry.available_methods()

    assert methods["pca"] is PCAReducer
    assert methods["tsne"] is TSNEReducer
    assert methods["umap"] is UMAPReducer
    assert [global_reducer_registry.label(m) for m in ("pca", "tsne", "umap")] == ["PCA", "TSNE", "UMAP"]


def test_register_create_and_unregister() -> None:
    registry = DimensionalityReducerRegistry()
    registry.register("Midpoint", _MidpointReducer)

    reducer = registry.create("midpoint", scale=2.0)
    embedding, summary = reducer.fit_transform(np.ones((3, 4)))

    assert registry.label("midpoint") == "MIDPOINT"
    assert np.array_equal(embedding, np.full((3, 2), 2.0))
    assert summary == {"scale": 2.0}

    registry.unregister("midpoint")
    with pytest.raises(KeyError):
        registry.create("midpoint")


def test_duplicate_registration_requires_overwrite() -> None:
    registry = DimensionalityReducerRegistry()
    registry.register("midpoint", _MidpointReducer, label="Mid")

    with pytest.raises(ValueError):
        registry.register("midpoint", _MidpointReducer)

    registry.register("midpoint", _MidpointReducer, label="Middle", overwrite=True)
    assert registry.label("midpoint") == "Middle"


def test_create_from_options_passes_the_matching_bundle() -> None:
    options = AlgorithmOptions.from_dict({"algorithm": "pca", "params": {"pca": {"power_iterations": 4}}})

    reducer = global_reducer_registry.create_from_options("pca", options)

    assert isinstance(reducer, PCAReducer)
    assert reducer.power_iterations == 4


def test_trivial_inputs_never_reach_the_algorithm() -> None:
    reducer = _MidpointReducer()

    empty, empty_summary = reducer.fit_transform(np.zeros((0, 5)))
    single, _ = reducer.fit_transform(np.ones((1, 5)))

    assert empty.shape == (0, 2)
    assert empty_summary == {}
    assert single.tolist() == [[0.0, 0.0]]
