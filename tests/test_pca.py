import numpy as np
from sklearn.decomposition import PCA

from embedding_projector.preprocessing.dimensionality_reduction import (
    AlgorithmOptions,
    AlgorithmParams,
    PCAParams,
    PCAReducer,
    project_to_2d,
)
from embedding_projector.types import Document


def test_triangle_projects_onto_principal_axes() -> None:
    options = AlgorithmOptions(
        algorithm="pca",
        params=AlgorithmParams(pca=PCAParams(power_iterations=5)),
    )

    result = project_to_2d(
        [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]],
        [Document(title="A"), Document(title="B"), Document(title="C")],
        options,
    )

    assert result.algorithm == "PCA"
    assert result.warning is not None
    assert [point.index for point in result.points] == [0, 1, 2]
    assert [point.title for point in result.points] == ["A", "B", "C"]
    xs = np.array([point.x for point in result.points])
    ys = np.array([point.y for point in result.points])
    # leading direction is (1, -1)/sqrt(2), the second (1, 1)/sqrt(2), up to sign
    assert np.allclose(np.abs(xs), [0.0, 1 / np.sqrt(2), 1 / np.sqrt(2)], atol=2e-2)
    assert np.allclose(np.abs(ys), [2 / (3 * np.sqrt(2)), 1 / (3 * np.sqrt(2)), 1 / (3 * np.sqrt(2))], atol=2e-2)
    assert np.isclose(xs.sum(), 0.0)
    assert np.isclose(ys.sum(), 0.0)


def test_matches_exact_pca_up_to_sign() -> None:
    rng = np.random.default_rng(0)
    features = rng.normal(size=(200, 6)) * np.array([5.0, 2.0, 1.0, 0.5, 0.3, 0.1])
    features = features @ np.linalg.qr(rng.normal(size=(6, 6)))[0]

    embedding, summary = PCAReducer(power_iterations=100).fit_transform(features)
    reference = PCA(n_components=2).fit_transform(features)

    for component in range(2):
        correlation = np.corrcoef(embedding[:, component], reference[:, component])[0, 1]
        assert abs(correlation) > 0.999
    assert summary["power_iterations"] == 100
    assert summary["explained_variance"][0] >= summary["explained_variance"][1]


def test_identical_vectors_collapse_to_origin() -> None:
    embedding, summary = PCAReducer().fit_transform(np.full((6, 4), 3.5))

    assert np.all(np.isfinite(embedding))
    assert np.all(embedding == 0.0)
    assert np.isclose(summary["mean_magnitude"], 7.0)


def test_single_feature_leaves_second_axis_empty() -> None:
    embedding, _ = PCAReducer().fit_transform(np.array([[0.0], [1.0], [2.0]]))

    assert np.allclose(np.abs(embedding[:, 0]), [1.0, 0.0, 1.0])
    assert np.all(embedding[:, 1] == 0.0)


def test_zero_power_iterations_uses_initial_directions() -> None:
    features = np.array([[1.0, 2.0, 3.0, 4.0], [4.0, 3.0, 2.0, 1.0], [0.0, 0.0, 0.0, 0.0]])

    embedding, _ = PCAReducer(power_iterations=0).fit_transform(features)

    centered = features - features.mean(axis=0)
    assert np.allclose(embedding[:, 0], centered @ (np.array([1.0, 0.0, -1.0, 0.0]) / np.sqrt(2)))
    assert np.allclose(embedding[:, 1], centered @ (np.array([0.0, -1.0, 0.0, 1.0]) / np.sqrt(2)))


def test_output_is_deterministic() -> None:
    features = np.random.default_rng(5).normal(size=(40, 8))

    first, _ = PCAReducer().fit_transform(features)
    second, _ = PCAReducer().fit_transform(features)

    assert np.array_equal(first, second)
