import numpy as np

from embedding_projector.preprocessing.dimensionality_reduction.distances import (
    pairwise_distances,
)


def test_distance_matrix_is_symmetric_with_zero_diagonal() -> None:
    features = np.random.default_rng(3).normal(size=(12, 5))

    distances = pairwise_distances(features)

    assert distances.shape == (12, 12)
    assert np.array_equal(distances, distances.T)
    assert np.all(np.diag(distances) == 0.0)
    assert np.all(distances >= 0.0)


def test_distance_values_are_euclidean() -> None:
    distances = pairwise_distances(np.array([[0.0, 0.0], [3.0, 4.0], [0.0, 1.0]]))

    assert distances[0, 1] == 5.0
    assert distances[0, 2] == 1.0
    assert np.isclose(distances[1, 2], np.sqrt(18.0))


def test_degenerate_inputs() -> None:
    assert pairwise_distances(np.zeros((0, 3))).shape == (0, 0)
    assert pairwise_distances(np.ones((1, 3))).tolist() == [[0.0]]
    assert np.all(pairwise_distances(np.ones((4, 3))) == 0.0)
