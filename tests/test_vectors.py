"""Tests for vector math helpers."""

import numpy as np
import pytest

from foliosearch.vectors import cosine_similarity


class TestCosineSimilarity:
    def test_identical_vectors(self):
        assert cosine_similarity([0.3, 0.4, 0.5], [0.3, 0.4, 0.5]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1, 0], [0, 1]) == 0.0

    def test_opposite_vectors(self):
        assert cosine_similarity([1, 2], [-1, -2]) == pytest.approx(-1.0)

    def test_bounds_on_random_vectors(self):
        rng = np.random.default_rng(7)
        for _ in range(50):
            a, b = rng.normal(size=(2, 16))
            assert -1.0 <= cosine_similarity(a, b) <= 1.0
            assert cosine_similarity(a, a) == pytest.approx(1.0)

    def test_none_input(self):
        assert cosine_similarity([1, 2], None) == 0.0
        assert cosine_similarity(None, [1, 2]) == 0.0
        assert cosine_similarity(None, None) == 0.0

    def test_length_mismatch(self):
        assert cosine_similarity([1, 2], [1, 2, 3]) == 0.0

    def test_zero_magnitude(self):
        assert cosine_similarity([0, 0], [1, 1]) == 0.0
        assert cosine_similarity([1, 1], [0, 0]) == 0.0

    def test_empty_and_malformed(self):
        assert cosine_similarity([], []) == 0.0
        assert cosine_similarity(["a", "b"], [1, 2]) == 0.0
        assert cosine_similarity([[1, 0], [0, 1]], [[1, 0], [0, 1]]) == 0.0

    def test_numpy_arrays(self):
        a = np.array([1, 0, 0], dtype=np.float32)
        b = np.array([1, 1, 0], dtype=np.float32)
        assert cosine_similarity(a, b) == pytest.approx(1 / np.sqrt(2))

