"""Tests for the text and image semantic matchers."""

import numpy as np
import pytest

from foliosearch.errors import EmbeddingError
from foliosearch.matchers import SemanticMatcher
from foliosearch.models import Work


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def image_works():
    return [
        Work(id="one", imageEmbeddings=[[1.0, 0.0]]),
        Work(id="two", imageEmbeddings=[[1.0, 0.0], [0.0, 1.0]]),
        Work(id="none"),
        Work(id="odd", imageEmbeddings=[[1.0, 0.0], [1.0, 0.0, 0.0]]),
    ]


# =============================================================================
# Text space
# =============================================================================

class TestTextSemanticMatcher:
    def test_precomputed_query_embedding(self, portfolio):
        matcher = SemanticMatcher(portfolio, min_similarity=0.15)
        hits = dict(matcher.search("ignored", query_embedding=[0.9, 0.3, 0.0]))
        assert hits[0] == pytest.approx(0.9 / np.sqrt(0.9), abs=1e-5)
        assert hits[2] == pytest.approx(0.78 / np.sqrt(0.9), abs=1e-5)
        assert 1 not in hits

    def test_uses_provider(self, portfolio, query_provider):
        matcher = SemanticMatcher(portfolio, query_provider)
        hits = dict(matcher.search("beach installation 2020"))
        assert set(hits) == {0, 2}
        assert query_provider.calls == ["beach installation 2020"]

    def test_threshold(self, portfolio):
        matcher = SemanticMatcher(portfolio, min_similarity=0.9)
        hits = dict(matcher.search("q", query_embedding=[0.9, 0.3, 0.0]))
        assert list(hits) == [0]

    def test_missing_embedding_scores_zero(self, portfolio):
        works = portfolio + [Work(id="blank", title="No vector")]
        matcher = SemanticMatcher(works, min_similarity=0.0)
        scores = matcher.similarities([1.0, 0.0, 0.0])
        assert scores[3] == 0.0
        assert matcher.count == 3

    def test_dimension_mismatch_scores_zero(self, portfolio):
        matcher = SemanticMatcher(portfolio)
        assert not matcher.similarities([1.0, 0.0]).any()
        assert matcher.search("q", query_embedding=[1.0, 0.0]) == []

    def test_zero_query(self, portfolio):
        matcher = SemanticMatcher(portfolio)
        assert matcher.search("q", query_embedding=[0.0, 0.0, 0.0]) == []

    def test_no_provider(self, portfolio):
        matcher = SemanticMatcher(portfolio)
        with pytest.raises(EmbeddingError):
            matcher.search("beach")

    def test_provider_failure_wrapped(self, portfolio, make_provider):
        matcher = SemanticMatcher(portfolio, make_provider(fail=True))
        with pytest.raises(EmbeddingError, match="model unavailable"):
            matcher.search("beach")

    def test_unknown_modality(self, portfolio):
        with pytest.raises(ValueError):
            SemanticMatcher(portfolio, modality="audio")


# =============================================================================
# Image space
# =============================================================================

class TestImageSemanticMatcher:
    def test_mean_over_images(self, image_works):
        matcher = SemanticMatcher(image_works, modality="image", min_similarity=0.0)
        scores = matcher.similarities([1.0, 0.0])
        assert scores[0] == pytest.approx(1.0)
        assert scores[1] == pytest.approx(0.5)
        assert scores[2] == 0.0

    def test_unusable_image_counts_in_mean(self, image_works):
        matcher = SemanticMatcher(image_works, modality="image", min_similarity=0.0)
        assert matcher.dimension == 2
        assert matcher.similarities([1.0, 0.0])[3] == pytest.approx(0.5)

    def test_search_filters_zero(self, image_works):
        matcher = SemanticMatcher(image_works, modality="image", min_similarity=0.0)
        hits = dict(matcher.search("q", query_embedding=[0.0, 1.0]))
        assert set(hits) == {1}
        assert hits[1] == pytest.approx(0.5)
