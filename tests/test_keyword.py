"""Tests for the keyword inverted index."""

import pytest

from foliosearch.matchers import KeywordIndex


@pytest.fixture
def index(portfolio):
    return KeywordIndex(portfolio)


class TestKeywordIndex:
    def test_every_term_indexed(self, index, portfolio):
        from foliosearch.analysis import extract_terms

        for i, work in enumerate(portfolio):
            for term in extract_terms(work):
                assert term in index
                assert i in index.postings(term)

    def test_postings(self, index):
        assert index.postings("beach") == [0, 2]
        assert index.postings("missing") == []

    def test_doc_count(self, index):
        assert index.doc_count == 3

    def test_perfect_match_scores_one(self, index):
        assert (0, 1.0) in index.search("sunset beach")

    def test_partial_match(self, index):
        hits = dict(index.search("beach installation 2020"))
        assert hits[0] == pytest.approx(2 / 3)
        assert hits[2] == pytest.approx(1 / 3)
        assert 1 not in hits

    def test_stemmed_query_matches(self, index):
        hits = dict(index.search("sculptures"))
        assert hits == {1: 1.0}

    def test_no_match(self, index):
        assert index.search("ocean") == []

    def test_empty_query(self, index):
        assert index.search("") == []
        assert index.search("a") == []

    def test_min_score(self, portfolio):
        index = KeywordIndex(portfolio, min_score=0.5)
        hits = dict(index.search("beach installation 2020"))
        assert list(hits) == [0]
