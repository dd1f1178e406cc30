"""Shared fixtures for foliosearch tests."""

import numpy as np
import pytest


class StubEmbeddingProvider:
    """Deterministic embedding provider backed by a lookup table.

    Unknown texts embed to ``default``. Every call is counted so tests can
    check whether the provider was consulted.
    """

    def __init__(self, vectors=None, default=None, dimension=3, fail=False):
        self.vectors = {k.lower(): np.asarray(v, dtype=np.float32) for k, v in (vectors or {}).items()}
        self.default = np.asarray(default if default is not None else [0.0] * dimension, dtype=np.float32)
        self._dimension = dimension
        self.fail = fail
        self.calls = []

    @property
    def dimension(self):
        return self._dimension

    @property
    def model_name(self):
        return "stub"

    def encode(self, texts, batch_size=32, normalize=True):
        return np.stack([self.embed_text(t) for t in texts])

    def embed_text(self, text):
        self.calls.append(text)
        if self.fail:
            raise RuntimeError("model unavailable")
        return self.vectors.get(text.strip().lower(), self.default)

    def embed_image(self, image):
        raise NotImplementedError


@pytest.fixture
def make_provider():
    """Factory for StubEmbeddingProvider instances."""
    return StubEmbeddingProvider


E_A = [1.0, 0.0, 0.0]
E_B = [0.0, 0.0, 1.0]
E_C = [0.6, 0.8, 0.0]
E_QUERY = [0.9, 0.3, 0.0]


@pytest.fixture
def portfolio_records():
    """Three works: two beach pieces from 2020 and a 2019 sculpture."""
    return [
        {
            "id": "a",
            "title": "Sunset Beach Installation",
            "year": "2020",
            "tags": ["installation", "light"],
            "textEmbedding": E_A,
        },
        {
            "id": "b",
            "title": "Mountain Sculpture",
            "year": 2019,
            "tags": ["sculpture"],
            "medium": ["bronze"],
            "textEmbedding": E_B,
        },
        {
            "id": "c",
            "title": "Beach Photography Series",
            "year": "2020",
            "tags": ["photography", "beach"],
            "textEmbedding": E_C,
        },
    ]


@pytest.fixture
def portfolio(portfolio_records):
    from foliosearch.models import Work

    return [Work.model_validate(r) for r in portfolio_records]


@pytest.fixture
def query_provider():
    """Embeds the end-to-end query closest to work A."""
    return StubEmbeddingProvider({"beach installation 2020": E_QUERY})
