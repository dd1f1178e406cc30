"""Tests for embedding providers."""

import numpy as np
import pytest

from foliosearch.embeddings import (
    BaseEmbeddingProvider,
    EmbeddingProvider,
    HashingEmbeddingProvider,
    create_provider,
)
from foliosearch.errors import EmbeddingError


class TestHashingEmbeddingProvider:
    def test_deterministic(self):
        provider = HashingEmbeddingProvider(dimension=64)
        a = provider.embed_text("sunset")
        b = HashingEmbeddingProvider(dimension=64).embed_text("sunset")
        np.testing.assert_array_equal(a, b)

    def test_normalized(self):
        vector = HashingEmbeddingProvider(dimension=64).embed_text("sunset")
        assert vector.shape == (64,)
        assert vector.dtype == np.float32
        assert np.linalg.norm(vector) == pytest.approx(1.0, abs=1e-5)

    def test_different_texts_differ(self):
        provider = HashingEmbeddingProvider(dimension=64)
        a, b = provider.encode(["sunset", "mountain"])
        assert float(np.dot(a, b)) < 0.99

    def test_encode_batch(self):
        provider = HashingEmbeddingProvider(dimension=16)
        assert provider.encode(["a", "b", "c"]).shape == (3, 16)
        assert provider.encode([]).shape == (0, 16)

    def test_embed_image_bytes_and_path(self, tmp_path):
        provider = HashingEmbeddingProvider(dimension=32)
        path = tmp_path / "image.jpg"
        path.write_bytes(b"\xff\xd8 not really a jpeg")
        np.testing.assert_array_equal(
            provider.embed_image(b"\xff\xd8 not really a jpeg"),
            provider.embed_image(path),
        )

    def test_invalid_dimension(self):
        with pytest.raises(ValueError):
            HashingEmbeddingProvider(dimension=0)

    def test_satisfies_protocol(self):
        assert isinstance(HashingEmbeddingProvider(), EmbeddingProvider)


class TestBaseEmbeddingProvider:
    def test_text_only_provider_rejects_images(self):
        class Constant(BaseEmbeddingProvider):
            dimension = 2
            model_name = "constant"

            def encode(self, texts, batch_size=32, normalize=True):
                return np.ones((len(texts), 2), dtype=np.float32)

        provider = Constant()
        np.testing.assert_array_equal(provider.embed_text("x"), [1.0, 1.0])
        with pytest.raises(EmbeddingError):
            provider.embed_image(b"bytes")


class TestCreateProvider:
    def test_fallback(self, monkeypatch, caplog):
        import foliosearch.embeddings as embeddings

        def unavailable(*args, **kwargs):
            raise ImportError("sentence-transformers is required")

        monkeypatch.setattr(embeddings, "SentenceTransformerProvider", unavailable)
        provider = create_provider("all-MiniLM-L6-v2", fallback_dimension=32)
        assert isinstance(provider, HashingEmbeddingProvider)
        assert provider.dimension == 32
        assert provider.model_name == "hashing:all-MiniLM-L6-v2"
        assert "using hashing embeddings" in caplog.text

    def test_no_fallback(self, monkeypatch):
        import foliosearch.embeddings as embeddings

        def unavailable(*args, **kwargs):
            raise OSError("model not found")

        monkeypatch.setattr(embeddings, "SentenceTransformerProvider", unavailable)
        with pytest.raises(OSError):
            create_provider("missing-model", fallback=False)


class TestSentenceTransformerProvider:
    @pytest.fixture
    def fake_model(self, monkeypatch):
        sentence_transformers = pytest.importorskip("sentence_transformers")

        class FakeModel:
            def __init__(self, name, device=None, cache_folder=None):
                self.name = name

            def get_sentence_embedding_dimension(self):
                return None if "clip" in self.name.lower() else 4

            def encode(self, inputs, **kwargs):
                return np.ones((len(inputs), 4), dtype=np.float64)

        monkeypatch.setattr(sentence_transformers, "SentenceTransformer", FakeModel)
        return FakeModel

    def test_text_model(self, fake_model):
        from foliosearch.embeddings import SentenceTransformerProvider

        provider = SentenceTransformerProvider("all-MiniLM-L6-v2")
        assert provider.dimension == 4
        assert provider.supports_images is False
        assert provider.embed_text("beach").dtype == np.float32
        with pytest.raises(EmbeddingError):
            provider.embed_image(b"bytes")

    def test_clip_dimension_probe(self, fake_model):
        from foliosearch.embeddings import SentenceTransformerProvider

        provider = SentenceTransformerProvider("clip-ViT-B-32")
        assert provider.dimension == 4
        assert provider.supports_images is True

    def test_clip_image(self, fake_model):
        Image = pytest.importorskip("PIL.Image")
        from foliosearch.embeddings import SentenceTransformerProvider

        provider = SentenceTransformerProvider("clip-ViT-B-32")
        vector = provider.embed_image(Image.new("RGB", (4, 4)))
        assert vector.shape == (4,)
