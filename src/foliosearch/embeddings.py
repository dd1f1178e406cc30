# Copyright 2025 Foliosearch Contributors.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#    1. Redistributions of source code must retain the above copyright notice,
#       this list of conditions and the following disclaimer.
#
#    2. Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.

"""Embedding providers for semantic search.

This module defines the EmbeddingProvider protocol the ranker and the
suggestion engine depend on, and provides implementations:

- SentenceTransformerProvider: Local models via sentence-transformers
  (text models, and CLIP models that also embed images)
- HashingEmbeddingProvider: Deterministic offline fallback
"""

from __future__ import annotations

import hashlib
import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from .errors import EmbeddingError

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding model providers.

    Providers must be deterministic enough that embedding the same input
    twice yields vectors with cosine similarity 1.0, and must always
    return vectors of ``dimension`` length.

    Example:
        >>> class MyProvider:
        ...     @property
        ...     def dimension(self) -> int:
        ...         return 384
        ...
        ...     @property
        ...     def model_name(self) -> str:
        ...         return "my-model"
        ...
        ...     def encode(self, texts: List[str], **kwargs) -> NDArray:
        ...         return np.random.randn(len(texts), 384).astype(np.float32)
        ...
        ...     def embed_text(self, text: str) -> NDArray:
        ...         return self.encode([text])[0]
        ...
        ...     def embed_image(self, image) -> NDArray:
        ...         raise EmbeddingError("text only")
    """

    @property
    def dimension(self) -> int:
        """Return the dimensionality of embeddings produced by this provider."""
        ...

    @property
    def model_name(self) -> str:
        """Return identifier for the embedding model."""
        ...

    def encode(
        self,
        texts: List[str],
        batch_size: int = 32,
        normalize: bool = True
    ) -> NDArray[np.float32]:
        """Encode texts into an array of shape (len(texts), dimension)."""
        ...

    def embed_text(self, text: str) -> NDArray[np.float32]:
        """Embed one text into a vector of shape (dimension,)."""
        ...

    def embed_image(self, image: Any) -> NDArray[np.float32]:
        """Embed one image (PIL image, path or raw bytes) into a vector.

        Raises:
            EmbeddingError: If the model cannot embed images
        """
        ...


class BaseEmbeddingProvider(ABC):
    """Abstract base class for embedding providers."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the dimensionality of embeddings."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier."""
        pass

    @abstractmethod
    def encode(
        self,
        texts: List[str],
        batch_size: int = 32,
        normalize: bool = True
    ) -> NDArray[np.float32]:
        """Encode texts into embeddings."""
        pass

    def embed_text(self, text: str) -> NDArray[np.float32]:
        """Encode a single text string.

        Returns:
            Embedding vector of shape (dimension,)
        """
        return self.encode([text])[0]

    def embed_image(self, image: Any) -> NDArray[np.float32]:
        raise EmbeddingError(f"{self.model_name} cannot embed images")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model_name!r}, dim={self.dimension})"


def _l2_normalize(embeddings: NDArray[np.float32]) -> NDArray[np.float32]:
    norms = np.linalg.norm(embeddings, axis=1, keepdims=True)
    return (embeddings / np.maximum(norms, 1e-9)).astype(np.float32)


def load_image(image: Any):
    """Open ``image`` as an RGB PIL image.

    Accepts a PIL image, a filesystem path or raw encoded bytes.
    """
    try:
        from PIL import Image
    except ImportError:
        raise ImportError(
            "Pillow is required for image embeddings. "
            "Install with: pip install Pillow"
        )

    if isinstance(image, Image.Image):
        return image.convert("RGB")
    if isinstance(image, (bytes, bytearray)):
        return Image.open(io.BytesIO(image)).convert("RGB")
    if isinstance(image, (str, Path)):
        with Image.open(image) as opened:
            return opened.convert("RGB")
    raise EmbeddingError(f"Unsupported image input: {type(image).__name__}")


class SentenceTransformerProvider(BaseEmbeddingProvider):
    """Embedding provider using sentence-transformers library.

    Text models (e.g. "all-MiniLM-L6-v2", 384 dim) embed queries and work
    descriptions. CLIP models (e.g. "clip-ViT-B-32", 512 dim) embed both
    text and images into one space, which is what image search needs.

    Example:
        >>> provider = SentenceTransformerProvider("all-MiniLM-L6-v2")
        >>> provider.embed_text("sunset over the sea").shape
        (384,)

    Requires: pip install sentence-transformers
    """

    def __init__(
        self,
        model_name: str = "all-MiniLM-L6-v2",
        device: str | None = None,
        cache_dir: str | None = None,
    ):
        """Initialize the sentence-transformers provider.

        Args:
            model_name: Name of the model to load (from HuggingFace)
            device: Device to run on ("cpu", "cuda", "mps", or None for auto)
            cache_dir: Directory to cache downloaded models
        """
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError:
            raise ImportError(
                "sentence-transformers is required for SentenceTransformerProvider. "
                "Install with: pip install sentence-transformers"
            )

        self._model_name = model_name
        self._model = SentenceTransformer(
            model_name,
            device=device,
            cache_folder=cache_dir,
        )
        dimension = self._model.get_sentence_embedding_dimension()
        if dimension is None:
            # CLIP checkpoints do not report a sentence dimension
            dimension = int(self._model.encode(["probe"], convert_to_numpy=True).shape[1])
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def supports_images(self) -> bool:
        return "clip" in self._model_name.lower()

    def encode(
        self,
        texts: List[str],
        batch_size: int = 32,
        normalize: bool = True
    ) -> NDArray[np.float32]:
        """Encode texts using the sentence-transformer model.

        Returns:
            Embeddings array of shape (len(texts), dimension)
        """
        try:
            embeddings = self._model.encode(
                texts,
                batch_size=batch_size,
                normalize_embeddings=normalize,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except Exception as e:
            raise EmbeddingError(f"{self._model_name} failed to encode text: {e}") from e
        return embeddings.astype(np.float32)

    def embed_image(self, image: Any) -> NDArray[np.float32]:
        """Embed an image with a CLIP model.

        Raises:
            EmbeddingError: If the model is not a CLIP model or encoding fails
        """
        if not self.supports_images:
            return super().embed_image(image)
        try:
            embeddings = self._model.encode(
                [load_image(image)],
                normalize_embeddings=True,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"{self._model_name} failed to encode image: {e}") from e
        return embeddings[0].astype(np.float32)


class HashingEmbeddingProvider(BaseEmbeddingProvider):
    """Deterministic embeddings derived from a SHA-256 digest.

    Carries no semantics: equal inputs give identical vectors, different
    inputs give unrelated ones. Used when no model can be loaded so the
    rest of the pipeline keeps working, and in tests.
    """

    def __init__(self, dimension: int = 384, name: str = "hashing"):
        if dimension <= 0:
            raise ValueError(f"Dimension must be positive, got {dimension}")
        self._dimension = dimension
        self._name = name

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._name

    def _digest_vector(self, payload: bytes) -> NDArray[np.float32]:
        digest = hashlib.sha256(payload).digest()
        expanded = np.frombuffer(digest * (self._dimension // len(digest) + 1), dtype=np.uint8)
        # Center around zero so unrelated inputs are near-orthogonal
        return expanded[: self._dimension].astype(np.float32) - 127.5

    def encode(
        self,
        texts: List[str],
        batch_size: int = 32,
        normalize: bool = True
    ) -> NDArray[np.float32]:
        if not texts:
            return np.zeros((0, self._dimension), dtype=np.float32)
        embeddings = np.stack([self._digest_vector(t.encode("utf-8")) for t in texts])
        if normalize:
            embeddings = _l2_normalize(embeddings)
        return embeddings.astype(np.float32)

    def embed_image(self, image: Any) -> NDArray[np.float32]:
        if isinstance(image, (bytes, bytearray)):
            payload = bytes(image)
        elif isinstance(image, (str, Path)):
            payload = Path(image).read_bytes()
        else:
            payload = load_image(image).tobytes()
        return _l2_normalize(self._digest_vector(payload).reshape(1, -1))[0]


def create_provider(
    model_name: str,
    fallback: bool = True,
    fallback_dimension: int = 384,
    **kwargs
) -> BaseEmbeddingProvider:
    """Load a sentence-transformers model, falling back to hashing embeddings.

    Args:
        model_name: sentence-transformers model name
        fallback: Return a HashingEmbeddingProvider if the model cannot be loaded
        fallback_dimension: Dimension of the fallback provider
        **kwargs: Passed to SentenceTransformerProvider

    Raises:
        ImportError, OSError: If loading fails and ``fallback`` is False
    """
    try:
        return SentenceTransformerProvider(model_name, **kwargs)
    except (ImportError, OSError, ValueError) as e:
        if not fallback:
            raise
        logger.warning(
            "Could not load embedding model %r (%s); using hashing embeddings",
            model_name, e
        )
        return HashingEmbeddingProvider(dimension=fallback_dimension, name=f"hashing:{model_name}")
