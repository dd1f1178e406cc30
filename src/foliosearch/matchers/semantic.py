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

"""Embedding similarity between a query and precomputed work embeddings.

One algorithm, two spaces:

- ``text``: cosine similarity to the work's text embedding
- ``image``: mean cosine similarity to the work's image embeddings

Works without an embedding in the chosen space score 0.
"""

from __future__ import annotations

from collections import Counter
from typing import List, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..embeddings import EmbeddingProvider
from ..errors import EmbeddingError
from ..models import Work
from .base import Hit

MODALITIES = ("text", "image")


class SemanticMatcher:
    """Brute-force cosine similarity over one embedding space.

    Vectors are L2-normalized once at construction so a query costs one
    matrix-vector product. Vectors whose length differs from the
    corpus' dominant dimension can never match and score 0.

    Example:
        >>> matcher = SemanticMatcher(works, embedder, modality="text")
        >>> matcher.search("quiet evening by the sea")
        [(0, 0.61), (2, 0.43)]

    Attributes:
        modality: "text" or "image"
        min_similarity: Hits below this similarity are dropped
        dimension: Dominant embedding dimension in the corpus (0 if none)
    """

    def __init__(
        self,
        works: Sequence[Work],
        embedding_provider: EmbeddingProvider | None = None,
        modality: str = "text",
        min_similarity: float = 0.15
    ):
        if modality not in MODALITIES:
            raise ValueError(f"Unknown modality {modality!r}; expected one of {MODALITIES}")

        self.embedder = embedding_provider
        self.modality = modality
        self.min_similarity = min_similarity
        self._work_count = len(works)

        # owners[i] is the work index of matrix row i
        vectors: List[List[float]] = []
        owners: List[int] = []
        for work_index, work in enumerate(works):
            if modality == "text":
                if work.text_embedding:
                    vectors.append(work.text_embedding)
                    owners.append(work_index)
            else:
                for embedding in work.image_embeddings:
                    vectors.append(embedding)
                    owners.append(work_index)

        # Mean image similarity divides by every image, even unusable ones
        self._image_counts = np.bincount(np.asarray(owners, dtype=np.int64), minlength=self._work_count)

        lengths = Counter(len(v) for v in vectors)
        self.dimension = lengths.most_common(1)[0][0] if lengths else 0
        usable = [i for i, v in enumerate(vectors) if len(v) == self.dimension]
        self._owners = np.asarray([owners[i] for i in usable], dtype=np.int64)
        if usable:
            matrix = np.asarray([vectors[i] for i in usable], dtype=np.float32)
            norms = np.linalg.norm(matrix, axis=1, keepdims=True)
            self._matrix: NDArray[np.float32] = matrix / np.maximum(norms, 1e-9)
        else:
            self._matrix = np.zeros((0, 0), dtype=np.float32)

    @property
    def count(self) -> int:
        """Number of usable vectors."""
        return int(self._matrix.shape[0])

    def embed_query(self, query: str) -> NDArray[np.float32]:
        """Embed ``query`` with the configured provider.

        Raises:
            EmbeddingError: If there is no provider or it fails
        """
        if self.embedder is None:
            raise EmbeddingError(f"No embedding provider configured for {self.modality} search")
        try:
            embedding = self.embedder.embed_text(query)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"{self.modality} query embedding failed: {e}") from e
        if embedding is None:
            raise EmbeddingError(f"{self.modality} query embedding is empty")
        return np.asarray(embedding, dtype=np.float32)

    def similarities(self, query_embedding: ArrayLike) -> NDArray[np.float64]:
        """Similarity of every work to ``query_embedding`` (dense, corpus order)."""
        scores = np.zeros(self._work_count, dtype=np.float64)
        query = np.asarray(query_embedding, dtype=np.float32).ravel()
        if self.count == 0 or query.shape[0] != self.dimension:
            return scores
        norm = np.linalg.norm(query)
        if norm == 0:
            return scores

        row_scores = self._matrix @ (query / norm)
        if self.modality == "text":
            scores[self._owners] = row_scores
        else:
            sums = np.bincount(self._owners, weights=row_scores, minlength=self._work_count)
            counts = np.maximum(self._image_counts, 1)
            scores = sums / counts
        return np.clip(scores, -1.0, 1.0)

    def search(self, query: str, query_embedding: ArrayLike | None = None) -> List[Hit]:
        """Return (work index, similarity) pairs at or above ``min_similarity``.

        Args:
            query: Query text, embedded with the provider if needed
            query_embedding: Precomputed query embedding in this space

        Raises:
            EmbeddingError: If the query embedding cannot be computed
        """
        if query_embedding is None:
            query_embedding = self.embed_query(query)
        scores = self.similarities(query_embedding)
        return [
            (int(i), float(scores[i]))
            for i in np.flatnonzero((scores > 0) & (scores >= self.min_similarity))
        ]

    def __repr__(self) -> str:
        return (
            f"SemanticMatcher(modality={self.modality!r}, "
            f"vectors={self.count}, dim={self.dimension})"
        )
