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

"""Autocomplete suggestions from the search history.

Suggestions come from two sources, in order of priority:

1. Prefix matches: past searches starting with the typed text, scored
   1.0 and ordered by popularity.
2. Semantic neighbours: remaining past searches ordered by cosine
   similarity between their stored embedding and the embedding of the
   typed text. Only computed when prefix matches cannot fill the limit;
   if the typed text cannot be embedded they all score 0.0.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Iterable, List, Optional

import numpy as np

from .config import DEFAULT_SEARCHES
from .embeddings import EmbeddingProvider
from .history import SearchHistory
from .models import SearchHistoryEntry, Suggestion, normalize_query
from .vectors import cosine_similarity

logger = logging.getLogger(__name__)


class QuerySuggestionEngine:
    """Suggests queries while the user types and learns from committed searches.

    Example:
        >>> engine = QuerySuggestionEngine(SearchHistory("data/search-history.json"), embedder)
        >>> engine.initialize_with_default_searches()
        >>> engine.add_search_to_history("cat photo")
        >>> [s.query for s in engine.get_suggestions("cat", limit=3)]
        ['cat photo', 'cat', 'dog']

    Attributes:
        history: Persisted search history
        embedder: Text embedding provider (None disables semantic suggestions)
        embedding_timeout: Seconds to wait for an embedding; None waits forever
    """

    def __init__(
        self,
        history: SearchHistory | None = None,
        embedding_provider: EmbeddingProvider | None = None,
        embedding_timeout: Optional[float] = None
    ):
        self.history = history if history is not None else SearchHistory()
        self.embedder = embedding_provider
        self.embedding_timeout = embedding_timeout

    def embed(self, text: str) -> Optional[List[float]]:
        """Embed ``text``, returning None if the provider is missing, fails or times out."""
        if self.embedder is None:
            return None
        try:
            if self.embedding_timeout is None:
                vector = self.embedder.embed_text(text)
            else:
                executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="foliosearch-suggest")
                try:
                    vector = executor.submit(self.embedder.embed_text, text).result(
                        timeout=self.embedding_timeout
                    )
                finally:
                    executor.shutdown(wait=False, cancel_futures=True)
        except FuturesTimeoutError:
            logger.warning("Embedding %r timed out after %.1fs", text, self.embedding_timeout)
            return None
        except Exception as e:
            logger.warning("Embedding %r failed: %s", text, e)
            return None
        if vector is None:
            return None
        return np.asarray(vector, dtype=np.float64).ravel().tolist() or None

    def get_suggestions(self, partial_query: str, limit: int = 5) -> List[Suggestion]:
        """Suggest past searches for a partially typed query.

        Args:
            partial_query: Text typed so far
            limit: Maximum number of suggestions

        Returns:
            Suggestions, best first. Empty for blank input, without
            touching the embedding provider.

        Raises:
            ValueError: If ``limit`` is not positive
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        key = normalize_query(partial_query)
        if not key:
            return []

        entries = self.history.entries()
        prefix = [e for e in entries if e.key.startswith(key)]
        prefix.sort(key=lambda e: e.count, reverse=True)
        suggestions = [Suggestion(e.query, 1.0, e.count, prefix=True) for e in prefix]
        if len(prefix) >= limit:
            logger.debug("Suggestions for %r: %d prefix matches", key, len(prefix))
            return suggestions[:limit]

        embedding = self.embed(key)
        prefix_keys = {e.key for e in prefix}
        suggestions.extend(
            Suggestion(e.query, self._similarity(embedding, e), e.count)
            for e in entries
            if e.key not in prefix_keys
        )
        # Stable: prefix matches stay ahead of equally scored neighbours
        suggestions.sort(key=lambda s: s.score, reverse=True)
        logger.debug(
            "Suggestions for %r: %d prefix, %d semantic candidates",
            key, len(prefix), len(suggestions) - len(prefix)
        )
        return suggestions[:limit]

    @staticmethod
    def _similarity(embedding: Optional[List[float]], entry: SearchHistoryEntry) -> float:
        if embedding is None or entry.embedding is None:
            return 0.0
        return cosine_similarity(embedding, entry.embedding)

    def add_search_to_history(self, query: str) -> Optional[SearchHistoryEntry]:
        """Record a committed search.

        Repeats (case-insensitive) bump the count and keep the stored
        embedding. New queries are embedded once; a failed embedding is
        stored as None. The history is persisted before returning.

        Returns:
            The new or updated entry, or None for a blank query
        """
        query = (query or "").strip()
        if not query:
            return None
        entry = self.history.increment(query)
        if entry is not None:
            return entry
        return self.history.record(query, self.embed(query))

    def initialize_with_default_searches(self, searches: Iterable[str] | None = None) -> int:
        """Seed an empty history with generic searches.

        Does nothing if the history already has entries.

        Returns:
            Number of searches added
        """
        if len(self.history.entries()) > 0:
            logger.debug("Search history already has %d entries; not seeding", len(self.history))
            return 0
        searches = list(DEFAULT_SEARCHES if searches is None else searches)
        added = sum(1 for query in searches if self.add_search_to_history(query) is not None)
        logger.info("Initialized search history with %d default searches", added)
        return added

    def __repr__(self) -> str:
        embedder = self.embedder.model_name if self.embedder is not None else None
        return f"QuerySuggestionEngine(history={self.history!r}, embedder={embedder!r})"
