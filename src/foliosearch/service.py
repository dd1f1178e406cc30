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

"""Search facade used by the site's request handlers.

Wires a corpus, a hybrid searcher and a suggestion engine together and
exposes the two API calls: search and suggest. Committed searches are
recorded in the history; suggestion requests never are.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from .config import Settings
from .corpus import Corpus
from .embeddings import EmbeddingProvider, create_provider
from .history import SearchHistory
from .hybrid import HybridSearcher, RankedResults, SearchOptions
from .suggestions import QuerySuggestionEngine

logger = logging.getLogger(__name__)


class SearchService:
    """Entry point for search and autocomplete requests.

    Example:
        >>> service = SearchService.from_settings(load_settings())
        >>> service.search({"query": "beach installation 2020", "options": {"limit": 5}})
        [{'itemId': 'a', 'score': 0.74, 'scoreBreakdown': {...}}, ...]
        >>> service.suggest({"partialQuery": "bea", "limit": 5})
        [{'suggestionText': 'beach', 'score': 1.0, 'count': 3}, ...]
    """

    def __init__(
        self,
        corpus: Corpus,
        searcher: HybridSearcher,
        suggestions: QuerySuggestionEngine | None = None,
        record_searches: bool = True
    ):
        self.corpus = corpus
        self.searcher = searcher
        self.suggestions = suggestions
        self.record_searches = record_searches

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        embedding_provider: EmbeddingProvider | None = None,
        image_embedding_provider: EmbeddingProvider | None = None
    ) -> "SearchService":
        """Build the service: load the corpus and history, create providers.

        Semantic search and embedding-based suggestions are disabled when
        the text model cannot be loaded; image search is disabled when the
        image model cannot be loaded.
        """
        corpus = Corpus.load(settings.corpus_path)

        embedder = embedding_provider
        if embedder is None:
            try:
                embedder = create_provider(settings.text_model, fallback=False)
            except (ImportError, OSError, ValueError) as e:
                logger.warning("Semantic search disabled: could not load %r (%s)", settings.text_model, e)
        image_embedder = image_embedding_provider
        if image_embedder is None and settings.image_model:
            try:
                image_embedder = create_provider(settings.image_model, fallback=False)
            except (ImportError, OSError, ValueError) as e:
                logger.warning("Image search disabled: could not load %r (%s)", settings.image_model, e)

        searcher = HybridSearcher(corpus.works, embedder, image_embedder, config=settings.search)
        history = SearchHistory(settings.history.path, max_entries=settings.history.max_entries)
        engine = QuerySuggestionEngine(history, embedder, settings.search.embedding_timeout)
        engine.initialize_with_default_searches(settings.history.default_searches)
        return cls(corpus, searcher, engine)

    def run(self, query: str, options: SearchOptions | None = None, mode: str = "hybrid") -> RankedResults:
        """Rank the corpus for ``query`` and record it as a committed search.

        Args:
            query: Free-text query
            options: Per-call limit, weights, enabled strategies
            mode: "hybrid" (the service configuration), "multimodal" or "text"
        """
        config = self.searcher.config if mode == "hybrid" else self.searcher.preset_config(mode)
        results = self.searcher.rank(query, options=options, config=config)
        if self.record_searches and self.suggestions is not None and query and query.strip():
            self.suggestions.add_search_to_history(query)
        return results

    def search(self, request: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Handle ``{"query": str, "options": {"limit", "weights", "enabled"}}``.

        Returns:
            ``[{"itemId", "score", "scoreBreakdown"}, ...]`` best first
        """
        raw = dict(request.get("options") or {})
        options = SearchOptions(
            limit=int(raw["limit"]) if raw.get("limit") is not None else None,
            weights=raw.get("weights"),
            enabled=_strategy_list(raw.get("enabled")),
        )
        results = self.run(request.get("query") or "", options, mode=raw.get("mode", "hybrid"))
        return [r.to_dict() for r in results]

    def suggest(self, request: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Handle ``{"partialQuery": str, "limit": int}``.

        Returns:
            ``[{"suggestionText", "score", "count"}, ...]`` best first
        """
        if self.suggestions is None:
            return []
        limit = request.get("limit")
        suggestions = self.suggestions.get_suggestions(
            request.get("partialQuery") or "",
            limit=5 if limit is None else int(limit),
        )
        return [s.to_dict() for s in suggestions]

    def __repr__(self) -> str:
        return f"SearchService(corpus={self.corpus!r}, searcher={self.searcher!r})"


def _strategy_list(enabled: Any) -> Sequence[str] | None:
    """Accept a list of names or a ``{name: bool}`` mapping."""
    if enabled is None:
        return None
    if isinstance(enabled, Mapping):
        return [name for name, on in enabled.items() if on]
    return list(enabled)
