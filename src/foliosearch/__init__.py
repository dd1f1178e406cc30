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

"""Hybrid search core for a portfolio of creative works.

Ranks works by blending semantic (embedding) similarity, keyword overlap,
fuzzy string similarity and structured metadata matches, and answers
autocomplete requests from a persisted history of past searches.

Quick Start:
    >>> from foliosearch import Corpus, HybridSearcher, SentenceTransformerProvider
    >>>
    >>> corpus = Corpus.load("data/works.json")
    >>> embedder = SentenceTransformerProvider("all-MiniLM-L6-v2")
    >>> searcher = HybridSearcher(corpus.works, embedder)
    >>> for r in searcher.search("beach installation 2020", limit=5):
    ...     print(f"{r.item_id}: {r.score:.3f}")

Components:
    - HybridSearcher: four-strategy ranker (semantic, keyword, fuzzy, metadata)
    - QuerySuggestionEngine: prefix + nearest-neighbour autocomplete
    - SearchService: search facade that records committed searches
    - EmbeddingProvider: protocol for text/image embedding models
"""

import logging

__version__ = "0.3.0"


def versionstring() -> str:
    """Return the package version string."""
    return __version__


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure root logging for scripts and host applications.

    Library modules only create loggers; they never configure handlers.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


__all__ = [
    "__version__",
    "versionstring",
    "configure_logging",
    # Core
    "HybridSearcher",
    "HybridSearchResult",
    "RankedResults",
    "SearchOptions",
    "QuerySuggestionEngine",
    "SearchHistory",
    "SearchService",
    "Corpus",
    # Models
    "Work",
    "SearchHistoryEntry",
    "Suggestion",
    # Config
    "SearchConfig",
    "Settings",
    "load_settings",
    # Embeddings
    "EmbeddingProvider",
    "HashingEmbeddingProvider",
    "SentenceTransformerProvider",
    "create_provider",
    # Utilities
    "cosine_similarity",
    "tokenize",
    "stem",
]

_EXPORTS = {
    "HybridSearcher": "hybrid",
    "HybridSearchResult": "models",
    "RankedResults": "hybrid",
    "SearchOptions": "hybrid",
    "QuerySuggestionEngine": "suggestions",
    "SearchHistory": "history",
    "SearchService": "service",
    "Corpus": "corpus",
    "Work": "models",
    "SearchHistoryEntry": "models",
    "Suggestion": "models",
    "SearchConfig": "config",
    "Settings": "config",
    "load_settings": "config",
    "EmbeddingProvider": "embeddings",
    "HashingEmbeddingProvider": "embeddings",
    "SentenceTransformerProvider": "embeddings",
    "create_provider": "embeddings",
    "cosine_similarity": "vectors",
    "tokenize": "analysis",
    "stem": "analysis",
}


# Lazy imports keep `import foliosearch` free of numpy/pydantic
def __getattr__(name: str):
    if name in _EXPORTS:
        from importlib import import_module
        module = import_module(f".{_EXPORTS[name]}", __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
