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

"""Hybrid search combining semantic, keyword, fuzzy and metadata matching.

This module provides the HybridSearcher class, the main interface for
ranking a portfolio corpus against a free-text query.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Sequence

from numpy.typing import ArrayLike

from .config import HYBRID, STRATEGIES, SearchConfig, StrategyThresholds, preset
from .embeddings import EmbeddingProvider
from .fusion import rank_fused, weighted_fusion
from .matchers import (
    FuzzyMatcher,
    Hit,
    KeywordIndex,
    MetadataMatcher,
    SemanticMatcher,
    StrategyResult,
    StrategyStatus,
    run_strategy,
)
from .models import HybridSearchResult, Work

logger = logging.getLogger(__name__)

# Strategies that call the embedding provider and honour embedding_timeout
EMBEDDING_STRATEGIES = frozenset({"semantic", "image"})


@dataclass
class SearchOptions:
    """Per-call search options.

    Attributes:
        limit: Maximum number of results (default: config.default_limit)
        weights: Weight overrides, merged onto the configured weights
        enabled: Strategies to run (default: config.enabled)
        query_embedding: Precomputed text-space query embedding
        image_query_embedding: Precomputed image-space query embedding
    """
    limit: int | None = None
    weights: Mapping[str, float] | None = None
    enabled: Sequence[str] | None = None
    query_embedding: ArrayLike | None = None
    image_query_embedding: ArrayLike | None = None


@dataclass
class RankedResults:
    """Ranked hits plus the outcome of every strategy.

    Iterating yields the HybridSearchResult objects in rank order.
    """
    query: str
    results: List[HybridSearchResult] = field(default_factory=list)
    strategies: Dict[str, StrategyResult] = field(default_factory=dict)

    @property
    def degraded(self) -> List[str]:
        """Names of strategies that failed or timed out."""
        return [name for name, r in self.strategies.items() if r.degraded]

    def __iter__(self) -> Iterator[HybridSearchResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index: int) -> HybridSearchResult:
        return self.results[index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "results": [r.to_dict() for r in self.results],
            "strategies": {name: r.status.value for name, r in self.strategies.items()},
        }


def _passes(strategy: str, score: float, thresholds: StrategyThresholds) -> bool:
    if strategy == "fuzzy":
        # Fuzzy scores are 1 - distance; the threshold is a maximum distance
        return score >= 1.0 - thresholds.fuzzy
    return score >= getattr(thresholds, strategy)


class HybridSearcher:
    """Ranks works by a weighted blend of independent matching strategies.

    All enabled strategies run concurrently against the same read-only
    corpus snapshot, then their scores are fused, thresholded, sorted and
    truncated.

    Example:
        >>> searcher = HybridSearcher(works, SentenceTransformerProvider())
        >>> results = searcher.search("beach installation 2020", limit=10)
        >>> for r in results:
        ...     print(f"{r.item_id}: {r.score:.3f} {r.breakdown.to_dict()}")
        >>>
        >>> # Text + image embedding blend
        >>> searcher.search_multimodal("red sculpture")

    Attributes:
        works: The corpus snapshot, never modified
        embedder: Text embedding provider (None disables semantic search)
        image_embedder: Provider embedding text into the image space
        config: Default ranking configuration
    """

    def __init__(
        self,
        works: Sequence[Work],
        embedding_provider: EmbeddingProvider | None = None,
        image_embedding_provider: EmbeddingProvider | None = None,
        config: SearchConfig | None = None
    ):
        """Initialize hybrid searcher and build its indexes.

        Args:
            works: Corpus snapshot; results refer to works by position
            embedding_provider: Provider for text query embeddings
            image_embedding_provider: Provider for image-space query embeddings
                (a CLIP-style model that embeds text next to images)
            config: Default configuration (weights, thresholds, presets)
        """
        self.works: Sequence[Work] = tuple(works)
        self.embedder = embedding_provider
        self.image_embedder = image_embedding_provider
        self.config = config or HYBRID

        # Matchers return every positive score; thresholds apply per call
        self.keyword_index = KeywordIndex(self.works, stemming=self.config.stemming)
        self.fuzzy_matcher = FuzzyMatcher(self.works, self.config.fuzzy, max_distance=1.0)
        self.metadata_matcher = MetadataMatcher(self.works)
        self.text_matcher = SemanticMatcher(self.works, embedding_provider, "text", min_similarity=0.0)
        self.image_matcher = SemanticMatcher(self.works, image_embedding_provider, "image", min_similarity=0.0)

    def search(
        self,
        query: str,
        limit: int | None = None,
        options: SearchOptions | None = None,
        config: SearchConfig | None = None
    ) -> List[HybridSearchResult]:
        """Execute hybrid search.

        Args:
            query: Free-text query
            limit: Maximum number of results (overrides ``options.limit``)
            options: Per-call weights, enabled strategies, precomputed embeddings
            config: Ranking configuration for this call (default: self.config)

        Returns:
            List of HybridSearchResult sorted by combined score; empty for a
            blank query. Failing strategies are skipped, never raised.
        """
        return self.rank(query, limit=limit, options=options, config=config).results

    def preset_config(self, name: str) -> SearchConfig:
        """Apply a named preset's weights, thresholds, enabled set and cap to
        this searcher's configuration.

        Timeout, fuzzy and stemming settings of ``self.config`` are kept.

        Raises:
            ValueError: If ``name`` is not a known preset
        """
        named = preset(name)
        return self.config.model_copy(update={
            "weights": named.weights,
            "thresholds": named.thresholds,
            "enabled": named.enabled,
            "max_results": named.max_results,
        })

    def search_multimodal(
        self,
        query: str,
        limit: int | None = None,
        options: SearchOptions | None = None
    ) -> List[HybridSearchResult]:
        """Blend text-embedding (0.7) and mean image-embedding (0.3) similarity."""
        return self.search(query, limit=limit, options=options, config=self.preset_config("multimodal"))

    def search_text(
        self,
        query: str,
        limit: int | None = None,
        options: SearchOptions | None = None
    ) -> List[HybridSearchResult]:
        """Text-embedding similarity only; skips image similarity entirely."""
        return self.search(query, limit=limit, options=options, config=self.preset_config("text"))

    def rank(
        self,
        query: str,
        limit: int | None = None,
        options: SearchOptions | None = None,
        config: SearchConfig | None = None
    ) -> RankedResults:
        """Execute a search and report the status of every strategy.

        Raises:
            ValueError: If ``limit`` is not positive, a strategy name is
                unknown, or weight overrides do not sum to 1.0
        """
        options = options or SearchOptions()
        config = config or self.config
        limit = limit if limit is not None else options.limit
        limit = config.default_limit if limit is None else limit
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        weights = config.weights.with_overrides(options.weights)
        enabled = frozenset(options.enabled) if options.enabled is not None else config.enabled
        unknown = enabled - set(STRATEGIES)
        if unknown:
            raise ValueError(f"Unknown search strategies: {', '.join(sorted(unknown))}")

        if not query or not query.strip():
            return RankedResults(
                query=query or "",
                strategies={
                    name: StrategyResult(strategy=name, status=StrategyStatus.EMPTY_QUERY)
                    for name in STRATEGIES
                },
            )

        strategies = self._run_strategies(query, enabled, options, config)

        scores = {
            name: {i: s for i, s in result.scores.items() if _passes(name, s, config.thresholds)}
            for name, result in strategies.items()
        }
        fused = weighted_fusion(scores, weights.as_dict())
        ranked = rank_fused(
            fused,
            min_score=config.thresholds.combined,
            max_results=config.max_results,
            limit=limit,
        )

        results = [
            HybridSearchResult(item=self.works[f.index], score=f.combined, breakdown=f.breakdown)
            for f in ranked
        ]
        if strategies and all(r.degraded for r in strategies.values()):
            logger.warning("All search strategies failed for query %r", query)
        return RankedResults(query=query, results=results, strategies=strategies)

    def _tasks(
        self,
        query: str,
        enabled: frozenset,
        options: SearchOptions
    ) -> Dict[str, Callable[[], List[Hit]] | None]:
        """Build one callable per strategy; None marks a disabled strategy."""
        tasks: Dict[str, Callable[[], List[Hit]] | None] = {}
        for name in STRATEGIES:
            if name not in enabled:
                tasks[name] = None
            elif name == "semantic":
                if self.embedder is None and options.query_embedding is None:
                    tasks[name] = None
                else:
                    tasks[name] = lambda: self.text_matcher.search(query, options.query_embedding)
            elif name == "image":
                if self.image_embedder is None and options.image_query_embedding is None:
                    tasks[name] = None
                else:
                    tasks[name] = lambda: self.image_matcher.search(query, options.image_query_embedding)
            elif name == "keyword":
                tasks[name] = lambda: self.keyword_index.search(query)
            elif name == "fuzzy":
                tasks[name] = lambda: self.fuzzy_matcher.search(query)
            else:
                tasks[name] = lambda: self.metadata_matcher.search(query)
        return tasks

    def _run_strategies(
        self,
        query: str,
        enabled: frozenset,
        options: SearchOptions,
        config: SearchConfig
    ) -> Dict[str, StrategyResult]:
        """Run enabled strategies in parallel and join them."""
        tasks = self._tasks(query, enabled, options)
        results: Dict[str, StrategyResult] = {
            name: StrategyResult.disabled(name) for name, task in tasks.items() if task is None
        }
        runnable = {name: task for name, task in tasks.items() if task is not None}
        if not runnable:
            return results

        start = time.perf_counter()
        executor = ThreadPoolExecutor(max_workers=len(runnable), thread_name_prefix="foliosearch")
        try:
            futures: Dict[str, Future] = {
                name: executor.submit(run_strategy, name, task)
                for name, task in runnable.items()
            }
            for name, future in futures.items():
                timeout = None
                if name in EMBEDDING_STRATEGIES and config.embedding_timeout is not None:
                    elapsed = time.perf_counter() - start
                    timeout = max(config.embedding_timeout - elapsed, 0.0)
                try:
                    results[name] = future.result(timeout=timeout)
                except FuturesTimeoutError:
                    logger.warning(
                        "%s search timed out after %.1fs; continuing without it",
                        name, config.embedding_timeout
                    )
                    future.cancel()
                    results[name] = StrategyResult.failed(name, "timed out")
        finally:
            # A hung provider call must not block the response
            executor.shutdown(wait=False, cancel_futures=True)

        logger.debug(
            "[TIMING] hybrid search %r: %.2fms (%s)",
            query,
            (time.perf_counter() - start) * 1000,
            ", ".join(f"{n}={r.status.value}" for n, r in results.items()),
        )
        return {name: results[name] for name in STRATEGIES}

    def __repr__(self) -> str:
        embedder = self.embedder.model_name if self.embedder is not None else None
        return (
            f"HybridSearcher(works={len(self.works)}, "
            f"embedder={embedder!r}, enabled={sorted(self.config.enabled)})"
        )
