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

"""Typed strategy results shared by the matchers and the ranker.

A strategy that finds nothing and a strategy that could not run both
contribute no scores, but callers can tell them apart via ``status``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

# (item index into the corpus, score in [0, 1])
Hit = Tuple[int, float]


class StrategyStatus(Enum):
    """Outcome of running one search strategy."""
    OK = "ok"                    # Ran; scores may still be empty
    DISABLED = "disabled"        # Turned off by configuration or options
    DEGRADED = "degraded"        # Failed or timed out; contributes nothing
    EMPTY_QUERY = "empty_query"  # Query was blank; nothing was run


@dataclass
class StrategyResult:
    """Scores produced by one strategy for one query.

    Attributes:
        strategy: Strategy name ("semantic", "keyword", ...)
        scores: Item index -> score, only for items that passed the strategy threshold
        status: Whether the strategy ran, was disabled or degraded
        error: Failure description when degraded
        elapsed_ms: Wall time spent in the strategy
    """
    strategy: str
    scores: Dict[int, float] = field(default_factory=dict)
    status: StrategyStatus = StrategyStatus.OK
    error: str | None = None
    elapsed_ms: float = 0.0

    @property
    def degraded(self) -> bool:
        return self.status is StrategyStatus.DEGRADED

    @classmethod
    def disabled(cls, strategy: str) -> "StrategyResult":
        return cls(strategy=strategy, status=StrategyStatus.DISABLED)

    @classmethod
    def failed(cls, strategy: str, error: BaseException | str) -> "StrategyResult":
        return cls(strategy=strategy, status=StrategyStatus.DEGRADED, error=str(error) or type(error).__name__)

    def __repr__(self) -> str:
        return (
            f"StrategyResult(strategy={self.strategy!r}, "
            f"status={self.status.value}, hits={len(self.scores)})"
        )


def run_strategy(strategy: str, search: Callable[[], List[Hit]]) -> StrategyResult:
    """Run a matcher search and wrap its hits, absorbing any failure.

    Failures are logged and reported as a degraded result so the other
    strategies can still rank the corpus.
    """
    start = time.perf_counter()
    try:
        hits = search()
    except Exception as e:
        logger.warning("%s search failed: %s", strategy, e)
        result = StrategyResult.failed(strategy, e)
    else:
        result = StrategyResult(strategy=strategy, scores=dict(hits))
    result.elapsed_ms = (time.perf_counter() - start) * 1000
    logger.debug(
        "[TIMING] %s: %.2fms (%d hits, %s)",
        strategy, result.elapsed_ms, len(result.scores), result.status.value
    )
    return result
