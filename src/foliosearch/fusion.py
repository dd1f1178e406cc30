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

"""Score fusion for hybrid search.

Combines per-strategy scores into one weighted score per work:

    combined = semantic * w_semantic + keyword * w_keyword
             + fuzzy * w_fuzzy + metadata * w_metadata (+ image * w_image)

Only works that some strategy returned are scored (a sparse union). No
weight redistribution happens when a strategy is missing: its term is
simply 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from .config import STRATEGIES
from .models import ScoreBreakdown


@dataclass
class FusedScore:
    """Combined score of one work.

    Attributes:
        index: Work index into the corpus
        combined: Weighted sum of the strategy scores
        breakdown: Raw strategy scores (0 where a strategy had no hit)
    """
    index: int
    combined: float = 0.0
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)

    def __repr__(self) -> str:
        return f"FusedScore(index={self.index}, combined={self.combined:.4f})"


def combine(breakdown: ScoreBreakdown, weights: Mapping[str, float]) -> float:
    """Weighted sum of a breakdown, accumulated in strategy order."""
    combined = 0.0
    for strategy in STRATEGIES:
        combined += breakdown.get(strategy) * weights.get(strategy, 0.0)
    return combined


def weighted_fusion(
    strategy_scores: Mapping[str, Mapping[int, float]],
    weights: Mapping[str, float]
) -> List[FusedScore]:
    """Merge strategy score maps into fused scores.

    Args:
        strategy_scores: Strategy name -> {work index: score}
        weights: Strategy name -> weight

    Returns:
        One FusedScore per work present in any score map, in first-seen order

    Example:
        >>> fused = weighted_fusion(
        ...     {"semantic": {0: 0.9}, "keyword": {0: 1.0, 1: 0.5}},
        ...     {"semantic": 0.6, "keyword": 0.15},
        ... )
        >>> [round(f.combined, 3) for f in fused]
        [0.69, 0.075]
    """
    records: Dict[int, FusedScore] = {}
    for strategy in STRATEGIES:
        for index, score in strategy_scores.get(strategy, {}).items():
            record = records.get(index)
            if record is None:
                record = records[index] = FusedScore(index=index)
            record.breakdown.set(strategy, score)

    for record in records.values():
        record.combined = combine(record.breakdown, weights)
    return list(records.values())


def rank_fused(
    fused: List[FusedScore],
    min_score: float = 0.0,
    max_results: int | None = None,
    limit: int | None = None
) -> List[FusedScore]:
    """Filter, sort and truncate fused scores.

    Scores below ``min_score`` are dropped. Sorting is by descending
    combined score; equal scores keep their input order (Python's sort is
    stable). The result is cut to the smaller of ``max_results`` and
    ``limit``.
    """
    kept = [f for f in fused if f.combined >= min_score]
    kept.sort(key=lambda f: f.combined, reverse=True)
    caps = [c for c in (max_results, limit) if c is not None]
    if caps:
        kept = kept[: max(min(caps), 0)]
    return kept
