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

"""Rule-based matching of structured work metadata mentioned in a query."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from ..models import Work
from .base import Hit


@dataclass(frozen=True)
class MetadataWeights:
    """Score contributed by each kind of metadata mention."""
    year: float = 0.3
    medium: float = 0.2       # per matching medium
    category: float = 0.3
    tag: float = 0.2          # per matching tag


class MetadataMatcher:
    """Scores works whose year, medium, category or tags appear in the query.

    Matching is a case-insensitive substring test against the raw query,
    so "installations in 2020" matches year "2020" and tag "installation".
    Contributions are summed and capped at 1.0.
    """

    def __init__(
        self,
        works: Sequence[Work],
        weights: MetadataWeights | None = None,
        min_score: float = 0.0
    ):
        self.works = works
        self.weights = weights or MetadataWeights()
        self.min_score = min_score

    def score(self, query: str, work: Work) -> float:
        """Metadata score of one work for a raw query."""
        query_lower = query.lower()
        score = 0.0

        if work.year and work.year.lower() in query_lower:
            score += self.weights.year

        for medium in work.medium:
            if medium and medium.lower() in query_lower:
                score += self.weights.medium

        if work.category and work.category.lower() in query_lower:
            score += self.weights.category

        for tag in work.tags:
            if tag and tag.lower() in query_lower:
                score += self.weights.tag

        return min(score, 1.0)

    def search(self, query: str) -> List[Hit]:
        if not query or not query.strip():
            return []
        hits = []
        for work_index, work in enumerate(self.works):
            score = self.score(query, work)
            if score > 0 and score >= self.min_score:
                hits.append((work_index, score))
        return hits
