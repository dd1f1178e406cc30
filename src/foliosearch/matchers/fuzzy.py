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

"""Typo-tolerant fuzzy matching over weighted work fields.

Distances follow the "lower is better" convention of approximate string
matchers: 0.0 is an exact (substring) match and 1.0 shares nothing. A
work's distance combines its matched fields as a weighted geometric
product, so a strong title match outweighs a weak tag match.
"""

from __future__ import annotations

import sys
from difflib import SequenceMatcher
from typing import Dict, List, Sequence, Tuple

from ..config import FuzzyOptions
from ..models import Work
from .base import Hit

EPSILON = sys.float_info.epsilon


def approximate_distance(pattern: str, text: str) -> float:
    """Distance between ``pattern`` and the closest span of ``text``.

    Both strings are compared lowercased. A literal substring is a perfect
    match (0.0); otherwise ``text`` is scanned with word windows around the
    pattern's word count and the best SequenceMatcher ratio is inverted.
    """
    pattern = pattern.lower().strip()
    text = text.lower().strip()
    if not pattern or not text:
        return 1.0
    if pattern in text:
        return 0.0

    words = text.split()
    size = len(pattern.split())
    best = 0.0
    for window in {max(size - 1, 1), size, size + 1}:
        for start in range(max(len(words) - window + 1, 1)):
            span = " ".join(words[start:start + window])
            matcher = SequenceMatcher(None, pattern, span)
            if matcher.real_quick_ratio() <= best or matcher.quick_ratio() <= best:
                continue
            best = max(best, matcher.ratio())
            if best == 1.0:
                return 0.0
    return 1.0 - best


class FuzzyMatcher:
    """Fuzzy search over the configured work fields.

    Example:
        >>> matcher = FuzzyMatcher(works)
        >>> matcher.search("mountian sculpture")
        [(1, 0.78)]

    Attributes:
        options: Field weights, acceptance threshold and minimum query length
        max_distance: Works whose combined distance exceeds this are dropped
    """

    def __init__(
        self,
        works: Sequence[Work],
        options: FuzzyOptions | None = None,
        max_distance: float = 0.3
    ):
        self.options = options or FuzzyOptions()
        self.max_distance = max_distance

        total = sum(self.options.keys.values())
        self._keys: List[Tuple[str, float]] = [
            (name, weight / total) for name, weight in self.options.keys.items()
        ]
        # Precomputed lowercase field values per work
        self._fields: List[Dict[str, List[str]]] = [
            {name: self._field_values(work, name) for name, _ in self._keys}
            for work in works
        ]

    @staticmethod
    def _field_values(work: Work, name: str) -> List[str]:
        value = getattr(work, name)
        if isinstance(value, str):
            values = [value]
        else:
            values = [str(v) for v in value or ()]
        return [v.lower() for v in values if v and v.strip()]

    def distance(self, query: str, work_index: int) -> float | None:
        """Combined distance of one work, or None if no field matched."""
        total = 1.0
        matched = False
        for name, weight in self._keys:
            values = self._fields[work_index][name]
            if not values:
                continue
            field_distance = min(approximate_distance(query, v) for v in values)
            if field_distance > self.options.threshold:
                continue
            matched = True
            total *= max(field_distance, EPSILON) ** weight
        return total if matched else None

    def search(self, query: str) -> List[Hit]:
        """Return (work index, similarity) pairs, similarity = 1 - distance."""
        query = (query or "").strip().lower()
        if len(query) < self.options.min_match_char_length:
            return []

        hits = []
        for work_index in range(len(self._fields)):
            distance = self.distance(query, work_index)
            if distance is None or distance > self.max_distance:
                continue
            hits.append((work_index, 1.0 - distance))
        return hits

    def __repr__(self) -> str:
        keys = ", ".join(f"{n}={w:.2f}" for n, w in self._keys)
        return f"FuzzyMatcher(works={len(self._fields)}, keys=[{keys}])"
