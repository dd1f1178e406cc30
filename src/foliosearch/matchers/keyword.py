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

"""Inverted keyword index over stemmed work terms."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence, Set

from ..analysis import extract_terms, tokenize
from ..models import Work
from .base import Hit


class KeywordIndex:
    """Maps stemmed terms to the works containing them.

    Built once from a corpus snapshot; rebuild it if the corpus changes.

    Example:
        >>> index = KeywordIndex(works)
        >>> index.search("beach installation")
        [(0, 1.0), (2, 0.5)]

    The score of a work is the fraction of query terms it contains, so a
    work containing every query term scores 1.0.
    """

    def __init__(self, works: Sequence[Work], stemming: bool = True, min_score: float = 0.0):
        """Build the index.

        Args:
            works: Corpus snapshot, indexed by position
            stemming: Stem terms on both the index and the query side
            min_score: Minimum normalized score for a hit
        """
        self.stemming = stemming
        self.min_score = min_score
        self._postings: Dict[str, List[int]] = defaultdict(list)
        self._doc_count = len(works)

        for work_index, work in enumerate(works):
            for term in extract_terms(work, stemming):
                self._postings[term].append(work_index)

    @property
    def doc_count(self) -> int:
        return self._doc_count

    @property
    def terms(self) -> Set[str]:
        return set(self._postings)

    def postings(self, term: str) -> List[int]:
        """Return indices of works containing ``term`` (already analyzed)."""
        return list(self._postings.get(term, ()))

    def search(self, query: str) -> List[Hit]:
        """Score works by query-term overlap.

        Returns:
            (work index, score) pairs in corpus order
        """
        query_terms = tokenize(query, self.stemming)
        if not query_terms:
            return []

        matches: Dict[int, int] = defaultdict(int)
        for term in query_terms:
            for work_index in self._postings.get(term, ()):
                matches[work_index] += 1

        hits = []
        for work_index in sorted(matches):
            score = matches[work_index] / len(query_terms)
            if score > 0 and score >= self.min_score:
                hits.append((work_index, score))
        return hits

    def __len__(self) -> int:
        return len(self._postings)

    def __contains__(self, term: str) -> bool:
        return term in self._postings

    def __repr__(self) -> str:
        return f"KeywordIndex(docs={self._doc_count}, terms={len(self._postings)})"
