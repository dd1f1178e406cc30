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

"""Text analysis: tokenization and light suffix stemming.

The stemmer is deliberately minimal so that "designing", "designed" and
"designer" all collapse onto "design" without a language model.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable, List, Set

if TYPE_CHECKING:
    from .models import Work


SUFFIXES = ("ing", "ed", "er", "est", "s")
MIN_TERM_LENGTH = 2

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def stem(word: str) -> str:
    """Strip the first matching suffix from ``word``.

    A suffix is removed only if more than two characters would remain.
    Only one suffix is ever stripped.

    Example:
        >>> stem("designing")
        'design'
        >>> stem("red")
        'red'
    """
    for suffix in SUFFIXES:
        if word.endswith(suffix) and len(word) > len(suffix) + 2:
            return word[: -len(suffix)]
    return word


def tokenize(text: str | None, stemming: bool = True) -> List[str]:
    """Split free text into lowercase search terms.

    Punctuation becomes whitespace, terms shorter than two characters
    are dropped and, when ``stemming`` is set, each term is stemmed.
    """
    if not text:
        return []
    cleaned = _PUNCTUATION_RE.sub(" ", text.lower())
    terms = [t for t in cleaned.split() if len(t) >= MIN_TERM_LENGTH]
    if stemming:
        terms = [stem(t) for t in terms]
    return terms


def tokenize_all(values: Iterable[str] | None, stemming: bool = True) -> List[str]:
    """Tokenize every string of a list-valued field."""
    terms: List[str] = []
    for value in values or ():
        terms.extend(tokenize(value, stemming))
    return terms


def extract_terms(work: "Work", stemming: bool = True) -> Set[str]:
    """Deduplicated search terms for a work.

    Title, description, text content, tags, medium and category are
    tokenized independently and unioned.
    """
    terms: Set[str] = set()
    terms.update(tokenize(work.title, stemming))
    terms.update(tokenize(work.description, stemming))
    terms.update(tokenize(work.text_content, stemming))
    terms.update(tokenize_all(work.tags, stemming))
    terms.update(tokenize_all(work.medium, stemming))
    terms.update(tokenize(work.category, stemming))
    return terms
