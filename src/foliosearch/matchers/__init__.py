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

"""Per-strategy matchers used by the hybrid ranker."""

from .base import Hit, StrategyResult, StrategyStatus, run_strategy
from .fuzzy import FuzzyMatcher, approximate_distance
from .keyword import KeywordIndex
from .metadata import MetadataMatcher, MetadataWeights
from .semantic import SemanticMatcher

__all__ = [
    "Hit",
    "StrategyResult",
    "StrategyStatus",
    "run_strategy",
    "FuzzyMatcher",
    "approximate_distance",
    "KeywordIndex",
    "MetadataMatcher",
    "MetadataWeights",
    "SemanticMatcher",
]
