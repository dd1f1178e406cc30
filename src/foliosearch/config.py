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

"""Search configuration: strategy weights, thresholds and presets.

The three ranking paths of the portfolio site (four-strategy hybrid,
text+image multimodal, text-only) are named configurations of the same
ranker rather than separate implementations:

    >>> from foliosearch.config import preset
    >>> preset("multimodal").weights.image
    0.3
"""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# Fusion order matters: combined scores are summed in this order
STRATEGIES = ("semantic", "keyword", "fuzzy", "metadata", "image")

DEFAULT_SEARCHES = [
    "person",
    "people",
    "family",
    "children",
    "boy",
    "girl",
    "man",
    "woman",
    "beach",
    "ocean",
    "mountain",
    "forest",
    "city",
    "dog",
    "cat",
    "animal",
    "sunset",
    "food",
    "car",
    "house",
    "building",
    "tree",
    "flower",
    "water",
    "sky",
]


class StrategyWeights(BaseModel):
    """Weight of each strategy in the combined score. Must sum to 1.0."""

    model_config = ConfigDict(frozen=True)

    semantic: float = Field(default=0.60, ge=0.0, le=1.0, description="Embedding similarity (text space).")
    keyword: float = Field(default=0.15, ge=0.0, le=1.0, description="Stemmed term overlap.")
    fuzzy: float = Field(default=0.10, ge=0.0, le=1.0, description="Typo-tolerant string similarity.")
    metadata: float = Field(default=0.15, ge=0.0, le=1.0, description="Year, medium, category and tag mentions.")
    image: float = Field(default=0.0, ge=0.0, le=1.0, description="Mean image-embedding similarity.")

    @model_validator(mode="after")
    def _check_sum(self) -> "StrategyWeights":
        total = sum(getattr(self, name) for name in STRATEGIES)
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"Strategy weights must sum to 1.0, got {total:.6f}")
        return self

    def with_overrides(self, overrides: Mapping[str, float] | None) -> "StrategyWeights":
        """Return a copy with some weights replaced (re-validated)."""
        if not overrides:
            return self
        _check_strategy_names(overrides)
        return StrategyWeights.model_validate({**self.model_dump(), **overrides})

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in STRATEGIES}


class StrategyThresholds(BaseModel):
    """Minimum scores for a strategy hit and for a combined result."""

    model_config = ConfigDict(frozen=True)

    semantic: float = Field(default=0.15, description="Minimum cosine similarity (0-1).")
    keyword: float = Field(default=0.0, description="No minimum: any term overlap counts.")
    fuzzy: float = Field(default=0.3, description="Maximum fuzzy distance (0 = exact, lower is better).")
    metadata: float = Field(default=0.0, description="No minimum.")
    image: float = Field(default=0.0, description="Minimum mean image similarity.")
    combined: float = Field(default=0.12, description="Minimum combined score to be returned.")


class FuzzyOptions(BaseModel):
    """Options for the fuzzy matcher."""

    model_config = ConfigDict(frozen=True)

    threshold: float = Field(default=0.4, ge=0.0, le=1.0, description="Field match acceptance distance; 0 = exact, 1 = anything.")
    min_match_char_length: int = Field(default=2, ge=1, description="Shortest query considered for fuzzy matching.")
    keys: Dict[str, float] = Field(
        default_factory=lambda: {"title": 0.5, "description": 0.2, "text_content": 0.2, "tags": 0.1},
        description="Searched work fields and their weights.",
    )

    @field_validator("keys")
    @classmethod
    def _known_fields(cls, keys: Dict[str, float]) -> Dict[str, float]:
        from .models import Work

        aliases = {f.alias: name for name, f in Work.model_fields.items() if f.alias}
        resolved = {}
        for key, weight in keys.items():
            name = aliases.get(key, key)
            if name not in Work.model_fields:
                raise ValueError(f"Unknown work field for fuzzy matching: {key!r}")
            if weight <= 0:
                raise ValueError(f"Fuzzy key weight must be positive: {key!r}")
            resolved[name] = weight
        if not resolved:
            raise ValueError("At least one fuzzy key is required")
        return resolved


class SearchConfig(BaseModel):
    """Complete configuration of one ranking path."""

    model_config = ConfigDict(frozen=True)

    weights: StrategyWeights = Field(default_factory=StrategyWeights)
    thresholds: StrategyThresholds = Field(default_factory=StrategyThresholds)
    fuzzy: FuzzyOptions = Field(default_factory=FuzzyOptions)
    enabled: FrozenSet[str] = Field(default=frozenset({"semantic", "keyword", "fuzzy", "metadata"}))
    max_results: int = Field(default=50, ge=1, description="Hard cap on returned results.")
    default_limit: int = Field(default=20, ge=1, description="Result limit when the caller gives none.")
    embedding_timeout: Optional[float] = Field(default=None, gt=0, description="Seconds to wait for query embeddings; None waits forever.")
    stemming: bool = True

    @field_validator("enabled")
    @classmethod
    def _known_strategies(cls, enabled: FrozenSet[str]) -> FrozenSet[str]:
        _check_strategy_names(enabled)
        return frozenset(enabled)


class HistoryConfig(BaseModel):
    """Search history persistence settings."""

    path: Path = Field(default=Path("data/search-history.json"), description="JSON file holding past searches.")
    max_entries: Optional[int] = Field(default=None, ge=1, description="Evict least recently used entries beyond this; None keeps all.")
    default_searches: List[str] = Field(default_factory=lambda: list(DEFAULT_SEARCHES))


class Settings(BaseModel):
    """Top-level settings for a search deployment."""

    corpus_path: Path = Field(default=Path("data/works.json"), description="Works snapshot produced by the catalog pipeline.")
    text_model: str = Field(default="all-MiniLM-L6-v2", description="Text embedding model.")
    image_model: Optional[str] = Field(default="clip-ViT-B-32", description="Image/text joint embedding model; None disables image search.")
    search: SearchConfig = Field(default_factory=SearchConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    log_level: str = Field(default="INFO")


def _check_strategy_names(names) -> None:
    unknown = set(names) - set(STRATEGIES)
    if unknown:
        raise ValueError(
            f"Unknown search strategies: {', '.join(sorted(unknown))}. "
            f"Known: {', '.join(STRATEGIES)}"
        )


HYBRID = SearchConfig()

MULTIMODAL = SearchConfig(
    weights=StrategyWeights(semantic=0.7, keyword=0.0, fuzzy=0.0, metadata=0.0, image=0.3),
    thresholds=StrategyThresholds(semantic=0.0, image=0.0, combined=0.1),
    enabled=frozenset({"semantic", "image"}),
    max_results=20,
)

TEXT_ONLY = SearchConfig(
    weights=StrategyWeights(semantic=1.0, keyword=0.0, fuzzy=0.0, metadata=0.0, image=0.0),
    thresholds=StrategyThresholds(semantic=0.0, combined=0.1),
    enabled=frozenset({"semantic"}),
    max_results=20,
)

PRESETS: Dict[str, SearchConfig] = {
    "hybrid": HYBRID,
    "multimodal": MULTIMODAL,
    "text": TEXT_ONLY,
}


def preset(name: str) -> SearchConfig:
    """Look up a named ranking configuration.

    Raises:
        ValueError: If ``name`` is not a known preset
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown search preset {name!r}. Known: {', '.join(sorted(PRESETS))}"
        ) from None


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build settings from ``FOLIOSEARCH_*`` environment variables.

    Variables that are not set keep their defaults.
    """
    env = os.environ if env is None else env
    defaults = Settings()

    search = defaults.search
    timeout = env.get("FOLIOSEARCH_EMBEDDING_TIMEOUT")
    if timeout:
        search = SearchConfig.model_validate({**search.model_dump(), "embedding_timeout": float(timeout)})

    history = HistoryConfig(
        path=Path(env.get("FOLIOSEARCH_HISTORY_PATH", str(defaults.history.path))),
        max_entries=int(env["FOLIOSEARCH_HISTORY_MAX_ENTRIES"]) if env.get("FOLIOSEARCH_HISTORY_MAX_ENTRIES") else None,
    )

    image_model = env.get("FOLIOSEARCH_IMAGE_MODEL", defaults.image_model)
    return Settings(
        corpus_path=Path(env.get("FOLIOSEARCH_CORPUS_PATH", str(defaults.corpus_path))),
        text_model=env.get("FOLIOSEARCH_TEXT_MODEL", defaults.text_model),
        image_model=image_model or None,
        search=search,
        history=history,
        log_level=env.get("FOLIOSEARCH_LOG_LEVEL", defaults.log_level),
    )
