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

"""Data model: works, score records, history entries and suggestions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_vector(value: Any) -> Optional[List[float]]:
    if value is None or isinstance(value, (str, bytes)):
        return None
    try:
        if isinstance(value, dict):
            # Typed arrays serialized by JSON.stringify: {"0": x0, "1": x1, ...}
            value = [value[k] for k in sorted(value, key=int)]
        vector = [float(x) for x in value]
    except (TypeError, ValueError):
        return None
    return vector or None


class Work(BaseModel):
    """A searchable portfolio item (a work or an image-bearing record).

    Field names follow the JSON snapshot produced by the offline catalog
    pipeline (``textContent``, ``textEmbedding``, ``imageEmbeddings``);
    snake_case names are accepted too.

    A missing or malformed embedding is stored as ``None`` (text) or
    skipped (image) so the work is scored 0 for that modality instead of
    being rejected.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    title: str = ""
    description: str = ""
    text_content: str = Field(default="", alias="textContent")
    tags: List[str] = Field(default_factory=list)
    medium: List[str] = Field(default_factory=list)
    category: str = ""
    year: str = ""
    text_embedding: Optional[List[float]] = Field(default=None, alias="textEmbedding")
    image_embeddings: List[List[float]] = Field(default_factory=list, alias="imageEmbeddings")
    images: List[str] = Field(default_factory=list)
    featured: bool = False
    status: str = ""
    caption: str = ""

    @field_validator("id", "year", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("title", "description", "text_content", "category", "status", "caption", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tags", "medium", "images", mode="before")
    @classmethod
    def _as_string_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value if v is not None]

    @field_validator("text_embedding", mode="before")
    @classmethod
    def _text_vector(cls, value: Any) -> Optional[List[float]]:
        return _coerce_vector(value)

    @field_validator("image_embeddings", mode="before")
    @classmethod
    def _image_vectors(cls, value: Any) -> List[List[float]]:
        if not isinstance(value, (list, tuple)):
            return []
        vectors = (_coerce_vector(v) for v in value)
        return [v for v in vectors if v is not None]

    def __repr__(self) -> str:
        return f"Work(id={self.id!r}, title={self.title!r})"


@dataclass
class ScoreBreakdown:
    """Raw per-strategy scores for one work in one search call."""
    semantic: float = 0.0
    keyword: float = 0.0
    fuzzy: float = 0.0
    metadata: float = 0.0
    image: float = 0.0

    def get(self, strategy: str) -> float:
        return getattr(self, strategy)

    def set(self, strategy: str, score: float) -> None:
        setattr(self, strategy, score)

    def to_dict(self) -> Dict[str, float]:
        return {
            "semantic": self.semantic,
            "keyword": self.keyword,
            "fuzzy": self.fuzzy,
            "metadata": self.metadata,
            "image": self.image,
        }


@dataclass
class HybridSearchResult:
    """A ranked search hit.

    Attributes:
        item: The matched work
        score: Weighted combined score
        breakdown: Per-strategy raw scores behind ``score``
    """
    item: Work
    score: float
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)

    @property
    def item_id(self) -> str:
        return self.item.id

    def to_dict(self) -> Dict[str, Any]:
        """Shape returned by the search API."""
        return {
            "itemId": self.item.id,
            "score": self.score,
            "scoreBreakdown": self.breakdown.to_dict(),
        }

    def __repr__(self) -> str:
        return f"HybridSearchResult(item_id={self.item.id!r}, score={self.score:.4f})"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class SearchHistoryEntry:
    """One distinct (case-insensitive) past search.

    Attributes:
        query: The query as first typed, case preserved
        embedding: Text embedding of ``query``; None if it could not be computed
        count: How many times the query was searched
        created: ISO-8601 timestamp of the first search
        last_used: ISO-8601 timestamp of the latest search
    """
    query: str
    embedding: Optional[List[float]] = None
    count: int = 1
    created: str = field(default_factory=utcnow_iso)
    last_used: str = field(default_factory=utcnow_iso)

    @property
    def key(self) -> str:
        return normalize_query(self.query)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "embedding": self.embedding,
            "count": self.count,
            "lastUsed": self.last_used,
            "created": self.created,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchHistoryEntry":
        """Build an entry from its stored form.

        Raises:
            ValueError: If the record has no usable query or a malformed embedding
        """
        if not isinstance(data, dict):
            raise ValueError("history entry must be an object")
        query = data.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ValueError("history entry has no query")
        embedding = data.get("embedding")
        if embedding is not None:
            embedding = _coerce_vector(embedding)
            if embedding is None:
                raise ValueError(f"history entry {query!r} has a malformed embedding")
        try:
            count = max(int(data.get("count") or 1), 1)
        except (TypeError, ValueError):
            count = 1
        now = utcnow_iso()
        return cls(
            query=query.strip(),
            embedding=embedding,
            count=count,
            created=str(data.get("created") or now),
            last_used=str(data.get("lastUsed") or data.get("last_used") or now),
        )

    def __repr__(self) -> str:
        return f"SearchHistoryEntry(query={self.query!r}, count={self.count})"


@dataclass
class Suggestion:
    """An autocomplete suggestion."""
    query: str
    score: float
    count: int = 1
    prefix: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"suggestionText": self.query, "score": self.score, "count": self.count}

    def __repr__(self) -> str:
        return f"Suggestion(query={self.query!r}, score={self.score:.4f}, count={self.count})"


def normalize_query(query: str | None) -> str:
    """Trim and lowercase a query for case-insensitive comparison."""
    return (query or "").strip().lower()
