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

"""Persisted history of committed searches.

The history lives in a single JSON file compatible with the catalog
site's format::

    {"searches": [{"query": "Sunset", "embedding": [...], "count": 2,
                   "lastUsed": "2025-01-01T00:00:00Z", "created": "..."}]}

Every mutation rewrites the whole file before returning. Writes go to a
temporary file that replaces the target, so a crash never leaves a
half-written history behind.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .errors import HistoryError
from .models import SearchHistoryEntry, normalize_query, utcnow_iso

logger = logging.getLogger(__name__)


class SearchHistory:
    """Case-insensitive, frequency-counted search history backed by a JSON file.

    The file is re-read whenever it changed on disk since the last load,
    so several engine instances in one process see each other's writes.
    Access is serialized by an in-process lock; concurrent writers from
    separate processes are not supported.

    Example:
        >>> history = SearchHistory("data/search-history.json")
        >>> history.record("Sunset", embedding=[0.1, 0.9])
        >>> history.record("SUNSET")
        >>> history.get("sunset").count
        2

    Attributes:
        path: Location of the JSON file, or None for an in-memory history
        max_entries: Least recently used entries beyond this are evicted
        strict: Raise HistoryError instead of logging when a save fails
    """

    def __init__(
        self,
        path: str | Path | None = None,
        max_entries: Optional[int] = None,
        strict: bool = False
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")

        self.path = Path(path) if path is not None else None
        self.max_entries = max_entries
        self.strict = strict
        self._lock = threading.RLock()
        self._entries: Dict[str, SearchHistoryEntry] = {}
        self._mtime: Optional[float] = None
        self.reload()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """Load the history file, dropping invalid entries.

        A missing file yields an empty history. An unreadable or
        malformed file is logged and treated as empty. If any entry had
        to be dropped, the cleaned history is written back.
        """
        with self._lock:
            self._entries = {}
            self._mtime = self._file_mtime()
            if self.path is None or self._mtime is None:
                return

            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning("Could not read search history %s: %s; starting empty", self.path, e)
                return

            searches = data.get("searches") if isinstance(data, dict) else None
            if not isinstance(searches, list):
                logger.warning("Search history %s has no 'searches' list; starting empty", self.path)
                return

            dropped = 0
            for raw in searches:
                try:
                    entry = SearchHistoryEntry.from_dict(raw)
                except ValueError as e:
                    logger.debug("Dropping history entry: %s", e)
                    dropped += 1
                    continue
                existing = self._entries.get(entry.key)
                if existing is not None:
                    # Merge case variants saved by older writers
                    existing.count += entry.count
                    existing.last_used = max(existing.last_used, entry.last_used)
                    if existing.embedding is None:
                        existing.embedding = entry.embedding
                    dropped += 1
                else:
                    self._entries[entry.key] = entry

            logger.info("Loaded %d searches from history %s", len(self._entries), self.path)
            if dropped:
                logger.warning("Removed %d invalid entries from search history %s", dropped, self.path)
                self.save()

    def refresh(self) -> None:
        """Reload if the file changed on disk since the last load or save."""
        with self._lock:
            if self._file_mtime() != self._mtime:
                self.reload()

    def _file_mtime(self) -> Optional[float]:
        if self.path is None:
            return None
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {"searches": [e.to_dict() for e in self._entries.values()]}

    def save(self) -> bool:
        """Write the full history to disk.

        Returns:
            True if the file was written (always True for in-memory histories)

        Raises:
            HistoryError: If the write fails and ``strict`` is set
        """
        if self.path is None:
            return True
        with self._lock:
            payload = json.dumps(self.to_dict(), indent=2)
            tmp = self.path.with_name(f"{self.path.name}.tmp-{os.getpid()}")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(payload, encoding="utf-8")
                os.replace(tmp, self.path)
            except OSError as e:
                if tmp.exists():
                    tmp.unlink()
                if self.strict:
                    raise HistoryError(f"Failed writing search history {self.path}: {e}") from e
                logger.warning("Failed writing search history %s: %s", self.path, e)
                return False
            self._mtime = self._file_mtime()
            return True

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def increment(self, query: str) -> Optional[SearchHistoryEntry]:
        """Count a repeat of an existing query and persist.

        Returns:
            The updated entry, or None if ``query`` is not in the history
        """
        with self._lock:
            self.refresh()
            entry = self._entries.get(normalize_query(query))
            if entry is None:
                return None
            entry.count += 1
            entry.last_used = utcnow_iso()
            self.save()
            return entry

    def record(self, query: str, embedding: Optional[List[float]] = None) -> Optional[SearchHistoryEntry]:
        """Add a new query or count a repeat, then persist.

        An existing entry keeps its stored embedding; ``embedding`` is only
        used for new entries.

        Returns:
            The new or updated entry, or None for a blank query
        """
        query = (query or "").strip()
        if not query:
            return None
        with self._lock:
            entry = self.increment(query)
            if entry is not None:
                return entry
            entry = SearchHistoryEntry(query=query, embedding=embedding)
            self._entries[entry.key] = entry
            self._evict()
            self.save()
            return entry

    def _evict(self) -> None:
        if self.max_entries is None or len(self._entries) <= self.max_entries:
            return
        by_age = sorted(self._entries.values(), key=lambda e: e.last_used)
        for entry in by_age[: len(self._entries) - self.max_entries]:
            logger.debug("Evicting search history entry %r", entry.query)
            del self._entries[entry.key]

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, query: str) -> Optional[SearchHistoryEntry]:
        """Entry for ``query`` (case-insensitive), or None."""
        with self._lock:
            return self._entries.get(normalize_query(query))

    def entries(self) -> List[SearchHistoryEntry]:
        """Snapshot of all entries in insertion order."""
        with self._lock:
            self.refresh()
            return list(self._entries.values())

    def __contains__(self, query: str) -> bool:
        return self.get(query) is not None

    def __iter__(self) -> Iterator[SearchHistoryEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"SearchHistory(path={str(self.path) if self.path else None!r}, entries={len(self)})"
