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

"""Read-only corpus of works loaded from the catalog snapshot."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from pydantic import ValidationError

from .models import Work

logger = logging.getLogger(__name__)


def combined_text(work: Work) -> str:
    """Text embedded for a work: its text fields and metadata joined by spaces."""
    parts = [
        work.title,
        work.description,
        work.text_content,
        " ".join(work.medium),
        " ".join(work.tags),
        work.category,
        work.year,
    ]
    return " ".join(p for p in parts if p and p.strip())


class Corpus:
    """An immutable, ordered collection of works with lookup helpers.

    Result indices used by the matchers refer to positions in ``works``.
    """

    def __init__(self, works: Iterable[Work] = ()):
        self.works: tuple = tuple(works)
        self._by_id: Dict[str, Work] = {}
        for work in self.works:
            self._by_id.setdefault(work.id, work)

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "Corpus":
        """Validate raw records, skipping the ones that are not usable works."""
        works: List[Work] = []
        skipped = 0
        for record in records:
            try:
                work = Work.model_validate(record)
            except ValidationError as e:
                logger.debug("Skipping invalid work record: %s", e)
                skipped += 1
                continue
            if not work.id:
                skipped += 1
                continue
            works.append(work)
        if skipped:
            logger.warning("Skipped %d invalid work records", skipped)
        return cls(works)

    @classmethod
    def load(cls, path: str | Path) -> "Corpus":
        """Load a snapshot file.

        The file holds either a list of works or an object with a
        ``works`` list. A missing, unreadable or malformed file yields an
        empty corpus and a warning.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.warning("Corpus file %s not found; starting with no works", path)
            return cls()
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Could not read corpus file %s: %s; starting with no works", path, e)
            return cls()

        if isinstance(data, dict):
            data = data.get("works")
        if not isinstance(data, list):
            logger.warning("Corpus file %s has no list of works; starting with no works", path)
            return cls()

        corpus = cls.from_records(data)
        logger.info("Loaded %d works from %s", len(corpus), path)
        return corpus

    combined_text = staticmethod(combined_text)

    def get(self, work_id: str) -> Optional[Work]:
        return self._by_id.get(str(work_id))

    def by_category(self, category: str) -> List[Work]:
        return [w for w in self.works if w.category == category]

    def by_year(self, year: str | int) -> List[Work]:
        return [w for w in self.works if w.year == str(year)]

    def by_medium(self, medium: str) -> List[Work]:
        """Works with a medium containing ``medium`` (case-insensitive)."""
        needle = medium.lower()
        return [w for w in self.works if any(needle in m.lower() for m in w.medium)]

    def featured(self) -> List[Work]:
        return [w for w in self.works if w.featured]

    def by_status(self, status: str) -> List[Work]:
        return [w for w in self.works if w.status == status]

    def __iter__(self) -> Iterator[Work]:
        return iter(self.works)

    def __len__(self) -> int:
        return len(self.works)

    def __getitem__(self, index: int) -> Work:
        return self.works[index]

    def __repr__(self) -> str:
        return f"Corpus(works={len(self.works)})"
