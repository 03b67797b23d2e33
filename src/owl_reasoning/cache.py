"""
owl_reasoning/cache.py - Classification cache

Holds the most recently classified index together with a fingerprint of
the snapshot it was built from. A lookup with any other snapshot misses
and drops the stale entry, so a cached index can never answer for a
snapshot it did not see.

The cache is a plain value owned by its caller (``Reasoner`` keeps one);
nothing here is module-global.
"""
from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from typing import Any

from .index import OntologyIndex, coerce_snapshot
from .models import Snapshot

logger = logging.getLogger(__name__)


def snapshot_fingerprint(snapshot: Snapshot | Mapping[str, Any]) -> str:
    """SHA-256 of the snapshot's canonical JSON form."""
    payload = coerce_snapshot(snapshot).model_dump(mode="json", by_alias=True)
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


class ClassificationCache:
    """Single-entry cache of a classified index."""

    def __init__(self) -> None:
        self._fingerprint: str | None = None
        self._index: OntologyIndex | None = None
        self.hits = 0
        self.misses = 0

    def get(self, fingerprint: str) -> OntologyIndex | None:
        if self._index is not None and fingerprint == self._fingerprint:
            self.hits += 1
            logger.debug(f"Classification cache hit ({fingerprint[:12]})")
            return self._index
        self.misses += 1
        if self._index is not None:
            logger.debug("Snapshot changed; discarding cached classification")
            self.invalidate()
        return None

    def put(self, fingerprint: str, index: OntologyIndex) -> None:
        if not index.is_classified:
            raise ValueError("Only classified indexes can be cached")
        self._fingerprint = fingerprint
        self._index = index

    def invalidate(self) -> None:
        self._fingerprint = None
        self._index = None

    @property
    def fingerprint(self) -> str | None:
        return self._fingerprint

    def __len__(self) -> int:
        return 0 if self._index is None else 1

    def __repr__(self) -> str:
        return f"ClassificationCache(entries={len(self)}, hits={self.hits}, misses={self.misses})"
