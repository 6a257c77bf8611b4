"""
MetaInfo Cache Service

Process-wide cache of parsed metainfo.json documents, keyed by storage root
path.

The cache is authoritative until a caller invalidates or overwrites an
entry: there is no TTL and no eviction. It is not read-through; callers
fetch from OpenList themselves on a miss and store the result with set().

A per-root asyncio.Lock is also kept here so that read-modify-write cycles
against the same root can be serialized within one process.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

MetaInfo = Dict[str, Any]


class MetaInfoCache:
    """In-memory metainfo.json cache keyed by storage root path."""

    def __init__(self):
        self._documents: Dict[str, MetaInfo] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, root_path: str) -> Optional[MetaInfo]:
        """Return the cached document for root_path, or None."""
        document = self._documents.get(root_path)
        if document is None:
            logger.debug(f"MetaInfo cache miss: {root_path}")
        return document

    def set(self, root_path: str, document: MetaInfo) -> None:
        """Store (or replace) the cached document for root_path."""
        self._documents[root_path] = document
        logger.debug(f"MetaInfo cache set: {root_path} ({len(document.get('folders') or {})} folders)")

    def invalidate(self, root_path: str) -> None:
        """Forget the cached document for root_path."""
        if self._documents.pop(root_path, None) is not None:
            logger.debug(f"MetaInfo cache invalidated: {root_path}")

    def clear(self) -> None:
        """Forget every cached document."""
        self._documents.clear()
        logger.debug("MetaInfo cache cleared")

    def lock(self, root_path: str) -> asyncio.Lock:
        """Return the lock guarding read-modify-write cycles on root_path."""
        lock = self._locks.get(root_path)
        if lock is None:
            lock = self._locks[root_path] = asyncio.Lock()
        return lock

    def __contains__(self, root_path: str) -> bool:
        return root_path in self._documents

    def __len__(self) -> int:
        return len(self._documents)


# Global cache instance
_metainfo_cache: Optional[MetaInfoCache] = None


def get_metainfo_cache() -> MetaInfoCache:
    """Get the global metainfo cache instance."""
    global _metainfo_cache
    if _metainfo_cache is None:
        _metainfo_cache = MetaInfoCache()
    return _metainfo_cache
