"""
Content-addressed, TTL-bound cache of Reports.

A cache key is derived from the project identity and the analysis options,
so changing any option produces a different entry rather than a stale hit.
Reads never raise: a missing, expired or undecodable entry is a miss, and
expired or corrupt entries are deleted on the way out.
"""

from datetime import timedelta
from typing import Any, Callable, Dict, Optional
import hashlib
import json
import logging
import time

from ..domain import CacheEntry, Report
from ..errors import CacheCorrupt
from ..infra import CacheStore, MemoryCacheStore

logger = logging.getLogger(__name__)


DEFAULT_TTL = timedelta(hours=24)


def make_cache_key(project_identity: str, options: Optional[Dict[str, Any]] = None) -> str:
    """
    SHA-256 hex digest of the identity and canonically serialized options.

    Options are serialized with sorted keys and no whitespace, so the key
    does not depend on dict ordering.
    """
    canonical = json.dumps(options or {}, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(f"{project_identity}-{canonical}".encode('utf-8')).hexdigest()


class ReportCache:
    """
    Report cache over a CacheStore.

    Example:
        cache = ReportCache(FileCacheStore(Path("~/.gitportfolio/reports")))
        key = make_cache_key("/home/user/site", options.to_dict())
        report = cache.get(key)
        if report is None:
            report = engine.generate("/home/user/site").report
            cache.put(key, report)
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize ReportCache.

        Args:
            store: Backing store (in-memory if None)
            ttl: Entries at least this old are expired
            clock: Returns the current POSIX time
        """
        self.store = store if store is not None else MemoryCacheStore(clock=clock)
        self.ttl = ttl
        self.clock = clock

    def _expired(self, written_at: float) -> bool:
        return self.clock() - written_at >= self.ttl.total_seconds()

    def _decode(self, key: str, text: str) -> Report:
        try:
            return Report.from_json(text)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # json.JSONDecodeError is a ValueError
            raise CacheCorrupt(key, str(e)) from e

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Cached entry for key, or None on miss, expiry or corruption."""
        found = self.store.read(key)
        if found is None:
            return None

        text, written_at = found
        if self._expired(written_at):
            logger.debug(f"Cache entry {key} expired")
            self.store.delete(key)
            return None

        try:
            report = self._decode(key, text)
        except CacheCorrupt as e:
            logger.warning(f"{e}; discarding")
            self.store.delete(key)
            return None

        return CacheEntry(key=key, payload=report, written_at=written_at)

    def get(self, key: str) -> Optional[Report]:
        """Cached Report for key, or None."""
        entry = self.get_entry(key)
        return entry.payload if entry else None

    def put(self, key: str, report: Report) -> None:
        """Store report under key, replacing any previous entry."""
        self.store.write(key, report.to_json())

    def clear(self) -> int:
        """Remove every entry. Returns the number removed."""
        return self.store.clear()

    def sweep(self) -> int:
        """Delete expired entries. Returns the number removed."""
        removed = 0
        for key in self.store.keys():
            found = self.store.read(key)
            if found is not None and self._expired(found[1]):
                if self.store.delete(key):
                    removed += 1
        return removed
