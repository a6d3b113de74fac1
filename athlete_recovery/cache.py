"""Per-athlete result cache with a fixed time-to-live.

One live entry per (athlete, analysis kind). ``get`` evicts an expired
entry on read, so stale data is never returned even if no sweep has run.
Deletes are idempotent, so a lazy eviction racing a sweep is harmless.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .analysis.models import RecoveryAnalysis
from .config import config

logger = logging.getLogger(__name__)

RECOVERY_KIND = "recovery"


class Clock:
    """Source of the current time; replace in tests."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    athlete_id: str
    payload: RecoveryAnalysis
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class RecoveryCache:
    """In-process result cache.

    Reads take no lock. Writes replace whole entries under a lock so two
    writers for the same key cannot interleave.
    """

    def __init__(self, clock: Optional[Clock] = None, ttl: Optional[timedelta] = None):
        self.clock = clock or Clock()
        self.ttl = ttl or timedelta(seconds=config.cache_ttl_seconds())
        self._entries: Dict[Tuple[str, str], CacheEntry] = {}
        self._write_lock = threading.Lock()

    def get(self, athlete_id: str, kind: str = RECOVERY_KIND) -> Optional[RecoveryAnalysis]:
        key = (athlete_id, kind)
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self.clock.now()):
            self._evict(key, entry)
            logger.debug(f"Evicted expired {kind} analysis for athlete {athlete_id}")
            return None

        return entry.payload

    def put(self, athlete_id: str, analysis: RecoveryAnalysis, kind: str = RECOVERY_KIND,
            ttl: Optional[timedelta] = None) -> CacheEntry:
        created_at = self.clock.now()
        entry = CacheEntry(
            athlete_id=athlete_id,
            payload=analysis,
            created_at=created_at,
            expires_at=created_at + (ttl or self.ttl),
        )
        with self._write_lock:
            self._entries[(athlete_id, kind)] = entry
        return entry

    def _evict(self, key: Tuple[str, str], entry: CacheEntry) -> None:
        # Only remove the entry we saw expire; a fresh write may have replaced it
        with self._write_lock:
            if self._entries.get(key) is entry:
                del self._entries[key]

    def invalidate_expired(self) -> int:
        """Sweep every expired entry. Returns the number removed."""
        now = self.clock.now()
        removed = 0
        for key, entry in list(self._entries.items()):
            if entry.is_expired(now):
                with self._write_lock:
                    if self._entries.get(key) is entry:
                        del self._entries[key]
                        removed += 1
        if removed:
            logger.info(f"Swept {removed} expired cache entries")
        return removed

    def clear(self, athlete_id: Optional[str] = None) -> None:
        """Drop one athlete's entries, or everything."""
        with self._write_lock:
            if athlete_id is None:
                self._entries.clear()
            else:
                for key in [k for k in self._entries if k[0] == athlete_id]:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
