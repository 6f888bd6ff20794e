from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from domain.models.currency import CacheEntry


def utc_now() -> datetime:
    return datetime.now(UTC)


class RateCache:
    """Process-local rate tables keyed by base currency.

    Staleness is checked on read; stale entries stay in memory until they
    are overwritten or the cache is cleared.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, base: str) -> CacheEntry | None:
        entry = self._entries.get(base)
        if entry is None:
            return None
        if self.clock() - entry.fetched_at >= self.ttl:
            return None
        return entry

    def peek(self, base: str) -> CacheEntry | None:
        return self._entries.get(base)

    def set(self, base: str, entry: CacheEntry) -> None:
        self._entries[base] = entry

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
