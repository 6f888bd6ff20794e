import json
from datetime import datetime, timedelta

from redis import asyncio as redis

from domain.exceptions.currency import CacheError
from domain.models.currency import CacheEntry, RateSource, freeze_rates


class RedisSnapshotCache:
    """Shared read-through cache of the last provider table per base."""

    def __init__(self, redis_client: redis.Redis, snapshot_ttl: timedelta = timedelta(hours=24)):
        self.redis = redis_client
        self.snapshot_ttl = snapshot_ttl

    def _make_snapshot_key(self, base: str) -> str:
        return f"rates:snapshot:{base}"

    async def get_snapshot(self, base: str) -> CacheEntry | None:
        key = self._make_snapshot_key(base)
        data = await self.redis.get(key)

        if not data:
            return None

        try:
            snapshot = json.loads(data)
            return CacheEntry(
                base=snapshot["base"],
                fetched_at=datetime.fromisoformat(snapshot["fetched_at"]),
                rates=freeze_rates({code: float(rate) for code, rate in snapshot["rates"].items()}),
                source=RateSource.PROVIDER,
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            raise CacheError(f"Invalid json data for {key}: {e}") from e

    async def set_snapshot(self, entry: CacheEntry) -> None:
        key = self._make_snapshot_key(entry.base)

        snapshot = {
            "base": entry.base,
            "fetched_at": entry.fetched_at.isoformat(),
            "rates": dict(entry.rates),
        }

        await self.redis.setex(key, self.snapshot_ttl, json.dumps(snapshot))
