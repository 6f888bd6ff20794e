import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from domain.exceptions.currency import CacheError, NormalizationError, ProviderError
from domain.models.currency import CacheEntry, ExchangeRateResult, RateSource
from domain.rates import REFERENCE_CURRENCY, build_fallback_rates, fallback_base, normalize_currency_code
from infrastructure.cache.memory_cache import RateCache, utc_now
from infrastructure.persistence.repositories.snapshots import SnapshotRepository
from infrastructure.providers.base import ExchangeRateProvider

logger = logging.getLogger(__name__)


class RateService:
    """Resolves rate tables: fresh cache, then provider, then fallback.

    Provider and normalization failures never reach the caller; they turn
    into a fallback table, preferring a recent provider snapshot when a
    snapshot store is configured.
    """

    def __init__(
        self,
        provider: ExchangeRateProvider,
        cache: RateCache,
        snapshots: SnapshotRepository | None = None,
        snapshot_max_age: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.provider = provider
        self.cache = cache
        self.snapshots = snapshots
        self.snapshot_max_age = snapshot_max_age
        self.clock = clock

    async def get_exchange_rates(self, base: str = REFERENCE_CURRENCY) -> ExchangeRateResult:
        base = normalize_currency_code(base)

        cached = self.cache.get(base)
        if cached is not None:
            return ExchangeRateResult.from_entry(cached, RateSource.CACHE)

        now = self.clock()

        if not self.provider.is_configured:
            logger.debug(f"{self.provider.name} is not configured, using fallback rates for {base}")
            return self._store(base, self._build_fallback(base, now))

        try:
            rates = await self.provider.fetch_rates(base)
        except (ProviderError, NormalizationError) as e:
            logger.warning(f"Failed to load exchange rates from {self.provider.name}: {e}")
            entry = await self._load_snapshot(base, now) or self._build_fallback(base, now)
            return self._store(base, entry)

        entry = CacheEntry(base=base, fetched_at=now, rates=rates, source=RateSource.PROVIDER)
        self.cache.set(base, entry)
        await self._save_snapshot(entry)
        return ExchangeRateResult.from_entry(entry)

    def _store(self, base: str, entry: CacheEntry) -> ExchangeRateResult:
        self.cache.set(base, entry)
        return ExchangeRateResult.from_entry(entry)

    def _build_fallback(self, base: str, now: datetime) -> CacheEntry:
        return CacheEntry(
            base=fallback_base(base),
            fetched_at=now,
            rates=build_fallback_rates(base),
            source=RateSource.FALLBACK,
        )

    async def _load_snapshot(self, base: str, now: datetime) -> CacheEntry | None:
        if self.snapshots is None:
            return None

        try:
            snapshot = await self.snapshots.get_latest_snapshot(base, since=now - self.snapshot_max_age)
        except CacheError as e:
            logger.warning(f"Snapshot lookup failed for {base}: {e}")
            return None

        if snapshot is None:
            return None

        logger.info(f"Using {base} snapshot from {snapshot.fetched_at.isoformat()} as fallback")
        return CacheEntry(base=base, fetched_at=now, rates=snapshot.rates, source=RateSource.FALLBACK)

    async def _save_snapshot(self, entry: CacheEntry) -> None:
        if self.snapshots is None:
            return

        try:
            await self.snapshots.save_snapshot(entry, provider=self.provider.name)
        except CacheError as e:
            logger.warning(f"Snapshot save failed for {entry.base}: {e}")
