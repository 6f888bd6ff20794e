import logging
from datetime import UTC, datetime

from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from domain.exceptions.currency import CacheError
from domain.models.currency import CacheEntry, RateSource, freeze_rates
from infrastructure.cache.redis_cache import RedisSnapshotCache
from infrastructure.persistence.database import SnapshotDatabase
from infrastructure.persistence.models.rates import RateSnapshotDB

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
	# SQLite hands timestamps back without tzinfo
	return value if value.tzinfo else value.replace(tzinfo=UTC)


class SnapshotRepository:
	"""Last-known-good provider tables, kept in the database with Redis in front.

	Redis is best effort: a failed or corrupt Redis read or write is logged and
	the database is used. Only database failures surface as CacheError.
	"""

	def __init__(self, database: SnapshotDatabase, cache_service: RedisSnapshotCache | None = None):
		self.database = database
		self.cache = cache_service

	async def _cache_snapshot(self, entry: CacheEntry) -> None:
		if not self.cache:
			return
		try:
			await self.cache.set_snapshot(entry)
		except (RedisError, CacheError) as e:
			logger.warning(f'Redis snapshot write failed for {entry.base}: {e}')

	async def _cached_snapshot(self, base: str, since: datetime) -> CacheEntry | None:
		if not self.cache:
			return None
		try:
			cached = await self.cache.get_snapshot(base)
		except (RedisError, CacheError) as e:
			logger.warning(f'Redis snapshot read failed for {base}, using database: {e}')
			return None
		if cached and cached.fetched_at >= since:
			return cached
		return None

	async def save_snapshot(self, entry: CacheEntry, provider: str) -> None:
		await self._cache_snapshot(entry)

		try:
			async with self.database.transaction() as session:
				session.add(
					RateSnapshotDB(
						base_currency=entry.base,
						fetched_at=entry.fetched_at,
						rates=dict(entry.rates),
						provider=provider,
					)
				)
		except SQLAlchemyError as e:
			raise CacheError(f'Failed to save snapshot for {entry.base}: {e}') from e

	async def get_latest_snapshot(self, base: str, since: datetime) -> CacheEntry | None:
		cached = await self._cached_snapshot(base, since)
		if cached:
			return cached

		try:
			async with self.database.reader() as session:
				stmt = (
					select(RateSnapshotDB)
					.filter(
						RateSnapshotDB.base_currency == base,
						RateSnapshotDB.fetched_at >= since,
					)
					.order_by(RateSnapshotDB.fetched_at.desc())
					.limit(1)
				)
				result = await session.execute(stmt)
				row = result.scalars().first()
		except SQLAlchemyError as e:
			raise CacheError(f'Failed to load snapshot for {base}: {e}') from e

		if row is None:
			return None

		logger.debug(f'Loaded {row.provider} snapshot for {base} from {row.fetched_at}')
		return CacheEntry(
			base=row.base_currency,
			fetched_at=_as_utc(row.fetched_at),
			rates=freeze_rates(row.rates),
			source=RateSource.PROVIDER,
		)
