import logging
from datetime import timedelta
from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis

from application.services import ConversionService, HoldingValuationService, RateService
from config.settings import Settings, get_settings
from infrastructure.cache.memory_cache import RateCache
from infrastructure.cache.redis_cache import RedisSnapshotCache
from infrastructure.persistence.database import SnapshotDatabase
from infrastructure.persistence.repositories.snapshots import SnapshotRepository
from infrastructure.providers import ExchangeRateProvider, FinnhubProvider, SheetProvider

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	settings: Settings | None = None
	rate_cache: RateCache | None = None
	provider: ExchangeRateProvider | None = None
	db: SnapshotDatabase | None = None
	redis_client: Redis | None = None
	snapshots: SnapshotRepository | None = None


deps = AppDependencies()


def build_provider(settings: Settings) -> ExchangeRateProvider:
	if settings.RATE_PROVIDER == 'sheet':
		return SheetProvider(settings.SHEET_CSV_URL, timeout=settings.PROVIDER_TIMEOUT)
	return FinnhubProvider(
		settings.FINNHUB_API_KEY,
		timeout=settings.PROVIDER_TIMEOUT,
		base_url=settings.FINNHUB_BASE_URL,
	)


def init_dependencies(settings: Settings | None = None) -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = settings or get_settings()

	deps.settings = settings
	deps.rate_cache = RateCache(ttl=timedelta(seconds=settings.RATE_CACHE_TTL_SECONDS))
	deps.provider = build_provider(settings)

	if not deps.provider.is_configured:
		logger.warning(f'{deps.provider.name} is not configured, serving fallback exchange rates')

	if settings.DATABASE_URL:
		deps.db = SnapshotDatabase(settings.DATABASE_URL)
		snapshot_cache = None
		if settings.REDIS_URL:
			deps.redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
			snapshot_cache = RedisSnapshotCache(
				deps.redis_client, snapshot_ttl=timedelta(hours=settings.SNAPSHOT_MAX_AGE_HOURS)
			)
		deps.snapshots = SnapshotRepository(deps.db, cache_service=snapshot_cache)

	logger.info('Dependencies initialized')


async def bootstrap() -> None:
	"""Create snapshot tables when a database is configured."""
	if deps.db is not None:
		await deps.db.create_tables()


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.redis_client:
		await deps.redis_client.aclose()
	if deps.db:
		await deps.db.close()
	if deps.provider:
		await deps.provider.close()

	deps.redis_client = None
	deps.db = None
	deps.snapshots = None
	deps.provider = None
	deps.rate_cache = None

	logger.info('Cleanup complete')


def get_app_settings() -> Settings:
	return deps.settings or get_settings()


def get_rate_cache() -> RateCache:
	if deps.rate_cache is None:
		raise RuntimeError('Rate cache not initialized')
	return deps.rate_cache


def get_provider() -> ExchangeRateProvider:
	if deps.provider is None:
		raise RuntimeError('Provider not initialized')
	return deps.provider


def get_rate_service(
	provider: Annotated[ExchangeRateProvider, Depends(get_provider)],
	cache: Annotated[RateCache, Depends(get_rate_cache)],
	settings: Annotated[Settings, Depends(get_app_settings)],
) -> RateService:
	return RateService(
		provider=provider,
		cache=cache,
		snapshots=deps.snapshots,
		snapshot_max_age=timedelta(hours=settings.SNAPSHOT_MAX_AGE_HOURS),
	)


def get_conversion_service(
	cache: Annotated[RateCache, Depends(get_rate_cache)],
) -> ConversionService:
	return ConversionService(cache=cache)


def get_holding_service(
	conversion_service: Annotated[ConversionService, Depends(get_conversion_service)],
) -> HoldingValuationService:
	return HoldingValuationService(conversion_service=conversion_service)
