import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from infrastructure.persistence.models.rates import Base

logger = logging.getLogger(__name__)


def build_engine(db_url: str) -> AsyncEngine:
	"""Engine for the snapshot store.

	An in-memory SQLite database lives only as long as its connection, so it is
	pinned to a single shared connection. Server databases get pre-ping so a
	snapshot lookup after an idle period does not fail on a dropped socket.
	"""
	url = make_url(db_url)
	if url.get_backend_name() == 'sqlite':
		if url.database in (None, '', ':memory:'):
			return create_async_engine(url, poolclass=StaticPool)
		return create_async_engine(url)
	return create_async_engine(url, pool_pre_ping=True)


class SnapshotDatabase:
	"""Owns the engine and session factory backing the snapshot tables."""

	def __init__(self, db_url: str):
		self.engine = build_engine(db_url)
		self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

	@property
	def backend(self) -> str:
		return self.engine.url.get_backend_name()

	async def create_tables(self) -> None:
		async with self.engine.begin() as conn:
			await conn.run_sync(Base.metadata.create_all)
		logger.info(f'Snapshot tables ready on {self.backend}')

	async def close(self) -> None:
		await self.engine.dispose()

	@asynccontextmanager
	async def transaction(self) -> AsyncIterator[AsyncSession]:
		"""Session that commits on exit and rolls back if the block raises."""
		async with self.session_factory.begin() as session:
			yield session

	@asynccontextmanager
	async def reader(self) -> AsyncIterator[AsyncSession]:
		async with self.session_factory() as session:
			yield session
