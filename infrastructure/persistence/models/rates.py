from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
	pass


class RateSnapshotDB(Base):
	__tablename__ = 'rate_snapshots'

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	base_currency: Mapped[str] = mapped_column(String(3), nullable=False)
	fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
	rates: Mapped[dict[str, float]] = mapped_column(JSON, nullable=False)
	provider: Mapped[str] = mapped_column(String(50), nullable=False)

	__table_args__ = (Index('idx_snapshot_base_fetched', 'base_currency', 'fetched_at'),)
