from typing import Protocol

from domain.models.currency import RateTable


class ExchangeRateProvider(Protocol):
	"""A source of SEK-anchored rate tables."""

	@property
	def name(self) -> str: ...

	@property
	def is_configured(self) -> bool: ...

	async def fetch_rates(self, base: str) -> RateTable: ...

	async def close(self) -> None: ...
