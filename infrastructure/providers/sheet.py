import csv
import io
import logging
import math

import httpx

from domain.exceptions.currency import NormalizationError, ProviderError
from domain.models.currency import RateTable, freeze_rates
from domain.rates import REFERENCE_CURRENCY

logger = logging.getLogger(__name__)

CURRENCY_COLUMN = 1
RATE_COLUMN = 5


def parse_sheet_rate(value: str | None) -> float | None:
	"""Parse a rate cell, accepting Swedish decimal commas ("1 200,50")."""
	if not value:
		return None

	trimmed = value.strip().strip('"\'')
	if not trimmed or trimmed == '#N/A':
		return None

	normalized = ''.join(trimmed.split()).replace(',', '.')
	try:
		parsed = float(normalized)
	except ValueError:
		return None

	return parsed if math.isfinite(parsed) and parsed > 0 else None


def extract_currency_code(value: str | None) -> str | None:
	"""Accept "USD" or "USD/SEK"; anything else is a label row."""
	if not value:
		return None

	trimmed = value.strip().upper()
	if trimmed.endswith(f'/{REFERENCE_CURRENCY}'):
		code = trimmed[: -len(REFERENCE_CURRENCY) - 1].strip()
		return code or None

	if len(trimmed) == 3 and trimmed.isalpha() and trimmed != REFERENCE_CURRENCY:
		return trimmed

	return None


def parse_sheet_csv(text: str) -> dict[str, float]:
	rates: dict[str, float] = {}
	for row in csv.reader(io.StringIO(text)):
		if len(row) <= RATE_COLUMN:
			continue

		currency = extract_currency_code(row[CURRENCY_COLUMN])
		rate = parse_sheet_rate(row[RATE_COLUMN])
		if currency and rate is not None:
			rates[currency] = rate

	rates[REFERENCE_CURRENCY] = 1.0
	return rates


class SheetProvider:
	"""Rates maintained by hand in a published spreadsheet.

	The sheet lists SEK per unit of each currency, which is already the
	shape every rate table in the service uses.
	"""

	def __init__(self, csv_url: str, client: httpx.AsyncClient | None = None, timeout: int = 10):
		self.csv_url = csv_url
		self._client = client or httpx.AsyncClient(timeout=timeout)

	@property
	def name(self) -> str:
		return 'sheet'

	@property
	def is_configured(self) -> bool:
		return bool(self.csv_url)

	async def _download(self) -> str:
		try:
			response = await self._client.get(self.csv_url, headers={'Cache-Control': 'no-store'})
			response.raise_for_status()
			return response.text
		except httpx.HTTPStatusError as e:
			raise ProviderError(
				f'Sheet HTTP error {e.response.status_code}: {e.response.text[:200]}'
			) from e
		except httpx.RequestError as e:
			raise ProviderError(f'Sheet request failed: {e.__class__.__name__}') from e
		except Exception as e:
			raise ProviderError(f'Sheet request error: {str(e)}') from e

	async def fetch_rates(self, base: str) -> RateTable:
		text = await self._download()
		if not text or not text.strip():
			raise NormalizationError('Sheet CSV is empty')

		rates = parse_sheet_csv(text)
		if len(rates) < 2:
			raise NormalizationError('No exchange rates found in sheet CSV')
		if base not in rates:
			raise NormalizationError(f'Sheet has no rate for base {base}')

		logger.debug(f'Fetched {len(rates)} rates from sheet')
		return freeze_rates(rates)

	async def close(self) -> None:
		await self._client.aclose()
