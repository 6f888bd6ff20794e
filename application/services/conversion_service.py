import math
from collections.abc import Mapping
from numbers import Real

from domain.exceptions.currency import ConversionInputError, InvalidCurrencyError
from domain.models.currency import RateTable
from domain.rates import REFERENCE_CURRENCY, build_fallback_rates, normalize_currency_code
from infrastructure.cache.memory_cache import RateCache

CURRENCY_SYMBOLS: dict[str, str] = {
	'SEK': 'kr',
	'USD': '$',
	'EUR': '€',
	'GBP': '£',
	'NOK': 'kr',
	'DKK': 'kr',
	'JPY': '¥',
	'CHF': 'CHF',
	'CAD': 'C$',
	'AUD': 'A$',
}


def currency_symbol(currency: str) -> str:
	return CURRENCY_SYMBOLS.get(normalize_currency_code(currency), currency)


def format_amount(amount: float, currency: str = REFERENCE_CURRENCY) -> str:
	"""Render "1 234,50 kr" style amounts; JPY has no minor unit."""
	currency = normalize_currency_code(currency)
	decimals = 0 if currency == 'JPY' else 2
	formatted = f'{amount:,.{decimals}f}'.replace(',', ' ').replace('.', ',')
	return f'{formatted} {currency_symbol(currency)}'


def is_finite_amount(amount: object) -> bool:
	return isinstance(amount, Real) and not isinstance(amount, bool) and math.isfinite(amount)


def _usable_rate(rates: Mapping[str, float] | None, currency: str) -> float | None:
	if not rates:
		return None
	rate = rates.get(currency)
	if is_finite_amount(rate) and rate != 0:
		return float(rate)
	return None


class ConversionService:
	"""Converts amounts through the reference currency.

	Without an explicit table the cached SEK table is used whatever its
	age, then the static fallback table.
	"""

	def __init__(self, cache: RateCache | None = None):
		self.cache = cache

	def active_rates(self, rates: RateTable | None = None) -> RateTable:
		if rates is not None:
			return rates
		if self.cache is not None:
			entry = self.cache.peek(REFERENCE_CURRENCY)
			if entry is not None:
				return entry.rates
		return build_fallback_rates(REFERENCE_CURRENCY)

	def rate_for(self, currency: str, rates: RateTable | None = None) -> float | None:
		currency = normalize_currency_code(currency)
		if currency == REFERENCE_CURRENCY:
			return 1.0
		rate = _usable_rate(self.active_rates(rates), currency)
		if rate is None:
			rate = _usable_rate(build_fallback_rates(REFERENCE_CURRENCY), currency)
		return rate

	def convert_to_reference(
		self, amount: object, currency: str | None = None, rates: RateTable | None = None
	) -> float | None:
		if not is_finite_amount(amount):
			return None

		currency = normalize_currency_code(currency)
		if currency == REFERENCE_CURRENCY:
			return amount

		rate = self.rate_for(currency, rates)
		return amount * rate if rate is not None else None

	def convert_from_reference(
		self, amount: object, currency: str | None = None, rates: RateTable | None = None
	) -> float | None:
		if not is_finite_amount(amount):
			return None

		currency = normalize_currency_code(currency)
		if currency == REFERENCE_CURRENCY:
			return amount

		rate = self.rate_for(currency, rates)
		return amount / rate if rate is not None else None

	def convert(
		self,
		amount: object,
		from_currency: str,
		to_currency: str = REFERENCE_CURRENCY,
		rates: RateTable | None = None,
	) -> float:
		if not is_finite_amount(amount):
			raise ConversionInputError(f'Amount must be a finite number, got {amount!r}')

		for currency in (from_currency, to_currency):
			if self.rate_for(currency, rates) is None:
				raise InvalidCurrencyError(f'Currency {normalize_currency_code(currency)} is not supported')

		in_reference = self.convert_to_reference(amount, from_currency, rates)
		return self.convert_from_reference(in_reference, to_currency, rates)
