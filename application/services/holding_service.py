import logging
import math
from collections.abc import Iterable

from application.services.conversion_service import ConversionService, is_finite_amount
from domain.models.currency import Holding, HoldingValue, RateTable
from domain.rates import REFERENCE_CURRENCY

logger = logging.getLogger(__name__)


def parse_numeric(value: object) -> float | None:
	"""Numbers pass through; strings may use spaces and a decimal comma."""
	if is_finite_amount(value):
		return float(value)

	if isinstance(value, str):
		normalized = ''.join(value.split()).replace(',', '.', 1)
		try:
			parsed = float(normalized)
		except ValueError:
			return None
		if math.isfinite(parsed):
			return parsed

	return None


def _holding_currency(holding: Holding) -> str:
	for candidate in (holding.price_currency, holding.currency):
		if isinstance(candidate, str) and candidate.strip():
			return candidate.strip().upper()
	return REFERENCE_CURRENCY


class HoldingValuationService:
	def __init__(self, conversion_service: ConversionService):
		self.conversion_service = conversion_service

	def _to_reference(self, amount: float, currency: str, rates: RateTable | None) -> float:
		converted = self.conversion_service.convert_to_reference(amount, currency, rates)
		if converted is None:
			logger.warning(f'Exchange rate not found for currency: {currency}, keeping amount unconverted')
			return amount
		return converted

	def resolve_holding_value(self, holding: Holding, rates: RateTable | None = None) -> HoldingValue:
		quantity = parse_numeric(holding.quantity) or 0.0
		price_per_unit = parse_numeric(holding.current_price_per_unit)
		currency = _holding_currency(holding)

		has_direct_price = price_per_unit is not None and quantity > 0
		if has_direct_price:
			raw_value = price_per_unit * quantity
		else:
			raw_value = parse_numeric(holding.current_value) or 0.0

		value_in_reference = self._to_reference(raw_value, currency, rates)

		if price_per_unit is not None:
			price_per_unit_in_reference = self._to_reference(price_per_unit, currency, rates)
		elif quantity > 0:
			price_per_unit_in_reference = value_in_reference / quantity
		else:
			price_per_unit_in_reference = None

		return HoldingValue(
			quantity=quantity,
			price_per_unit=price_per_unit,
			price_currency=currency,
			value_in_original_currency=raw_value,
			value_currency=currency,
			value_in_reference=value_in_reference,
			price_per_unit_in_reference=price_per_unit_in_reference,
			has_direct_price=has_direct_price,
		)

	def value_portfolio(
		self, holdings: Iterable[Holding], rates: RateTable | None = None
	) -> tuple[list[HoldingValue], float]:
		values = [self.resolve_holding_value(holding, rates) for holding in holdings]
		return values, sum((value.value_in_reference for value in values), 0.0)

	def total_portfolio_value(self, holdings: Iterable[Holding], rates: RateTable | None = None) -> float:
		_, total = self.value_portfolio(holdings, rates)
		return total
