"""Reference-currency rate tables.

Every table handed around the service maps a currency code to the number of
reference-currency (SEK) units one unit of that currency is worth. The
static fallback table below is used whenever live data cannot be obtained.
"""

import math
from collections.abc import Mapping
from typing import Any

from domain.exceptions.currency import NormalizationError
from domain.models.currency import RateTable, freeze_rates

REFERENCE_CURRENCY = 'SEK'

FALLBACK_SEK_RATES: RateTable = freeze_rates(
    {
        'SEK': 1.0,
        'USD': 10.5,
        'EUR': 11.4,
        'GBP': 13.2,
        'NOK': 0.95,
        'DKK': 1.53,
        'JPY': 0.07,
        'CHF': 11.8,
        'CAD': 7.8,
        'AUD': 7.0,
    }
)


def normalize_currency_code(code: str | None, default: str = REFERENCE_CURRENCY) -> str:
    if code is None:
        return default
    normalized = code.strip().upper()
    return normalized or default


def is_positive_rate(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value) and value > 0


def fallback_base(base: str) -> str:
    """Return the currency a table from `build_fallback_rates` is relative to.

    Unknown bases cannot be rebased, so their table stays SEK-denominated.
    """
    base = normalize_currency_code(base)
    return base if base in FALLBACK_SEK_RATES else REFERENCE_CURRENCY


def build_fallback_rates(base: str = REFERENCE_CURRENCY) -> RateTable:
    base = normalize_currency_code(base)
    base_to_sek = FALLBACK_SEK_RATES.get(base)
    if not base_to_sek:
        return freeze_rates(FALLBACK_SEK_RATES)

    result: dict[str, float] = {}
    for currency, rate_to_sek in FALLBACK_SEK_RATES.items():
        if rate_to_sek <= 0:
            continue
        result[currency] = rate_to_sek / base_to_sek
    result[base] = 1.0
    return freeze_rates(result)


def normalise_rates_to_reference(base: str, quote: Mapping[str, Any] | None) -> RateTable:
    """Turn a provider quote into a SEK-anchored table.

    `quote[X]` is how many units of X one unit of `base` buys. The result
    always holds SEK at exactly 1, whatever the queried base was.

    Raises:
        NormalizationError: the quote is missing, lacks a usable SEK rate
            for a non-SEK base, or contains no usable rates at all.
    """
    if not isinstance(quote, Mapping):
        raise NormalizationError('Provider payload did not contain quote data')

    base = normalize_currency_code(base)
    quotes = {str(code).strip().upper(): value for code, value in quote.items()}
    result: dict[str, float] = {REFERENCE_CURRENCY: 1.0}

    if base == REFERENCE_CURRENCY:
        for currency, value in quotes.items():
            if currency == REFERENCE_CURRENCY or not is_positive_rate(value):
                continue
            inverse = 1 / value
            if math.isfinite(inverse):
                result[currency] = inverse
    else:
        sek_per_base = quotes.get(REFERENCE_CURRENCY)
        if not is_positive_rate(sek_per_base):
            raise NormalizationError(f'Missing {REFERENCE_CURRENCY} rate for base {base}')

        result[base] = float(sek_per_base)
        for currency, value in quotes.items():
            if currency in (REFERENCE_CURRENCY, base) or not is_positive_rate(value):
                continue
            rate = (1 / value) * sek_per_base
            if math.isfinite(rate):
                result[currency] = rate

    if len(result) < 2:
        raise NormalizationError(f'No usable exchange rates for base {base}')

    return freeze_rates(result)
