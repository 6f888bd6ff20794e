from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType

RateTable = Mapping[str, float]


class RateSource(StrEnum):
    PROVIDER = 'provider'
    FALLBACK = 'fallback'
    CACHE = 'cache'


def freeze_rates(rates: Mapping[str, float]) -> RateTable:
    """Copy *rates* into a read-only mapping."""
    return MappingProxyType(dict(rates))


@dataclass(frozen=True)
class CacheEntry:
    base: str
    fetched_at: datetime
    rates: RateTable
    source: RateSource


@dataclass(frozen=True)
class ExchangeRateResult:
    base: str
    fetched_at: datetime
    rates: RateTable
    source: RateSource

    @classmethod
    def from_entry(cls, entry: CacheEntry, source: RateSource | None = None) -> 'ExchangeRateResult':
        return cls(
            base=entry.base,
            fetched_at=entry.fetched_at,
            rates=entry.rates,
            source=source or entry.source,
        )


@dataclass(frozen=True)
class Holding:
    quantity: float | str | None = None
    current_price_per_unit: float | str | None = None
    price_currency: str | None = None
    currency: str | None = None
    current_value: float | str | None = None


@dataclass(frozen=True)
class HoldingValue:
    quantity: float
    price_per_unit: float | None
    price_currency: str
    value_in_original_currency: float
    value_currency: str
    value_in_reference: float
    price_per_unit_in_reference: float | None
    has_direct_price: bool
