from .requests import HoldingRequest, PortfolioValueRequest
from .responses import (
	ConversionResponse,
	CurrencyInfo,
	ErrorResponse,
	ForexRatesResponse,
	HealthResponse,
	HoldingValueResponse,
	PortfolioValueResponse,
	SupportedCurrenciesResponse,
)

__all__ = [
	'ConversionResponse',
	'CurrencyInfo',
	'ErrorResponse',
	'ForexRatesResponse',
	'HealthResponse',
	'HoldingRequest',
	'HoldingValueResponse',
	'PortfolioValueRequest',
	'PortfolioValueResponse',
	'SupportedCurrenciesResponse',
]
