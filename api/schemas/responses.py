from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ForexRatesResponse(BaseModel):
	success: bool = True
	base: str = Field(..., description='Currency the rate table was resolved for')
	fetched_at: datetime = Field(
		..., alias='fetchedAt', description='When the rate table was built'
	)
	source: str = Field(..., description='provider, fallback or cache')
	rates: dict[str, float] = Field(..., description='SEK value of one unit of each currency')

	model_config = ConfigDict(
		populate_by_name=True,
		json_schema_extra={
			'example': {
				'success': True,
				'base': 'SEK',
				'fetchedAt': '2025-09-27T10:30:00Z',
				'source': 'provider',
				'rates': {'SEK': 1.0, 'USD': 10.5, 'EUR': 11.4},
			}
		}
	)


class ErrorResponse(BaseModel):
	success: bool = False
	error: str


class ConversionResponse(BaseModel):
	success: bool = True
	amount: float = Field(..., description='Original amount requested')
	from_currency: str = Field(..., alias='from', description='Source currency code')
	to_currency: str = Field(..., alias='to', description='Target currency code')
	converted: float = Field(..., description='Converted amount')
	formatted: str = Field(..., description='Converted amount with currency symbol')
	source: str = Field(..., description='Where the rates came from')

	model_config = ConfigDict(populate_by_name=True)


class HoldingValueResponse(BaseModel):
	quantity: float
	price_per_unit: float | None
	price_currency: str
	value_in_original_currency: float
	value_currency: str
	value_in_sek: float
	price_per_unit_in_sek: float | None
	has_direct_price: bool


class PortfolioValueResponse(BaseModel):
	success: bool = True
	currency: str = 'SEK'
	source: str
	total: float
	holdings: list[HoldingValueResponse]


class CurrencyInfo(BaseModel):
	code: str
	symbol: str
	fallback_rate: float = Field(..., description='Approximate SEK value used when live data is missing')


class SupportedCurrenciesResponse(BaseModel):
	success: bool = True
	reference: str
	currencies: list[CurrencyInfo]


class HealthResponse(BaseModel):
	status: str
	provider: str
	configured: bool
	snapshots: bool
