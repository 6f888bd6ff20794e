from pydantic import BaseModel, ConfigDict, Field


class HoldingRequest(BaseModel):
	quantity: float | str | None = None
	current_price_per_unit: float | str | None = None
	price_currency: str | None = Field(default=None, max_length=5)
	currency: str | None = Field(default=None, max_length=5)
	current_value: float | str | None = None


class PortfolioValueRequest(BaseModel):
	holdings: list[HoldingRequest] = Field(default_factory=list)

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'holdings': [
					{'quantity': 10, 'current_price_per_unit': 150.25, 'price_currency': 'USD'},
					{'quantity': '5', 'current_value': '1 200,50', 'currency': 'SEK'},
				]
			}
		}
	)
