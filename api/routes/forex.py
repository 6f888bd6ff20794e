import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from api.dependencies import get_conversion_service, get_holding_service, get_rate_service
from api.schemas import (
	ConversionResponse,
	CurrencyInfo,
	ErrorResponse,
	ForexRatesResponse,
	HoldingValueResponse,
	PortfolioValueRequest,
	PortfolioValueResponse,
	SupportedCurrenciesResponse,
)
from application.services import ConversionService, HoldingValuationService, RateService
from application.services.conversion_service import currency_symbol, format_amount
from domain.models.currency import Holding
from domain.rates import FALLBACK_SEK_RATES, REFERENCE_CURRENCY

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api', tags=['forex'])

CURRENCY_CODE_PATTERN = r'^[A-Za-z]{3}$'

CORS_HEADERS = {
	'Access-Control-Allow-Origin': '*',
	'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
	'Access-Control-Allow-Methods': 'GET, OPTIONS',
}

RATES_CACHE_CONTROL = 'public, max-age=0, s-maxage=300, stale-while-revalidate=1800'


@router.get(
	'/forex-rates',
	response_model=ForexRatesResponse,
	responses={500: {'model': ErrorResponse}},
	status_code=status.HTTP_200_OK,
	summary='Get the exchange rate table for a base currency',
)
async def get_forex_rates(
	response: Response,
	service: Annotated[RateService, Depends(get_rate_service)],
	base: Annotated[str, Query(pattern=CURRENCY_CODE_PATTERN)] = REFERENCE_CURRENCY,
):
	try:
		result = await service.get_exchange_rates(base)
	except Exception:
		logger.error('Failed to resolve exchange rates', exc_info=True)
		return JSONResponse(
			status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
			content={'success': False, 'error': 'Failed to load exchange rates'},
			headers=CORS_HEADERS,
		)

	response.headers.update(CORS_HEADERS)
	response.headers['Cache-Control'] = RATES_CACHE_CONTROL
	return ForexRatesResponse(
		base=result.base,
		fetched_at=result.fetched_at,
		source=result.source.value,
		rates=dict(result.rates),
	)


@router.options('/forex-rates', status_code=status.HTTP_204_NO_CONTENT, include_in_schema=False)
async def forex_rates_preflight() -> Response:
	return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)


@router.get(
	'/convert',
	response_model=ConversionResponse,
	status_code=status.HTTP_200_OK,
	summary='Convert an amount between currencies',
)
async def convert_amount(
	amount: float,
	from_currency: Annotated[str, Query(alias='from', pattern=CURRENCY_CODE_PATTERN)],
	rate_service: Annotated[RateService, Depends(get_rate_service)],
	conversion_service: Annotated[ConversionService, Depends(get_conversion_service)],
	to_currency: Annotated[str, Query(alias='to', pattern=CURRENCY_CODE_PATTERN)] = REFERENCE_CURRENCY,
) -> ConversionResponse:
	from_currency = from_currency.upper()
	to_currency = to_currency.upper()

	rates = await rate_service.get_exchange_rates(REFERENCE_CURRENCY)
	converted = conversion_service.convert(amount, from_currency, to_currency, rates.rates)

	return ConversionResponse(
		amount=amount,
		from_currency=from_currency,
		to_currency=to_currency,
		converted=converted,
		formatted=format_amount(converted, to_currency),
		source=rates.source.value,
	)


@router.post(
	'/portfolio/value',
	response_model=PortfolioValueResponse,
	status_code=status.HTTP_200_OK,
	summary='Value holdings in mixed currencies in SEK',
)
async def value_portfolio(
	request: PortfolioValueRequest,
	rate_service: Annotated[RateService, Depends(get_rate_service)],
	holding_service: Annotated[HoldingValuationService, Depends(get_holding_service)],
) -> PortfolioValueResponse:
	rates = await rate_service.get_exchange_rates(REFERENCE_CURRENCY)

	values, total = holding_service.value_portfolio(
		(Holding(**holding.model_dump()) for holding in request.holdings),
		rates.rates,
	)

	return PortfolioValueResponse(
		currency=REFERENCE_CURRENCY,
		source=rates.source.value,
		total=total,
		holdings=[
			HoldingValueResponse(
				quantity=value.quantity,
				price_per_unit=value.price_per_unit,
				price_currency=value.price_currency,
				value_in_original_currency=value.value_in_original_currency,
				value_currency=value.value_currency,
				value_in_sek=value.value_in_reference,
				price_per_unit_in_sek=value.price_per_unit_in_reference,
				has_direct_price=value.has_direct_price,
			)
			for value in values
		],
	)


@router.get(
	'/currencies',
	response_model=SupportedCurrenciesResponse,
	status_code=status.HTTP_200_OK,
	summary='List currencies with a known fallback rate',
)
async def get_supported_currencies() -> SupportedCurrenciesResponse:
	return SupportedCurrenciesResponse(
		reference=REFERENCE_CURRENCY,
		currencies=[
			CurrencyInfo(code=code, symbol=currency_symbol(code), fallback_rate=rate)
			for code, rate in FALLBACK_SEK_RATES.items()
		],
	)
