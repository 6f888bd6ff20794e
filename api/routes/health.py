from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import deps, get_provider
from api.schemas import HealthResponse
from infrastructure.providers import ExchangeRateProvider

router = APIRouter(tags=['health'])


@router.get('/health', response_model=HealthResponse, summary='Service health check')
async def health_check(
	provider: Annotated[ExchangeRateProvider, Depends(get_provider)],
) -> HealthResponse:
	return HealthResponse(
		status='ok',
		provider=provider.name,
		configured=provider.is_configured,
		snapshots=deps.snapshots is not None,
	)
