import httpx

from domain.exceptions.currency import ProviderError
from domain.models.currency import RateTable
from domain.rates import normalise_rates_to_reference


class FinnhubProvider:
	BASE_URL = 'https://finnhub.io/api/v1'

	def __init__(
		self,
		api_key: str,
		client: httpx.AsyncClient | None = None,
		timeout: int = 10,
		base_url: str | None = None,
	):
		self.api_key = api_key
		self.base_url = (base_url or self.BASE_URL).rstrip('/')
		self._client = client or httpx.AsyncClient(timeout=timeout)

	@property
	def name(self) -> str:
		return 'finnhub'

	@property
	def is_configured(self) -> bool:
		return bool(self.api_key)

	async def _request(self, endpoint: str, params: dict) -> dict:
		params['token'] = self.api_key
		url = f'{self.base_url}/{endpoint}'

		try:
			response = await self._client.get(
				url, params=params, headers={'Accept': 'application/json'}
			)
			response.raise_for_status()
			data = response.json()
		except httpx.HTTPStatusError as e:
			raise ProviderError(
				f'Finnhub HTTP error {e.response.status_code}: {e.response.text[:200]}'
			) from e
		except httpx.RequestError as e:
			raise ProviderError(f'Finnhub request failed: {e.__class__.__name__}') from e
		except Exception as e:
			raise ProviderError(f'Finnhub response parsing error: {str(e)}') from e

		if not isinstance(data, dict):
			raise ProviderError('Finnhub response parsing error: expected a JSON object')
		return data

	async def fetch_rates(self, base: str) -> RateTable:
		data = await self._request('forex/rates', {'base': base})
		payload_base = data.get('base')
		if not isinstance(payload_base, str) or not payload_base.strip():
			payload_base = base
		return normalise_rates_to_reference(payload_base, data.get('quote'))

	async def close(self) -> None:
		await self._client.aclose()
