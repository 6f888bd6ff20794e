# nosec B101


from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from application.services.rate_service import RateService
from domain.exceptions.currency import CacheError, NormalizationError, ProviderError
from domain.models.currency import CacheEntry, RateSource, freeze_rates
from domain.rates import FALLBACK_SEK_RATES
from infrastructure.cache.memory_cache import RateCache
from infrastructure.providers.finnhub import FinnhubProvider
from infrastructure.providers.sheet import SheetProvider


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 11, 5, 10, 0, tzinfo=UTC))


@pytest.fixture
def cache(clock):
    return RateCache(clock=clock)


@pytest.fixture
def provider():
    mock_provider = Mock()
    mock_provider.name = 'finnhub'
    mock_provider.is_configured = True
    mock_provider.fetch_rates = AsyncMock(return_value=freeze_rates({'SEK': 1.0, 'USD': 10.2}))
    return mock_provider


def finnhub_with_client(payload=None, side_effect=None, api_key='test_key'):
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    if side_effect is not None:
        mock_client.get.side_effect = side_effect
    else:
        mock_response = Mock()
        mock_response.json.return_value = payload
        mock_response.raise_for_status = Mock()
        mock_client.get.return_value = mock_response
    return FinnhubProvider(api_key=api_key, client=mock_client), mock_client


# ============================================================================
# TEST: Provider path and caching
# ============================================================================

@pytest.mark.asyncio
async def test_fetch_then_second_call_within_ttl_hits_cache(cache, clock):
    finnhub, mock_client = finnhub_with_client({'base': 'SEK', 'quote': {'USD': 0.1, 'EUR': 0.08}})
    service = RateService(provider=finnhub, cache=cache, clock=clock)

    first = await service.get_exchange_rates('SEK')
    clock.advance(minutes=2)
    second = await service.get_exchange_rates('SEK')

    assert first.source is RateSource.PROVIDER
    assert second.source is RateSource.CACHE
    assert dict(second.rates) == dict(first.rates)
    assert second.fetched_at == first.fetched_at
    assert mock_client.get.call_count == 1


@pytest.mark.asyncio
async def test_expired_cache_entry_triggers_refetch(provider, cache, clock):
    service = RateService(provider=provider, cache=cache, clock=clock)

    await service.get_exchange_rates('SEK')
    clock.advance(minutes=5)
    result = await service.get_exchange_rates('SEK')

    assert result.source is RateSource.PROVIDER
    assert result.fetched_at == clock()
    assert provider.fetch_rates.await_count == 2


@pytest.mark.asyncio
async def test_base_is_normalized_before_lookup(provider, cache, clock):
    service = RateService(provider=provider, cache=cache, clock=clock)

    result = await service.get_exchange_rates(' usd ')

    assert result.base == 'USD'
    provider.fetch_rates.assert_awaited_once_with('USD')
    assert cache.get('USD') is not None


@pytest.mark.asyncio
async def test_default_base_is_sek(provider, cache, clock):
    service = RateService(provider=provider, cache=cache, clock=clock)

    result = await service.get_exchange_rates()

    assert result.base == 'SEK'
    provider.fetch_rates.assert_awaited_once_with('SEK')


@pytest.mark.asyncio
async def test_cache_is_keyed_per_base(provider, cache, clock):
    service = RateService(provider=provider, cache=cache, clock=clock)

    await service.get_exchange_rates('SEK')
    result = await service.get_exchange_rates('USD')

    assert result.source is RateSource.PROVIDER
    assert provider.fetch_rates.await_count == 2


# ============================================================================
# TEST: Fallback path
# ============================================================================

@pytest.mark.asyncio
async def test_network_failure_returns_fallback(cache, clock):
    finnhub, _ = finnhub_with_client(side_effect=httpx.ConnectError('Connection refused'))
    service = RateService(provider=finnhub, cache=cache, clock=clock)

    result = await service.get_exchange_rates('SEK')

    assert result.source is RateSource.FALLBACK
    assert result.rates['USD'] > 0
    assert dict(result.rates) == dict(FALLBACK_SEK_RATES)


@pytest.mark.asyncio
async def test_missing_api_key_returns_fallback_without_network(cache, clock):
    finnhub, mock_client = finnhub_with_client({'quote': {}}, api_key='')
    service = RateService(provider=finnhub, cache=cache, clock=clock)

    result = await service.get_exchange_rates('SEK')

    assert result.source is RateSource.FALLBACK
    mock_client.get.assert_not_called()


@pytest.mark.asyncio
async def test_fallback_is_cached_and_served_as_cache(provider, cache, clock):
    provider.fetch_rates.side_effect = ProviderError('Finnhub HTTP error 503: unavailable')
    service = RateService(provider=provider, cache=cache, clock=clock)

    first = await service.get_exchange_rates('SEK')
    second = await service.get_exchange_rates('SEK')

    assert first.source is RateSource.FALLBACK
    assert second.source is RateSource.CACHE
    assert provider.fetch_rates.await_count == 1
    assert cache.peek('SEK').source is RateSource.FALLBACK


@pytest.mark.asyncio
async def test_normalization_failure_returns_rebased_fallback(provider, cache, clock):
    provider.fetch_rates.side_effect = NormalizationError('Missing SEK rate for base EUR')
    service = RateService(provider=provider, cache=cache, clock=clock)

    result = await service.get_exchange_rates('EUR')

    assert result.source is RateSource.FALLBACK
    assert result.base == 'EUR'
    assert result.rates['EUR'] == 1


@pytest.mark.asyncio
async def test_unknown_base_fallback_is_labelled_with_reference(provider, cache, clock):
    provider.is_configured = False
    service = RateService(provider=provider, cache=cache, clock=clock)

    result = await service.get_exchange_rates('XYZ')

    assert result.base == 'SEK'
    assert dict(result.rates) == dict(FALLBACK_SEK_RATES)
    assert cache.get('XYZ') is not None


@pytest.mark.asyncio
async def test_provider_failure_is_logged_as_warning(provider, cache, clock, caplog):
    provider.fetch_rates.side_effect = ProviderError('Finnhub request failed: ConnectError')
    service = RateService(provider=provider, cache=cache, clock=clock)

    with caplog.at_level('WARNING'):
        await service.get_exchange_rates('SEK')

    assert 'Failed to load exchange rates from finnhub' in caplog.text


# ============================================================================
# TEST: Snapshot store
# ============================================================================

@pytest.mark.asyncio
async def test_successful_fetch_saves_snapshot(provider, cache, clock):
    snapshots = Mock()
    snapshots.save_snapshot = AsyncMock()
    service = RateService(provider=provider, cache=cache, snapshots=snapshots, clock=clock)

    result = await service.get_exchange_rates('SEK')

    snapshots.save_snapshot.assert_awaited_once()
    saved_entry = snapshots.save_snapshot.call_args[0][0]
    assert saved_entry.rates is result.rates
    assert snapshots.save_snapshot.call_args[1]['provider'] == 'finnhub'


@pytest.mark.asyncio
async def test_failure_prefers_recent_snapshot(provider, cache, clock):
    provider.fetch_rates.side_effect = ProviderError('down')
    snapshot = CacheEntry(
        base='SEK',
        fetched_at=clock() - timedelta(hours=2),
        rates=freeze_rates({'SEK': 1.0, 'USD': 9.8}),
        source=RateSource.PROVIDER,
    )
    snapshots = Mock()
    snapshots.get_latest_snapshot = AsyncMock(return_value=snapshot)
    service = RateService(provider=provider, cache=cache, snapshots=snapshots, clock=clock)

    result = await service.get_exchange_rates('SEK')

    assert result.source is RateSource.FALLBACK
    assert result.rates['USD'] == 9.8
    assert result.fetched_at == clock()
    snapshots.get_latest_snapshot.assert_awaited_once_with('SEK', since=clock() - timedelta(hours=24))


@pytest.mark.asyncio
async def test_failure_without_snapshot_uses_static_table(provider, cache, clock):
    provider.fetch_rates.side_effect = ProviderError('down')
    snapshots = Mock()
    snapshots.get_latest_snapshot = AsyncMock(return_value=None)
    service = RateService(provider=provider, cache=cache, snapshots=snapshots, clock=clock)

    result = await service.get_exchange_rates('SEK')

    assert dict(result.rates) == dict(FALLBACK_SEK_RATES)


@pytest.mark.asyncio
async def test_snapshot_store_errors_do_not_propagate(provider, cache, clock):
    provider.fetch_rates.side_effect = ProviderError('down')
    snapshots = Mock()
    snapshots.get_latest_snapshot = AsyncMock(side_effect=CacheError('database is locked'))
    service = RateService(provider=provider, cache=cache, snapshots=snapshots, clock=clock)

    result = await service.get_exchange_rates('SEK')

    assert result.source is RateSource.FALLBACK
    assert dict(result.rates) == dict(FALLBACK_SEK_RATES)


@pytest.mark.asyncio
async def test_snapshot_save_errors_do_not_propagate(provider, cache, clock):
    snapshots = Mock()
    snapshots.save_snapshot = AsyncMock(side_effect=CacheError('disk full'))
    service = RateService(provider=provider, cache=cache, snapshots=snapshots, clock=clock)

    result = await service.get_exchange_rates('SEK')

    assert result.source is RateSource.PROVIDER


@pytest.mark.asyncio
async def test_payload_with_numeric_base_still_resolves(cache, clock):
    finnhub, _ = finnhub_with_client({'base': 123, 'quote': {'USD': 0.1}})
    service = RateService(provider=finnhub, cache=cache, clock=clock)

    result = await service.get_exchange_rates('SEK')

    assert result.source is RateSource.PROVIDER
    assert result.rates['USD'] == pytest.approx(10.0)


@pytest.mark.asyncio
async def test_sheet_with_invalid_url_returns_fallback(cache, clock):
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.get.side_effect = httpx.InvalidURL("Invalid port: 'abc'")
    sheet = SheetProvider('http://sheets.example:abc/csv', client=mock_client)
    service = RateService(provider=sheet, cache=cache, clock=clock)

    result = await service.get_exchange_rates('SEK')

    assert result.source is RateSource.FALLBACK
    assert result.rates['USD'] > 0
