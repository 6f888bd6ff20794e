from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_provider, get_rate_cache
from api.main import app
from domain.models.currency import freeze_rates
from infrastructure.cache.memory_cache import RateCache

PROVIDER_RATES = freeze_rates({'SEK': 1.0, 'USD': 10.0, 'EUR': 12.5})


@pytest.fixture
def mock_provider():
    provider = Mock()
    provider.name = 'finnhub'
    provider.is_configured = True
    provider.fetch_rates = AsyncMock(return_value=PROVIDER_RATES)
    return provider


@pytest.fixture
def rate_cache():
    return RateCache()


@pytest.fixture
def client(mock_provider, rate_cache):
    app.dependency_overrides[get_provider] = lambda: mock_provider
    app.dependency_overrides[get_rate_cache] = lambda: rate_cache
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
