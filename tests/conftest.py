"""Shared test fixtures."""

from __future__ import annotations

import pytest
import pytest_asyncio
from factories import FakeFinnhub

from value_screener.config import AnalysisConfig, DataFetchConfig
from value_screener.data.finnhub import FinnhubClient
from value_screener.data.rate_limiter import RateLimiter


@pytest.fixture
def fake_finnhub() -> FakeFinnhub:
    return FakeFinnhub()


@pytest.fixture
def fetch_config() -> DataFetchConfig:
    return DataFetchConfig(finnhub_api_key="test-key", max_api_calls_per_minute=1000)


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(max_calls=1000)


@pytest_asyncio.fixture
async def finnhub_client(fake_finnhub, fetch_config, limiter):
    http = fake_finnhub.http()
    client = FinnhubClient(fetch_config, limiter, http=http)
    yield client
    await http.aclose()


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    return AnalysisConfig(
        pe_limits=(5.0, 15.0),
        pb_limits=(0.0, 3.0),
        earnings_growth_5y_min=3.0,
        dividend_per_share_min=0.5,
        dividend_growth_5y_min=2.0,
        current_ratio_min=2.0,
        debt_equity_max=1.0,
        market_cap_min=1000.0,
    )
