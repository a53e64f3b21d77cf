"""Top-level entry points that wire settings, limiter, client and orchestrator."""

from __future__ import annotations

import logging
from typing import Iterable

import httpx

from value_screener.config import ScreenerSettings
from value_screener.data.finnhub import FinnhubClient
from value_screener.data.rate_limiter import RateLimiter
from value_screener.models import ScreeningReport, StockInfo, SymbolOutcome
from value_screener.screening.orchestrator import ProgressCallback, ScreeningOrchestrator

logger = logging.getLogger(__name__)


def _client(settings: ScreenerSettings, http: httpx.AsyncClient | None) -> FinnhubClient:
    limiter = RateLimiter.from_config(settings.data_fetching)
    return FinnhubClient(settings.data_fetching, limiter, http=http)


def _orchestrator(settings: ScreenerSettings, client: FinnhubClient) -> ScreeningOrchestrator:
    return ScreeningOrchestrator(
        client,
        settings.analysis,
        max_concurrency=settings.data_fetching.max_concurrency,
    )


async def run(
    settings: ScreenerSettings,
    symbols: Iterable[str] | None = None,
    exchanges: Iterable[str] | None = None,
    on_progress: ProgressCallback | None = None,
    http: httpx.AsyncClient | None = None,
) -> ScreeningReport:
    """Screen explicit ``symbols``, or else every stock on ``exchanges``.

    Exchanges default to ``settings.data_fetching.considered_exchanges``.
    """
    async with _client(settings, http) as client:
        orchestrator = _orchestrator(settings, client)
        if symbols:
            stocks = [StockInfo(symbol=s.strip().upper()) for s in symbols if s.strip()]
            logger.info(f"Screening {len(stocks)} symbols")
            return await orchestrator.screen_stocks(stocks, on_progress=on_progress)

        exchanges = list(exchanges or settings.data_fetching.considered_exchanges)
        logger.info(f"Screening exchanges {', '.join(exchanges)}")
        return await orchestrator.screen_exchanges(exchanges, on_progress=on_progress)


async def check(
    settings: ScreenerSettings,
    symbol: str,
    http: httpx.AsyncClient | None = None,
) -> SymbolOutcome:
    """Screen a single symbol."""
    async with _client(settings, http) as client:
        orchestrator = _orchestrator(settings, client)
        return await orchestrator.screen_stock(StockInfo(symbol=symbol.strip().upper()))


async def list_symbols(
    settings: ScreenerSettings,
    exchange: str,
    http: httpx.AsyncClient | None = None,
) -> list[StockInfo]:
    """Common stocks listed on ``exchange``."""
    async with _client(settings, http) as client:
        return await _orchestrator(settings, client).list_exchange(exchange)
