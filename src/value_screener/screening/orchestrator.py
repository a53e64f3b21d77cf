"""Batch orchestrator: fetch and screen many symbols concurrently.

Pipeline per symbol (one asyncio task each):
  1. Fetch quote, profile and financials (limiter-gated, no retries)
  2. Screen against the analysis config
  3. Tag the outcome: QUALIFIED, DISQUALIFIED or ERROR

A failure for one symbol never reaches another symbol's task. Only an
exchange-listing failure aborts the batch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Iterable

from value_screener.config import AnalysisConfig
from value_screener.data.finnhub import FinnhubClient
from value_screener.errors import DataUnavailable, ListingUnavailable
from value_screener.models import (
    ErrorKind,
    ScreeningReport,
    StockInfo,
    SymbolOutcome,
    SymbolStatus,
)
from value_screener.screening.diagnostics import log_outcome
from value_screener.screening.engine import screen

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]


def _dedupe(stocks: Iterable[StockInfo]) -> list[StockInfo]:
    """First occurrence of each symbol, in input order."""
    seen: dict[str, StockInfo] = {}
    for stock in stocks:
        seen.setdefault(stock.symbol, stock)
    return list(seen.values())


class ScreeningOrchestrator:
    """Drives fetch → screen across a symbol list under the client's shared call budget."""

    def __init__(
        self,
        client: FinnhubClient,
        config: AnalysisConfig,
        max_concurrency: int | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def _fetch(self, stock: StockInfo):
        if self._semaphore is None:
            return await self._client.get_stock_data(stock)
        async with self._semaphore:
            return await self._client.get_stock_data(stock)

    async def screen_stock(self, stock: StockInfo) -> SymbolOutcome:
        """Fetch and screen one symbol. Never raises except on cancellation."""
        try:
            data = await self._fetch(stock)
            verdict = screen(data, self._config)
        except DataUnavailable as e:
            return SymbolOutcome(
                symbol=stock.symbol,
                status=SymbolStatus.ERROR,
                error_kind=e.kind,
                reason=e.reason,
            )
        except Exception as e:
            logger.exception("Unexpected failure screening %s", stock.symbol)
            return SymbolOutcome(
                symbol=stock.symbol,
                status=SymbolStatus.ERROR,
                error_kind=ErrorKind.UNEXPECTED,
                reason=repr(e),
            )

        return SymbolOutcome(
            symbol=stock.symbol,
            status=SymbolStatus.QUALIFIED if verdict.passed else SymbolStatus.DISQUALIFIED,
            verdict=verdict,
            reason=verdict.failure_reason,
        )

    async def screen_stocks(
        self,
        stocks: Iterable[StockInfo],
        on_progress: ProgressCallback | None = None,
    ) -> ScreeningReport:
        """Screen every symbol concurrently and partition the outcomes.

        Args:
            stocks: Symbols to screen. Duplicates are screened once.
            on_progress: Callback(phase, advance) for progress updates.

        Returns:
            ScreeningReport with one outcome per distinct symbol.
        """
        start = time.time()
        calls_before = self._client.limiter.total_acquired
        unique = _dedupe(stocks)
        if on_progress:
            on_progress("screen_start", len(unique))

        tasks = [
            asyncio.create_task(self.screen_stock(stock), name=f"screen-{stock.symbol}")
            for stock in unique
        ]
        outcomes: dict[str, SymbolOutcome] = {}
        try:
            for next_done in asyncio.as_completed(tasks):
                outcome = await next_done
                outcomes[outcome.symbol] = outcome
                log_outcome(outcome)
                if on_progress:
                    on_progress("screen_tick", 1)
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        report = ScreeningReport(
            elapsed_seconds=time.time() - start,
            api_calls=self._client.limiter.total_acquired - calls_before,
            outcomes=outcomes,
        )
        logger.info(
            "Screened %d symbols: %d qualified, %d not qualified (%d errors)",
            len(outcomes),
            len(report.qualified),
            len(report.not_qualified),
            len(report.errors),
        )
        return report

    async def list_exchange(self, exchange: str) -> list[StockInfo]:
        try:
            return await self._client.get_stock_list(exchange)
        except DataUnavailable as e:
            raise ListingUnavailable(exchange, e) from e

    async def screen_exchanges(
        self,
        exchanges: Iterable[str],
        on_progress: ProgressCallback | None = None,
    ) -> ScreeningReport:
        """Screen every common stock listed on ``exchanges``.

        Raises:
            ListingUnavailable: if any exchange listing cannot be fetched.
        """
        start = time.time()
        calls_before = self._client.limiter.total_acquired

        stocks: list[StockInfo] = []
        for exchange in exchanges:
            if on_progress:
                on_progress("listing", 0)
            stocks.extend(await self.list_exchange(exchange))

        report = await self.screen_stocks(stocks, on_progress=on_progress)
        report.elapsed_seconds = time.time() - start
        report.api_calls = self._client.limiter.total_acquired - calls_before
        return report
