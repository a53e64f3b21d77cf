"""Finnhub REST client: exchange listings, quotes, profiles and fundamentals."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Awaitable

import httpx
from pydantic import ValidationError

from value_screener.config import DataFetchConfig
from value_screener.data.rate_limiter import RateLimiter
from value_screener.errors import NetworkError, UpstreamShapeError, UpstreamStatusError
from value_screener.models import (
    CompanyFinancials,
    CompanyInformation,
    CompanyQuote,
    StockData,
    StockInfo,
)

logger = logging.getLogger(__name__)

COMMON_STOCK = "Common Stock"

# CompanyFinancials field -> key in the /stock/metric "metric" map
_METRIC_FIELDS = {
    "pb_ratio": "pbAnnual",
    "ps_ratio": "psAnnual",
    "pe_ratio": "peNormalizedAnnual",
    "dividend_per_share": "dividendPerShareAnnual",
    "dividend_per_share_5y_avg": "dividendPerShare5Y",
    "dividend_growth_5y_avg": "dividendGrowthRate5Y",
    "earnings_per_share": "epsNormalizedAnnual",
    "earnings_growth": "epsGrowth",
    "earnings_growth_5y_avg": "epsGrowth5Y",
    "book_value_per_share": "bookValuePerShare",
    "tangible_book_value_per_share": "tangibleBookValuePerShareAnnual",
    "total_debt_to_total_equity": "totalDebt/totalEquityAnnual",
    "long_term_debt_to_equity": "longTermDebt/equityAnnual",
    "current_ratio": "currentRatioAnnual",
    "quick_ratio": "quickRatioAnnual",
    "return_on_avg_equity": "roeAnnual",
    "return_on_avg_equity_5y": "roae5Y",
    "return_on_avg_assets_5y": "roaa5Y",
    "return_on_investment": "roiAnnual",
    "return_on_investment_5y": "roi5Y",
    "net_profit_margin": "netProfitMarginAnnual",
    "net_profit_margin_5y_avg": "netProfitMargin5Y",
    "net_margin_growth_5y": "netMarginGrowth5Y",
}

_CURRENT_ASSETS_LABEL = "total current assets"
_CURRENT_LIABILITIES_LABEL = "total current liabilities"
_CURRENT_LONG_TERM_DEBT_CONCEPT = "us-gaap_LongTermDebtCurrent"
_MILLION = 1e6


def _optional_float(symbol: str, key: str, value: Any) -> float | None:
    """Numeric field that may be unreported. Non-numeric values are a shape error."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UpstreamShapeError(symbol, f"{key} is {type(value).__name__}, expected a number")
    f = float(value)
    return f if math.isfinite(f) else None


async def _gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """Like ``asyncio.gather`` but the first failure cancels the siblings."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class FinnhubClient:
    """Async Finnhub client; every HTTP request takes one slot from the shared limiter.

    No retries: a failed request raises a ``DataUnavailable`` subclass
    identifying whether the transport, the status or the body was at fault.
    """

    def __init__(
        self,
        config: DataFetchConfig,
        limiter: RateLimiter,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._limiter = limiter
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=config.http_timeout_seconds)

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> FinnhubClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _get_json(self, path: str, subject: str, params: dict[str, str]) -> Any:
        """Make a raw GET call. ``subject`` is the symbol or exchange, for error messages."""
        await self._limiter.acquire()
        url = f"{self._config.base_url.rstrip('/')}{path}"
        query = {**params, "token": self._config.finnhub_api_key}
        try:
            resp = await self._http.get(url, params=query)
        except httpx.DecodingError as e:
            raise UpstreamShapeError(subject, f"GET {path} returned an undecodable body") from e
        except httpx.RequestError as e:
            raise NetworkError(subject, f"GET {path} failed: {e!r}") from e
        if not resp.is_success:
            raise UpstreamStatusError(
                subject, f"GET {path} returned HTTP {resp.status_code}", resp.status_code
            )
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamShapeError(subject, f"GET {path} returned a non-JSON body") from e

    # ── Resources ────────────────────────────────────────────────────────

    async def get_stock_list(self, exchange: str) -> list[StockInfo]:
        """Common stocks listed on ``exchange``."""
        payload = await self._get_json("/stock/symbol", exchange, {"exchange": exchange})
        stocks = self._parse_stock_list(exchange, payload)
        logger.info(f"Exchange {exchange}: {len(stocks)} common stocks")
        return stocks

    async def get_quote(self, symbol: str) -> CompanyQuote:
        payload = await self._get_json("/quote", symbol, {"symbol": symbol})
        return self._parse_quote(symbol, payload)

    async def get_company_information(self, symbol: str) -> CompanyInformation:
        payload = await self._get_json("/stock/profile2", symbol, {"symbol": symbol})
        return self._parse_profile(symbol, payload)

    async def get_company_financials(self, symbol: str) -> CompanyFinancials:
        """Annual metrics plus the latest reported balance sheet (two requests)."""
        metric_payload, reported_payload = await _gather_or_cancel(
            self._get_json("/stock/metric", symbol, {"symbol": symbol, "metric": "all"}),
            self._get_json(
                "/stock/financials-reported", symbol, {"symbol": symbol, "freq": "annual"}
            ),
        )
        return self._parse_financials(symbol, metric_payload, reported_payload)

    async def get_stock_data(self, stock: StockInfo) -> StockData:
        """Fetch quote, profile and financials for one symbol concurrently."""
        quote, information, financials = await _gather_or_cancel(
            self.get_quote(stock.symbol),
            self.get_company_information(stock.symbol),
            self.get_company_financials(stock.symbol),
        )
        return StockData(
            stock=stock, quote=quote, information=information, financials=financials
        )

    # ── Parsing ──────────────────────────────────────────────────────────

    @staticmethod
    def _parse_stock_list(exchange: str, payload: Any) -> list[StockInfo]:
        if not isinstance(payload, list):
            raise UpstreamShapeError(exchange, "symbol listing is not an array")
        stocks: list[StockInfo] = []
        for item in payload:
            if not isinstance(item, dict) or item.get("type") != COMMON_STOCK:
                continue
            symbol = item.get("symbol")
            if not isinstance(symbol, str) or not symbol:
                logger.debug(f"Skipping listing entry without symbol on {exchange}: {item}")
                continue
            stocks.append(
                StockInfo(
                    symbol=symbol,
                    currency=item.get("currency") or "",
                    description=item.get("description") or "",
                )
            )
        return stocks

    @staticmethod
    def _parse_quote(symbol: str, payload: Any) -> CompanyQuote:
        try:
            return CompanyQuote.model_validate(payload)
        except ValidationError as e:
            raise UpstreamShapeError(symbol, f"unexpected quote: {e.error_count()} errors") from e

    @staticmethod
    def _parse_profile(symbol: str, payload: Any) -> CompanyInformation:
        if isinstance(payload, dict) and not payload:
            raise UpstreamShapeError(symbol, "empty company profile")
        try:
            return CompanyInformation.model_validate(payload)
        except ValidationError as e:
            raise UpstreamShapeError(
                symbol, f"unexpected company profile: {e.error_count()} errors"
            ) from e

    @staticmethod
    def _parse_financials(
        symbol: str, metric_payload: Any, reported_payload: Any
    ) -> CompanyFinancials:
        if not isinstance(metric_payload, dict) or not isinstance(
            metric_payload.get("metric"), dict
        ):
            raise UpstreamShapeError(symbol, "metrics response has no 'metric' object")
        metric = metric_payload["metric"]
        fields = {
            field: _optional_float(symbol, key, metric.get(key))
            for field, key in _METRIC_FIELDS.items()
        }
        # Finnhub reports total debt/equity in percent
        if fields["total_debt_to_total_equity"] is not None:
            fields["total_debt_to_total_equity"] /= 100.0

        fields.update(FinnhubClient._parse_balance_sheet(symbol, reported_payload))
        return CompanyFinancials(**fields)

    @staticmethod
    def _parse_balance_sheet(symbol: str, payload: Any) -> dict[str, float | None]:
        """Current assets, liabilities and long-term debt (millions) from the latest report."""
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise UpstreamShapeError(symbol, "financials-reported response has no 'data' array")

        found: dict[str, float | None] = {
            "total_current_assets": None,
            "total_current_liabilities": None,
            "total_current_long_term_debt": None,
        }
        reports = payload["data"]
        if not reports or not isinstance(reports[0], dict):
            logger.debug(f"{symbol}: no reported financials")
            return found
        balance_sheet = (reports[0].get("report") or {}).get("bs")
        if not isinstance(balance_sheet, list):
            logger.debug(f"{symbol}: latest report has no balance sheet")
            return found

        for entry in balance_sheet:
            if not isinstance(entry, dict):
                continue
            value = entry.get("value")
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            label = str(entry.get("label") or "").strip().lower()
            concept = entry.get("concept")
            if label == _CURRENT_ASSETS_LABEL:
                key = "total_current_assets"
            elif label == _CURRENT_LIABILITIES_LABEL:
                key = "total_current_liabilities"
            elif concept == _CURRENT_LONG_TERM_DEBT_CONCEPT:
                key = "total_current_long_term_debt"
            else:
                continue
            if found[key] is None:
                found[key] = value / _MILLION
        return found
