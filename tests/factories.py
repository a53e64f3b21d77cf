"""Builders for Finnhub payloads and domain objects used across tests."""

from __future__ import annotations

from typing import Any

import httpx

from value_screener.models import (
    CompanyFinancials,
    CompanyInformation,
    CompanyQuote,
    StockData,
    StockInfo,
)

_ROUTES = {
    "/quote": "quote",
    "/stock/profile2": "profile",
    "/stock/metric": "metric",
    "/stock/financials-reported": "reported",
}


def quote_payload(price: float = 6.0) -> dict:
    return {"c": price, "h": price + 0.5, "l": price - 0.5, "o": price, "pc": price, "t": 1700000000}


def profile_payload(
    symbol: str = "ACME",
    market_cap: float = 5000.0,
    shares: float = 10.0,
    industry: str = "Industrials",
) -> dict:
    return {
        "name": f"{symbol} Corp",
        "ticker": symbol,
        "exchange": "NASDAQ NMS - GLOBAL MARKET",
        "currency": "USD",
        "country": "US",
        "finnhubIndustry": industry,
        "marketCapitalization": market_cap,
        "shareOutstanding": shares,
        "ipo": "1990-01-01",
        "weburl": "https://example.com",
    }


def metric_payload(drop: tuple[str, ...] = (), **overrides: Any) -> dict:
    """A /stock/metric body; keys in ``drop`` are left out entirely."""
    metric = {
        "pbAnnual": 1.0,
        "psAnnual": 1.2,
        "peNormalizedAnnual": 10.0,
        "dividendPerShareAnnual": 1.0,
        "dividendPerShare5Y": 0.9,
        "dividendGrowthRate5Y": 4.0,
        "epsNormalizedAnnual": 0.6,
        "epsGrowth": 5.0,
        "epsGrowth5Y": 6.0,
        "totalDebt/totalEquityAnnual": 50.0,
        "currentRatioAnnual": 2.5,
    }
    metric.update(overrides)
    return {"metric": {k: v for k, v in metric.items() if k not in drop}, "symbol": "ACME"}


def reported_payload(
    assets: float | None = 100e6,
    liabilities: float | None = 40e6,
    long_term_debt: float | None = 10e6,
) -> dict:
    bs = []
    if assets is not None:
        bs.append(
            {"label": "Total current assets", "concept": "us-gaap_AssetsCurrent", "value": assets}
        )
    if liabilities is not None:
        bs.append(
            {
                "label": "Total current liabilities",
                "concept": "us-gaap_LiabilitiesCurrent",
                "value": liabilities,
            }
        )
    if long_term_debt is not None:
        bs.append(
            {"label": "Term debt", "concept": "us-gaap_LongTermDebtCurrent", "value": long_term_debt}
        )
    return {"data": [{"year": 2023, "report": {"bs": bs}}]}


class FakeFinnhub:
    """Serves canned Finnhub responses per symbol through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.symbols: dict[str, dict[str, Any]] = {}
        self.listings: dict[str, Any] = {}
        self.network_failures: set[str] = set()
        self.status_failures: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    def add_symbol(self, symbol: str, **payloads: Any) -> None:
        self.symbols[symbol] = {
            "quote": quote_payload(),
            "profile": profile_payload(symbol),
            "metric": metric_payload(),
            "reported": reported_payload(),
            **payloads,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v1")
        params = request.url.params

        if path == "/stock/symbol":
            exchange = params["exchange"]
            if exchange in self.status_failures:
                return httpx.Response(self.status_failures[exchange], json={"error": "denied"})
            return httpx.Response(200, json=self.listings.get(exchange, []))

        symbol = params["symbol"]
        if symbol in self.network_failures:
            raise httpx.ConnectError("connection refused", request=request)
        if symbol in self.status_failures:
            return httpx.Response(self.status_failures[symbol], json={"error": "limit"})
        data = self.symbols.get(symbol, {})
        return httpx.Response(200, json=data.get(_ROUTES[path], {}))

    def http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def requests_for(self, symbol: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.params.get("symbol") == symbol]


def make_stock_data(
    symbol: str = "ACME",
    price: float = 6.0,
    market_cap: float = 5000.0,
    shares: float = 10.0,
    industry: str = "Industrials",
    **financials: Any,
) -> StockData:
    """StockData that passes every rule of the ``analysis_config`` fixture unless overridden."""
    fields = dict(
        pe_ratio=10.0,
        pb_ratio=1.0,
        dividend_per_share=1.0,
        dividend_per_share_5y_avg=0.9,
        dividend_growth_5y_avg=4.0,
        earnings_growth=5.0,
        earnings_growth_5y_avg=6.0,
        total_debt_to_total_equity=0.5,
        current_ratio=2.5,
        total_current_assets=100.0,
        total_current_liabilities=40.0,
        total_current_long_term_debt=10.0,
    )
    fields.update(financials)
    return StockData(
        stock=StockInfo(symbol=symbol, currency="USD", description=f"{symbol} Corp"),
        quote=CompanyQuote(
            current_price=price,
            high_price=price,
            low_price=price,
            open_price=price,
            previous_close=price,
            timestamp=1700000000,
        ),
        information=CompanyInformation(
            name=f"{symbol} Corp",
            ticker=symbol,
            industry=industry,
            market_cap=market_cap,
            shares_outstanding=shares,
        ),
        financials=CompanyFinancials(**fields),
    )
