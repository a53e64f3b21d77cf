"""Domain models for the value screener."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ── Enums ────────────────────────────────────────────────────────────────────


class ErrorKind(StrEnum):
    NETWORK = "network"
    UPSTREAM_STATUS = "upstream_status"
    UPSTREAM_SHAPE = "upstream_shape"
    UNEXPECTED = "unexpected"


class RuleName(StrEnum):
    MARKET_CAP = "market_cap"
    PRICE_EARNINGS = "price_earnings"
    DIVIDENDS = "dividends"
    EARNINGS_GROWTH = "earnings_growth"
    PRICE_BOOK = "price_book"
    DEBT_EQUITY = "debt_equity"
    WORKING_CAPITAL = "working_capital"
    CURRENT_RATIO = "current_ratio"


class RuleOutcome(StrEnum):
    PASS = "PASS"
    FAIL = "FAIL"
    INDETERMINATE = "INDETERMINATE"


class SymbolStatus(StrEnum):
    QUALIFIED = "QUALIFIED"
    DISQUALIFIED = "DISQUALIFIED"
    ERROR = "ERROR"


# ── Provider data ────────────────────────────────────────────────────────────


class StockInfo(BaseModel):
    """One tradable symbol from an exchange listing."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    currency: str = ""
    description: str = ""


class CompanyQuote(BaseModel):
    """Latest price snapshot, as returned by ``/quote``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    current_price: float = Field(alias="c")
    high_price: float = Field(alias="h")
    low_price: float = Field(alias="l")
    open_price: float = Field(alias="o")
    previous_close: float = Field(alias="pc")
    timestamp: int = Field(alias="t")


class CompanyInformation(BaseModel):
    """Company profile, as returned by ``/stock/profile2``.

    Market cap and shares outstanding are in millions.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    ticker: str = ""
    exchange: str = ""
    currency: str = ""
    country: str = ""
    industry: str = Field(default="", alias="finnhubIndustry")
    market_cap: float = Field(alias="marketCapitalization")
    shares_outstanding: float = Field(alias="shareOutstanding")
    ipo: str = ""
    weburl: str = ""

    @field_validator(
        "name", "ticker", "exchange", "currency", "country", "industry", "ipo", "weburl",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v


class CompanyFinancials(BaseModel):
    """Annual fundamentals. ``None`` means the provider did not report the field."""

    model_config = ConfigDict(frozen=True)

    pb_ratio: float | None = None
    ps_ratio: float | None = None
    pe_ratio: float | None = None
    dividend_per_share: float | None = None
    dividend_per_share_5y_avg: float | None = None
    dividend_growth_5y_avg: float | None = None
    earnings_per_share: float | None = None
    earnings_growth: float | None = None
    earnings_growth_5y_avg: float | None = None
    book_value_per_share: float | None = None
    tangible_book_value_per_share: float | None = None
    total_debt_to_total_equity: float | None = None
    long_term_debt_to_equity: float | None = None
    current_ratio: float | None = None
    quick_ratio: float | None = None
    return_on_avg_equity: float | None = None
    return_on_avg_equity_5y: float | None = None
    return_on_avg_assets_5y: float | None = None
    return_on_investment: float | None = None
    return_on_investment_5y: float | None = None
    net_profit_margin: float | None = None
    net_profit_margin_5y_avg: float | None = None
    net_margin_growth_5y: float | None = None
    # Balance sheet, in millions
    total_current_assets: float | None = None
    total_current_liabilities: float | None = None
    total_current_long_term_debt: float | None = None


class StockData(BaseModel):
    """Everything fetched for one symbol."""

    model_config = ConfigDict(frozen=True)

    stock: StockInfo
    quote: CompanyQuote
    information: CompanyInformation
    financials: CompanyFinancials


# ── Screening results ────────────────────────────────────────────────────────


class RuleResult(BaseModel):
    """Outcome of a single rule, with the numbers it was decided on."""

    model_config = ConfigDict(frozen=True)

    rule: RuleName
    outcome: RuleOutcome
    reason: str | None = None
    values: dict[str, float | None] = Field(default_factory=dict)
    limits: dict[str, float] = Field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.outcome == RuleOutcome.PASS


class ScreeningVerdict(BaseModel):
    """Evaluation of one symbol against the configured thresholds.

    ``rules`` is empty when the market-cap gate rejected the symbol.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    industry: str = ""
    market_cap: RuleResult
    rules: list[RuleResult] = Field(default_factory=list)
    passed: bool = False
    failure_reason: str | None = None

    @property
    def too_small(self) -> bool:
        return self.market_cap.outcome != RuleOutcome.PASS

    def rule(self, name: RuleName) -> RuleResult | None:
        for result in self.rules:
            if result.rule == name:
                return result
        return None


class SymbolOutcome(BaseModel):
    """Tagged result of one screening task."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    status: SymbolStatus
    verdict: ScreeningVerdict | None = None
    error_kind: ErrorKind | None = None
    reason: str | None = None


class ScreeningReport(BaseModel):
    """Result of one batch: every outcome keyed by symbol."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: datetime = Field(default_factory=datetime.now)
    elapsed_seconds: float = 0.0
    api_calls: int = 0
    outcomes: dict[str, SymbolOutcome] = Field(default_factory=dict)

    @property
    def qualified(self) -> set[str]:
        return {s for s, o in self.outcomes.items() if o.status == SymbolStatus.QUALIFIED}

    @property
    def not_qualified(self) -> set[str]:
        return {s for s, o in self.outcomes.items() if o.status != SymbolStatus.QUALIFIED}

    @property
    def errors(self) -> dict[str, SymbolOutcome]:
        return {s: o for s, o in self.outcomes.items() if o.status == SymbolStatus.ERROR}
