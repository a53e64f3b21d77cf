"""Fundamental-analysis rules.

Every rule is a pure comparison against already-resolved thresholds and
returns a ``RuleResult``. A rule whose input field was not reported is
``INDETERMINATE``, never ``FAIL`` and never ``PASS``.
"""

from __future__ import annotations

from value_screener.config import RuleThresholds
from value_screener.models import (
    CompanyFinancials,
    CompanyInformation,
    CompanyQuote,
    RuleName,
    RuleOutcome,
    RuleResult,
)

WORKING_CAPITAL_PRICE_FRACTION = 2.0 / 3.0


def _outcome(ok: bool) -> RuleOutcome:
    return RuleOutcome.PASS if ok else RuleOutcome.FAIL


def _missing(rule: RuleName, values: dict[str, float | None], **limits: float) -> RuleResult:
    absent = sorted(k for k, v in values.items() if v is None)
    return RuleResult(
        rule=rule,
        outcome=RuleOutcome.INDETERMINATE,
        reason=f"missing {', '.join(absent)}",
        values=values,
        limits=limits,
    )


def check_market_cap(information: CompanyInformation, thresholds: RuleThresholds) -> RuleResult:
    market_cap = information.market_cap
    return RuleResult(
        rule=RuleName.MARKET_CAP,
        outcome=_outcome(market_cap >= thresholds.market_cap_min),
        values={"market_cap": market_cap},
        limits={"min": thresholds.market_cap_min},
    )


def check_pe(financials: CompanyFinancials, thresholds: RuleThresholds) -> RuleResult:
    lo, hi = thresholds.pe_limits
    pe = financials.pe_ratio
    if pe is None:
        return _missing(RuleName.PRICE_EARNINGS, {"pe": pe}, min=lo, max=hi)
    return RuleResult(
        rule=RuleName.PRICE_EARNINGS,
        outcome=_outcome(lo <= pe <= hi),
        values={"pe": pe},
        limits={"min": lo, "max": hi},
    )


def check_dividends(financials: CompanyFinancials, thresholds: RuleThresholds) -> RuleResult:
    values = {
        "dividend_per_share": financials.dividend_per_share,
        "dividend_per_share_5y_avg": financials.dividend_per_share_5y_avg,
        "dividend_growth_5y": financials.dividend_growth_5y_avg,
    }
    limits = {
        "dividend_per_share_min": thresholds.dividend_per_share_min,
        "dividend_growth_5y_min": thresholds.dividend_growth_5y_min,
    }
    if any(v is None for v in values.values()):
        return _missing(RuleName.DIVIDENDS, values, **limits)
    ok = (
        values["dividend_per_share"] >= thresholds.dividend_per_share_min
        and values["dividend_per_share_5y_avg"] >= thresholds.dividend_per_share_min
        and values["dividend_growth_5y"] >= thresholds.dividend_growth_5y_min
    )
    return RuleResult(rule=RuleName.DIVIDENDS, outcome=_outcome(ok), values=values, limits=limits)


def check_earnings_growth(financials: CompanyFinancials, thresholds: RuleThresholds) -> RuleResult:
    values = {
        "earnings_growth": financials.earnings_growth,
        "earnings_growth_5y": financials.earnings_growth_5y_avg,
    }
    limits = {"earnings_growth_min": 0.0, "earnings_growth_5y_min": thresholds.earnings_growth_5y_min}
    if any(v is None for v in values.values()):
        return _missing(RuleName.EARNINGS_GROWTH, values, **limits)
    ok = (
        values["earnings_growth"] >= 0.0
        and values["earnings_growth_5y"] >= thresholds.earnings_growth_5y_min
    )
    return RuleResult(
        rule=RuleName.EARNINGS_GROWTH, outcome=_outcome(ok), values=values, limits=limits
    )


def check_pb(financials: CompanyFinancials, thresholds: RuleThresholds) -> RuleResult:
    """Price/book against the industry-adjusted range.

    ``min``/``max`` are the configured limits shown to the operator;
    ``effective_max`` is what the ratio was actually compared with.
    """
    lo, hi = thresholds.pb_limits
    eff_lo, eff_hi = thresholds.pb_effective_limits
    limits = {"min": lo, "max": hi, "effective_min": eff_lo, "effective_max": eff_hi}
    pb = financials.pb_ratio
    if pb is None:
        return _missing(RuleName.PRICE_BOOK, {"pb": pb}, **limits)
    return RuleResult(
        rule=RuleName.PRICE_BOOK,
        outcome=_outcome(eff_lo <= pb <= eff_hi),
        values={"pb": pb},
        limits=limits,
    )


def check_debt_equity(financials: CompanyFinancials, thresholds: RuleThresholds) -> RuleResult:
    debt_equity = financials.total_debt_to_total_equity
    if debt_equity is None:
        return _missing(
            RuleName.DEBT_EQUITY, {"debt_equity": debt_equity}, max=thresholds.debt_equity_max
        )
    return RuleResult(
        rule=RuleName.DEBT_EQUITY,
        outcome=_outcome(debt_equity <= thresholds.debt_equity_max),
        values={"debt_equity": debt_equity},
        limits={"max": thresholds.debt_equity_max},
    )


def check_working_capital(
    financials: CompanyFinancials,
    information: CompanyInformation,
    quote: CompanyQuote,
) -> RuleResult:
    """Net current assets per share must be non-negative and at least 2/3 of the price."""
    values: dict[str, float | None] = {
        "total_current_assets": financials.total_current_assets,
        "total_current_liabilities": financials.total_current_liabilities,
        "total_current_long_term_debt": financials.total_current_long_term_debt,
    }
    price = quote.current_price
    price_floor = WORKING_CAPITAL_PRICE_FRACTION * price
    if any(v is None for v in values.values()):
        return _missing(RuleName.WORKING_CAPITAL, values, price_floor=price_floor)

    shares = information.shares_outstanding
    if shares <= 0:
        return RuleResult(
            rule=RuleName.WORKING_CAPITAL,
            outcome=RuleOutcome.INDETERMINATE,
            reason=f"shares outstanding is {shares}",
            values=values,
            limits={"price_floor": price_floor},
        )

    working_capital_per_share = (
        values["total_current_assets"] - values["total_current_liabilities"]
    ) / shares
    values["working_capital_per_share"] = working_capital_per_share
    values["long_term_debt_per_share"] = values["total_current_long_term_debt"] / shares
    values["price"] = price
    ok = working_capital_per_share >= 0.0 and working_capital_per_share >= price_floor
    return RuleResult(
        rule=RuleName.WORKING_CAPITAL,
        outcome=_outcome(ok),
        values=values,
        limits={"price_floor": price_floor},
    )


def check_current_ratio(financials: CompanyFinancials, thresholds: RuleThresholds) -> RuleResult:
    current_ratio = financials.current_ratio
    if current_ratio is None:
        return _missing(
            RuleName.CURRENT_RATIO,
            {"current_ratio": current_ratio},
            min=thresholds.current_ratio_min,
        )
    return RuleResult(
        rule=RuleName.CURRENT_RATIO,
        outcome=_outcome(current_ratio >= thresholds.current_ratio_min),
        values={"current_ratio": current_ratio},
        limits={"min": thresholds.current_ratio_min},
    )
