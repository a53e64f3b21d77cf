"""Screening engine: evaluates one symbol's data and decides the aggregate verdict.

Pipeline:
  1. Market cap gate: too small → disqualified, nothing else is evaluated
  2. Every rule is evaluated independently (PASS / FAIL / INDETERMINATE)
  3. Verdict: passed only if all gating rules PASS

Dividends, earnings growth and current ratio are reported but do not gate.
"""

from __future__ import annotations

from value_screener.config import AnalysisConfig
from value_screener.models import RuleName, RuleOutcome, RuleResult, ScreeningVerdict, StockData
from value_screener.screening.rules import (
    check_current_ratio,
    check_debt_equity,
    check_dividends,
    check_earnings_growth,
    check_market_cap,
    check_pb,
    check_pe,
    check_working_capital,
)

GATING_RULES: frozenset[RuleName] = frozenset(
    {
        RuleName.PRICE_EARNINGS,
        RuleName.PRICE_BOOK,
        RuleName.DEBT_EQUITY,
        RuleName.WORKING_CAPITAL,
    }
)

TOO_SMALL_REASON = "market cap below minimum"


def aggregate(rules: list[RuleResult]) -> tuple[bool, str | None]:
    """AND of the gating rules. Returns (passed, failure_reason)."""
    outcomes = {r.rule: r for r in rules}
    missing = sorted(GATING_RULES - outcomes.keys())
    if missing:
        return False, f"gating rules not evaluated: {', '.join(missing)}"

    failing = []
    for name in sorted(GATING_RULES):
        result = outcomes[name]
        if result.outcome == RuleOutcome.FAIL:
            failing.append(f"{name} failed")
        elif result.outcome == RuleOutcome.INDETERMINATE:
            failing.append(f"{name} indeterminate ({result.reason})")
    if failing:
        return False, "; ".join(failing)
    return True, None


def screen(data: StockData, config: AnalysisConfig) -> ScreeningVerdict:
    """Evaluate ``data`` against ``config``. Pure: no I/O, no logging."""
    information = data.information
    thresholds = config.thresholds_for(information.industry)

    market_cap = check_market_cap(information, thresholds)
    if market_cap.outcome != RuleOutcome.PASS:
        return ScreeningVerdict(
            symbol=data.stock.symbol,
            industry=information.industry,
            market_cap=market_cap,
            passed=False,
            failure_reason=TOO_SMALL_REASON,
        )

    financials = data.financials
    rules = [
        check_pe(financials, thresholds),
        check_dividends(financials, thresholds),
        check_earnings_growth(financials, thresholds),
        check_pb(financials, thresholds),
        check_debt_equity(financials, thresholds),
        check_working_capital(financials, information, data.quote),
        check_current_ratio(financials, thresholds),
    ]
    passed, reason = aggregate(rules)
    return ScreeningVerdict(
        symbol=data.stock.symbol,
        industry=information.industry,
        market_cap=market_cap,
        rules=rules,
        passed=passed,
        failure_reason=reason,
    )
