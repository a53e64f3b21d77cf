"""Log emission for verdicts and outcomes, kept out of the decision path."""

from __future__ import annotations

import logging

from value_screener.models import RuleOutcome, RuleResult, ScreeningVerdict, SymbolOutcome, SymbolStatus

logger = logging.getLogger(__name__)


def describe_rule(result: RuleResult) -> str:
    """One-line human summary, e.g. ``pe=12.30 | min=0.00, max=15.00``."""
    values = ", ".join(
        f"{k}={'N/A' if v is None else f'{v:.2f}'}" for k, v in result.values.items()
    )
    limits = ", ".join(f"{k}={v:.2f}" for k, v in result.limits.items())
    text = f"{values} | {limits}" if limits else values
    if result.reason:
        text += f" ({result.reason})"
    return text


def log_verdict(verdict: ScreeningVerdict) -> None:
    """Emit one DEBUG record per rule and an INFO record for the verdict."""
    extra = {"symbol": verdict.symbol}
    logger.debug(
        "%s: %s %s",
        verdict.symbol,
        verdict.market_cap.rule,
        describe_rule(verdict.market_cap),
        extra={**extra, "rule": str(verdict.market_cap.rule)},
    )
    for result in verdict.rules:
        level = logging.DEBUG if result.outcome != RuleOutcome.INDETERMINATE else logging.INFO
        logger.log(
            level,
            "%s: %s %s %s",
            verdict.symbol,
            result.rule,
            result.outcome,
            describe_rule(result),
            extra={**extra, "rule": str(result.rule), "outcome": str(result.outcome)},
        )
    if verdict.passed:
        logger.info("%s: all gating rules satisfied", verdict.symbol, extra=extra)
    else:
        logger.info("%s: not qualified: %s", verdict.symbol, verdict.failure_reason, extra=extra)


def log_outcome(outcome: SymbolOutcome) -> None:
    if outcome.verdict is not None:
        log_verdict(outcome.verdict)
    elif outcome.status == SymbolStatus.ERROR:
        logger.warning(
            "%s: %s error: %s",
            outcome.symbol,
            outcome.error_kind,
            outcome.reason,
            extra={"symbol": outcome.symbol, "error_kind": str(outcome.error_kind)},
        )
