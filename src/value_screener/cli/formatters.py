"""Output formatters for the CLI - JSON and rich table output."""

from __future__ import annotations

import json
import sys
from typing import Any

from rich.console import Console
from rich.table import Table

from value_screener.models import (
    RuleOutcome,
    ScreeningReport,
    StockInfo,
    SymbolOutcome,
    SymbolStatus,
)
from value_screener.screening.diagnostics import describe_rule
from value_screener.screening.engine import GATING_RULES

console = Console()

_STATUS_STYLE = {
    SymbolStatus.QUALIFIED: "[green]QUALIFIED[/green]",
    SymbolStatus.DISQUALIFIED: "[red]DISQUALIFIED[/red]",
    SymbolStatus.ERROR: "[yellow]ERROR[/yellow]",
}

_OUTCOME_STYLE = {
    RuleOutcome.PASS: "[green]PASS[/green]",
    RuleOutcome.FAIL: "[red]FAIL[/red]",
    RuleOutcome.INDETERMINATE: "[dim]N/A[/dim]",
}

_STATUS_ORDER = {SymbolStatus.QUALIFIED: 0, SymbolStatus.DISQUALIFIED: 1, SymbolStatus.ERROR: 2}


def output_json(data: Any, file=None) -> None:
    """Write JSON output to stdout."""
    if isinstance(data, ScreeningReport):
        dumped = data.model_dump(mode="json")
        dumped["qualified"] = sorted(data.qualified)
        dumped["not_qualified"] = sorted(data.not_qualified)
        data = dumped
    elif hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    elif isinstance(data, list) and data and hasattr(data[0], "model_dump"):
        data = [item.model_dump(mode="json") for item in data]
    print(json.dumps(data, indent=2, default=str), file=file or sys.stdout)


def output_error(message: str, code: int = 1) -> None:
    """Write JSON error to stderr and exit."""
    output_json({"error": message, "code": code}, file=sys.stderr)
    raise SystemExit(code)


def _reason(outcome: SymbolOutcome) -> str:
    if outcome.status == SymbolStatus.ERROR:
        return f"{outcome.error_kind}: {outcome.reason}"
    return outcome.reason or ""


def print_report(report: ScreeningReport, verbose: bool = False) -> None:
    """Print the qualifying symbols, and every outcome when verbose."""
    rows = sorted(
        report.outcomes.values(), key=lambda o: (_STATUS_ORDER[o.status], o.symbol)
    )
    if not verbose:
        rows = [o for o in rows if o.status == SymbolStatus.QUALIFIED]

    table = Table(title=f"Screening Run {report.id}")
    table.add_column("Symbol", style="cyan")
    table.add_column("Status")
    table.add_column("Industry")
    table.add_column("Reason")
    for outcome in rows:
        industry = outcome.verdict.industry if outcome.verdict else ""
        table.add_row(outcome.symbol, _STATUS_STYLE[outcome.status], industry, _reason(outcome))

    if rows:
        console.print(table)
    else:
        console.print("[dim]No qualifying symbols.[/dim]")

    console.print(
        f"[bold]{len(report.qualified)}[/bold] qualified, "
        f"{len(report.not_qualified)} not qualified "
        f"({len(report.errors)} errors) | "
        f"{report.api_calls} API calls in {report.elapsed_seconds:.1f}s"
    )


def print_outcome(outcome: SymbolOutcome) -> None:
    """Print the per-rule table for one symbol."""
    console.print(f"{outcome.symbol}: {_STATUS_STYLE[outcome.status]} {_reason(outcome)}")
    verdict = outcome.verdict
    if verdict is None:
        return

    table = Table(title=f"{verdict.symbol} ({verdict.industry or 'unknown industry'})")
    table.add_column("Rule", style="cyan")
    table.add_column("Outcome")
    table.add_column("Detail")
    table.add_column("Gating", justify="center")

    table.add_row(
        str(verdict.market_cap.rule),
        _OUTCOME_STYLE[verdict.market_cap.outcome],
        describe_rule(verdict.market_cap),
        "gate",
    )
    for result in verdict.rules:
        table.add_row(
            str(result.rule),
            _OUTCOME_STYLE[result.outcome],
            describe_rule(result),
            "yes" if result.rule in GATING_RULES else "",
        )
    console.print(table)


def print_symbols(exchange: str, stocks: list[StockInfo], limit: int | None = None) -> None:
    shown = stocks[:limit] if limit else stocks
    table = Table(title=f"{exchange}: {len(stocks)} common stocks")
    table.add_column("Symbol", style="cyan")
    table.add_column("Currency")
    table.add_column("Description")
    for stock in shown:
        table.add_row(stock.symbol, stock.currency, stock.description)
    console.print(table)
