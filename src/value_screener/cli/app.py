"""Root CLI application for the value screener."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from value_screener.cli.formatters import (
    console,
    output_error,
    output_json,
    print_outcome,
    print_report,
    print_symbols,
)
from value_screener.config import ScreenerSettings
from value_screener.errors import ScreenerError
from value_screener.models import SymbolStatus

app = typer.Typer(
    name="value-screener",
    help="Screen equities against value-investing rules using Finnhub data.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="JSON settings file (data_fetching + analysis)"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Value screener CLI."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s | %(name)s | %(message)s",
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_settings(config: Path | None) -> ScreenerSettings:
    try:
        settings = ScreenerSettings.from_file(config) if config else ScreenerSettings()
    except FileNotFoundError:
        output_error(f"Settings file not found: {config}")
    except (ValueError, ValidationError) as e:
        output_error(f"Invalid settings: {e}")
    if not settings.data_fetching.finnhub_api_key:
        output_error(
            "No Finnhub API key. Set data_fetching.finnhub_api_key in the settings file "
            "or VALUE_SCREENER_DATA_FETCHING__FINNHUB_API_KEY."
        )
    return settings


@app.command("screen")
def screen_cmd(
    symbols: Annotated[
        Optional[list[str]], typer.Argument(help="Symbols to screen (default: whole exchanges)")
    ] = None,
    exchange: Annotated[
        Optional[list[str]],
        typer.Option("--exchange", "-e", help="Exchange to scan (repeatable)"),
    ] = None,
    config: ConfigOption = None,
    out_dir: Annotated[
        Optional[Path], typer.Option("--out-dir", help="Directory for result files")
    ] = None,
    no_write: Annotated[
        bool, typer.Option("--no-write", help="Do not write result files")
    ] = False,
    output: Annotated[Optional[str], typer.Option("--output", help="Output format (json)")] = None,
    show_all: Annotated[
        bool, typer.Option("--all", "-a", help="Show every symbol, not only qualifying ones")
    ] = False,
) -> None:
    """Screen symbols (or every common stock on the exchanges) and write the result lists."""
    from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

    from value_screener.pipeline import run as run_pipeline
    from value_screener.result import write_outputs

    settings = _load_settings(config)

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        disable=output == "json",
    )
    task_ids: dict[str, int] = {}

    def on_progress(phase: str, advance: int = 1) -> None:
        if phase == "listing":
            if "listing" not in task_ids:
                task_ids["listing"] = progress.add_task(
                    "[cyan]Fetching exchange listings...", total=None
                )
        elif phase == "screen_start":
            if "listing" in task_ids:
                progress.update(task_ids["listing"], completed=1, total=1)
            task_ids["screen"] = progress.add_task("[cyan]Screening symbols...", total=advance)
        elif phase == "screen_tick":
            if "screen" in task_ids:
                progress.update(task_ids["screen"], advance=advance)

    try:
        with progress:
            report = asyncio.run(
                run_pipeline(settings, symbols=symbols, exchanges=exchange, on_progress=on_progress)
            )
    except ScreenerError as e:
        output_error(str(e))
        return

    if not no_write:
        json_path, qualified_path, not_qualified_path = write_outputs(
            report, out_dir or settings.output_dir
        )

    if output == "json":
        output_json(report)
        return

    print_report(report, verbose=show_all)
    if not no_write:
        console.print(f"[dim]Report: {json_path}[/dim]")
        console.print(f"[dim]Qualified: {qualified_path}[/dim]")
        console.print(f"[dim]Not qualified: {not_qualified_path}[/dim]")


@app.command("check")
def check_cmd(
    symbol: Annotated[str, typer.Argument(help="Symbol to screen")],
    config: ConfigOption = None,
    output: Annotated[Optional[str], typer.Option("--output", help="Output format (json)")] = None,
) -> None:
    """Screen one symbol and show every rule."""
    from value_screener.pipeline import check

    settings = _load_settings(config)
    outcome = asyncio.run(check(settings, symbol))

    if output == "json":
        output_json(outcome)
    else:
        print_outcome(outcome)

    if outcome.status == SymbolStatus.ERROR:
        raise typer.Exit(1)


@app.command("symbols")
def symbols_cmd(
    exchange: Annotated[str, typer.Argument(help="Exchange code, e.g. US or OL")],
    config: ConfigOption = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Max rows to show")] = 50,
    output: Annotated[Optional[str], typer.Option("--output", help="Output format (json)")] = None,
) -> None:
    """List common stocks on an exchange."""
    from value_screener.pipeline import list_symbols

    settings = _load_settings(config)
    try:
        stocks = asyncio.run(list_symbols(settings, exchange))
    except ScreenerError as e:
        output_error(str(e))
        return

    if output == "json":
        output_json(stocks)
        return
    print_symbols(exchange, stocks, limit=limit)


@app.command("init-config")
def init_config_cmd(
    path: Annotated[Path, typer.Argument(help="Where to write the settings file")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Overwrite an existing file")] = False,
) -> None:
    """Write a settings file with the default thresholds."""
    if path.exists() and not force:
        console.print(f"[red]{path} already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(1)
    ScreenerSettings.model_construct().to_file(path)
    console.print(f"[bold green]Wrote[/bold green] {path}")


if __name__ == "__main__":
    app()
