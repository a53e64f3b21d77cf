"""Output writer: JSON report and plain-text symbol lists."""

from __future__ import annotations

from pathlib import Path

from value_screener.models import ScreeningReport


def write_outputs(report: ScreeningReport, output_dir: Path) -> tuple[Path, Path, Path]:
    """Write the report and the qualified / not-qualified lists.

    Non-qualifying symbols are followed by a tab and the reason; errored
    symbols carry their error kind.

    Returns (json_path, qualified_path, not_qualified_path).
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    json_path = output_dir / f"{report.id}.json"
    qualified_path = output_dir / f"{report.id}_qualified.txt"
    not_qualified_path = output_dir / f"{report.id}_not_qualified.txt"

    json_path.write_text(report.model_dump_json(indent=2))

    qualified = sorted(report.qualified)
    qualified_path.write_text("".join(f"{s}\n" for s in qualified))

    lines = []
    for symbol in sorted(report.not_qualified):
        outcome = report.outcomes[symbol]
        reason = outcome.reason or ""
        if outcome.error_kind is not None:
            reason = f"error ({outcome.error_kind}): {reason}"
        lines.append(f"{symbol}\t{reason}\n")
    not_qualified_path.write_text("".join(lines))

    return json_path, qualified_path, not_qualified_path
