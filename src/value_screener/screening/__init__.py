"""Rule evaluation and batch orchestration."""

from value_screener.screening.engine import GATING_RULES, screen
from value_screener.screening.orchestrator import ScreeningOrchestrator

__all__ = ["GATING_RULES", "ScreeningOrchestrator", "screen"]
