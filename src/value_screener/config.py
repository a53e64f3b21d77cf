"""Configuration via a JSON settings file and environment variables using pydantic-settings."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DataFetchConfig(BaseModel):
    """Finnhub access and call budget."""

    # --- Finnhub ---
    finnhub_api_key: str = ""
    base_url: str = "https://finnhub.io/api/v1"
    considered_exchanges: list[str] = Field(default_factory=lambda: ["US"])

    # --- Budgets ---
    max_api_calls_per_minute: int = Field(default=60, gt=0)
    max_concurrency: int = Field(default=16, gt=0)
    rate_window_seconds: float = Field(default=60.0, gt=0)
    rate_reset_offset_seconds: float = Field(default=1.0, ge=0)

    # --- HTTP ---
    http_timeout_seconds: float = 10.0


class IndustryOverride(BaseModel):
    """Threshold adjustments applied to companies of one industry."""

    model_config = ConfigDict(frozen=True)

    pb_upper_multiplier: float = Field(default=1.0, gt=0)


class RuleThresholds(BaseModel):
    """Thresholds after industry overrides have been applied."""

    model_config = ConfigDict(frozen=True)

    pe_limits: tuple[float, float]
    pb_limits: tuple[float, float]
    pb_effective_limits: tuple[float, float]
    earnings_growth_5y_min: float
    dividend_per_share_min: float
    dividend_growth_5y_min: float
    current_ratio_min: float
    debt_equity_max: float
    market_cap_min: float


class AnalysisConfig(BaseModel):
    """Screening thresholds.

    Growth rates are in percent as Finnhub reports them, market cap in
    millions, dividends in the listing currency.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    pe_limits: tuple[float, float] = (0.0, 15.0)
    pb_limits: tuple[float, float] = (0.0, 1.5)
    earnings_growth_5y_min: float = 3.0
    dividend_per_share_min: float = 0.0
    dividend_growth_5y_min: float = 0.0
    current_ratio_min: float = 2.0
    debt_equity_max: float = 1.0
    market_cap_min: float = 2000.0
    industry_overrides: dict[str, IndustryOverride] = Field(
        default_factory=lambda: {"Technology": IndustryOverride(pb_upper_multiplier=5.0)}
    )

    @field_validator("pe_limits", "pb_limits")
    @classmethod
    def _ordered(cls, v: tuple[float, float]) -> tuple[float, float]:
        if v[0] > v[1]:
            raise ValueError(f"lower limit {v[0]} is above upper limit {v[1]}")
        return v

    def thresholds_for(self, industry: str) -> RuleThresholds:
        """Resolve the thresholds that apply to a company in ``industry``."""
        override = self.industry_overrides.get(industry, IndustryOverride())
        lo, hi = self.pb_limits
        return RuleThresholds(
            pe_limits=self.pe_limits,
            pb_limits=self.pb_limits,
            pb_effective_limits=(lo, hi * override.pb_upper_multiplier),
            earnings_growth_5y_min=self.earnings_growth_5y_min,
            dividend_per_share_min=self.dividend_per_share_min,
            dividend_growth_5y_min=self.dividend_growth_5y_min,
            current_ratio_min=self.current_ratio_min,
            debt_equity_max=self.debt_equity_max,
            market_cap_min=self.market_cap_min,
        )


class ScreenerSettings(BaseSettings):
    """All screener settings, loaded from env vars with VALUE_SCREENER_ prefix.

    Nested fields use a double underscore, e.g.
    ``VALUE_SCREENER_DATA_FETCHING__FINNHUB_API_KEY``.
    """

    model_config = SettingsConfigDict(
        env_prefix="VALUE_SCREENER_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    data_fetching: DataFetchConfig = Field(default_factory=DataFetchConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    # --- Paths ---
    output_dir: Path = Field(default=Path("out"))

    @model_validator(mode="after")
    def _has_exchanges(self) -> ScreenerSettings:
        if not self.data_fetching.considered_exchanges:
            raise ValueError("data_fetching.considered_exchanges must not be empty")
        return self

    @classmethod
    def from_file(cls, path: Path | str) -> ScreenerSettings:
        """Load a JSON settings file with ``data_fetching`` and ``analysis`` sections.

        Values from the file take precedence over environment variables.
        """
        data = json.loads(Path(path).read_text())
        return cls(**data)

    def to_file(self, path: Path | str) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))
        return path
