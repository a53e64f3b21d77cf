"""Tests for value_screener.cli.app (CLI commands via CliRunner)."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from factories import make_stock_data
from typer.testing import CliRunner

from value_screener.cli.app import app
from value_screener.config import AnalysisConfig
from value_screener.errors import ListingUnavailable, UpstreamStatusError
from value_screener.models import (
    ErrorKind,
    ScreeningReport,
    StockInfo,
    SymbolOutcome,
    SymbolStatus,
)
from value_screener.screening.engine import screen

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"data_fetching": {"finnhub_api_key": "cli-key"}}))
    return path


def _report() -> ScreeningReport:
    verdict = screen(make_stock_data("AAPL"), AnalysisConfig())
    return ScreeningReport(
        id="run42",
        api_calls=9,
        outcomes={
            "AAPL": SymbolOutcome(symbol="AAPL", status=SymbolStatus.QUALIFIED, verdict=verdict),
            "TINY": SymbolOutcome(
                symbol="TINY", status=SymbolStatus.DISQUALIFIED, reason="market cap below minimum"
            ),
        },
    )


class TestScreenCommand:
    @patch("value_screener.pipeline.run")
    def test_screen_symbols(self, mock_run, config_file):
        mock_run.return_value = _report()

        result = runner.invoke(
            app, ["screen", "AAPL", "TINY", "--config", str(config_file), "--no-write"]
        )

        assert result.exit_code == 0
        assert "AAPL" in result.output
        assert "1 qualified" in result.output
        kwargs = mock_run.call_args.kwargs
        assert kwargs["symbols"] == ["AAPL", "TINY"]
        assert mock_run.call_args.args[0].data_fetching.finnhub_api_key == "cli-key"

    @patch("value_screener.pipeline.run")
    def test_screen_all_shows_disqualified(self, mock_run, config_file):
        mock_run.return_value = _report()

        result = runner.invoke(
            app, ["screen", "AAPL", "TINY", "-c", str(config_file), "--no-write", "--all"]
        )

        assert result.exit_code == 0
        assert "TINY" in result.output

    @patch("value_screener.pipeline.run")
    def test_screen_exchanges(self, mock_run, config_file):
        mock_run.return_value = _report()

        result = runner.invoke(
            app, ["screen", "-e", "OL", "-e", "ST", "-c", str(config_file), "--no-write"]
        )

        assert result.exit_code == 0
        assert mock_run.call_args.kwargs["exchanges"] == ["OL", "ST"]

    @patch("value_screener.pipeline.run")
    def test_screen_writes_result_files(self, mock_run, config_file, tmp_path):
        mock_run.return_value = _report()
        out_dir = tmp_path / "results"

        result = runner.invoke(
            app, ["screen", "AAPL", "-c", str(config_file), "--out-dir", str(out_dir)]
        )

        assert result.exit_code == 0
        assert (out_dir / "run42_qualified.txt").read_text() == "AAPL\n"
        assert (out_dir / "run42_not_qualified.txt").exists()
        assert (out_dir / "run42.json").exists()

    @patch("value_screener.pipeline.run")
    def test_screen_json_output(self, mock_run, config_file):
        mock_run.return_value = _report()

        result = runner.invoke(
            app, ["screen", "AAPL", "-c", str(config_file), "--no-write", "--output", "json"]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["qualified"] == ["AAPL"]
        assert data["not_qualified"] == ["TINY"]

    @patch("value_screener.pipeline.run")
    def test_listing_failure_exits_nonzero(self, mock_run, config_file):
        mock_run.side_effect = ListingUnavailable(
            "US", UpstreamStatusError("US", "GET /stock/symbol returned HTTP 401", 401)
        )

        result = runner.invoke(app, ["screen", "-c", str(config_file), "--no-write"])

        assert result.exit_code == 1

    def test_missing_api_key(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"data_fetching": {"finnhub_api_key": ""}}))

        result = runner.invoke(app, ["screen", "AAPL", "-c", str(path)])

        assert result.exit_code == 1

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(app, ["screen", "AAPL", "-c", str(tmp_path / "nope.json")])
        assert result.exit_code == 1


class TestCheckCommand:
    @patch("value_screener.pipeline.check")
    def test_check_prints_rules(self, mock_check, config_file):
        mock_check.return_value = _report().outcomes["AAPL"]

        result = runner.invoke(app, ["check", "aapl", "-c", str(config_file)])

        assert result.exit_code == 0
        assert "price_earnings" in result.output
        assert "working_capital" in result.output
        assert mock_check.call_args.args[1] == "aapl"

    @patch("value_screener.pipeline.check")
    def test_check_error_exits_nonzero(self, mock_check, config_file):
        mock_check.return_value = SymbolOutcome(
            symbol="GONE",
            status=SymbolStatus.ERROR,
            error_kind=ErrorKind.UPSTREAM_SHAPE,
            reason="empty company profile",
        )

        result = runner.invoke(app, ["check", "GONE", "-c", str(config_file)])

        assert result.exit_code == 1
        assert "empty company profile" in result.output


class TestSymbolsCommand:
    @patch("value_screener.pipeline.list_symbols")
    def test_lists_symbols(self, mock_list, config_file):
        mock_list.return_value = [
            StockInfo(symbol="EQNR.OL", currency="NOK", description="EQUINOR"),
            StockInfo(symbol="NHY.OL", currency="NOK", description="NORSK HYDRO"),
        ]

        result = runner.invoke(app, ["symbols", "OL", "-c", str(config_file)])

        assert result.exit_code == 0
        assert "EQNR.OL" in result.output
        assert "2 common stocks" in result.output

    @patch("value_screener.pipeline.list_symbols")
    def test_symbols_json(self, mock_list, config_file):
        mock_list.return_value = [StockInfo(symbol="EQNR.OL", currency="NOK")]

        result = runner.invoke(app, ["symbols", "OL", "-c", str(config_file), "--output", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["symbol"] == "EQNR.OL"


class TestInitConfigCommand:
    def test_writes_defaults(self, tmp_path):
        path = tmp_path / "settings.json"

        result = runner.invoke(app, ["init-config", str(path)])

        assert result.exit_code == 0
        data = json.loads(path.read_text())
        assert data["analysis"]["pe_limits"] == [0.0, 15.0]
        assert data["data_fetching"]["considered_exchanges"] == ["US"]

    def test_does_not_copy_environment_into_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VALUE_SCREENER_DATA_FETCHING__FINNHUB_API_KEY", "secret-key")
        monkeypatch.setenv("VALUE_SCREENER_DATA_FETCHING__MAX_API_CALLS_PER_MINUTE", "7")
        path = tmp_path / "settings.json"

        result = runner.invoke(app, ["init-config", str(path)])

        assert result.exit_code == 0
        assert "secret-key" not in path.read_text()
        data = json.loads(path.read_text())
        assert data["data_fetching"]["finnhub_api_key"] == ""
        assert data["data_fetching"]["max_api_calls_per_minute"] == 60

    def test_refuses_to_overwrite(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{}")

        result = runner.invoke(app, ["init-config", str(path)])

        assert result.exit_code == 1
        assert path.read_text() == "{}"

    def test_force_overwrites(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{}")

        result = runner.invoke(app, ["init-config", str(path), "--force"])

        assert result.exit_code == 0
        assert "analysis" in json.loads(path.read_text())
