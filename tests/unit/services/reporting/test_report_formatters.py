"""Tests for Rich console report formatters."""

from datetime import timedelta
from decimal import Decimal
from io import StringIO

import pytest
from rich.console import Console

from tests.helpers import BASE_TIME, make_trade
from tradejournal.libraries.performance.models import MetricResult, PricePoint
from tradejournal.services.analytics import JournalAnalyticsService
from tradejournal.services.reporting import display_analysis_report, display_excursion_report
from tradejournal.services.reporting.formatters import format_metric_value
from tradejournal.system.config import SystemConfig


@pytest.fixture
def console():
    return Console(file=StringIO(), width=160, color_system=None)


@pytest.fixture
def report():
    trades = [
        make_trade("T1", entry="100", exit="110", day=0),
        make_trade("T2", entry="50", exit="40", quantity="2", day=1),
    ]
    return JournalAnalyticsService(SystemConfig()).analyze(trades)


def _output(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


class TestFormatMetricValue:
    @pytest.mark.parametrize(
        "fmt,value,expected",
        [
            ("currency", Decimal("-1234.5"), "-$1,234.50"),
            ("percentage", Decimal("45.678"), "45.68%"),
            ("decimal", Decimal("1.5"), "1.50"),
            ("count", Decimal("7"), "7"),
        ],
    )
    def test_formats(self, fmt, value, expected):
        result = MetricResult(metric_id="x", value=value, status="good", format=fmt)

        assert format_metric_value(result) == expected

    def test_missing_value(self):
        result = MetricResult(metric_id="beta", value=None, status="warning", format="decimal")

        assert format_metric_value(result) == "N/A"


class TestDisplayAnalysisReport:
    def test_summary_only(self, report, console):
        display_analysis_report(report, detail_level="summary", console=console)

        output = _output(console)
        assert "Journal Summary" in output
        assert "-$10.00" in output
        assert "Metrics vs" not in output
        assert "Probability:" not in output

    def test_standard_includes_benchmarks(self, report, console):
        display_analysis_report(report, console=console)

        output = _output(console)
        assert "Metrics vs 'default' Benchmarks" in output
        assert "Profit Factor" in output
        assert "Probability:" in output
        assert "Insights" in output

    def test_full_includes_drawdown_series(self, report, console):
        display_analysis_report(report, detail_level="full", console=console)

        assert "Drawdown Series" in _output(console)

    def test_full_includes_breakdown_and_hold_time(self, report, console):
        display_analysis_report(report, detail_level="full", console=console)

        output = _output(console)
        assert "Performance Breakdown" in output
        assert "AAPL" in output
        assert "unknown" in output
        assert "Hold Time" in output
        assert "1-4 hours: 2 trades" in output

    def test_standard_omits_breakdown(self, report, console):
        display_analysis_report(report, console=console)

        output = _output(console)
        assert "Performance Breakdown" not in output
        assert "Hold Time" not in output


class TestDisplayExcursionReport:
    def test_excursion_tables(self, console):
        trade = make_trade("X1", entry="100", exit="104", take_profit=Decimal("110"))
        prices = {"X1": [PricePoint(timestamp=BASE_TIME + timedelta(minutes=5), price=Decimal("96"))]}
        excursion = JournalAnalyticsService(SystemConfig()).excursions([trade], prices)

        display_excursion_report(excursion.results, excursion.stats, console=console)

        output = _output(console)
        assert "Trade Excursions" in output
        assert "X1" in output
        assert "-$4.00" in output
        assert "Excursion Summary" in output
        assert "2-5%" in output
