"""Tests for metric insights."""

from decimal import Decimal

from tradejournal.libraries.performance.insights import generate_insights
from tradejournal.libraries.performance.models import AllMetrics, MetricsConfig
from tradejournal.libraries.performance.thresholds import load_benchmark_table, metric_results


def _insights(config: MetricsConfig | None = None, **fields):
    metrics = AllMetrics(**fields)
    return generate_insights(metrics, metric_results(metrics, load_benchmark_table()), config)


def _titles(insights) -> list[str]:
    return [i.title for i in insights]


class TestGenerateInsights:
    def test_no_trades_only_sample_size_notice(self):
        insights = _insights()

        assert _titles(insights)[-1] == "Limited Trade Sample"
        assert "Low Win Rate" not in _titles(insights)
        assert "Negative Profit Factor" not in _titles(insights)

    def test_low_win_rate_and_negative_profit_factor(self):
        insights = _insights(closed_trades=50, win_rate=Decimal("30"), profit_factor=Decimal("0.8"))

        titles = _titles(insights)
        assert "Low Win Rate" in titles
        assert "Negative Profit Factor" in titles
        low = next(i for i in insights if i.title == "Low Win Rate")
        assert low.type == "warning"
        assert low.actionable
        assert "30.0%" in low.description

    def test_strong_results(self):
        insights = _insights(
            closed_trades=50,
            win_rate=Decimal("75"),
            profit_factor=Decimal("2.5"),
            sharpe_ratio=Decimal("2"),
        )

        titles = _titles(insights)
        assert "Excellent Win Rate" in titles
        assert "Strong Profit Factor" in titles
        assert "Excellent Risk-Adjusted Returns" in titles
        assert "Limited Trade Sample" not in titles

    def test_poor_risk_reward(self):
        insights = _insights(
            closed_trades=50,
            average_win=Decimal("50"),
            average_loss=Decimal("-100"),
            payoff_ratio=Decimal("0.5"),
        )

        poor = next(i for i in insights if i.title == "Poor Risk/Reward Ratio")
        assert "$100.00 to make $50.00" in poor.description

    def test_drawdown_danger_from_benchmark(self):
        insights = _insights(closed_trades=50, max_drawdown_pct=Decimal("35"))

        drawdown = next(i for i in insights if i.metric == "max_drawdown_pct")
        assert drawdown.title == "High Maximum Drawdown"
        assert drawdown.type == "danger"

    def test_negative_sharpe(self):
        insights = _insights(closed_trades=50, sharpe_ratio=Decimal("-0.4"))

        assert "Negative Sharpe Ratio" in _titles(insights)

    def test_other_danger_metrics_flagged(self):
        insights = _insights(closed_trades=50, ulcer_index=Decimal("12"))

        flagged = next(i for i in insights if i.metric == "ulcer_index")
        assert flagged.title == "Ulcer Index Exceeds Benchmark"

    def test_min_trades_from_config(self):
        insights = _insights(MetricsConfig(min_trades=5), closed_trades=10)

        assert "Limited Trade Sample" not in _titles(insights)
