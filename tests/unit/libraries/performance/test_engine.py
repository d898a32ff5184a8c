"""Tests for the metrics engine entry point."""

from datetime import datetime, timezone
from decimal import Decimal

from tests.helpers import BASE_TIME, make_trade
from tradejournal.libraries.performance.engine import (
    build_drawdown_series,
    compute_metrics,
    order_trades,
    period_returns,
)
from tradejournal.libraries.performance.metrics import INSUFFICIENT_DATA_RECOMMENDATION, PROFIT_FACTOR_CAP
from tradejournal.libraries.performance.models import AllMetrics, MetricsConfig


class TestComputeMetricsScenarios:
    """End-to-end metric sets for small journals."""

    def test_one_winner_one_loser(self):
        """100 -> 110 x1 and 50 -> 40 x2, both long."""
        trades = [
            make_trade("T1", entry="100", exit="110", quantity="1", direction="buy", day=0),
            make_trade("T2", entry="50", exit="40", quantity="2", direction="buy", day=1),
        ]

        result = compute_metrics(trades)

        assert result.net_pnl == Decimal("-10.00")
        assert result.win_rate == Decimal("50.00")
        assert result.average_win == Decimal("10.00")
        assert result.average_loss == Decimal("-20.00")
        assert result.closed_trades == 2
        assert result.winning_trades == 1
        assert result.losing_trades == 1
        assert result.max_drawdown_amount == Decimal("20.00")
        assert result.max_drawdown_pct == Decimal("0.20")

    def test_empty_input_is_neutral(self):
        result = compute_metrics([])

        assert result == AllMetrics()
        assert result.total_trades == 0
        assert result.net_pnl == Decimal("0")
        assert result.sharpe_ratio == Decimal("0")
        assert result.risk_of_ruin.recommendation == INSUFFICIENT_DATA_RECOMMENDATION
        assert result.beta is None

    def test_all_winners_use_sentinel(self):
        trades = [make_trade(f"T{i}", entry="100", exit="105", day=i) for i in range(3)]

        result = compute_metrics(trades)

        assert result.profit_factor == PROFIT_FACTOR_CAP
        assert result.recovery_factor == PROFIT_FACTOR_CAP
        assert result.payoff_ratio == Decimal("0")
        assert result.max_drawdown_pct == Decimal("0")
        assert result.risk_of_ruin.probability_pct == Decimal("0.00")

    def test_single_break_even_trade(self):
        result = compute_metrics([make_trade("T1", entry="100", exit="100")])

        assert result.winning_trades == 0
        assert result.losing_trades == 0
        assert result.win_rate == Decimal("0")
        assert result.profit_factor == Decimal("0")

    def test_open_trades_count_toward_totals_only(self):
        trades = [
            make_trade("T1", entry="100", exit="110", day=0),
            make_trade("T2", entry="100", exit=None, day=1),
        ]

        result = compute_metrics(trades)

        assert result.total_trades == 2
        assert result.closed_trades == 1
        assert result.open_trades == 1
        assert result.net_pnl == Decimal("10.00")

    def test_short_trades_and_commission(self):
        trades = [
            make_trade("S1", entry="100", exit="90", quantity="2", direction="short", commission=Decimal("1.50")),
        ]

        result = compute_metrics(trades)

        assert result.net_pnl == Decimal("18.50")
        assert result.short_win_rate == Decimal("100.00")
        assert result.long_win_rate == Decimal("0")

    def test_sub_cent_average_win_keeps_risk_of_ruin_finite(self):
        """A 0.0001 win rounds to a 0.00 average win but is still a win."""
        trades = [
            make_trade("T1", entry="1.0000", exit="1.0001", day=0),
            make_trade("T2", entry="100", exit="90", day=1),
        ]

        result = compute_metrics(trades)

        assert result.winning_trades == 1
        assert result.average_win == Decimal("0.00")
        assert result.risk_of_ruin.probability_pct == Decimal("100.00")
        assert result.risk_of_ruin.kelly_pct == Decimal("0.00")

    def test_constant_growth_has_zero_risk_adjusted_ratios(self):
        """Equity 1000 -> 1100 -> 1210 -> 1331 returns exactly 10% every day."""
        trades = [
            make_trade("T1", entry="100", exit="200", day=0),
            make_trade("T2", entry="100", exit="210", day=1),
            make_trade("T3", entry="100", exit="221", day=2),
        ]
        config = MetricsConfig(initial_capital=Decimal("1000"), periodicity="daily")

        result = compute_metrics(trades, config)

        assert period_returns(build_drawdown_series(trades, config), config) == [Decimal("0.1")] * 3
        assert result.sharpe_ratio == Decimal("0")
        assert result.sortino_ratio == Decimal("0")

    def test_profit_factor_per_direction(self):
        trades = [
            make_trade("L1", entry="100", exit="130", day=0),
            make_trade("L2", entry="100", exit="90", day=1),
            make_trade("S1", entry="100", exit="110", direction="short", day=2),
        ]

        result = compute_metrics(trades)

        assert result.long_profit_factor == Decimal("3.00")
        assert result.short_profit_factor == Decimal("0")
        assert result.breakdown.by_direction["long"].net_pnl == Decimal("20.00")
        assert result.breakdown.by_direction["short"].trades == 1

    def test_futures_multiplier_applies(self):
        trade = make_trade("F1", entry="5000", exit="5001", symbol="ESZ4", market_type="futures")

        result = compute_metrics([trade])

        assert result.net_pnl == Decimal("50.00")

    def test_r_multiple_from_stop_loss(self):
        trades = [
            make_trade("T1", entry="100", exit="110", stop_loss=Decimal("95"), day=0),
            make_trade("T2", entry="100", exit="95", stop_loss=Decimal("95"), day=1),
            make_trade("T3", entry="100", exit="120", day=2),  # No stop, no R
        ]

        result = compute_metrics(trades)

        # (2R + -1R) / 2
        assert result.r_multiple == Decimal("0.50")

    def test_consistency_uses_calendar_months(self):
        trades = [
            make_trade("J1", entry="100", exit="110", exit_time=datetime(2024, 1, 10, tzinfo=timezone.utc), day=None),
            make_trade("J2", entry="100", exit="95", exit_time=datetime(2024, 1, 20, tzinfo=timezone.utc), day=None),
            make_trade("F1", entry="100", exit="90", exit_time=datetime(2024, 2, 5, tzinfo=timezone.utc), day=None),
        ]

        result = compute_metrics(trades)

        assert result.consistency_pct == Decimal("50.00")

    def test_streaks_follow_chronological_order(self):
        # Input order differs from time order
        trades = [
            make_trade("T3", entry="100", exit="90", day=2),
            make_trade("T1", entry="100", exit="110", day=0),
            make_trade("T2", entry="100", exit="90", day=1),
        ]

        result = compute_metrics(trades)

        assert result.max_consecutive_losses == 2
        assert result.risk_of_ruin.max_consecutive_losses == 2

    def test_config_values_are_echoed(self):
        config = MetricsConfig(risk_free_rate=Decimal("0.02"), periodicity="weekly", initial_capital=Decimal("5000"))

        result = compute_metrics([make_trade()], config)

        assert result.risk_free_rate == Decimal("0.02")
        assert result.periodicity == "weekly"
        assert result.initial_capital == Decimal("5000")


class TestBenchmarkMetrics:
    def test_benchmark_enables_beta_family(self):
        # Arrange
        trades = [
            make_trade("T1", entry="100", exit="200", quantity="10", day=0),
            make_trade("T2", entry="100", exit="50", quantity="10", day=1),
            make_trade("T3", entry="100", exit="300", quantity="10", day=2),
        ]
        config = MetricsConfig(benchmark_returns=(Decimal("0.01"), Decimal("-0.02"), Decimal("0.03")))

        # Act
        result = compute_metrics(trades, config)

        # Assert
        assert result.beta is not None
        assert result.beta > 0
        assert result.treynor_ratio is not None
        assert result.jensens_alpha is not None

    def test_no_benchmark_leaves_beta_family_empty(self):
        trades = [make_trade(f"T{i}", day=i) for i in range(3)]

        result = compute_metrics(trades)

        assert result.beta is None
        assert result.treynor_ratio is None
        assert result.jensens_alpha is None


class TestPurity:
    def test_identical_input_gives_identical_output(self):
        trades = [
            make_trade("T1", entry="100", exit="110", day=0),
            make_trade("T2", entry="100", exit="93", day=1),
            make_trade("T3", entry="100", exit="104", day=2),
        ]

        assert compute_metrics(trades) == compute_metrics(trades)

    def test_input_order_does_not_matter_for_timed_trades(self):
        trades = [
            make_trade("T1", entry="100", exit="110", day=0),
            make_trade("T2", entry="100", exit="93", day=1),
            make_trade("T3", entry="100", exit="104", day=2),
        ]

        assert compute_metrics(trades) == compute_metrics(list(reversed(trades)))

    def test_trades_are_not_mutated(self):
        trades = [make_trade("T1"), make_trade("T2", exit="90", day=1)]
        before = [t.model_dump() for t in trades]

        compute_metrics(trades)

        assert [t.model_dump() for t in trades] == before


class TestOrdering:
    def test_untimed_trade_follows_preceding_timed_trade(self):
        trades = [
            make_trade("late", day=5),
            make_trade("early", day=0),
            make_trade("untimed", day=None),
        ]

        ordered = [t.trade_id for t in order_trades(trades)]

        assert ordered == ["early", "untimed", "late"]

    def test_leading_untimed_trades_sort_first(self):
        trades = [make_trade("untimed", day=None), make_trade("timed", day=0)]

        assert [t.trade_id for t in order_trades(trades)] == ["untimed", "timed"]

    def test_equal_times_keep_input_order(self):
        trades = [make_trade("b", day=0), make_trade("a", day=0)]

        assert [t.trade_id for t in order_trades(trades)] == ["b", "a"]


class TestSeries:
    def test_drawdown_series_has_one_point_per_closed_trade(self):
        trades = [
            make_trade("T1", entry="100", exit="110", day=0),
            make_trade("T2", entry="100", exit=None, day=1),
            make_trade("T3", entry="100", exit="80", day=2),
        ]

        points = build_drawdown_series(trades, MetricsConfig(initial_capital=Decimal("100")))

        assert [p.equity for p in points] == [Decimal("110"), Decimal("90")]
        assert points[-1].peak == Decimal("110")
        assert all(Decimal("0") <= p.drawdown <= Decimal("1") for p in points)

    def test_same_day_trades_form_one_period(self):
        config = MetricsConfig(initial_capital=Decimal("100"))
        points = build_drawdown_series(
            [
                make_trade("T1", entry="100", exit="110", day=0),
                make_trade("T2", entry="100", exit="105", day=0, exit_time=BASE_TIME.replace(hour=20)),
                make_trade("T3", entry="100", exit="92", day=1),
            ],
            config,
        )

        returns = period_returns(points, config)

        # Day 1 closes at 115, day 2 at 107
        assert returns == [Decimal("0.15"), Decimal("107") / Decimal("115") - 1]

    def test_untimed_points_are_separate_periods(self):
        config = MetricsConfig(initial_capital=Decimal("100"))
        points = build_drawdown_series(
            [make_trade("A", entry="100", exit="110", day=None), make_trade("B", entry="100", exit="110", day=None)],
            config,
        )

        assert len(period_returns(points, config)) == 2
