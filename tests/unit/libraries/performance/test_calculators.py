"""Tests for stateful performance calculators."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tradejournal.libraries.performance.calculators import (
    DrawdownCalculator,
    PeriodAggregationCalculator,
    ReturnsCalculator,
    TradeStatisticsCalculator,
    period_key,
)


class TestPeriodKey:
    """Test period identifiers."""

    @pytest.mark.parametrize(
        "period_type,expected",
        [
            ("daily", "2024-03-15"),
            ("weekly", "2024-W11"),
            ("monthly", "2024-03"),
        ],
    )
    def test_period_keys(self, period_type, expected):
        timestamp = datetime(2024, 3, 15, 10, 0, tzinfo=timezone.utc)

        assert period_key(timestamp, period_type) == expected

    def test_week_uses_iso_year(self):
        """Dec 30 2024 belongs to ISO week 1 of 2025."""
        assert period_key(datetime(2024, 12, 30), "weekly") == "2025-W01"

    @pytest.mark.parametrize("period_type", ["hourly", "quarterly", "annual"])
    def test_invalid_period_raises(self, period_type):
        with pytest.raises(ValueError, match="Invalid period_type"):
            period_key(datetime(2024, 1, 1), period_type)


class TestDrawdownCalculator:
    """Test DrawdownCalculator."""

    def test_initial_state(self):
        calc = DrawdownCalculator(initial_equity=Decimal("10000"))

        assert calc.max_drawdown == Decimal("0")
        assert calc.max_drawdown_amount == Decimal("0")
        assert calc.points == []

    def test_new_peak_has_no_drawdown(self):
        calc = DrawdownCalculator(initial_equity=Decimal("10000"))

        point = calc.update(None, Decimal("10500"))

        assert point.drawdown == Decimal("0")
        assert point.peak == Decimal("10500")
        assert not point.in_drawdown

    def test_drawdown_from_peak(self):
        # Arrange
        calc = DrawdownCalculator(initial_equity=Decimal("10000"))
        calc.update(None, Decimal("10500"))

        # Act
        point = calc.update(None, Decimal("9450"))

        # Assert
        assert point.drawdown == Decimal("0.1")
        assert point.drawdown_pct == Decimal("10.0")
        assert calc.max_drawdown == Decimal("0.1")
        assert calc.max_drawdown_amount == Decimal("1050")
        assert point.in_drawdown

    def test_first_trade_loss_measured_from_initial_equity(self):
        calc = DrawdownCalculator(initial_equity=Decimal("1000"))

        point = calc.update(None, Decimal("900"))

        assert point.peak == Decimal("1000")
        assert point.drawdown == Decimal("0.1")

    def test_recovery_keeps_max_drawdown(self):
        calc = DrawdownCalculator(initial_equity=Decimal("100"))
        calc.update(None, Decimal("80"))
        calc.update(None, Decimal("130"))

        assert calc.max_drawdown == Decimal("0.2")
        assert not calc.points[-1].in_drawdown

    def test_drawdown_clamped_to_one(self):
        """Equity below zero cannot exceed a 100% drawdown."""
        calc = DrawdownCalculator(initial_equity=Decimal("100"))

        point = calc.update(None, Decimal("-50"))

        assert point.drawdown == Decimal("1")
        assert calc.max_drawdown_amount == Decimal("150")

    def test_invariants_hold_over_series(self):
        calc = DrawdownCalculator(initial_equity=Decimal("100"))
        for equity in ["120", "90", "140", "70", "-10", "200"]:
            calc.update(None, Decimal(equity))

        points = calc.points
        peaks = [p.peak for p in points]
        assert peaks == sorted(peaks)
        for point in points:
            assert Decimal("0") <= point.drawdown <= Decimal("1")
            assert calc.max_drawdown >= point.drawdown

    def test_points_returns_copy(self):
        calc = DrawdownCalculator(initial_equity=Decimal("100"))
        calc.update(None, Decimal("90"))

        calc.points.clear()

        assert len(calc.points) == 1


class TestReturnsCalculator:
    """Test ReturnsCalculator."""

    def test_first_return_against_initial_equity(self):
        calc = ReturnsCalculator(initial_equity=Decimal("10000"))

        result = calc.update(Decimal("10100"))

        assert result == Decimal("0.01")
        assert calc.returns == [Decimal("0.01")]

    def test_sequence_of_returns(self):
        calc = ReturnsCalculator(initial_equity=Decimal("100"))
        calc.update(Decimal("110"))
        calc.update(Decimal("99"))

        assert calc.returns == [Decimal("0.1"), Decimal("-0.1")]

    def test_zero_previous_equity_gives_zero_return(self):
        calc = ReturnsCalculator(initial_equity=Decimal("100"))
        calc.update(Decimal("0"))

        assert calc.update(Decimal("50")) == Decimal("0")

    def test_no_updates_no_returns(self):
        assert ReturnsCalculator(Decimal("100")).returns == []


class TestTradeStatisticsCalculator:
    """Test TradeStatisticsCalculator."""

    def test_counts_and_streaks(self):
        calc = TradeStatisticsCalculator()
        for pnl in ["10", "20", "-5", "-5", "-5", "30"]:
            calc.add_trade(Decimal(pnl))

        assert calc.total_trades == 6
        assert calc.winning_trades == 3
        assert calc.losing_trades == 3
        assert calc.max_consecutive_wins == 2
        assert calc.max_consecutive_losses == 3
        assert calc.gross_profit == Decimal("60")
        assert calc.gross_loss == Decimal("15")

    def test_break_even_resets_streaks(self):
        """A zero P&L trade is neither a win nor a loss and ends both streaks."""
        calc = TradeStatisticsCalculator()
        for pnl in ["-1", "-1", "0", "-1", "-1"]:
            calc.add_trade(Decimal(pnl))

        assert calc.total_trades == 5
        assert calc.winning_trades == 0
        assert calc.losing_trades == 4
        assert calc.max_consecutive_losses == 2

    def test_pnls_preserve_order(self):
        calc = TradeStatisticsCalculator()
        calc.add_trade(Decimal("3"))
        calc.add_trade(Decimal("-1"))

        assert calc.pnls == [Decimal("3"), Decimal("-1")]


class TestPeriodAggregationCalculator:
    """Test PeriodAggregationCalculator."""

    def test_monthly_totals_sorted(self):
        calc = PeriodAggregationCalculator()
        calc.add_trade(datetime(2024, 3, 5, tzinfo=timezone.utc), Decimal("10"))
        calc.add_trade(datetime(2024, 1, 9, tzinfo=timezone.utc), Decimal("-4"))
        calc.add_trade(datetime(2024, 3, 20, tzinfo=timezone.utc), Decimal("5"))

        result = calc.period_pnl("monthly")

        assert list(result) == ["2024-01", "2024-03"]
        assert result["2024-03"] == Decimal("15")

    def test_untimed_trades_skipped(self):
        calc = PeriodAggregationCalculator()
        calc.add_trade(None, Decimal("10"))

        assert calc.period_pnl("daily") == {}
