"""Tests for MAE/MFE excursion analysis."""

from datetime import timedelta
from decimal import Decimal

from tests.helpers import BASE_TIME, make_trade
from tradejournal.libraries.performance.excursion import compute_excursion_metrics, compute_excursion_stats
from tradejournal.libraries.performance.models import PricePoint


def _samples(*prices: str, start_minutes: int = 10, step_minutes: int = 10) -> list[PricePoint]:
    return [
        PricePoint(timestamp=BASE_TIME + timedelta(minutes=start_minutes + i * step_minutes), price=Decimal(price))
        for i, price in enumerate(prices)
    ]


class TestComputeExcursionMetrics:
    """Test per-trade excursion metrics."""

    def test_single_sample_at_entry(self):
        trade = make_trade(entry="100", exit="105")

        data = compute_excursion_metrics(trade, _samples("100"))

        assert data.mae == Decimal("0")
        assert data.mfe == Decimal("0")
        assert data.edge_ratio == Decimal("0")
        assert len(data.running_pnl) == 1

    def test_long_trade_excursions(self):
        # Arrange
        trade = make_trade(entry="100", exit="104", quantity="2", take_profit=Decimal("110"))

        # Act
        data = compute_excursion_metrics(trade, _samples("95", "108", "103"))

        # Assert
        assert data.mae == Decimal("-10.00")
        assert data.mfe == Decimal("16.00")
        assert data.mae_pct == Decimal("-5.00")
        assert data.mfe_pct == Decimal("8.00")
        assert data.edge_ratio == Decimal("1.60")
        assert data.exit_efficiency_pct == Decimal("50.00")
        assert data.updraw_pct == Decimal("80.00")

    def test_short_trade_excursions(self):
        trade = make_trade(entry="100", exit="98", direction="short")

        data = compute_excursion_metrics(trade, _samples("102", "97"))

        assert data.mae == Decimal("-2.00")
        assert data.mfe == Decimal("3.00")
        assert data.mfe_pct == Decimal("3.00")

    def test_running_pnl_tracks_extremes(self):
        trade = make_trade(entry="100", exit="101")

        data = compute_excursion_metrics(trade, _samples("99", "103", "98"))

        assert [p.pnl for p in data.running_pnl] == [Decimal("-1.00"), Decimal("3.00"), Decimal("-2.00")]
        assert [p.mae_at_time for p in data.running_pnl] == [Decimal("-1.00"), Decimal("-1.00"), Decimal("-2.00")]
        assert [p.mfe_at_time for p in data.running_pnl] == [Decimal("0.00"), Decimal("3.00"), Decimal("3.00")]

    def test_samples_outside_window_are_ignored(self):
        trade = make_trade(entry="100", exit="101")  # Open from BASE_TIME for two hours
        before = PricePoint(timestamp=BASE_TIME - timedelta(minutes=5), price=Decimal("50"))
        after = PricePoint(timestamp=BASE_TIME + timedelta(hours=3), price=Decimal("200"))

        data = compute_excursion_metrics(trade, [after, *_samples("101"), before])

        assert data.mae == Decimal("0")
        assert data.mfe == Decimal("1.00")
        assert len(data.running_pnl) == 1

    def test_unsorted_samples_are_processed_in_time_order(self):
        trade = make_trade(entry="100", exit="101")
        samples = _samples("99", "103")

        data = compute_excursion_metrics(trade, list(reversed(samples)))

        assert [p.price for p in data.running_pnl] == [Decimal("99"), Decimal("103")]

    def test_open_trade_has_no_exit_efficiency(self):
        trade = make_trade(entry="100", exit=None)

        data = compute_excursion_metrics(trade, _samples("104"))

        assert data.exit_efficiency_pct is None
        assert data.updraw_pct is None

    def test_losing_exit_has_zero_efficiency(self):
        trade = make_trade(entry="100", exit="97")

        data = compute_excursion_metrics(trade, _samples("102", "96"))

        assert data.exit_efficiency_pct == Decimal("0")

    def test_no_samples(self):
        data = compute_excursion_metrics(make_trade(), [])

        assert data.mae == Decimal("0")
        assert data.running_pnl == []


class TestComputeExcursionStats:
    """Test aggregate excursion statistics."""

    def test_stats_and_distributions(self):
        # Arrange
        first = make_trade("A", entry="100", exit="104")
        second = make_trade("B", entry="100", exit="90")
        results = [
            (first, compute_excursion_metrics(first, _samples("99.5", "106"))),
            (second, compute_excursion_metrics(second, _samples("97", "88"))),
        ]

        # Act
        stats = compute_excursion_stats(results)

        # Assert
        assert stats.total_trades == 2
        assert stats.avg_mae == Decimal("-6.25")  # (-0.5 + -12) / 2
        assert stats.avg_mfe == Decimal("3.00")  # (6 + 0) / 2
        mae_counts = {b.range: b.count for b in stats.mae_distribution}
        assert mae_counts == {"0-1%": 1, "1-2%": 0, "2-5%": 0, "5-10%": 0, "10%+": 1}
        mfe_counts = {b.range: b.count for b in stats.mfe_distribution}
        assert mfe_counts["5-10%"] == 1
        assert mfe_counts["0-1%"] == 1
        assert [row.pnl for row in stats.trades] == [Decimal("4"), Decimal("-10")]

    def test_empty_stats(self):
        stats = compute_excursion_stats([])

        assert stats.total_trades == 0
        assert stats.avg_mae == Decimal("0")
        assert sum(b.count for b in stats.mae_distribution) == 0
