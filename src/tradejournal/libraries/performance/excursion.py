"""Maximum adverse / favorable excursion analysis.

Walks the price samples recorded while a trade was open and tracks how
far it went against (MAE) and in favor of (MFE) the position.
"""

from decimal import Decimal
from typing import Sequence

from tradejournal.libraries.performance.market import pnl_at_price, return_pct_at_price, trade_pnl
from tradejournal.libraries.performance.metrics import CENTS
from tradejournal.libraries.performance.models import (
    DistributionBucket,
    ExcursionData,
    ExcursionMetrics,
    ExcursionStats,
    ExcursionTradeRow,
    PricePoint,
    RunningPnLPoint,
    Trade,
)

# (label, lower bound inclusive, upper bound exclusive); None = open-ended
EXCURSION_BUCKETS: list[tuple[str, Decimal, Decimal | None]] = [
    ("0-1%", Decimal("0"), Decimal("1")),
    ("1-2%", Decimal("1"), Decimal("2")),
    ("2-5%", Decimal("2"), Decimal("5")),
    ("5-10%", Decimal("5"), Decimal("10")),
    ("10%+", Decimal("10"), None),
]

_HUNDRED = Decimal("100")


def _in_trade_window(trade: Trade, point: PricePoint) -> bool:
    if trade.entry_time is not None and point.timestamp < trade.entry_time:
        return False
    if trade.exit_time is not None and point.timestamp > trade.exit_time:
        return False
    return True


def _updraw_pct(trade: Trade, mfe_pct: Decimal) -> Decimal | None:
    """Share of the distance to take-profit the trade covered, capped at 100."""
    if trade.take_profit is None:
        return None
    target_pct = return_pct_at_price(trade, trade.take_profit)
    if target_pct <= 0:
        return None
    return min(mfe_pct / target_pct * _HUNDRED, _HUNDRED).quantize(CENTS)


def _exit_efficiency_pct(trade: Trade, mfe_pct: Decimal) -> Decimal | None:
    """Share of the best unrealized move captured at exit, capped at 100."""
    if trade.exit_price is None or mfe_pct <= 0:
        return None
    realized_pct = return_pct_at_price(trade, trade.exit_price)
    if realized_pct <= 0:
        return Decimal("0")
    return min(realized_pct / mfe_pct * _HUNDRED, _HUNDRED).quantize(CENTS)


def compute_excursion_metrics(trade: Trade, prices: Sequence[PricePoint]) -> ExcursionData:
    """
    Compute MAE/MFE and the running P&L path for one trade.

    Samples outside [entry_time, exit_time] are dropped when those times
    are known; the rest are processed in timestamp order.

    Args:
        trade: Trade to analyze (open or closed)
        prices: Price samples, any order

    Returns:
        ExcursionData. An empty sample set yields zero excursions.

    Example:
        >>> data = compute_excursion_metrics(trade, [PricePoint(timestamp=t, price=trade.entry_price)])
        >>> data.mae, data.mfe, data.edge_ratio
        (Decimal('0.00'), Decimal('0.00'), Decimal('0'))
    """
    samples = sorted((p for p in prices if _in_trade_window(trade, p)), key=lambda p: p.timestamp)

    mae = Decimal("0")
    mfe = Decimal("0")
    mae_pct = Decimal("0")
    mfe_pct = Decimal("0")
    running: list[RunningPnLPoint] = []

    for point in samples:
        pnl = pnl_at_price(trade, point.price)
        pnl_pct = return_pct_at_price(trade, point.price)

        mae = min(mae, pnl)
        mfe = max(mfe, pnl)
        mae_pct = min(mae_pct, pnl_pct)
        mfe_pct = max(mfe_pct, pnl_pct)

        running.append(
            RunningPnLPoint(
                timestamp=point.timestamp,
                price=point.price,
                pnl=pnl.quantize(CENTS),
                pnl_pct=pnl_pct.quantize(CENTS),
                mae_at_time=mae.quantize(CENTS),
                mfe_at_time=mfe.quantize(CENTS),
            )
        )

    edge_ratio = (mfe / abs(mae)).quantize(CENTS) if mae != 0 else Decimal("0")

    return ExcursionData(
        trade_id=trade.trade_id,
        mae=mae.quantize(CENTS),
        mfe=mfe.quantize(CENTS),
        mae_pct=mae_pct.quantize(CENTS),
        mfe_pct=mfe_pct.quantize(CENTS),
        edge_ratio=edge_ratio,
        updraw_pct=_updraw_pct(trade, mfe_pct),
        exit_efficiency_pct=_exit_efficiency_pct(trade, mfe_pct),
        running_pnl=running,
    )


def _bucket_label(value: Decimal) -> str:
    for label, low, high in EXCURSION_BUCKETS:
        if value >= low and (high is None or value < high):
            return label
    return EXCURSION_BUCKETS[0][0]


def _distribution(values: Sequence[Decimal]) -> list[DistributionBucket]:
    counts = {label: 0 for label, _, _ in EXCURSION_BUCKETS}
    for value in values:
        counts[_bucket_label(abs(value))] += 1
    return [DistributionBucket(range=label, count=count) for label, count in counts.items()]


def _average(values: Sequence[Decimal]) -> Decimal:
    if not values:
        return Decimal("0")
    return (sum(values, Decimal("0")) / Decimal(len(values))).quantize(CENTS)


def compute_excursion_stats(results: Sequence[tuple[Trade, ExcursionMetrics]]) -> ExcursionStats:
    """
    Aggregate excursion statistics across trades.

    Args:
        results: (trade, excursion metrics) pairs

    Returns:
        ExcursionStats with averages, MAE%/MFE% distributions and one row per trade
    """
    excursions = [metrics for _, metrics in results]
    efficiencies = [m.exit_efficiency_pct for m in excursions if m.exit_efficiency_pct is not None]

    rows = [
        ExcursionTradeRow(
            trade_id=trade.trade_id,
            symbol=trade.symbol,
            mae=metrics.mae,
            mfe=metrics.mfe,
            edge_ratio=metrics.edge_ratio,
            pnl=trade_pnl(trade),
        )
        for trade, metrics in results
    ]

    return ExcursionStats(
        total_trades=len(excursions),
        avg_mae=_average([m.mae for m in excursions]),
        avg_mfe=_average([m.mfe for m in excursions]),
        avg_edge_ratio=_average([m.edge_ratio for m in excursions]),
        avg_exit_efficiency_pct=_average(efficiencies),
        mae_distribution=_distribution([m.mae_pct for m in excursions]),
        mfe_distribution=_distribution([m.mfe_pct for m in excursions]),
        trades=rows,
    )
