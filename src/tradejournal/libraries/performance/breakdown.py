"""Performance breakdowns.

Slices the closed trades of a journal by direction, symbol and market
type, and summarizes how long positions were held. Works on the
(trade, realized P&L) pairs the engine collects during its walk, so the
P&L rules live in one place.
"""

from decimal import Decimal
from statistics import median
from typing import Sequence

from tradejournal.libraries.performance.metrics import (
    CENTS,
    calculate_net_pnl,
    calculate_profit_factor,
    calculate_win_rate,
)
from tradejournal.libraries.performance.models import (
    HoldTimeBucket,
    HoldTimeStats,
    PerformanceBreakdown,
    SegmentStats,
    Trade,
)

UNKNOWN_MARKET = "unknown"

# (label, lower bound in minutes inclusive, upper bound exclusive); None = open-ended
HOLD_TIME_BUCKETS: list[tuple[str, Decimal, Decimal | None]] = [
    ("< 5 min", Decimal("0"), Decimal("5")),
    ("5-30 min", Decimal("5"), Decimal("30")),
    ("30-60 min", Decimal("30"), Decimal("60")),
    ("1-4 hours", Decimal("60"), Decimal("240")),
    ("4-24 hours", Decimal("240"), Decimal("1440")),
    ("> 1 day", Decimal("1440"), None),
]

ClosedTrade = tuple[Trade, Decimal]


def segment_stats(pnls: Sequence[Decimal]) -> SegmentStats:
    """
    Summarize the realized P&L of one slice of trades.

    Args:
        pnls: Realized P&L of the slice's closed trades

    Returns:
        SegmentStats; all zero for an empty slice
    """
    if not pnls:
        return SegmentStats()

    net_pnl = calculate_net_pnl(pnls)
    return SegmentStats(
        trades=len(pnls),
        net_pnl=net_pnl,
        win_rate=calculate_win_rate(pnls),
        profit_factor=calculate_profit_factor(pnls),
        average_pnl=(net_pnl / Decimal(len(pnls))).quantize(CENTS),
    )


def _group(closed: Sequence[ClosedTrade], key) -> dict[str, list[Decimal]]:
    groups: dict[str, list[Decimal]] = {}
    for trade, pnl in closed:
        groups.setdefault(key(trade), []).append(pnl)
    return groups


def _ranked(groups: dict[str, list[Decimal]]) -> dict[str, SegmentStats]:
    """Stats per group, best net P&L first (ties by name)."""
    stats = {name: segment_stats(pnls) for name, pnls in groups.items()}
    order = sorted(stats, key=lambda name: (-stats[name].net_pnl, name))
    return {name: stats[name] for name in order}


def _market_type(trade: Trade) -> str:
    return trade.market_type.value if trade.market_type is not None else UNKNOWN_MARKET


def hold_minutes(trade: Trade) -> Decimal | None:
    """Minutes between entry and exit, None unless both are known."""
    if trade.entry_time is None or trade.exit_time is None:
        return None
    return Decimal(str((trade.exit_time - trade.entry_time).total_seconds())) / Decimal("60")


def _bucket_label(minutes: Decimal) -> str:
    for label, low, high in HOLD_TIME_BUCKETS:
        if minutes >= low and (high is None or minutes < high):
            return label
    return HOLD_TIME_BUCKETS[0][0]


def _average_minutes(values: Sequence[Decimal]) -> Decimal:
    if not values:
        return Decimal("0")
    return (sum(values, Decimal("0")) / Decimal(len(values))).quantize(CENTS)


def compute_hold_time_stats(closed: Sequence[ClosedTrade]) -> HoldTimeStats:
    """
    Holding period statistics.

    Args:
        closed: (trade, realized P&L) pairs; trades missing either timestamp are skipped

    Returns:
        HoldTimeStats with averages, median and the non-empty distribution buckets
    """
    held = [(minutes, pnl) for trade, pnl in closed if (minutes := hold_minutes(trade)) is not None]
    if not held:
        return HoldTimeStats()

    buckets: dict[str, list[Decimal]] = {label: [] for label, _, _ in HOLD_TIME_BUCKETS}
    for minutes, pnl in held:
        buckets[_bucket_label(minutes)].append(pnl)

    distribution = [
        HoldTimeBucket(
            range=label,
            count=len(pnls),
            win_rate=calculate_win_rate(pnls),
            total_pnl=calculate_net_pnl(pnls),
        )
        for label, pnls in buckets.items()
        if pnls
    ]

    minutes = [m for m, _ in held]
    return HoldTimeStats(
        trades=len(held),
        avg_minutes=_average_minutes(minutes),
        median_minutes=Decimal(median(minutes)).quantize(CENTS),
        avg_winning_minutes=_average_minutes([m for m, pnl in held if pnl > 0]),
        avg_losing_minutes=_average_minutes([m for m, pnl in held if pnl < 0]),
        distribution=distribution,
    )


def compute_breakdown(closed: Sequence[ClosedTrade]) -> PerformanceBreakdown:
    """
    Slice closed trades by direction, symbol and market type.

    Args:
        closed: (trade, realized P&L) pairs in chronological order

    Returns:
        PerformanceBreakdown. Both directions are always present (zeros
        when a side has no trades); symbols and markets appear only when
        traded.
    """
    directions: dict[str, list[Decimal]] = {"long": [], "short": []}
    directions.update(_group(closed, lambda trade: trade.direction))

    return PerformanceBreakdown(
        by_direction={name: segment_stats(pnls) for name, pnls in directions.items()},
        by_symbol=_ranked(_group(closed, lambda trade: trade.symbol)),
        by_market_type=_ranked(_group(closed, _market_type)),
        hold_time=compute_hold_time_stats(closed),
    )
