"""Metrics engine.

Single entry point that turns a list of trades into the complete metric
set. Pure and stateless: every call builds fresh calculators, never
mutates the trades and reads no global configuration.

Usage:
    >>> from tradejournal.libraries.performance.engine import compute_metrics
    >>> metrics = compute_metrics(trades, MetricsConfig(periodicity="monthly"))
    >>> metrics.win_rate
    Decimal('50.00')
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from tradejournal.libraries.performance import metrics as m
from tradejournal.libraries.performance.breakdown import compute_breakdown
from tradejournal.libraries.performance.calculators import (
    DrawdownCalculator,
    PeriodAggregationCalculator,
    ReturnsCalculator,
    TradeStatisticsCalculator,
    period_key,
)
from tradejournal.libraries.performance.market import contract_multiplier, trade_pnl
from tradejournal.libraries.performance.models import AllMetrics, DrawdownPoint, MetricsConfig, Trade
from tradejournal.libraries.performance.thresholds import metric_results

__all__ = ["build_drawdown_series", "compute_metrics", "metric_results", "order_trades", "period_returns"]

# Sort key for untimed trades with no timed trade before them
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def order_trades(trades: Sequence[Trade]) -> list[Trade]:
    """
    Order trades chronologically by sort_time (exit, else entry).

    A trade without timestamps takes the sort time of the nearest timed
    trade before it in the input, so it stays next to its neighbour. The
    sort is stable: equal times keep input order.
    """
    keys: list[datetime] = []
    last_seen = _EARLIEST
    for trade in trades:
        if trade.sort_time is not None:
            last_seen = trade.sort_time
        keys.append(last_seen)

    order = sorted(range(len(trades)), key=lambda i: keys[i])
    return [trades[i] for i in order]


@dataclass
class _EquityWalk:
    """State collected by one chronological pass over the closed trades."""

    closed: list[tuple[Trade, Decimal]]
    stats: TradeStatisticsCalculator
    drawdown: DrawdownCalculator
    periods: PeriodAggregationCalculator


def _walk(trades: Sequence[Trade], config: MetricsConfig) -> _EquityWalk:
    stats = TradeStatisticsCalculator()
    drawdown = DrawdownCalculator(config.initial_capital)
    periods = PeriodAggregationCalculator()
    closed: list[tuple[Trade, Decimal]] = []

    equity = config.initial_capital
    for trade in order_trades(trades):
        pnl = trade_pnl(trade)
        if pnl is None:
            continue

        equity += pnl
        closed.append((trade, pnl))
        stats.add_trade(pnl)
        drawdown.update(trade.sort_time, equity)
        periods.add_trade(trade.sort_time, pnl)

    return _EquityWalk(closed=closed, stats=stats, drawdown=drawdown, periods=periods)


def period_returns(points: Sequence[DrawdownPoint], config: MetricsConfig) -> list[Decimal]:
    """
    Per-period returns from the equity series.

    Consecutive points in the same periodicity bucket form one period whose
    closing equity is the last point's. Each untimed point is its own
    period. The first period is measured against initial capital.
    """
    closing_equity: list[Decimal] = []
    previous_key: str | None = None

    for index, point in enumerate(points):
        if point.timestamp is not None:
            key = period_key(point.timestamp, config.periodicity)
        else:
            key = f"untimed-{index}"

        if key == previous_key:
            closing_equity[-1] = point.equity
        else:
            closing_equity.append(point.equity)
        previous_key = key

    calculator = ReturnsCalculator(config.initial_capital)
    for equity in closing_equity:
        calculator.update(equity)
    return calculator.returns


def build_drawdown_series(trades: Sequence[Trade], config: MetricsConfig | None = None) -> list[DrawdownPoint]:
    """
    Drawdown series, one point per closed trade in chronological order.

    Args:
        trades: Trades in any order; open trades are skipped
        config: Supplies initial capital (default 10000)

    Returns:
        DrawdownPoints with drawdown fraction in [0, 1]
    """
    return _walk(trades, config or MetricsConfig()).drawdown.points


def _initial_risk(trade: Trade) -> Decimal | None:
    if trade.stop_loss is None:
        return None
    return abs(trade.entry_price - trade.stop_loss) * trade.quantity * contract_multiplier(trade)


def _raw_averages(stats: TradeStatisticsCalculator) -> tuple[Decimal, Decimal]:
    """Unrounded mean win and mean loss (negative), 0 when there are none."""
    average_win = stats.gross_profit / Decimal(stats.winning_trades) if stats.winning_trades else Decimal("0")
    average_loss = -stats.gross_loss / Decimal(stats.losing_trades) if stats.losing_trades else Decimal("0")
    return average_win, average_loss


def compute_metrics(trades: Sequence[Trade], config: MetricsConfig | None = None) -> AllMetrics:
    """
    Compute the complete metric set.

    Args:
        trades: Journal trades in any order (open trades count toward totals only)
        config: Explicit engine parameters; defaults to MetricsConfig()

    Returns:
        AllMetrics. Empty input yields all-zero metrics; no value is NaN
        or infinite.
    """
    config = config or MetricsConfig()
    walk = _walk(trades, config)
    stats = walk.stats
    pnls = stats.pnls
    points = walk.drawdown.points

    average_win = m.calculate_average_win(pnls)
    average_loss = m.calculate_average_loss(pnls)
    net_pnl = m.calculate_net_pnl(pnls)
    max_drawdown = walk.drawdown.max_drawdown

    returns = period_returns(points, config)
    factor = config.annualization_factor
    rf = config.risk_free_rate
    benchmark = list(config.benchmark_returns) if config.benchmark_returns is not None else None
    beta = m.calculate_beta(returns, benchmark)

    long_pnls = [pnl for trade, pnl in walk.closed if trade.direction == "long"]
    short_pnls = [pnl for trade, pnl in walk.closed if trade.direction == "short"]
    raw_win, raw_loss = _raw_averages(stats)
    breakdown = compute_breakdown(walk.closed)
    risks = [(pnl, risk) for trade, pnl in walk.closed if (risk := _initial_risk(trade)) is not None]

    return AllMetrics(
        total_trades=len(trades),
        closed_trades=stats.total_trades,
        open_trades=len(trades) - stats.total_trades,
        winning_trades=stats.winning_trades,
        losing_trades=stats.losing_trades,
        net_pnl=net_pnl,
        win_rate=m.calculate_win_rate(pnls),
        profit_factor=m.calculate_profit_factor(pnls),
        expectancy=m.calculate_expectancy(pnls),
        average_win=average_win,
        average_loss=average_loss,
        largest_win=m.calculate_largest_win(pnls),
        largest_loss=m.calculate_largest_loss(pnls),
        payoff_ratio=m.calculate_payoff_ratio(average_win, average_loss),
        max_drawdown_pct=m.calculate_max_drawdown(points),
        avg_drawdown_pct=m.calculate_avg_drawdown(points),
        max_drawdown_amount=walk.drawdown.max_drawdown_amount.quantize(m.CENTS),
        recovery_factor=m.calculate_recovery_factor(net_pnl, walk.drawdown.max_drawdown_amount),
        risk_of_ruin=m.calculate_risk_of_ruin(
            winning_trades=stats.winning_trades,
            losing_trades=stats.losing_trades,
            closed_trades=stats.total_trades,
            average_win=raw_win,
            average_loss=raw_loss,
            max_consecutive_losses=stats.max_consecutive_losses,
            risk_per_trade=config.risk_per_trade,
            ruin_threshold=config.ruin_threshold,
        ),
        r_multiple=m.calculate_r_multiple(risks),
        max_consecutive_wins=stats.max_consecutive_wins,
        max_consecutive_losses=stats.max_consecutive_losses,
        ulcer_index=m.calculate_ulcer_index(points),
        sharpe_ratio=m.calculate_sharpe_ratio(returns, rf, factor, config.min_return_periods),
        sortino_ratio=m.calculate_sortino_ratio(returns, rf, factor, config.min_return_periods),
        calmar_ratio=m.calculate_calmar_ratio(returns, max_drawdown, factor, config.min_return_periods),
        beta=beta,
        treynor_ratio=m.calculate_treynor_ratio(returns, rf, beta, factor, config.min_return_periods),
        jensens_alpha=m.calculate_jensens_alpha(returns, benchmark, rf, beta, factor, config.min_return_periods),
        consistency_pct=m.calculate_consistency(list(walk.periods.period_pnl("monthly").values())),
        long_win_rate=m.calculate_win_rate(long_pnls),
        short_win_rate=m.calculate_win_rate(short_pnls),
        long_profit_factor=m.calculate_profit_factor(long_pnls),
        short_profit_factor=m.calculate_profit_factor(short_pnls),
        breakdown=breakdown,
        risk_free_rate=rf,
        periodicity=config.periodicity,
        initial_capital=config.initial_capital,
    )
