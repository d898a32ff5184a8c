"""Rich console formatters for journal reports.

Provides terminal display of metrics, benchmark status, insights and
excursion statistics with tables, colors, and formatting using the Rich
library.
"""

from decimal import Decimal
from typing import Literal

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tradejournal.libraries.performance.models import (
    ExcursionData,
    ExcursionStats,
    HoldTimeStats,
    MetricInsight,
    MetricResult,
    PerformanceBreakdown,
    SegmentStats,
)
from tradejournal.libraries.performance.thresholds import METRIC_LABELS
from tradejournal.services.analytics.service import AnalysisReport

STATUS_STYLES = {"good": "green", "warning": "yellow", "danger": "red"}
TREND_ARROWS = {"up": "▲", "down": "▼", "stable": "▶"}
INSIGHT_STYLES = {"success": "green", "warning": "yellow", "danger": "red", "info": "cyan"}


def _format_pct(value: Decimal, precision: int = 2) -> str:
    return f"{float(value):.{precision}f}%"


def _format_currency(value: Decimal, precision: int = 2) -> str:
    """Format currency value (sign before the symbol)."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(float(value)):,.{precision}f}"


def _format_number(value: int | float | Decimal, precision: int = 2) -> str:
    if isinstance(value, int):
        return f"{value:,}"
    return f"{float(value):,.{precision}f}"


def _get_color(value: Decimal) -> str:
    """Get color based on positive/negative value."""
    if value > 0:
        return "green"
    elif value < 0:
        return "red"
    return "white"


def format_metric_value(result: MetricResult) -> str:
    """Render a MetricResult value according to its format."""
    if result.value is None:
        return "N/A"
    if result.format == "currency":
        return _format_currency(result.value)
    if result.format == "percentage":
        return _format_pct(result.value)
    if result.format == "count":
        return _format_number(int(result.value))
    return _format_number(result.value)


def _create_summary_table(report: AnalysisReport) -> Table:
    """Create trade summary table."""
    metrics = report.metrics
    table = Table(title="📊 Journal Summary", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Total Trades", _format_number(metrics.total_trades))
    table.add_row("Closed / Open", f"{metrics.closed_trades} / {metrics.open_trades}")
    table.add_row("Winning Trades", f"[green]{_format_number(metrics.winning_trades)}[/green]")
    table.add_row("Losing Trades", f"[red]{_format_number(metrics.losing_trades)}[/red]")
    table.add_row("", "")  # Spacer

    pnl_color = _get_color(metrics.net_pnl)
    table.add_row("Initial Capital", _format_currency(metrics.initial_capital))
    table.add_row("Net P&L", f"[{pnl_color}]{_format_currency(metrics.net_pnl)}[/{pnl_color}]")
    table.add_row("Largest Win", f"[green]{_format_currency(metrics.largest_win)}[/green]")
    table.add_row("Largest Loss", f"[red]{_format_currency(metrics.largest_loss)}[/red]")
    table.add_row("Long Win Rate", _format_pct(metrics.long_win_rate))
    table.add_row("Short Win Rate", _format_pct(metrics.short_win_rate))
    table.add_row("Max Consecutive Wins", _format_number(metrics.max_consecutive_wins))

    return table


def _create_results_table(results: dict[str, MetricResult], benchmark: str) -> Table:
    """Create benchmarked metrics table."""
    table = Table(title=f"🎯 Metrics vs '{benchmark}' Benchmarks", box=None, padding=(0, 1))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Benchmark", justify="right", style="dim")
    table.add_column("Status", justify="center")
    table.add_column("Trend", justify="center")

    for metric_id, result in results.items():
        style = STATUS_STYLES[result.status]
        benchmark_str = "—"
        if result.benchmark is not None:
            benchmark_str = format_metric_value(result.model_copy(update={"value": result.benchmark}))

        table.add_row(
            METRIC_LABELS.get(metric_id, metric_id),
            f"[{style}]{format_metric_value(result)}[/{style}]",
            benchmark_str,
            f"[{style}]{result.status}[/{style}]",
            TREND_ARROWS.get(result.trend, "") if result.trend else "",
        )

    return table


def _create_risk_of_ruin_panel(report: AnalysisReport) -> Panel:
    ruin = report.metrics.risk_of_ruin
    color = "green" if ruin.probability_pct < 1 else "yellow" if ruin.probability_pct < 10 else "red"
    return Panel(
        f"Probability: [{color}]{_format_pct(ruin.probability_pct)}[/{color}]\n"
        f"Kelly Criterion: {_format_pct(ruin.kelly_pct)}\n"
        f"Max Consecutive Losses: {ruin.max_consecutive_losses}\n\n"
        f"{ruin.recommendation}",
        title="🎲 Risk of Ruin",
        border_style=color,
    )


def _create_breakdown_table(breakdown: PerformanceBreakdown) -> Table:
    """Per-direction, per-market and per-symbol stats in one table."""
    table = Table(title="🧭 Performance Breakdown", box=None, padding=(0, 1))
    table.add_column("Segment", style="cyan")
    table.add_column("Trades", justify="right")
    table.add_column("Net P&L", justify="right")
    table.add_column("Win Rate", justify="right")
    table.add_column("Profit Factor", justify="right")
    table.add_column("Avg P&L", justify="right")

    sections: list[tuple[str, dict[str, SegmentStats]]] = [
        ("Direction", breakdown.by_direction),
        ("Market", breakdown.by_market_type),
        ("Symbol", breakdown.by_symbol),
    ]
    for title, segments in sections:
        table.add_row(f"[bold]{title}[/bold]", "", "", "", "", "")
        for name, stats in segments.items():
            color = _get_color(stats.net_pnl)
            table.add_row(
                f"  {name}",
                _format_number(stats.trades),
                f"[{color}]{_format_currency(stats.net_pnl)}[/{color}]",
                _format_pct(stats.win_rate),
                _format_number(stats.profit_factor),
                _format_currency(stats.average_pnl),
            )

    return table


def _format_minutes(value: Decimal) -> str:
    if value < 60:
        return f"{float(value):.0f}m"
    if value < 1440:
        return f"{float(value) / 60:.1f}h"
    return f"{float(value) / 1440:.1f}d"


def _create_hold_time_panel(hold_time: HoldTimeStats) -> Panel:
    lines = [
        f"Average: {_format_minutes(hold_time.avg_minutes)}   Median: {_format_minutes(hold_time.median_minutes)}",
        f"Winners: {_format_minutes(hold_time.avg_winning_minutes)}   "
        f"Losers: {_format_minutes(hold_time.avg_losing_minutes)}",
    ]
    for bucket in hold_time.distribution:
        lines.append(
            f"{bucket.range}: {bucket.count} trades, {_format_pct(bucket.win_rate)} won, "
            f"{_format_currency(bucket.total_pnl)}"
        )
    return Panel("\n".join(lines), title="⏱ Hold Time", border_style="cyan")


def _create_insights_panel(insights: list[MetricInsight]) -> Panel | None:
    if not insights:
        return None

    text = Text()
    for i, insight in enumerate(insights):
        if i:
            text.append("\n")
        style = INSIGHT_STYLES[insight.type]
        text.append(f"● {insight.title}", style=f"bold {style}")
        text.append(f"  {insight.description}")

    return Panel(text, title="💡 Insights", border_style="blue")


def display_analysis_report(
    report: AnalysisReport,
    detail_level: Literal["summary", "standard", "full"] = "standard",
    console: Console | None = None,
) -> None:
    """
    Display a journal analysis in Rich-formatted console output.

    Args:
        report: Analysis from JournalAnalyticsService.analyze()
        detail_level: Level of detail to display:
            - "summary": Trade summary and insights
            - "standard": Summary + benchmarked metrics + risk of ruin
            - "full": Everything including the breakdown tables and the
              drawdown series tail
        console: Rich Console instance (creates new if None)
    """
    if console is None:
        console = Console()

    console.print()
    console.print(_create_summary_table(report))
    console.print()

    if detail_level in ["standard", "full"]:
        console.print(_create_results_table(report.results, report.benchmark))
        console.print()
        console.print(_create_risk_of_ruin_panel(report))
        console.print()

    if detail_level == "full" and report.metrics.closed_trades:
        console.print(_create_breakdown_table(report.metrics.breakdown))
        console.print()
        if report.metrics.breakdown.hold_time.trades:
            console.print(_create_hold_time_panel(report.metrics.breakdown.hold_time))
            console.print()

    if detail_level == "full" and report.drawdowns:
        table = Table(title="📉 Drawdown Series (last 10)", box=None, padding=(0, 1))
        table.add_column("Time", style="cyan")
        table.add_column("Equity", justify="right")
        table.add_column("Peak", justify="right")
        table.add_column("Drawdown", justify="right", style="red")
        for point in report.drawdowns[-10:]:
            table.add_row(
                point.timestamp.strftime("%Y-%m-%d %H:%M") if point.timestamp else "—",
                _format_currency(point.equity),
                _format_currency(point.peak),
                _format_pct(point.drawdown_pct),
            )
        console.print(table)
        console.print()

    panel = _create_insights_panel(report.insights)
    if panel:
        console.print(panel)
        console.print()


def display_excursion_report(
    results: list[ExcursionData],
    stats: ExcursionStats,
    console: Console | None = None,
) -> None:
    """Display per-trade excursions and aggregate statistics."""
    if console is None:
        console = Console()

    table = Table(title="📐 Trade Excursions", box=None, padding=(0, 1))
    table.add_column("Trade", style="cyan")
    table.add_column("MAE", justify="right", style="red")
    table.add_column("MFE", justify="right", style="green")
    table.add_column("MAE %", justify="right")
    table.add_column("MFE %", justify="right")
    table.add_column("Edge", justify="right")
    table.add_column("Updraw", justify="right")
    table.add_column("Exit Eff.", justify="right")

    for data in results:
        table.add_row(
            data.trade_id,
            _format_currency(data.mae),
            _format_currency(data.mfe),
            _format_pct(data.mae_pct),
            _format_pct(data.mfe_pct),
            _format_number(data.edge_ratio),
            _format_pct(data.updraw_pct) if data.updraw_pct is not None else "—",
            _format_pct(data.exit_efficiency_pct) if data.exit_efficiency_pct is not None else "—",
        )

    console.print()
    console.print(table)
    console.print()

    distribution = Table(title="Distribution", box=None, padding=(0, 1))
    distribution.add_column("Range", style="cyan")
    distribution.add_column("MAE", justify="right", style="red")
    distribution.add_column("MFE", justify="right", style="green")
    for mae_bucket, mfe_bucket in zip(stats.mae_distribution, stats.mfe_distribution):
        distribution.add_row(mae_bucket.range, str(mae_bucket.count), str(mfe_bucket.count))
    console.print(distribution)
    console.print()

    console.print(
        Panel(
            f"Trades: {stats.total_trades}\n"
            f"Avg MAE: {_format_currency(stats.avg_mae)}   Avg MFE: {_format_currency(stats.avg_mfe)}\n"
            f"Avg Edge Ratio: {_format_number(stats.avg_edge_ratio)}   "
            f"Avg Exit Efficiency: {_format_pct(stats.avg_exit_efficiency_pct)}",
            title="Excursion Summary",
            border_style="cyan",
        )
    )
    console.print()
