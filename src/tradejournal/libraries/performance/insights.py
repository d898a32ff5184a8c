"""Human-readable insights flagged from computed metrics."""

from decimal import Decimal

from tradejournal.libraries.performance.models import AllMetrics, MetricInsight, MetricResult, MetricsConfig
from tradejournal.libraries.performance.thresholds import METRIC_LABELS

# Metrics with a dedicated rule below; skipped by the generic benchmark check.
_DEDICATED_RULES = {"win_rate", "profit_factor", "payoff_ratio", "max_drawdown_pct", "sharpe_ratio"}


def generate_insights(
    metrics: AllMetrics,
    results: dict[str, MetricResult],
    config: MetricsConfig | None = None,
) -> list[MetricInsight]:
    """
    Flag notable strengths and weaknesses.

    Args:
        metrics: Computed metrics
        results: Classified metrics from metric_results()
        config: Supplies min_trades for the sample-size notice

    Returns:
        Insights in rule order: win rate, profit factor, payoff, drawdown,
        Sharpe, other out-of-benchmark metrics, sample size
    """
    config = config or MetricsConfig()
    insights: list[MetricInsight] = []

    if metrics.closed_trades > 0:
        if metrics.win_rate < 40:
            insights.append(
                MetricInsight(
                    type="warning",
                    title="Low Win Rate",
                    description=f"Your win rate is {metrics.win_rate:.1f}%. Consider reviewing your entry criteria.",
                    actionable=True,
                    metric="win_rate",
                )
            )
        elif metrics.win_rate > 70:
            insights.append(
                MetricInsight(
                    type="success",
                    title="Excellent Win Rate",
                    description=(
                        f"Your win rate of {metrics.win_rate:.1f}% is exceptional. "
                        "Ensure you are not cutting winners too early."
                    ),
                    actionable=False,
                    metric="win_rate",
                )
            )

        if metrics.profit_factor < 1:
            insights.append(
                MetricInsight(
                    type="danger",
                    title="Negative Profit Factor",
                    description="You are losing more than you are winning. Immediate strategy review needed.",
                    actionable=True,
                    metric="profit_factor",
                )
            )
        elif metrics.profit_factor > 2:
            insights.append(
                MetricInsight(
                    type="success",
                    title="Strong Profit Factor",
                    description=f"Your profit factor of {metrics.profit_factor:.2f} indicates a robust trading system.",
                    actionable=False,
                    metric="profit_factor",
                )
            )

    if metrics.average_win > 0 and metrics.average_loss < 0 and metrics.payoff_ratio < 1:
        insights.append(
            MetricInsight(
                type="warning",
                title="Poor Risk/Reward Ratio",
                description=(
                    f"You are risking ${abs(metrics.average_loss):.2f} to make ${metrics.average_win:.2f}. "
                    "Consider adjusting your targets."
                ),
                actionable=True,
                metric="payoff_ratio",
            )
        )

    drawdown = results.get("max_drawdown_pct")
    if drawdown is not None and drawdown.status == "danger":
        insights.append(
            MetricInsight(
                type="danger",
                title="High Maximum Drawdown",
                description=(
                    f"Your maximum drawdown of {metrics.max_drawdown_pct:.1f}% is concerning. "
                    "Consider reducing position sizes."
                ),
                actionable=True,
                metric="max_drawdown_pct",
            )
        )

    if metrics.sharpe_ratio < 0:
        insights.append(
            MetricInsight(
                type="danger",
                title="Negative Sharpe Ratio",
                description="Your risk-adjusted returns are negative. Strategy overhaul recommended.",
                actionable=True,
                metric="sharpe_ratio",
            )
        )
    elif metrics.sharpe_ratio > Decimal("1.5"):
        insights.append(
            MetricInsight(
                type="success",
                title="Excellent Risk-Adjusted Returns",
                description=f"Your Sharpe ratio of {metrics.sharpe_ratio:.2f} indicates superior risk management.",
                actionable=False,
                metric="sharpe_ratio",
            )
        )

    for metric_id, result in results.items():
        if metric_id in _DEDICATED_RULES or result.status != "danger":
            continue
        label = METRIC_LABELS.get(metric_id, metric_id)
        insights.append(
            MetricInsight(
                type="warning",
                title=f"{label} Exceeds Benchmark",
                description=f"{label} of {result.value} is outside the benchmark of {result.benchmark}.",
                actionable=True,
                metric=metric_id,
            )
        )

    if metrics.closed_trades < config.min_trades:
        insights.append(
            MetricInsight(
                type="info",
                title="Limited Trade Sample",
                description=(
                    f"With fewer than {config.min_trades} trades, metrics may not be statistically significant yet."
                ),
                actionable=False,
            )
        )

    return insights
