"""Performance metrics library for trading journal analysis.

This library provides the journal's analysis capabilities:

1. **Models** (`models.py`): Pydantic data structures
   - Trade: Journal trade record (open or closed)
   - DrawdownPoint: Equity/peak/drawdown per closed trade
   - ExcursionData: MAE/MFE with running P&L path
   - AllMetrics: Complete metric set
   - PerformanceBreakdown: Per-direction/symbol/market stats and hold times
   - MetricsConfig: Explicit engine parameters

2. **Metrics** (`metrics.py`): Pure calculation functions
   - Trade stats: win_rate, profit_factor, expectancy, payoff
   - Risk: max/avg drawdown, recovery factor, risk of ruin, R-multiple, ulcer index
   - Risk-adjusted: Sharpe, Sortino, Calmar, beta, Treynor, Jensen's alpha

3. **Calculators** (`calculators.py`): Stateful incremental calculators
   - DrawdownCalculator: Running peak and drawdown series
   - ReturnsCalculator: Period-over-period returns
   - TradeStatisticsCalculator: Counts, streaks, gross profit/loss
   - PeriodAggregationCalculator: P&L by calendar period

4. **Engine** (`engine.py`): compute_metrics(trades, config) -> AllMetrics

5. **Breakdown** (`breakdown.py`): Closed trades sliced by direction,
   symbol and market type, plus holding period statistics

6. **Excursion / Thresholds / Insights / Validation**: MAE/MFE analysis,
   benchmark classification, human-readable insights, boundary validation

Usage:
    >>> from tradejournal.libraries.performance import compute_metrics, load_benchmark_table, metric_results
    >>> metrics = compute_metrics(trades)
    >>> results = metric_results(metrics, load_benchmark_table("default"))

Design Principles:
    - Decimal precision for financial calculations
    - Explicit edge case handling (zero trades, no losses, etc.)
    - No global state: configuration and thresholds are parameters
"""

from tradejournal.libraries.performance.models import (
    AllMetrics,
    DrawdownPoint,
    ExcursionData,
    ExcursionMetrics,
    ExcursionStats,
    MarketType,
    MetricInsight,
    MetricResult,
    MetricsConfig,
    PerformanceBreakdown,
    PricePoint,
    RiskOfRuinResult,
    RunningPnLPoint,
    SegmentStats,
    Trade,
)

from tradejournal.libraries.performance.calculators import (
    DrawdownCalculator,
    PeriodAggregationCalculator,
    ReturnsCalculator,
    TradeStatisticsCalculator,
)
from tradejournal.libraries.performance.breakdown import compute_breakdown, compute_hold_time_stats
from tradejournal.libraries.performance.engine import build_drawdown_series, compute_metrics, order_trades
from tradejournal.libraries.performance.excursion import compute_excursion_metrics, compute_excursion_stats
from tradejournal.libraries.performance.insights import generate_insights
from tradejournal.libraries.performance.market import contract_multiplier, detect_market_from_symbol, trade_pnl
from tradejournal.libraries.performance.thresholds import (
    BenchmarkTable,
    ThresholdRule,
    list_builtin_presets,
    load_benchmark_table,
    metric_results,
)
from tradejournal.libraries.performance.validation import (
    InvalidTradeRecordError,
    TradeValidationError,
    ValidationReport,
    validate_trade_records,
)

__all__ = [
    # Models
    "AllMetrics",
    "DrawdownPoint",
    "ExcursionData",
    "ExcursionMetrics",
    "ExcursionStats",
    "MarketType",
    "MetricInsight",
    "MetricResult",
    "MetricsConfig",
    "PerformanceBreakdown",
    "PricePoint",
    "RiskOfRuinResult",
    "RunningPnLPoint",
    "SegmentStats",
    "Trade",
    # Calculators
    "DrawdownCalculator",
    "PeriodAggregationCalculator",
    "ReturnsCalculator",
    "TradeStatisticsCalculator",
    # Engine
    "build_drawdown_series",
    "compute_metrics",
    "order_trades",
    # Breakdown
    "compute_breakdown",
    "compute_hold_time_stats",
    # Excursions
    "compute_excursion_metrics",
    "compute_excursion_stats",
    # Market
    "contract_multiplier",
    "detect_market_from_symbol",
    "trade_pnl",
    # Thresholds and insights
    "BenchmarkTable",
    "ThresholdRule",
    "generate_insights",
    "list_builtin_presets",
    "load_benchmark_table",
    "metric_results",
    # Validation
    "InvalidTradeRecordError",
    "TradeValidationError",
    "ValidationReport",
    "validate_trade_records",
]
