"""Journal analytics service.

Orchestrates file import, validation, the metrics engine, benchmark
classification and insights. This is the layer that reads SystemConfig;
everything below it receives explicit parameters.
"""

from pathlib import Path
from typing import Mapping, Sequence

from pydantic import BaseModel, Field

from tradejournal.libraries.performance.engine import build_drawdown_series, compute_metrics
from tradejournal.libraries.performance.excursion import compute_excursion_metrics, compute_excursion_stats
from tradejournal.libraries.performance.insights import generate_insights
from tradejournal.libraries.performance.models import (
    AllMetrics,
    DrawdownPoint,
    ExcursionData,
    ExcursionStats,
    MetricInsight,
    MetricResult,
    MetricsConfig,
    PricePoint,
    Trade,
)
from tradejournal.libraries.performance.thresholds import BenchmarkTable, load_benchmark_table, metric_results
from tradejournal.libraries.performance.validation import ValidationPolicy, ValidationReport, validate_trade_records
from tradejournal.services.analytics.loaders import load_price_points, load_trade_records
from tradejournal.system import LoggerFactory, SystemConfig, get_system_config

logger = LoggerFactory.get_logger()


class AnalysisReport(BaseModel):
    """Everything computed for one trade collection."""

    benchmark: str
    metrics: AllMetrics
    results: dict[str, MetricResult]
    insights: list[MetricInsight]
    drawdowns: list[DrawdownPoint] = Field(default_factory=list)


class ExcursionReport(BaseModel):
    """Per-trade excursions plus aggregate statistics."""

    results: list[ExcursionData]
    stats: ExcursionStats


class JournalAnalyticsService:
    """Analytics facade over the performance library.

    Attributes:
        config: System configuration (metrics defaults, presets, validation policy)

    Example:
        >>> service = JournalAnalyticsService()
        >>> report = service.load_trades("trades.csv")
        >>> analysis = service.analyze(report.trades)
        >>> analysis.metrics.net_pnl
        Decimal('1250.00')
    """

    def __init__(self, config: SystemConfig | None = None) -> None:
        self.config = config or get_system_config()

    def engine_config(self, **overrides) -> MetricsConfig:
        """MetricsConfig from the metrics section, with optional overrides."""
        return self.config.metrics.to_engine_config(**overrides)

    def benchmark_table(self, name: str | None = None) -> BenchmarkTable:
        """Load a benchmark preset (configured default when name is None)."""
        preset = name or self.config.metrics.benchmark_preset
        table = load_benchmark_table(preset, self.config.metrics.presets_dir)
        logger.debug("analytics.preset_loaded", preset=table.name, rules=len(table.rules))
        return table

    def load_trades(
        self,
        path: str | Path,
        policy: ValidationPolicy | None = None,
        detect_markets: bool = False,
    ) -> ValidationReport:
        """
        Read and validate a trade file.

        Args:
            path: CSV or JSON trade file
            policy: "reject" or "exclude" (configured policy when None)
            detect_markets: Tag untyped records from their symbol

        Raises:
            InvalidTradeRecordError: On a bad record under the reject policy
            FileNotFoundError / ValueError: If the file cannot be read
        """
        policy = policy or self.config.metrics.validation_policy
        records = load_trade_records(path, detect_markets=detect_markets)
        report = validate_trade_records(records, policy=policy)

        logger.info(
            "analytics.trades_loaded",
            path=str(path),
            count=report.accepted_count,
            rejected=report.rejected_count,
            policy=policy,
        )
        return report

    def load_prices(self, path: str | Path) -> dict[str | None, list[PricePoint]]:
        """Read a price sample file grouped by trade_id (None = all trades)."""
        return load_price_points(path)

    def analyze(
        self,
        trades: Sequence[Trade],
        metrics_config: MetricsConfig | None = None,
        table: BenchmarkTable | None = None,
        previous: AllMetrics | None = None,
    ) -> AnalysisReport:
        """
        Compute metrics, classify them and derive insights.

        Args:
            trades: Validated trades
            metrics_config: Engine parameters (configured defaults when None)
            table: Benchmark thresholds (configured preset when None)
            previous: Earlier metrics for trend arrows

        Returns:
            AnalysisReport
        """
        metrics_config = metrics_config or self.engine_config()
        table = table or self.benchmark_table()

        metrics = compute_metrics(trades, metrics_config)
        results = metric_results(metrics, table, previous=previous)
        insights = generate_insights(metrics, results, metrics_config)

        logger.info(
            "analytics.metrics_computed",
            closed_trades=metrics.closed_trades,
            net_pnl=str(metrics.net_pnl),
            preset=table.name,
            insights=len(insights),
        )

        return AnalysisReport(
            benchmark=table.name,
            metrics=metrics,
            results=results,
            insights=insights,
            drawdowns=build_drawdown_series(trades, metrics_config),
        )

    def excursions(
        self,
        trades: Sequence[Trade],
        prices_by_trade: Mapping[str | None, Sequence[PricePoint]],
    ) -> ExcursionReport:
        """
        Compute MAE/MFE for every trade that has price samples.

        Samples keyed by the trade's id are used first; otherwise the
        un-keyed (None) samples are used. Trades with neither are skipped.
        """
        shared = prices_by_trade.get(None, [])
        results: list[ExcursionData] = []
        pairs = []

        for trade in trades:
            samples = prices_by_trade.get(trade.trade_id) or shared
            if not samples:
                logger.debug("analytics.excursion_skipped", trade_id=trade.trade_id, reason="no price samples")
                continue

            data = compute_excursion_metrics(trade, samples)
            if not data.running_pnl:
                logger.warning(
                    "analytics.excursion_no_samples_in_window",
                    trade_id=trade.trade_id,
                    samples=len(samples),
                )
            results.append(data)
            pairs.append((trade, data))

        logger.info("analytics.excursions_computed", count=len(results), trades=len(trades))
        return ExcursionReport(results=results, stats=compute_excursion_stats(pairs))
