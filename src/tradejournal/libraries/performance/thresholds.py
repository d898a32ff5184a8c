"""Benchmark thresholds and metric status classification.

Benchmark tables map metric ids to good/warning thresholds. They are
loaded from YAML presets and always passed explicitly to the functions
that classify metrics.

Search Order:
1. Built-in presets: src/tradejournal/libraries/performance/builtin/{name}.yaml
2. Custom presets: {custom_path}/{name}.yaml (callers pass metrics.presets_dir from system.yaml)

Preset format:
    name: default
    description: Balanced benchmarks for discretionary traders
    thresholds:
      win_rate: {good: 50, warning: 40}
      max_drawdown_pct: {good: 10, warning: 20, higher_is_better: false}
"""

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

import yaml
from pydantic import BaseModel, ValidationError

from tradejournal.libraries.performance.models import (
    AllMetrics,
    MetricFormat,
    MetricResult,
    MetricStatus,
    TrendDirection,
)

BUILTIN_DIR = Path(__file__).parent / "builtin"


class ThresholdRule(BaseModel):
    """
    Good/warning boundaries for one metric.

    higher_is_better: value >= good -> good, >= warning -> warning, else danger
    lower_is_better:  value <= good -> good, <= warning -> warning, else danger
    """

    model_config = {"frozen": True, "extra": "forbid"}

    good: Decimal
    warning: Decimal
    higher_is_better: bool = True

    def classify(self, value: Decimal) -> MetricStatus:
        if self.higher_is_better:
            if value >= self.good:
                return "good"
            if value >= self.warning:
                return "warning"
            return "danger"

        if value <= self.good:
            return "good"
        if value <= self.warning:
            return "warning"
        return "danger"


class BenchmarkTable(BaseModel):
    """Named set of threshold rules keyed by metric id."""

    model_config = {"frozen": True}

    name: str
    description: str = ""
    rules: dict[str, ThresholdRule]

    def rule_for(self, metric_id: str) -> ThresholdRule | None:
        return self.rules.get(metric_id)


@dataclass(frozen=True)
class MetricDefinition:
    """How to read, format and describe one reportable metric."""

    metric_id: str
    label: str
    format: MetricFormat
    description: str
    extract: Callable[[AllMetrics], Decimal | int | None]


METRIC_CATALOG: list[MetricDefinition] = [
    MetricDefinition("net_pnl", "Net P&L", "currency", "Total realized profit and loss", lambda m: m.net_pnl),
    MetricDefinition("win_rate", "Win Rate", "percentage", "Share of closed trades that were profitable", lambda m: m.win_rate),
    MetricDefinition(
        "profit_factor", "Profit Factor", "decimal", "Gross profit divided by gross loss", lambda m: m.profit_factor
    ),
    MetricDefinition("expectancy", "Expectancy", "currency", "Average P&L per closed trade", lambda m: m.expectancy),
    MetricDefinition("average_win", "Average Win", "currency", "Mean winning trade", lambda m: m.average_win),
    MetricDefinition("average_loss", "Average Loss", "currency", "Mean losing trade", lambda m: m.average_loss),
    MetricDefinition("payoff_ratio", "Payoff Ratio", "decimal", "Average win over average loss", lambda m: m.payoff_ratio),
    MetricDefinition(
        "max_drawdown_pct", "Max Drawdown", "percentage", "Largest peak-to-trough equity decline", lambda m: m.max_drawdown_pct
    ),
    MetricDefinition(
        "avg_drawdown_pct", "Avg Drawdown", "percentage", "Mean decline while under water", lambda m: m.avg_drawdown_pct
    ),
    MetricDefinition(
        "recovery_factor", "Recovery Factor", "decimal", "Net P&L over max drawdown amount", lambda m: m.recovery_factor
    ),
    MetricDefinition(
        "risk_of_ruin_pct",
        "Risk of Ruin",
        "percentage",
        "Probability of losing the ruin threshold before doubling",
        lambda m: m.risk_of_ruin.probability_pct,
    ),
    MetricDefinition(
        "kelly_pct", "Kelly Criterion", "percentage", "Suggested fraction of capital per trade", lambda m: m.risk_of_ruin.kelly_pct
    ),
    MetricDefinition("r_multiple", "R-Multiple", "decimal", "Average P&L in units of initial risk", lambda m: m.r_multiple),
    MetricDefinition("ulcer_index", "Ulcer Index", "decimal", "Depth and duration of drawdowns", lambda m: m.ulcer_index),
    MetricDefinition(
        "max_consecutive_losses",
        "Max Consecutive Losses",
        "count",
        "Longest losing streak",
        lambda m: m.max_consecutive_losses,
    ),
    MetricDefinition("sharpe_ratio", "Sharpe Ratio", "decimal", "Excess return per unit of volatility", lambda m: m.sharpe_ratio),
    MetricDefinition(
        "sortino_ratio", "Sortino Ratio", "decimal", "Excess return per unit of downside volatility", lambda m: m.sortino_ratio
    ),
    MetricDefinition("calmar_ratio", "Calmar Ratio", "decimal", "Annualized return over max drawdown", lambda m: m.calmar_ratio),
    MetricDefinition("beta", "Beta", "decimal", "Sensitivity to the benchmark", lambda m: m.beta),
    MetricDefinition("treynor_ratio", "Treynor Ratio", "decimal", "Excess return per unit of beta", lambda m: m.treynor_ratio),
    MetricDefinition("jensens_alpha", "Jensen's Alpha", "decimal", "Return above the CAPM expectation", lambda m: m.jensens_alpha),
    MetricDefinition(
        "consistency_pct", "Consistency", "percentage", "Share of profitable calendar months", lambda m: m.consistency_pct
    ),
]

METRIC_LABELS: dict[str, str] = {d.metric_id: d.label for d in METRIC_CATALOG}


def _trend(current: Decimal | int | None, previous: Decimal | int | None) -> TrendDirection | None:
    if current is None or previous is None:
        return None
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return "stable"


def metric_results(
    metrics: AllMetrics,
    table: BenchmarkTable,
    previous: AllMetrics | None = None,
) -> dict[str, MetricResult]:
    """
    Classify every reportable metric against a benchmark table.

    Args:
        metrics: Computed metrics
        table: Benchmark thresholds
        previous: Metrics from an earlier period, used for the trend

    Returns:
        MetricResult per metric id, in catalog order. Metrics without a rule
        are "good" with no benchmark; missing values are "warning".
    """
    results: dict[str, MetricResult] = {}

    for definition in METRIC_CATALOG:
        raw = definition.extract(metrics)
        value = Decimal(raw) if raw is not None else None
        rule = table.rule_for(definition.metric_id)

        if value is None:
            status: MetricStatus = "warning"
        elif rule is None:
            status = "good"
        else:
            status = rule.classify(value)

        results[definition.metric_id] = MetricResult(
            metric_id=definition.metric_id,
            value=value,
            status=status,
            format=definition.format,
            trend=_trend(raw, definition.extract(previous)) if previous is not None else None,
            benchmark=rule.good if rule is not None else None,
            description=definition.description,
        )

    return results


def load_benchmark_table(name: str = "default", custom_path: str | Path | None = None) -> BenchmarkTable:
    """Load a benchmark preset from YAML.

    Search order:
    1. Built-in presets: builtin/{name}.yaml
    2. Custom presets: {custom_path}/{name}.yaml

    Args:
        name: Preset name (without .yaml extension)
        custom_path: Optional directory with custom presets

    Returns:
        Parsed and validated BenchmarkTable

    Raises:
        FileNotFoundError: If the preset is not found in any search location
        ValueError: If the preset YAML is invalid or has malformed rules

    Examples:
        >>> table = load_benchmark_table("conservative")
        >>> table.rule_for("max_drawdown_pct").higher_is_better
        False
    """
    builtin_path = BUILTIN_DIR / f"{name}.yaml"
    custom_preset_path = Path(custom_path) / f"{name}.yaml" if custom_path else None

    if builtin_path.exists():
        preset_path = builtin_path
    elif custom_preset_path and custom_preset_path.exists():
        preset_path = custom_preset_path
    else:
        custom_path_msg = (
            f"  2. Custom: {custom_preset_path}\n"
            if custom_preset_path
            else "  2. Custom: (not configured - set metrics.presets_dir in system.yaml)\n"
        )
        raise FileNotFoundError(
            f"Benchmark preset '{name}' not found. Searched:\n"
            f"  1. Built-in: {builtin_path}\n"
            f"{custom_path_msg}"
            f"\nAvailable built-in presets: {list_builtin_presets()}\n"
            f"Available custom presets: {list_custom_presets(custom_path)}"
        )

    try:
        with open(preset_path, "r") as f:
            raw_preset = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML from {preset_path}: {e}")

    return _parse_preset(raw_preset, name, preset_path)


def _parse_preset(raw_preset: Any, name: str, preset_path: Path) -> BenchmarkTable:
    if not isinstance(raw_preset, dict) or not isinstance(raw_preset.get("thresholds"), dict):
        raise ValueError(f"Preset {preset_path} must be a mapping with a 'thresholds' section")

    unknown = sorted(set(raw_preset["thresholds"]) - set(METRIC_LABELS))
    if unknown:
        raise ValueError(f"Preset {preset_path} has thresholds for unknown metrics: {unknown}")

    try:
        return BenchmarkTable(
            name=raw_preset.get("name", name),
            description=raw_preset.get("description", ""),
            rules=raw_preset["thresholds"],
        )
    except ValidationError as e:
        raise ValueError(f"Invalid thresholds in {preset_path}: {e}")


def list_builtin_presets() -> list[str]:
    """List available built-in preset names."""
    if not BUILTIN_DIR.exists():
        return []
    return sorted(p.stem for p in BUILTIN_DIR.glob("*.yaml"))


def list_custom_presets(custom_path: str | Path | None = None) -> list[str]:
    """List preset names in a custom directory (empty when not configured)."""
    if not custom_path:
        return []
    custom_dir = Path(custom_path)
    if not custom_dir.exists():
        return []
    return sorted(p.stem for p in custom_dir.glob("*.yaml"))
