"""Performance metrics data models.

Pydantic models for trade records and everything computed from them.
Inputs (Trade, PricePoint, MetricsConfig) are frozen; outputs are plain
models rebuilt on every computation.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

Direction = Literal["long", "short"]
Periodicity = Literal["daily", "weekly", "monthly"]
MetricStatus = Literal["good", "warning", "danger"]
MetricFormat = Literal["currency", "percentage", "decimal", "count"]
TrendDirection = Literal["up", "down", "stable"]
InsightType = Literal["success", "warning", "danger", "info"]

PositiveDecimal = Annotated[Decimal, Field(gt=0)]

_DIRECTION_ALIASES = {
    "long": "long",
    "buy": "long",
    "b": "long",
    "short": "short",
    "sell": "short",
    "s": "short",
}


def _ensure_utc(value: Any) -> Any:
    """Attach UTC to naive datetimes so mixed inputs stay comparable."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MarketType(str, Enum):
    """Market a trade was placed in. Drives the P&L contract multiplier."""

    STOCKS = "stocks"
    CRYPTO = "crypto"
    FUTURES = "futures"
    OPTIONS = "options"
    FOREX = "forex"


class Trade(BaseModel):
    """
    Journal trade record.

    A trade without exit_price is an open position: it contributes no
    realized P&L but can still be analyzed for excursions.

    Optional broker/journal fields and their defaults:
        stop_loss: None -> trade has no R risk unit
        take_profit: None -> no updraw target
        commission: 0 -> P&L is gross
        contract_multiplier: None -> derived from market_type (1 for stocks/crypto)
    """

    model_config = {"frozen": True, "extra": "forbid"}

    trade_id: str
    symbol: str
    direction: Direction
    entry_price: Decimal = Field(gt=0)
    exit_price: PositiveDecimal | None = None
    quantity: Decimal = Field(gt=0)
    entry_time: datetime | None = None
    exit_time: datetime | None = None
    notes: str | None = None
    market_type: MarketType | None = None
    stop_loss: PositiveDecimal | None = None
    take_profit: PositiveDecimal | None = None
    commission: Decimal = Field(default=Decimal("0"), ge=0)
    contract_multiplier: PositiveDecimal | None = None

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v: Any) -> Any:
        """Accept BUY/SELL style sides from broker exports."""
        if isinstance(v, str):
            normalized = _DIRECTION_ALIASES.get(v.strip().lower())
            if normalized is None:
                raise ValueError(f"Unknown trade direction: {v!r}")
            return normalized
        return v

    @field_validator("market_type", mode="before")
    @classmethod
    def normalize_market_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    @field_validator("entry_time", "exit_time", mode="before")
    @classmethod
    def ensure_utc(cls, v: Any) -> Any:
        return _ensure_utc(v)

    @model_validator(mode="after")
    def _check_times(self) -> "Trade":
        if self.entry_time and self.exit_time and self.exit_time < self.entry_time:
            raise ValueError(f"Trade {self.trade_id}: exit_time precedes entry_time")
        return self

    @property
    def is_closed(self) -> bool:
        """Trade has an exit price."""
        return self.exit_price is not None

    @property
    def sign(self) -> int:
        """+1 for long trades, -1 for short trades."""
        return 1 if self.direction == "long" else -1

    @property
    def sort_time(self) -> datetime | None:
        """Timestamp used for chronological ordering (exit, else entry)."""
        return self.exit_time or self.entry_time


class PricePoint(BaseModel):
    """Single price sample within a trade's open interval."""

    model_config = {"frozen": True}

    timestamp: datetime
    price: Decimal = Field(gt=0)
    volume: Decimal | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def ensure_utc(cls, v: Any) -> Any:
        return _ensure_utc(v)


class RunningPnLPoint(BaseModel):
    """Unrealized P&L and running excursions at one price sample."""

    timestamp: datetime
    price: Decimal
    pnl: Decimal
    pnl_pct: Decimal
    mae_at_time: Decimal  # Worst unrealized P&L so far (<= 0)
    mfe_at_time: Decimal  # Best unrealized P&L so far (>= 0)


class ExcursionMetrics(BaseModel):
    """Per-trade maximum adverse / favorable excursion summary."""

    trade_id: str
    mae: Decimal  # Currency, <= 0
    mfe: Decimal  # Currency, >= 0
    mae_pct: Decimal  # Adverse move as % of entry (<= 0)
    mfe_pct: Decimal  # Favorable move as % of entry (>= 0)
    edge_ratio: Decimal  # MFE / |MAE|, 0 when MAE is 0
    updraw_pct: Decimal | None = None  # How far toward take-profit price went (None without target)
    exit_efficiency_pct: Decimal | None = None  # Share of MFE captured at exit (None while open)


class ExcursionData(ExcursionMetrics):
    """Excursion summary plus the full running P&L path for charting."""

    running_pnl: list[RunningPnLPoint] = Field(default_factory=list)


class DistributionBucket(BaseModel):
    """Count of trades whose excursion falls in a percentage range."""

    range: str
    count: int


class ExcursionTradeRow(BaseModel):
    trade_id: str
    symbol: str
    mae: Decimal
    mfe: Decimal
    edge_ratio: Decimal
    pnl: Decimal | None


class ExcursionStats(BaseModel):
    """Aggregate excursion statistics across trades."""

    total_trades: int
    avg_mae: Decimal
    avg_mfe: Decimal
    avg_edge_ratio: Decimal
    avg_exit_efficiency_pct: Decimal
    mae_distribution: list[DistributionBucket] = Field(default_factory=list)
    mfe_distribution: list[DistributionBucket] = Field(default_factory=list)
    trades: list[ExcursionTradeRow] = Field(default_factory=list)


class DrawdownPoint(BaseModel):
    """
    Single point on the drawdown series.

    One point per closed trade in chronological order. drawdown is a
    fraction of the running peak in [0, 1].
    """

    timestamp: datetime | None
    equity: Decimal
    peak: Decimal
    drawdown: Decimal
    in_drawdown: bool

    @property
    def drawdown_pct(self) -> Decimal:
        """Drawdown as percentage (0-100)."""
        return self.drawdown * Decimal("100")


class RiskOfRuinResult(BaseModel):
    """Gambler's-ruin estimate with Kelly sizing and loss-streak context."""

    probability_pct: Decimal  # Chance of losing ruin_threshold before doubling (0-100)
    kelly_pct: Decimal  # Kelly fraction, capped at 25%
    max_consecutive_losses: int  # Longest observed losing streak
    recommendation: str


class SegmentStats(BaseModel):
    """Closed-trade statistics for one slice of the journal (a direction, symbol or market)."""

    trades: int = 0
    net_pnl: Decimal = Decimal("0")
    win_rate: Decimal = Decimal("0")
    profit_factor: Decimal = Decimal("0")
    average_pnl: Decimal = Decimal("0")


class HoldTimeBucket(BaseModel):
    range: str
    count: int
    win_rate: Decimal
    total_pnl: Decimal


class HoldTimeStats(BaseModel):
    """
    Holding period statistics over closed trades with both timestamps.

    Durations are minutes. Winning and losing averages are 0 when there
    are no such trades; empty buckets are left out of the distribution.
    """

    trades: int = 0
    avg_minutes: Decimal = Decimal("0")
    median_minutes: Decimal = Decimal("0")
    avg_winning_minutes: Decimal = Decimal("0")
    avg_losing_minutes: Decimal = Decimal("0")
    distribution: list[HoldTimeBucket] = Field(default_factory=list)


class PerformanceBreakdown(BaseModel):
    """
    Closed trades sliced by direction, symbol and market type.

    Symbols and market types are ordered best net P&L first. Trades
    without a market type are grouped under "unknown".
    """

    by_direction: dict[str, SegmentStats] = Field(
        default_factory=lambda: {"long": SegmentStats(), "short": SegmentStats()}
    )
    by_symbol: dict[str, SegmentStats] = Field(default_factory=dict)
    by_market_type: dict[str, SegmentStats] = Field(default_factory=dict)
    hold_time: HoldTimeStats = Field(default_factory=HoldTimeStats)


class MetricResult(BaseModel):
    """A metric value with its benchmark classification and display format."""

    metric_id: str
    value: Decimal | None
    status: MetricStatus
    format: MetricFormat
    trend: TrendDirection | None = None
    benchmark: Decimal | None = None
    description: str = ""


class MetricInsight(BaseModel):
    """Human-readable observation flagged from computed metrics."""

    type: InsightType
    title: str
    description: str
    actionable: bool
    metric: str | None = None


class MetricsConfig(BaseModel):
    """
    Explicit parameters for a metrics computation.

    Passed into every engine call; the engine never consults global settings.
    """

    model_config = {"frozen": True}

    risk_free_rate: Decimal = Field(default=Decimal("0.04"), description="Annual risk-free rate as decimal")
    benchmark_returns: tuple[Decimal, ...] | None = Field(
        default=None, description="Benchmark returns per period, same periodicity as the trade returns"
    )
    initial_capital: Decimal = Field(default=Decimal("10000"), gt=0, description="Starting account equity")
    periodicity: Periodicity = Field(default="daily", description="Return aggregation period")
    risk_per_trade: Decimal = Field(
        default=Decimal("0.02"), gt=0, le=1, description="Fraction of capital risked per trade (risk of ruin)"
    )
    ruin_threshold: Decimal = Field(
        default=Decimal("0.5"), gt=0, le=1, description="Fraction of capital whose loss counts as ruin"
    )
    min_trades: int = Field(default=30, ge=0, description="Closed trades needed before metrics are significant")
    min_return_periods: int = Field(default=2, ge=2, description="Return periods needed for ratio metrics")

    @property
    def annualization_factor(self) -> int:
        """Periods per year for the configured periodicity."""
        return {"daily": 252, "weekly": 52, "monthly": 12}[self.periodicity]


class AllMetrics(BaseModel):
    """
    Complete metric set computed from a trade collection.

    Percentages are 0-100. Sentinels for zero denominators are documented
    in metrics.py; no field is ever NaN or infinite.
    """

    # Counts
    total_trades: int = 0
    closed_trades: int = 0
    open_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0

    # Essential
    net_pnl: Decimal = Decimal("0")
    win_rate: Decimal = Decimal("0")
    profit_factor: Decimal = Decimal("0")
    expectancy: Decimal = Decimal("0")
    average_win: Decimal = Decimal("0")
    average_loss: Decimal = Decimal("0")  # Negative or zero
    largest_win: Decimal = Decimal("0")
    largest_loss: Decimal = Decimal("0")
    payoff_ratio: Decimal = Decimal("0")

    # Risk
    max_drawdown_pct: Decimal = Decimal("0")
    avg_drawdown_pct: Decimal = Decimal("0")
    max_drawdown_amount: Decimal = Decimal("0")
    recovery_factor: Decimal = Decimal("0")
    risk_of_ruin: RiskOfRuinResult = Field(
        default_factory=lambda: RiskOfRuinResult(
            probability_pct=Decimal("0"),
            kelly_pct=Decimal("0"),
            max_consecutive_losses=0,
            recommendation="Insufficient data for risk calculation",
        )
    )
    r_multiple: Decimal = Decimal("0")
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    ulcer_index: Decimal = Decimal("0")

    # Risk-adjusted
    sharpe_ratio: Decimal = Decimal("0")
    sortino_ratio: Decimal = Decimal("0")
    calmar_ratio: Decimal = Decimal("0")
    beta: Decimal | None = None  # None without a benchmark series
    treynor_ratio: Decimal | None = None
    jensens_alpha: Decimal | None = None

    # Supplementary
    consistency_pct: Decimal = Decimal("0")  # Share of profitable months
    long_win_rate: Decimal = Decimal("0")
    short_win_rate: Decimal = Decimal("0")
    long_profit_factor: Decimal = Decimal("0")
    short_profit_factor: Decimal = Decimal("0")
    breakdown: PerformanceBreakdown = Field(default_factory=PerformanceBreakdown)

    # Inputs echoed for reporting
    risk_free_rate: Decimal = Decimal("0.04")
    periodicity: Periodicity = "daily"
    initial_capital: Decimal = Decimal("10000")
