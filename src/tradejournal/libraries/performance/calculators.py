"""Stateful performance calculators for incremental updates.

Calculators maintain state and update as the engine walks the closed
trades in chronological order. Each engine call creates fresh instances,
so no state outlives a computation.

Philosophy:
- Stateful: Maintain internal state between updates
- Incremental: One pass over the trades, no recalculation from scratch
- Testable: Clear state transitions and observable outputs

Usage:
    >>> from tradejournal.libraries.performance.calculators import DrawdownCalculator
    >>> from decimal import Decimal
    >>>
    >>> calc = DrawdownCalculator(initial_equity=Decimal("10000"))
    >>> _ = calc.update(None, Decimal("10500"))
    >>> point = calc.update(None, Decimal("9450"))  # Drawdown starts
    >>> point.drawdown
    Decimal('0.1')
    >>> calc.max_drawdown
    Decimal('0.1')
"""

from datetime import datetime
from decimal import Decimal

from tradejournal.libraries.performance.models import DrawdownPoint, Periodicity

# Floor for the drawdown denominator when the peak is zero or negative
DRAWDOWN_EPSILON = Decimal("1e-9")


def period_key(timestamp: datetime, period_type: str) -> str:
    """
    Get period identifier for a timestamp.

    Args:
        timestamp: Datetime to categorize
        period_type: "daily", "weekly", or "monthly"

    Returns:
        Period key (e.g., "2024-01-15", "2024-W03", "2024-01")
    """
    if period_type == "daily":
        return timestamp.strftime("%Y-%m-%d")
    elif period_type == "weekly":
        iso_year, iso_week, _ = timestamp.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    elif period_type == "monthly":
        return timestamp.strftime("%Y-%m")
    else:
        raise ValueError(f"Invalid period_type: {period_type}")


class DrawdownCalculator:
    """
    Tracks the drawdown series incrementally.

    Maintains the running peak (starting at initial equity) and emits one
    DrawdownPoint per update. Drawdown is a fraction of the peak clamped
    to [0, 1]; an account cannot lose more than everything.
    """

    def __init__(self, initial_equity: Decimal) -> None:
        """
        Initialize drawdown calculator.

        Args:
            initial_equity: Starting equity, the first peak
        """
        self._peak_equity = initial_equity
        self._max_drawdown = Decimal("0")
        self._max_drawdown_amount = Decimal("0")
        self._points: list[DrawdownPoint] = []

    def update(self, timestamp: datetime | None, equity: Decimal) -> DrawdownPoint:
        """
        Record a new equity value.

        Args:
            timestamp: Time of the equity sample (None for untimed trades)
            equity: Equity after the trade closed

        Returns:
            The DrawdownPoint for this sample
        """
        if equity > self._peak_equity:
            self._peak_equity = equity

        denominator = max(self._peak_equity, DRAWDOWN_EPSILON)
        drawdown = (self._peak_equity - equity) / denominator
        drawdown = min(max(drawdown, Decimal("0")), Decimal("1"))

        amount = self._peak_equity - equity
        if drawdown > self._max_drawdown:
            self._max_drawdown = drawdown
        if amount > self._max_drawdown_amount:
            self._max_drawdown_amount = amount

        point = DrawdownPoint(
            timestamp=timestamp,
            equity=equity,
            peak=self._peak_equity,
            drawdown=drawdown,
            in_drawdown=drawdown > Decimal("0"),
        )
        self._points.append(point)
        return point

    @property
    def max_drawdown(self) -> Decimal:
        """Maximum drawdown fraction observed."""
        return self._max_drawdown

    @property
    def max_drawdown_amount(self) -> Decimal:
        """Largest peak-to-trough decline in currency units."""
        return self._max_drawdown_amount

    @property
    def points(self) -> list[DrawdownPoint]:
        """All recorded drawdown points."""
        return self._points.copy()

class ReturnsCalculator:
    """
    Calculates period-over-period returns incrementally.

    Tracks returns series for statistical analysis (Sharpe, Sortino, etc.).
    The first return is measured against the starting equity.
    """

    def __init__(self, initial_equity: Decimal) -> None:
        """Initialize returns calculator."""
        self._returns: list[Decimal] = []
        self._prev_equity = initial_equity

    def update(self, equity: Decimal) -> Decimal:
        """
        Calculate return since last update.

        Args:
            equity: Equity at the end of the period

        Returns:
            Period return as decimal (e.g., 0.01 for 1% return)
        """
        if self._prev_equity <= Decimal("0"):
            period_return = Decimal("0")
        else:
            period_return = (equity / self._prev_equity) - Decimal("1")

        self._returns.append(period_return)
        self._prev_equity = equity

        return period_return

    @property
    def returns(self) -> list[Decimal]:
        """All calculated returns."""
        return self._returns.copy()

class TradeStatisticsCalculator:
    """
    Tracks trade statistics incrementally.

    Maintains running counts and aggregates for win rate, profit factor,
    consecutive wins/losses, etc. A break-even trade (pnl == 0) is neither
    a win nor a loss and ends any running streak.
    """

    def __init__(self) -> None:
        """Initialize trade statistics calculator."""
        self._pnls: list[Decimal] = []
        self._winning_trades = 0
        self._losing_trades = 0
        self._consecutive_wins = 0
        self._consecutive_losses = 0
        self._max_consecutive_wins = 0
        self._max_consecutive_losses = 0

    def add_trade(self, pnl: Decimal) -> None:
        """
        Add realized P&L of a closed trade.

        Args:
            pnl: Realized P&L
        """
        self._pnls.append(pnl)

        if pnl > Decimal("0"):
            self._winning_trades += 1
            self._consecutive_wins += 1
            self._consecutive_losses = 0

            if self._consecutive_wins > self._max_consecutive_wins:
                self._max_consecutive_wins = self._consecutive_wins
        elif pnl < Decimal("0"):
            self._losing_trades += 1
            self._consecutive_losses += 1
            self._consecutive_wins = 0

            if self._consecutive_losses > self._max_consecutive_losses:
                self._max_consecutive_losses = self._consecutive_losses
        else:
            self._consecutive_wins = 0
            self._consecutive_losses = 0

    @property
    def total_trades(self) -> int:
        """Total number of closed trades."""
        return len(self._pnls)

    @property
    def winning_trades(self) -> int:
        """Number of winning trades."""
        return int(self._winning_trades)

    @property
    def losing_trades(self) -> int:
        """Number of losing trades."""
        return int(self._losing_trades)

    @property
    def max_consecutive_wins(self) -> int:
        """Maximum consecutive winning trades."""
        return int(self._max_consecutive_wins)

    @property
    def max_consecutive_losses(self) -> int:
        """Maximum consecutive losing trades."""
        return int(self._max_consecutive_losses)

    @property
    def pnls(self) -> list[Decimal]:
        """Realized P&L of every recorded trade, in order."""
        return self._pnls.copy()

    @property
    def gross_profit(self) -> Decimal:
        """Total profit from winning trades."""
        return sum((p for p in self._pnls if p > 0), Decimal("0"))

    @property
    def gross_loss(self) -> Decimal:
        """Total loss from losing trades (as positive number)."""
        return sum((-p for p in self._pnls if p < 0), Decimal("0"))


class PeriodAggregationCalculator:
    """
    Aggregates realized P&L by calendar period.

    Trades without a timestamp cannot be placed in a period and are skipped.
    """

    def __init__(self) -> None:
        """Initialize period aggregation calculator."""
        self._entries: list[tuple[datetime, Decimal]] = []

    def add_trade(self, timestamp: datetime | None, pnl: Decimal) -> None:
        """
        Add a closed trade's P&L.

        Args:
            timestamp: Close time of the trade
            pnl: Realized P&L
        """
        if timestamp is not None:
            self._entries.append((timestamp, pnl))

    def period_pnl(self, period_type: Periodicity | str) -> dict[str, Decimal]:
        """
        Sum P&L per period.

        Args:
            period_type: Any period accepted by period_key()

        Returns:
            Mapping of period key to summed P&L, ordered by period
        """
        totals: dict[str, Decimal] = {}
        for timestamp, pnl in self._entries:
            key = period_key(timestamp, period_type)
            totals[key] = totals.get(key, Decimal("0")) + pnl

        return {key: totals[key] for key in sorted(totals)}
