"""Performance metrics calculation functions.

Pure functions for calculating trade statistics, drawdown figures and
risk-adjusted ratios from realized P&L, drawdown series and period returns.
All functions are stateless and testable.

Philosophy:
- Pure functions: same inputs always produce same outputs
- No side effects: don't modify inputs or global state
- Never NaN or infinite: zero denominators map to documented sentinels

Sentinels:
- profit_factor / recovery_factor: PROFIT_FACTOR_CAP when the denominator is 0
  and the numerator is positive, 0 when both are 0
- ratio metrics: 0 with fewer than min_periods returns or zero variance
- beta / treynor / jensens_alpha: None without a usable benchmark series

Usage:
    >>> from tradejournal.libraries.performance import metrics
    >>> from decimal import Decimal
    >>>
    >>> pnls = [Decimal("10"), Decimal("-20")]
    >>> metrics.calculate_net_pnl(pnls)
    Decimal('-10.00')
    >>> metrics.calculate_win_rate(pnls)
    Decimal('50.00')
"""

import math
from decimal import Decimal
from typing import Sequence

from tradejournal.libraries.performance.models import DrawdownPoint, RiskOfRuinResult

PROFIT_FACTOR_CAP = Decimal("999.99")
KELLY_CAP = 0.25

CENTS = Decimal("0.01")
RATIO = Decimal("0.0001")

INSUFFICIENT_DATA_RECOMMENDATION = "Insufficient data for risk calculation"
ZERO_VARIANCE_TOLERANCE = Decimal("1e-20")


def _to_decimal(value: float, quantum: Decimal = CENTS) -> Decimal:
    """Convert a float result back to Decimal; non-finite values become 0."""
    if not math.isfinite(value):
        return Decimal("0")
    return Decimal(str(value)).quantize(quantum)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _decimals(values: Sequence[Decimal | float]) -> list[Decimal]:
    return [v if isinstance(v, Decimal) else Decimal(str(v)) for v in values]


def _decimal_mean(values: Sequence[Decimal]) -> Decimal:
    return sum(values, Decimal("0")) / Decimal(len(values))


def _sample_variance(values: Sequence[Decimal]) -> Decimal:
    """
    Sample variance in Decimal arithmetic.

    Identical values give exactly 0. Anything below ZERO_VARIANCE_TOLERANCE
    (relative to the squared mean once that exceeds 1) is rounding residue
    and is reported as 0.
    """
    mean = _decimal_mean(values)
    variance = sum(((v - mean) ** 2 for v in values), Decimal("0")) / Decimal(len(values) - 1)
    if variance <= ZERO_VARIANCE_TOLERANCE * max(mean * mean, Decimal("1")):
        return Decimal("0")
    return variance


# ============================================================================
# Essential trade statistics
# ============================================================================


def calculate_net_pnl(pnls: Sequence[Decimal]) -> Decimal:
    """
    Calculate net realized P&L.

    Args:
        pnls: Realized P&L of closed trades

    Returns:
        Sum of P&L in currency units
    """
    return sum(pnls, Decimal("0")).quantize(CENTS)


def calculate_win_rate(pnls: Sequence[Decimal]) -> Decimal:
    """
    Calculate win rate (percentage of profitable trades).

    Break-even trades count toward the total but are not wins.

    Args:
        pnls: Realized P&L of closed trades

    Returns:
        Win rate as percentage (0-100), 0 for no trades

    Example:
        >>> calculate_win_rate([Decimal("100"), Decimal("-50"), Decimal("200")])
        Decimal('66.67')
    """
    if not pnls:
        return Decimal("0")

    winning_trades = sum(1 for p in pnls if p > 0)
    win_rate = (Decimal(winning_trades) / Decimal(len(pnls))) * Decimal("100")

    return win_rate.quantize(CENTS)


def calculate_profit_factor(pnls: Sequence[Decimal]) -> Decimal:
    """
    Calculate profit factor (gross profit / gross loss).

    Args:
        pnls: Realized P&L of closed trades

    Returns:
        Profit factor (dimensionless). PROFIT_FACTOR_CAP when there are no
        losses but some profit, 0 when there is neither.

    Example:
        >>> calculate_profit_factor([Decimal("100"), Decimal("-50")])
        Decimal('2.00')
    """
    gross_profit = sum((p for p in pnls if p > 0), Decimal("0"))
    gross_loss = sum((-p for p in pnls if p < 0), Decimal("0"))

    if gross_loss == Decimal("0"):
        return PROFIT_FACTOR_CAP if gross_profit > 0 else Decimal("0")

    return min(gross_profit / gross_loss, PROFIT_FACTOR_CAP).quantize(CENTS)


def calculate_expectancy(pnls: Sequence[Decimal]) -> Decimal:
    """
    Calculate expectancy (expected value per trade).

    Equal to (Win% x AvgWin) - (Loss% x |AvgLoss|), i.e. the mean P&L.

    Args:
        pnls: Realized P&L of closed trades

    Returns:
        Expected value per trade in currency units
    """
    if not pnls:
        return Decimal("0")

    return (sum(pnls, Decimal("0")) / Decimal(len(pnls))).quantize(CENTS)


def calculate_average_win(pnls: Sequence[Decimal]) -> Decimal:
    """Mean P&L of winning trades, 0 if there are none."""
    wins = [p for p in pnls if p > 0]
    if not wins:
        return Decimal("0")
    return (sum(wins, Decimal("0")) / Decimal(len(wins))).quantize(CENTS)


def calculate_average_loss(pnls: Sequence[Decimal]) -> Decimal:
    """Mean P&L of losing trades (negative), 0 if there are none."""
    losses = [p for p in pnls if p < 0]
    if not losses:
        return Decimal("0")
    return (sum(losses, Decimal("0")) / Decimal(len(losses))).quantize(CENTS)


def calculate_largest_win(pnls: Sequence[Decimal]) -> Decimal:
    wins = [p for p in pnls if p > 0]
    return max(wins).quantize(CENTS) if wins else Decimal("0")


def calculate_largest_loss(pnls: Sequence[Decimal]) -> Decimal:
    losses = [p for p in pnls if p < 0]
    return min(losses).quantize(CENTS) if losses else Decimal("0")


def calculate_payoff_ratio(average_win: Decimal, average_loss: Decimal) -> Decimal:
    """
    Calculate payoff ratio (average win / |average loss|).

    Args:
        average_win: Mean winning trade
        average_loss: Mean losing trade (negative)

    Returns:
        Payoff ratio, 0 when there are no losses

    Example:
        >>> calculate_payoff_ratio(Decimal("150"), Decimal("-100"))
        Decimal('1.50')
    """
    if average_loss == Decimal("0"):
        return Decimal("0")
    return min(average_win / abs(average_loss), PROFIT_FACTOR_CAP).quantize(CENTS)


# ============================================================================
# Drawdown and risk
# ============================================================================


def calculate_max_drawdown(points: Sequence[DrawdownPoint]) -> Decimal:
    """
    Calculate maximum drawdown percentage.

    Args:
        points: Drawdown series

    Returns:
        Maximum drawdown as positive percentage (e.g., 15.0 for 15% drawdown)
    """
    if not points:
        return Decimal("0")
    return max(p.drawdown_pct for p in points).quantize(CENTS)


def calculate_avg_drawdown(points: Sequence[DrawdownPoint]) -> Decimal:
    """Mean drawdown percentage over points that are in drawdown."""
    underwater = [p.drawdown_pct for p in points if p.in_drawdown]
    if not underwater:
        return Decimal("0")
    return (sum(underwater, Decimal("0")) / Decimal(len(underwater))).quantize(CENTS)


def calculate_recovery_factor(net_pnl: Decimal, max_drawdown_amount: Decimal) -> Decimal:
    """
    Calculate recovery factor (net P&L / max drawdown in currency).

    Args:
        net_pnl: Net realized P&L
        max_drawdown_amount: Largest peak-to-trough decline in currency

    Returns:
        Recovery factor. PROFIT_FACTOR_CAP with no drawdown and positive
        P&L, 0 with no drawdown otherwise.

    Example:
        >>> calculate_recovery_factor(Decimal("3000"), Decimal("1000"))
        Decimal('3.00')
    """
    if max_drawdown_amount <= Decimal("0"):
        return PROFIT_FACTOR_CAP if net_pnl > 0 else Decimal("0")
    return min(net_pnl / max_drawdown_amount, PROFIT_FACTOR_CAP).quantize(CENTS)


def calculate_ulcer_index(points: Sequence[DrawdownPoint]) -> Decimal:
    """
    Calculate Ulcer Index (root mean square of drawdown percentages).

    Penalizes both depth and duration of drawdowns.

    Args:
        points: Drawdown series

    Returns:
        Ulcer index in percentage points
    """
    if not points:
        return Decimal("0")

    squares = [float(p.drawdown_pct) ** 2 for p in points]
    return _to_decimal(math.sqrt(_mean(squares)))


def calculate_kelly(win_probability: float, payoff: float) -> float:
    """
    Kelly fraction p - (1 - p) / R, clamped to [0, KELLY_CAP].

    Args:
        win_probability: Win rate as fraction (0-1)
        payoff: Average win / |average loss|; math.inf with no losses

    Returns:
        Fraction of capital to risk per trade
    """
    if payoff <= 0:
        return 0.0
    kelly = win_probability - (1 - win_probability) / payoff
    return min(max(kelly, 0.0), KELLY_CAP)


def ruin_recommendation(probability_pct: Decimal) -> str:
    """Plain-language advice for a risk-of-ruin percentage."""
    if probability_pct < 1:
        return "Excellent risk management. Your risk of ruin is very low."
    elif probability_pct < 5:
        return "Good risk management. Consider maintaining current position sizing."
    elif probability_pct < 10:
        return "Moderate risk. Consider reducing position size or improving win rate."
    else:
        return "High risk of ruin! Reduce position size immediately and review your strategy."


def _ruin_probability(r: float, units_to_ruin: float, units_to_target: float) -> float:
    """
    Gambler's ruin probability for a per-unit odds ratio r.

    Solves P = (r^N - r^(N+M)) / (1 - r^(N+M)). For r > 1 numerator and
    denominator are rescaled by r^-(N+M) so no power overflows.
    """
    n, m = units_to_ruin, units_to_target
    if math.isclose(r, 1.0, rel_tol=1e-12):
        return m / (n + m)
    if r < 1:
        return (r**n - r ** (n + m)) / (1 - r ** (n + m))
    return (r ** (-m) - 1) / (r ** (-(n + m)) - 1)


def calculate_risk_of_ruin(
    winning_trades: int,
    losing_trades: int,
    closed_trades: int,
    average_win: Decimal,
    average_loss: Decimal,
    max_consecutive_losses: int,
    risk_per_trade: Decimal = Decimal("0.02"),
    ruin_threshold: Decimal = Decimal("0.5"),
) -> RiskOfRuinResult:
    """
    Estimate the probability of losing ruin_threshold of capital before doubling it.

    Each trade risks risk_per_trade of capital; wins pay R times that unit.

    Args:
        winning_trades: Number of winning trades
        losing_trades: Number of losing trades
        closed_trades: Number of closed trades (break-even included)
        average_win: Mean winning trade, unrounded (a rounded cent value can be 0)
        average_loss: Mean losing trade (negative), unrounded
        max_consecutive_losses: Longest observed losing streak
        risk_per_trade: Fraction of capital risked per trade
        ruin_threshold: Fraction of capital whose loss counts as ruin

    Returns:
        RiskOfRuinResult with probability and Kelly as percentages

    Example:
        >>> result = calculate_risk_of_ruin(5, 5, 10, Decimal("100"), Decimal("-100"), 2)
        >>> result.probability_pct
        Decimal('66.67')
    """
    if closed_trades == 0:
        return RiskOfRuinResult(
            probability_pct=Decimal("0"),
            kelly_pct=Decimal("0"),
            max_consecutive_losses=max_consecutive_losses,
            recommendation=INSUFFICIENT_DATA_RECOMMENDATION,
        )

    p = winning_trades / closed_trades
    payoff = float(average_win / abs(average_loss)) if average_loss != 0 else math.inf

    if winning_trades == 0 or payoff <= 0:
        probability = 1.0
    elif losing_trades == 0:
        probability = 0.0
    else:
        r = (1 - p) / (p * payoff)
        units_to_ruin = float(ruin_threshold / risk_per_trade)
        units_to_target = float(Decimal("1") / risk_per_trade)
        probability = _ruin_probability(r, units_to_ruin, units_to_target)

    probability_pct = _to_decimal(min(max(probability, 0.0), 1.0) * 100)
    kelly_pct = _to_decimal(calculate_kelly(p, payoff) * 100)

    return RiskOfRuinResult(
        probability_pct=probability_pct,
        kelly_pct=kelly_pct,
        max_consecutive_losses=max_consecutive_losses,
        recommendation=ruin_recommendation(probability_pct),
    )


def calculate_r_multiple(pnls_and_risks: Sequence[tuple[Decimal, Decimal]]) -> Decimal:
    """
    Calculate mean R-multiple (P&L in units of initial risk).

    Args:
        pnls_and_risks: (realized P&L, initial risk amount) per qualifying trade

    Returns:
        Mean R-multiple, 0 when no trade has positive initial risk

    Example:
        >>> calculate_r_multiple([(Decimal("200"), Decimal("100")), (Decimal("-100"), Decimal("100"))])
        Decimal('0.50')
    """
    multiples = [pnl / risk for pnl, risk in pnls_and_risks if risk > 0]
    if not multiples:
        return Decimal("0")
    return (sum(multiples, Decimal("0")) / Decimal(len(multiples))).quantize(CENTS)


def calculate_consistency(period_pnl: Sequence[Decimal]) -> Decimal:
    """
    Percentage of periods (calendar months) that closed profitable.

    Args:
        period_pnl: Summed P&L per period

    Returns:
        Percentage 0-100, 0 with fewer than 2 periods
    """
    if len(period_pnl) < 2:
        return Decimal("0")
    profitable = sum(1 for p in period_pnl if p > 0)
    return (Decimal(profitable) / Decimal(len(period_pnl)) * Decimal("100")).quantize(CENTS)


# ============================================================================
# Risk-adjusted ratios
# ============================================================================


def calculate_sharpe_ratio(
    returns: Sequence[Decimal],
    risk_free_rate: Decimal,
    annualization_factor: int = 252,
    min_periods: int = 2,
) -> Decimal:
    """
    Calculate Sharpe ratio (risk-adjusted return).

    Sharpe = (mean x A - rf) / (sigma x sqrt(A)), sample sigma

    Args:
        returns: Sequence of period returns
        risk_free_rate: Annual risk-free rate as decimal (e.g., 0.04 for 4%)
        annualization_factor: Periods per year
        min_periods: Returns required before the ratio is meaningful

    Returns:
        Sharpe ratio (dimensionless), 0 with too few periods or zero variance
    """
    if len(returns) < max(min_periods, 2):
        return Decimal("0")

    values = _decimals(returns)
    variance = _sample_variance(values)
    if variance == 0:
        return Decimal("0")

    volatility = math.sqrt(float(variance)) * math.sqrt(annualization_factor)
    annualized_return = float(_decimal_mean(values)) * annualization_factor
    return _to_decimal((annualized_return - float(risk_free_rate)) / volatility)


def calculate_sortino_ratio(
    returns: Sequence[Decimal],
    risk_free_rate: Decimal,
    annualization_factor: int = 252,
    min_periods: int = 2,
) -> Decimal:
    """
    Calculate Sortino ratio (risk-adjusted return using downside deviation).

    Similar to Sharpe but only penalizes downside volatility. Downside
    deviation is sqrt(sum(min(r, 0)^2) / n) x sqrt(A).

    Args:
        returns: Sequence of period returns
        risk_free_rate: Annual risk-free rate as decimal
        annualization_factor: Periods per year
        min_periods: Returns required before the ratio is meaningful

    Returns:
        Sortino ratio (dimensionless), 0 with too few periods or no downside
    """
    if len(returns) < max(min_periods, 2):
        return Decimal("0")

    values = _decimals(returns)
    downside_variance = sum((min(r, Decimal("0")) ** 2 for r in values), Decimal("0")) / Decimal(len(values))
    if downside_variance == 0:
        return Decimal("0")

    downside_deviation = math.sqrt(float(downside_variance)) * math.sqrt(annualization_factor)
    annualized_return = float(_decimal_mean(values)) * annualization_factor

    return _to_decimal((annualized_return - float(risk_free_rate)) / downside_deviation)


def calculate_calmar_ratio(
    returns: Sequence[Decimal],
    max_drawdown: Decimal,
    annualization_factor: int = 252,
    min_periods: int = 2,
) -> Decimal:
    """
    Calculate Calmar ratio (annualized mean return / max drawdown).

    Args:
        returns: Sequence of period returns
        max_drawdown: Maximum drawdown as fraction (0-1)
        annualization_factor: Periods per year
        min_periods: Returns required before the ratio is meaningful

    Returns:
        Calmar ratio (dimensionless), 0 with no drawdown or too few periods

    Example:
        >>> calculate_calmar_ratio([Decimal("0.01"), Decimal("0.01")], Decimal("0.12"), 12)
        Decimal('1.00')
    """
    if len(returns) < max(min_periods, 2) or max_drawdown <= 0:
        return Decimal("0")

    annualized_return = _mean([float(r) for r in returns]) * annualization_factor
    return _to_decimal(annualized_return / float(max_drawdown))


def calculate_beta(returns: Sequence[Decimal], benchmark_returns: Sequence[Decimal] | None) -> Decimal | None:
    """
    Calculate beta against a benchmark (cov(r, b) / var(b)).

    Only the aligned prefix of both series is used.

    Args:
        returns: Strategy period returns
        benchmark_returns: Benchmark returns of the same periodicity

    Returns:
        Beta, or None without a benchmark, with fewer than 2 aligned points
        or when the benchmark has zero variance
    """
    if benchmark_returns is None:
        return None

    n = min(len(returns), len(benchmark_returns))
    if n < 2:
        return None

    r = _decimals(returns[:n])
    b = _decimals(benchmark_returns[:n])

    benchmark_variance = _sample_variance(b)
    if benchmark_variance == 0:
        return None

    mean_r, mean_b = _decimal_mean(r), _decimal_mean(b)
    covariance = sum(((ri - mean_r) * (bi - mean_b) for ri, bi in zip(r, b)), Decimal("0")) / Decimal(n - 1)

    return (covariance / benchmark_variance).quantize(RATIO)


def calculate_treynor_ratio(
    returns: Sequence[Decimal],
    risk_free_rate: Decimal,
    beta: Decimal | None,
    annualization_factor: int = 252,
    min_periods: int = 2,
) -> Decimal | None:
    """
    Calculate Treynor ratio ((mean x A - rf) / beta).

    Returns:
        Treynor ratio, None when beta is None, 0 when beta is 0 or periods are too few
    """
    if beta is None:
        return None
    if beta == 0 or len(returns) < max(min_periods, 2):
        return Decimal("0")

    annualized_return = _mean([float(r) for r in returns]) * annualization_factor
    return _to_decimal((annualized_return - float(risk_free_rate)) / float(beta))


def calculate_jensens_alpha(
    returns: Sequence[Decimal],
    benchmark_returns: Sequence[Decimal] | None,
    risk_free_rate: Decimal,
    beta: Decimal | None,
    annualization_factor: int = 252,
    min_periods: int = 2,
) -> Decimal | None:
    """
    Calculate Jensen's alpha (excess return over the CAPM expectation).

    alpha = mean x A - [rf + beta x (mean_b x A - rf)]

    Returns:
        Annualized alpha as decimal, None when beta is None
    """
    if beta is None or benchmark_returns is None:
        return None
    if len(returns) < max(min_periods, 2):
        return Decimal("0")

    n = min(len(returns), len(benchmark_returns))
    annualized_return = _mean([float(r) for r in returns]) * annualization_factor
    annualized_benchmark = _mean([float(b) for b in benchmark_returns[:n]]) * annualization_factor
    rf = float(risk_free_rate)

    alpha = annualized_return - (rf + float(beta) * (annualized_benchmark - rf))
    return _to_decimal(alpha, RATIO)
