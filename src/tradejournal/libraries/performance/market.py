"""Market-specific P&L rules.

Prices move in points; a point is worth a different amount depending on
the market. Futures use per-root contract multipliers, options are 100
shares per contract, and forex quantities are interpreted as lots unless
they are already large enough to be units.
"""

import re
from decimal import Decimal

from tradejournal.libraries.performance.models import MarketType, Trade

FUTURES_MULTIPLIERS: dict[str, Decimal] = {
    "ES": Decimal("50"),  # E-mini S&P 500
    "NQ": Decimal("20"),  # E-mini Nasdaq
    "RTY": Decimal("50"),  # E-mini Russell
    "YM": Decimal("5"),  # E-mini Dow
    "CL": Decimal("1000"),  # Crude oil, per barrel
    "GC": Decimal("100"),  # Gold
    "ZB": Decimal("1000"),  # 30Y T-Bond
    "ZN": Decimal("1000"),  # 10Y T-Note
    "ZF": Decimal("1000"),  # 5Y T-Note
    "ZT": Decimal("2000"),  # 2Y T-Note
    "6E": Decimal("125000"),  # Euro FX
    "6J": Decimal("12500000"),  # Japanese Yen
    "NG": Decimal("10000"),  # Natural gas
}

OPTIONS_MULTIPLIER = Decimal("100")

FOREX_STANDARD_LOT = Decimal("100000")

# Ordered: first match wins. Futures before stocks since "ES" is also a valid ticker shape.
_SYMBOL_PATTERNS: list[tuple[MarketType, re.Pattern[str]]] = [
    (MarketType.OPTIONS, re.compile(r"^[A-Z]{1,5}[\s_]\d{6}[CP]\d+$")),
    (MarketType.FUTURES, re.compile(r"^(ES|NQ|RTY|YM|ZB|ZN|ZF|ZT|CL|GC|SI|HG|NG|6E|6J|6B|6C|6A|6S)([FGHJKMNQUVXZ]\d{1,2})?$")),
    (MarketType.FOREX, re.compile(r"^[A-Z]{3}[/\-\s]?[A-Z]{3}$")),
    (MarketType.CRYPTO, re.compile(r"^[A-Z]{2,5}[/\-]?(USDT?|PERP)$")),
    (MarketType.STOCKS, re.compile(r"^[A-Z]{1,5}(\.[A-Z])?$")),
]


def detect_market_from_symbol(symbol: str) -> MarketType | None:
    """
    Guess the market type from a symbol's shape.

    Returns:
        MarketType, or None if no pattern matches

    Example:
        >>> detect_market_from_symbol("ESZ4")
        <MarketType.FUTURES: 'futures'>
        >>> detect_market_from_symbol("EUR/USD")
        <MarketType.FOREX: 'forex'>
    """
    if not symbol:
        return None

    upper = symbol.strip().upper()
    for market_type, pattern in _SYMBOL_PATTERNS:
        if pattern.match(upper):
            return market_type
    return None


def forex_lot_size(quantity: Decimal) -> Decimal:
    """Units per quantity step for forex trades."""
    if quantity < Decimal("0.01"):
        return Decimal("100000000")
    if quantity >= Decimal("1000"):
        return Decimal("1")  # Already expressed in units
    return FOREX_STANDARD_LOT


def futures_root(symbol: str) -> str:
    """Strip contract month/year suffix from a futures symbol (ESZ24 -> ES)."""
    upper = symbol.strip().upper()
    for root in sorted(FUTURES_MULTIPLIERS, key=len, reverse=True):
        if upper.startswith(root):
            return root
    return upper


def contract_multiplier(trade: Trade) -> Decimal:
    """
    Currency value of a one-point move per unit of quantity.

    An explicit contract_multiplier on the trade always wins.
    """
    if trade.contract_multiplier is not None:
        return trade.contract_multiplier

    if trade.market_type == MarketType.FUTURES:
        return FUTURES_MULTIPLIERS.get(futures_root(trade.symbol), Decimal("1"))
    if trade.market_type == MarketType.OPTIONS:
        return OPTIONS_MULTIPLIER
    if trade.market_type == MarketType.FOREX:
        return forex_lot_size(trade.quantity)
    return Decimal("1")


def pnl_at_price(trade: Trade, price: Decimal) -> Decimal:
    """Gross P&L if the trade were closed at price (commission excluded)."""
    return (price - trade.entry_price) * trade.quantity * trade.sign * contract_multiplier(trade)


def trade_pnl(trade: Trade) -> Decimal | None:
    """
    Realized P&L of a closed trade, net of commission.

    Returns:
        P&L in currency units, or None for open trades

    Example:
        >>> trade = Trade(trade_id="1", symbol="AAPL", direction="long",
        ...               entry_price=Decimal("100"), exit_price=Decimal("110"), quantity=Decimal("1"))
        >>> trade_pnl(trade)
        Decimal('10')
    """
    if trade.exit_price is None:
        return None
    return pnl_at_price(trade, trade.exit_price) - trade.commission


def return_pct_at_price(trade: Trade, price: Decimal) -> Decimal:
    """Directional price move from entry as a percentage of entry."""
    return (price - trade.entry_price) / trade.entry_price * Decimal("100") * trade.sign
