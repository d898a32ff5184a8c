"""Builders shared by the test modules."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from tradejournal.libraries.performance.models import Trade

BASE_TIME = datetime(2024, 1, 2, 14, 30, tzinfo=timezone.utc)


def make_trade(
    trade_id: str = "T1",
    entry: str = "100",
    exit: str | None = "110",
    quantity: str = "1",
    direction: str = "long",
    day: int | None = 0,
    **fields,
) -> Trade:
    """Build a Trade with prices as strings; day offsets entry/exit from BASE_TIME (None = untimed)."""
    if day is not None:
        fields.setdefault("entry_time", BASE_TIME + timedelta(days=day))
        fields.setdefault("exit_time", BASE_TIME + timedelta(days=day, hours=2))
    return Trade(
        trade_id=trade_id,
        symbol=fields.pop("symbol", "AAPL"),
        direction=direction,
        entry_price=Decimal(entry),
        exit_price=Decimal(exit) if exit is not None else None,
        quantity=Decimal(quantity),
        **fields,
    )
