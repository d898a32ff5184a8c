"""Trade and price file loaders.

Reads journal exports (CSV or JSON) into raw record dicts ready for
validation, and price sample files into PricePoint series.

Broker exports name their columns differently. Headers are normalized
(lowercase, non-alphanumerics removed) and matched against COLUMN_ALIASES;
the first header matching a field wins and unmatched columns are dropped.

CSV values are read as strings so decimal prices keep their exact digits.
"""

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import pandas as pd

from tradejournal.libraries.performance.market import detect_market_from_symbol
from tradejournal.libraries.performance.models import PricePoint
from tradejournal.system import LoggerFactory

logger = LoggerFactory.get_logger()

SUPPORTED_SUFFIXES = (".csv", ".json")

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "trade_id": ("tradeid", "id", "ticket", "orderid"),
    "symbol": ("symbol", "ticker", "stock", "asset", "instrument"),
    "direction": ("direction", "side", "action", "type", "buysell"),
    "entry_price": ("entryprice", "entry", "open", "openprice", "price", "fillprice"),
    "exit_price": ("exitprice", "exit", "close", "closeprice"),
    "quantity": ("quantity", "qty", "size", "shares", "lots", "units", "amount"),
    "entry_time": ("entrytime", "entrydate", "date", "time", "tradedate", "opentime", "executed"),
    "exit_time": ("exittime", "exitdate", "closedate", "closetime"),
    "commission": ("commission", "commissions", "fee", "fees", "charges"),
    "notes": ("notes", "note", "comment", "description", "remarks"),
    "market_type": ("markettype", "market", "assetclass"),
    "stop_loss": ("stoploss", "stop", "sl"),
    "take_profit": ("takeprofit", "target", "tp"),
    "contract_multiplier": ("contractmultiplier", "multiplier", "pointvalue"),
}

PRICE_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "trade_id": ("tradeid", "id"),
    "timestamp": ("timestamp", "datetime", "time", "date"),
    "price": ("price", "close", "last"),
    "volume": ("volume", "vol"),
}


def normalize_header(header: str) -> str:
    """Lowercase a header and strip everything but letters and digits."""
    return "".join(ch for ch in str(header).lower() if ch.isalnum())


def map_columns(headers: list[str], aliases: dict[str, tuple[str, ...]] = COLUMN_ALIASES) -> dict[str, str]:
    """
    Map source headers to field names.

    Returns:
        {source header: field name} for every header that matched a field

    Example:
        >>> map_columns(["Ticker", "Side", "Qty", "Entry", "Exit"])
        {'Ticker': 'symbol', 'Side': 'direction', 'Qty': 'quantity', 'Entry': 'entry_price', 'Exit': 'exit_price'}
    """
    lookup = {alias: field for field, names in aliases.items() for alias in names}
    mapping: dict[str, str] = {}
    claimed: set[str] = set()

    for header in headers:
        field = lookup.get(normalize_header(header))
        if field is None or field in claimed:
            continue
        mapping[header] = field
        claimed.add(field)

    return mapping


def _clean(value: Any) -> Any:
    """Blank cells and NaN become None; strings are stripped."""
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _read_rows(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        frame = pd.read_csv(path, dtype=str, keep_default_na=True, skipinitialspace=True)
        return frame.to_dict(orient="records")
    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("trades", data.get("prices"))
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise ValueError(f"{path}: expected a JSON list of objects (or an object with a 'trades' list)")
        return data

    raise ValueError(f"Unsupported file type '{path.suffix}' for {path}. Supported: {', '.join(SUPPORTED_SUFFIXES)}")


def _remap(rows: list[dict[str, Any]], aliases: dict[str, tuple[str, ...]], path: Path) -> list[dict[str, Any]]:
    headers: list[str] = []
    for row in rows:
        for key in row:
            if key not in headers:
                headers.append(key)

    mapping = map_columns(headers, aliases)
    dropped = [h for h in headers if h not in mapping]
    logger.debug("analytics.columns_mapped", path=str(path), mapping=mapping, dropped=dropped)

    records = []
    for row in rows:
        record = {}
        for header, field in mapping.items():
            value = _clean(row.get(header))
            if value is not None:
                record[field] = value
        records.append(record)
    return records


def load_trade_records(path: str | Path, detect_markets: bool = False) -> list[dict[str, Any]]:
    """
    Load raw trade records from a CSV or JSON file.

    Args:
        path: Trade file
        detect_markets: Tag records without market_type from their symbol shape
            (e.g. ESZ4 -> futures), which changes the P&L multiplier

    Returns:
        Raw records keyed by Trade field names. Records without a trade_id
        get their 1-based row number.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file type or layout is not supported
    """
    path = Path(path)
    records = _remap(_read_rows(path), COLUMN_ALIASES, path)

    for row_number, record in enumerate(records, start=1):
        record["trade_id"] = str(record.get("trade_id", row_number))
        if detect_markets and "market_type" not in record and "symbol" in record:
            market = detect_market_from_symbol(str(record["symbol"]))
            if market is not None:
                record["market_type"] = market.value

    logger.info("analytics.trades_read", path=str(path), count=len(records))
    return records


def load_price_points(path: str | Path) -> dict[str | None, list[PricePoint]]:
    """
    Load price samples, grouped by trade_id.

    Samples without a trade_id column are stored under the None key and
    apply to every trade (each trade keeps only samples inside its window).

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If required columns are missing or a value is invalid
    """
    path = Path(path)
    records = _remap(_read_rows(path), PRICE_COLUMN_ALIASES, path)

    series: dict[str | None, list[PricePoint]] = {}
    for row_number, record in enumerate(records, start=1):
        if "timestamp" not in record or "price" not in record:
            raise ValueError(f"{path}: row {row_number} needs 'timestamp' and 'price' values")
        try:
            point = PricePoint(
                timestamp=record["timestamp"],
                price=Decimal(str(record["price"])),
                volume=Decimal(str(record["volume"])) if "volume" in record else None,
            )
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"{path}: row {row_number} is not a valid price sample: {e}") from e

        trade_id = str(record["trade_id"]) if "trade_id" in record else None
        series.setdefault(trade_id, []).append(point)

    logger.info("analytics.prices_read", path=str(path), count=len(records), trades=len(series))
    return series


def load_benchmark_returns(path: str | Path) -> tuple[Decimal, ...]:
    """
    Load a benchmark return series (one decimal return per period).

    Accepts a CSV with a 'return' column (or a single column) or a JSON list
    of numbers.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If no return column is found or a value is not numeric
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if path.suffix.lower() == ".json":
        with open(path, "r", encoding="utf-8") as f:
            values = json.load(f)
        if not isinstance(values, list):
            raise ValueError(f"{path}: expected a JSON list of returns")
    elif path.suffix.lower() == ".csv":
        frame = pd.read_csv(path, dtype=str)
        columns = {normalize_header(c): c for c in frame.columns}
        column = columns.get("return") or columns.get("returns")
        if column is None:
            if len(frame.columns) != 1:
                raise ValueError(f"{path}: expected a 'return' column, found {list(frame.columns)}")
            column = frame.columns[0]
        values = [v for v in frame[column].tolist() if _clean(v) is not None]
    else:
        raise ValueError(f"Unsupported file type '{path.suffix}' for {path}. Supported: {', '.join(SUPPORTED_SUFFIXES)}")

    try:
        return tuple(Decimal(str(v).strip()) for v in values)
    except InvalidOperation as e:
        raise ValueError(f"{path}: benchmark returns must be numeric") from e
