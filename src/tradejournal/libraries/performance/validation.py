"""
Boundary validation of raw trade records.

Raw mappings (from CSV/JSON import) pass two checks before becoming
Trade models:

    trade.v1.json (jsonschema)  <- wire contract: keys, types, value shapes
         |
    Trade (pydantic)            <- domain rules: aliases, UTC, exit after entry

Policies:
- reject:  raise InvalidTradeRecordError on the first bad record
- exclude: drop bad records and report them as RejectedRecord entries
"""

import json
from datetime import datetime
from functools import lru_cache
from importlib import resources
from typing import Any, Iterable, Literal, Mapping

from jsonschema import Draft202012Validator, FormatChecker
from pydantic import BaseModel, Field, ValidationError

from tradejournal.libraries.performance.models import Trade
from tradejournal.system.log_system import LoggerFactory

SCHEMA_PACKAGE = "tradejournal.contracts.schemas"
TRADE_SCHEMA = "trade.v1.json"

ValidationPolicy = Literal["reject", "exclude"]

logger = LoggerFactory.get_logger()


class TradeValidationError(Exception):
    """Base class for trade record validation failures."""


class InvalidTradeRecordError(TradeValidationError):
    """A raw trade record failed the contract or model checks."""

    def __init__(self, index: int, reason: str, trade_id: str | None = None) -> None:
        self.index = index
        self.reason = reason
        self.trade_id = trade_id
        label = f" (trade_id={trade_id})" if trade_id else ""
        super().__init__(f"Invalid trade record #{index}{label}: {reason}")


class RejectedRecord(BaseModel):
    """A record dropped under the exclude policy."""

    index: int
    trade_id: str | None = None
    reason: str


class ValidationReport(BaseModel):
    """Outcome of validating a batch of raw records."""

    trades: list[Trade] = Field(default_factory=list)
    rejected: list[RejectedRecord] = Field(default_factory=list)

    @property
    def accepted_count(self) -> int:
        return len(self.trades)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)


@lru_cache(maxsize=8)
def load_and_compile_schema(schema_name: str = TRADE_SCHEMA) -> Draft202012Validator:
    """
    Load and compile a JSON Schema validator with caching.

    Uses importlib.resources for package-safe loading (works with wheels).

    Raises:
        FileNotFoundError: If schema file doesn't exist
    """
    try:
        schema_file = resources.files(SCHEMA_PACKAGE).joinpath(schema_name)
        with schema_file.open("r", encoding="utf-8") as f:
            schema = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Schema not found: {schema_name} in package {SCHEMA_PACKAGE}")

    return Draft202012Validator(schema, format_checker=FormatChecker())


def _to_wire(record: Mapping[str, Any]) -> dict[str, Any]:
    """Render datetimes as ISO strings, the form the contract describes."""
    return {key: value.isoformat() if isinstance(value, datetime) else value for key, value in record.items()}


def _schema_reason(record: Mapping[str, Any]) -> str | None:
    validator = load_and_compile_schema(TRADE_SCHEMA)
    error = next(iter(sorted(validator.iter_errors(_to_wire(record)), key=lambda e: list(e.path))), None)
    if error is None:
        return None
    path = ".".join(str(p) for p in error.path)
    return f"{path}: {error.message}" if path else error.message


def _model_reason(error: ValidationError) -> str:
    first = error.errors()[0]
    path = ".".join(str(p) for p in first["loc"])
    return f"{path}: {first['msg']}" if path else first["msg"]


def validate_trade_record(record: Mapping[str, Any], index: int = 0) -> Trade:
    """
    Validate one raw record and build a Trade.

    Raises:
        InvalidTradeRecordError: With the first contract or model violation
    """
    trade_id = record.get("trade_id")
    trade_id = str(trade_id) if trade_id is not None else None

    reason = _schema_reason(record)
    if reason is not None:
        raise InvalidTradeRecordError(index, reason, trade_id)

    try:
        return Trade.model_validate(dict(record))
    except ValidationError as e:
        raise InvalidTradeRecordError(index, _model_reason(e), trade_id) from e


def validate_trade_records(
    records: Iterable[Mapping[str, Any]],
    policy: ValidationPolicy = "reject",
) -> ValidationReport:
    """
    Validate a batch of raw trade records.

    Args:
        records: Raw mappings, e.g. rows from a CSV import
        policy: "reject" raises on the first bad record, "exclude" drops it

    Returns:
        ValidationReport with the accepted trades in input order

    Raises:
        InvalidTradeRecordError: Under the reject policy
        ValueError: For an unknown policy
    """
    if policy not in ("reject", "exclude"):
        raise ValueError(f"Unknown validation policy: {policy!r} (expected 'reject' or 'exclude')")

    report = ValidationReport()

    for index, record in enumerate(records):
        try:
            report.trades.append(validate_trade_record(record, index))
        except InvalidTradeRecordError as e:
            if policy == "reject":
                logger.error("validation.record_rejected", index=e.index, trade_id=e.trade_id, reason=e.reason)
                raise
            logger.warning("validation.record_excluded", index=e.index, trade_id=e.trade_id, reason=e.reason)
            report.rejected.append(RejectedRecord(index=e.index, trade_id=e.trade_id, reason=e.reason))

    logger.debug("validation.completed", accepted=report.accepted_count, rejected=report.rejected_count)
    return report
