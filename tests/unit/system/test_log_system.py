"""Tests for the journal's logging setup.

Tests cover:
- Console output on stderr (colored lines or JSON), stdout left alone
- Domain layouts for analytics.* and validation.* events
- JSON-lines log file: levels, default path, rotation
"""

import json
import logging
import re
from logging.handlers import RotatingFileHandler

import pytest
from pydantic import ValidationError

from tradejournal.system import LoggerFactory, LoggingConfig
from tradejournal.system.log_system import _SystemLogFormatters, _timestamper

ANSI = re.compile(r"\033\[[0-9;]*m")


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before and after each test."""
    LoggerFactory.reset()
    yield
    LoggerFactory.reset()


def _plain(text: str) -> str:
    return ANSI.sub("", text)


def _file_records(path) -> list[dict]:
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


class TestConsoleOutput:
    def test_console_logs_go_to_stderr_only(self, capsys):
        LoggerFactory.configure(LoggingConfig(enable_file=False))

        LoggerFactory.get_logger("tradejournal.services.analytics.loaders").info(
            "analytics.trades_loaded", path="trades.csv", count=3
        )

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Trades Loaded" in _plain(captured.err)

    def test_json_console_format(self, capsys):
        LoggerFactory.configure(LoggingConfig(format="json", enable_file=False))

        LoggerFactory.get_logger("tradejournal.cli").warning("validation.record_excluded", index=4, reason="side")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "validation.record_excluded"
        assert record["index"] == 4
        assert record["level"] == "warning"
        assert record["logger"] == "tradejournal.cli"

    def test_console_level_filters(self, capsys):
        LoggerFactory.configure(LoggingConfig(level="WARNING", enable_file=False))
        logger = LoggerFactory.get_logger("tradejournal.cli")

        logger.info("analytics.metrics_computed", closed_trades=5)
        logger.warning("analytics.samples_outside_window", trade_id="T1")

        err = _plain(capsys.readouterr().err)
        assert "Metrics Computed" not in err
        assert "Samples Outside Window" in err

    def test_console_line_ends_with_location(self, capsys):
        LoggerFactory.configure(LoggingConfig(enable_file=False))

        LoggerFactory.get_logger("tradejournal.services.analytics.service").info("analytics.metrics_computed")

        err = _plain(capsys.readouterr().err)
        assert "(tradejournal.services.analytics.service.test_log_system:" in err

    def test_console_width_truncates_lines(self, capsys):
        LoggerFactory.configure(LoggingConfig(enable_file=False, console_width=40))
        logger = LoggerFactory.get_logger("width.test")

        logger.info("analytics.metrics_computed", closed_trades=1200, net_pnl="123456.78", preset="default")

        lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
        assert lines
        assert all(len(line) <= 40 for line in lines)
        assert lines[-1].endswith("…")


class TestSystemLogFormatters:
    """Console layouts keyed on the event name prefix."""

    def test_analytics_layout(self):
        line = _plain(
            _SystemLogFormatters.format_system_log(
                "analytics.metrics_computed",
                {"path": "trades.csv", "count": 12, "closed_trades": 10, "net_pnl": "250.00", "preset": "swing"},
                "INFO",
                "240101-120000.00",
            )
        )

        assert line.startswith("240101-120000.00 | Analytics | Metrics Computed")
        assert "trades.csv" in line
        assert "Records: 12" in line
        assert "Closed: 10" in line
        assert "Net P&L: 250.00" in line
        assert line.endswith("preset=swing")
        assert "count=" not in line
        assert "net_pnl=" not in line

    def test_validation_layout(self):
        line = _plain(
            _SystemLogFormatters.format_system_log(
                "validation.record_excluded",
                {"index": 3, "trade_id": "T3", "reason": "direction: unknown side 'hold'"},
                "WARNING",
                "ts",
            )
        )

        assert "Validation | Record Excluded" in line
        assert "Record #3" in line
        assert "T3" in line
        assert "unknown side 'hold'" in line
        assert "trade_id=" not in line

    def test_other_events_keep_context(self):
        line = _plain(_SystemLogFormatters.format_system_log("preset_loaded", {"name": "scalping"}, "DEBUG", "ts"))

        assert line == "ts | Preset Loaded | name=scalping"

    def test_level_sets_color(self):
        line = _SystemLogFormatters.format_system_log("analytics.file_unreadable", {}, "ERROR", "ts")

        assert f"{_SystemLogFormatters.RED}Analytics" in line

    @pytest.mark.parametrize(
        "fmt,pattern",
        [
            ("compact", r"^\d{6}-\d{6}\.\d{2}$"),
            ("time", r"^\d{2}:\d{2}:\d{2}\.\d{2}$"),
            ("short", r"^\d{4}T\d{6}$"),
            ("iso", r"^\d{4}-\d{2}-\d{2}T.*\+00:00$"),
        ],
    )
    def test_timestamp_formats(self, fmt, pattern):
        event_dict = _timestamper(fmt)(None, "info", {})

        assert re.match(pattern, event_dict["log_timestamp"])


class TestFileOutput:
    """JSON-lines log file."""

    def test_analytics_event_written_as_json_line(self, tmp_path):
        log_file = tmp_path / "journal.log"
        LoggerFactory.configure(LoggingConfig(level="ERROR", file_path=log_file, file_level="INFO"))

        LoggerFactory.get_logger("tradejournal.services.analytics.loaders").info(
            "analytics.trades_loaded", path="trades.csv", count=120
        )

        [record] = _file_records(log_file)
        assert record["event"] == "analytics.trades_loaded"
        assert record["path"] == "trades.csv"
        assert record["count"] == 120
        assert record["level"] == "info"
        assert record["logger"] == "tradejournal.services.analytics.loaders"
        assert "log_timestamp" in record

    def test_default_file_level_is_warning(self, tmp_path):
        log_file = tmp_path / "journal.log"
        LoggerFactory.configure(LoggingConfig(level="ERROR", file_path=log_file))
        logger = LoggerFactory.get_logger("tradejournal.services.analytics.service")

        logger.info("analytics.metrics_computed", closed_trades=4)
        logger.warning("validation.record_excluded", index=2, reason="quantity")

        assert [r["event"] for r in _file_records(log_file)] == ["validation.record_excluded"]

    def test_file_level_independent_from_console_level(self, tmp_path, capsys):
        log_file = tmp_path / "journal.log"
        LoggerFactory.configure(LoggingConfig(level="ERROR", file_path=log_file, file_level="DEBUG"))

        LoggerFactory.get_logger("tradejournal.services.analytics.loaders").debug(
            "analytics.columns_mapped", mapping={"Qty": "quantity"}
        )

        assert _file_records(log_file)[0]["mapping"] == {"Qty": "quantity"}
        assert "Columns Mapped" not in _plain(capsys.readouterr().err)

    def test_default_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        LoggerFactory.configure(LoggingConfig(level="ERROR", file_path=None))

        LoggerFactory.get_logger("tradejournal.cli").error("analytics.file_unreadable", path="broken.csv")

        assert str(LoggerFactory.get_config().file_path) == "logs/tradejournal.log"
        assert _file_records(tmp_path / "logs" / "tradejournal.log")[0]["path"] == "broken.csv"

    def test_rotation_settings(self, tmp_path):
        log_file = tmp_path / "journal.log"
        LoggerFactory.configure(LoggingConfig(file_path=log_file, max_file_size_mb=2, backup_count=5))

        [handler] = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
        assert handler.baseFilename == str(log_file)
        assert handler.maxBytes == 2 * 1024 * 1024
        assert handler.backupCount == 5

    def test_file_rolls_over(self, tmp_path):
        log_file = tmp_path / "journal.log"
        LoggerFactory.configure(LoggingConfig(level="ERROR", file_path=log_file, backup_count=2))
        [handler] = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
        handler.maxBytes = 300
        logger = LoggerFactory.get_logger("tradejournal.services.analytics.loaders")

        for index in range(20):
            logger.warning("validation.record_excluded", index=index, reason="quantity: must be positive")

        assert (tmp_path / "journal.log.1").exists()
        assert (tmp_path / "journal.log.2").exists()
        assert not (tmp_path / "journal.log.3").exists()

    def test_rotation_off_uses_plain_file(self, tmp_path):
        log_file = tmp_path / "journal.log"
        LoggerFactory.configure(LoggingConfig(file_path=log_file, file_rotation=False))

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert not isinstance(file_handlers[0], RotatingFileHandler)

    def test_file_disabled(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        LoggerFactory.configure(LoggingConfig(enable_file=False))

        LoggerFactory.get_logger("tradejournal.cli").error("analytics.file_unreadable")

        assert not (tmp_path / "logs").exists()
        assert not [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]


def test_reset_drops_handlers():
    LoggerFactory.configure(LoggingConfig(level="DEBUG", enable_file=False))

    LoggerFactory.reset()

    assert not LoggerFactory.is_configured()
    assert logging.getLogger().handlers == []
    assert LoggerFactory.get_config().level == "INFO"


def test_pydantic_validation():
    """LoggingConfig rejects unknown levels and out-of-range sizes."""
    with pytest.raises(ValidationError):
        LoggingConfig(level="VERBOSE")  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        LoggingConfig(console_width=-1)
    with pytest.raises(ValidationError):
        LoggingConfig(max_file_size_mb=0)
