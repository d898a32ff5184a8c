"""Centralized logging configuration for the trading journal.

structlog is routed through stdlib logging so that one set of handlers
serves both structlog loggers and plain `logging` users (pandas, etc.):

- console handler on stderr, colored one-line output (or JSON)
- optional file handler, JSON lines, rotating by size

Event names are dotted (`analytics.trades_loaded`); the prefix selects the
console layout.
"""

import inspect
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Literal

import structlog
from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LOG_FILE = Path("logs/tradejournal.log")

# strftime patterns per timestamp_format; "{ms}" is hundredths of a second
_TIMESTAMP_PATTERNS = {
    "compact": "%y%m%d-%H%M%S.{ms}",
    "time": "%H:%M:%S.{ms}",
    "short": "%m%dT%H%M%S",
}


class LoggingConfig(BaseModel):
    """Configuration for logging system.

    Logging Levels Guide:

    INFO (Default):
    - Trade files loaded (summary)
    - Metrics computed
    - Preset loaded

    DEBUG (Developer Mode):
    - Column mapping during import
    - Per-trade excursion details
    - Config resolution

    WARNING:
    - Records excluded by validation
    - Price samples outside a trade's window

    ERROR:
    - Files that cannot be read
    - Records rejected by validation

    Console logs go to stderr so that `--json` output on stdout stays parseable.

    Timestamp Format Options:
    - "iso": 2025-10-22T20:50:07.288824+00:00
    - "compact": 251022-205007.28 (YYMMDD-HHMMSS.hh)
    - "time": 20:50:07.28
    - "short": 1022T205007 (MMDDTHHMMSS)
    """

    level: LogLevel = Field(default="INFO", description="Minimum console log level")
    format: Literal["console", "json"] = Field(default="console", description="Console renderer")
    timestamp_format: Literal["iso", "compact", "time", "short"] = Field(
        default="compact",
        description="Timestamp layout for console lines",
    )
    enable_file: bool = Field(default=True, description="Also write JSON lines to file_path")
    file_path: Path | None = Field(default=None, description="Log file (logs/tradejournal.log when None)")
    file_level: LogLevel = Field(default="WARNING", description="Minimum file log level")
    file_rotation: bool = Field(default=True, description="Rotate the log file by size")
    max_file_size_mb: int = Field(default=10, gt=0, description="Rotation size in MB")
    backup_count: int = Field(default=3, ge=0, description="Rotated files to keep")
    console_width: int = Field(default=0, ge=0, description="Truncate console lines (0 = no limit)")


class LoggerFactory:
    """
    Factory for creating and configuring structured loggers.

    Call configure() once at application startup (the CLI does this from
    system.yaml), then use get_logger() in modules. get_logger() configures
    defaults on first use when nothing has been configured yet.

    Example:
        >>> LoggerFactory.configure(LoggingConfig(level="DEBUG", enable_file=False))
        >>> logger = LoggerFactory.get_logger()
        >>> logger.info("analytics.trades_loaded", path="trades.csv", count=120)
    """

    _config: LoggingConfig | None = None
    _configured: bool = False

    @classmethod
    def configure(cls, config: LoggingConfig | None = None) -> None:
        """
        Configure the logging system, replacing any previous handlers.

        Args:
            config: LoggingConfig instance. If None, uses default configuration.
        """
        config = config or LoggingConfig()
        if config.enable_file and config.file_path is None:
            config.file_path = DEFAULT_LOG_FILE
        cls._config = config

        pre_chain = cls._pre_chain(config.timestamp_format)
        handlers = [cls._console_handler(config, pre_chain)]
        root_level = getattr(logging, config.level)

        if config.enable_file:
            handlers.append(cls._file_handler(config, pre_chain))
            root_level = min(root_level, getattr(logging, config.file_level))

        logging.basicConfig(level=root_level, handlers=handlers, force=True)

        if config.format == "console":
            exception_processors: list[Any] = [
                structlog.dev.set_exc_info,
                structlog.processors.ExceptionRenderer(structlog.dev.plain_traceback),  # type: ignore[arg-type]
            ]
        else:
            exception_processors = [structlog.processors.format_exc_info]

        structlog.configure(
            processors=[*pre_chain, *exception_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        cls._configured = True

    @classmethod
    def _pre_chain(cls, timestamp_format: str) -> list[Any]:
        """Processors applied to every record before a handler renders it."""
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _timestamper(timestamp_format),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
        ]

    @classmethod
    def _console_handler(cls, config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setLevel(getattr(logging, config.level))

        renderer: Any
        if config.format == "console":
            renderer = _console_renderer(config.console_width)
        else:
            renderer = structlog.processors.JSONRenderer()
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))
        return handler

    @classmethod
    def _file_handler(cls, config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        """JSON-lines file handler; creates the log directory."""
        file_path = config.file_path or DEFAULT_LOG_FILE
        file_path.parent.mkdir(parents=True, exist_ok=True)

        handler: logging.Handler
        if config.file_rotation:
            handler = RotatingFileHandler(
                filename=str(file_path),
                maxBytes=config.max_file_size_mb * 1024 * 1024,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(filename=str(file_path), encoding="utf-8")

        handler.setLevel(getattr(logging, config.file_level))
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=pre_chain,
            )
        )
        return handler

    @classmethod
    def get_logger(cls, name: str | None = None):
        """
        Get a configured logger instance.

        Args:
            name: Logger name. If None, the calling module's __name__ is used.

        Returns:
            structlog BoundLogger (lazy proxy until first use)
        """
        if not cls._configured:
            cls.configure()

        if name is None:
            frame = inspect.currentframe()
            caller = frame.f_back if frame else None
            name = caller.f_globals.get("__name__", "tradejournal") if caller else "tradejournal"

        return structlog.get_logger(name)

    @classmethod
    def get_config(cls) -> LoggingConfig:
        """Current configuration (defaults when not configured)."""
        return cls._config or LoggingConfig()

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Drop all handlers and structlog configuration (used by tests)."""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.NOTSET)
        cls._config = None
        cls._configured = False
        structlog.reset_defaults()


def _timestamper(fmt: str) -> Callable[[Any, str, dict[str, Any]], dict[str, Any]]:
    """Processor adding `log_timestamp` (trade events use `timestamp` themselves)."""
    pattern = _TIMESTAMP_PATTERNS.get(fmt)

    def add_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        if pattern is None:
            event_dict["log_timestamp"] = now.isoformat()
        else:
            event_dict["log_timestamp"] = now.strftime(pattern.format(ms=f"{now.microsecond // 10000:02d}"))
        return event_dict

    return add_timestamp


def _console_renderer(width: int) -> Callable[[Any, str, dict[str, Any]], str]:
    """One line per event: timestamp, domain, message, highlights, context, location."""

    def render(logger: Any, name: str, event_dict: dict[str, Any]) -> str:
        timestamp = event_dict.pop("log_timestamp", "")
        level = str(event_dict.pop("level", "info")).upper()
        event = str(event_dict.pop("event", ""))
        filename = event_dict.pop("filename", "")
        lineno = event_dict.pop("lineno", "")
        logger_name = event_dict.pop("logger", "")

        line = _SystemLogFormatters.format_system_log(event, event_dict, level, timestamp)

        if filename and lineno:
            location = f"{Path(filename).stem}:{lineno}"
            if logger_name and logger_name != "tradejournal":
                location = f"{logger_name}.{location}"
            line += f" {_SystemLogFormatters.DIM}({location}){_SystemLogFormatters.RESET}"

        if width > 0 and len(line) > width:
            line = line[: width - 1] + "…"
        return line

    return render


class _SystemLogFormatters:
    """Colored console layouts keyed on the event name prefix."""

    CYAN = "\033[36m"
    MAGENTA = "\033[35m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    LEVEL_COLORS = {
        "DEBUG": CYAN,
        "INFO": GREEN,
        "WARNING": YELLOW,
        "ERROR": RED,
        "CRITICAL": MAGENTA,
    }

    # prefix -> (domain label, [(key, caption, color)]) pulled out ahead of the generic context
    DOMAINS: dict[str, tuple[str, list[tuple[str, str, str]]]] = {
        "analytics.": (
            "Analytics",
            [
                ("path", "", CYAN),
                ("count", "Records: ", YELLOW),
                ("closed_trades", "Closed: ", GREEN),
                ("net_pnl", "Net P&L: ", GREEN),
            ],
        ),
        "validation.": (
            "Validation",
            [
                ("index", "Record #", YELLOW),
                ("trade_id", "", MAGENTA),
                ("reason", "", RED),
            ],
        ),
    }

    _METADATA_KEYS = ("log_timestamp", "level", "event", "filename", "lineno", "logger")

    @classmethod
    def format_system_log(cls, event: str, event_dict: dict[str, Any], level: str, timestamp: str) -> str:
        """Format a log line based on the event's domain prefix."""
        color = cls.LEVEL_COLORS.get(level, cls.RESET)
        parts = [f"{cls.DIM}{timestamp}{cls.RESET}"]

        for prefix, (label, highlights) in cls.DOMAINS.items():
            if event.startswith(prefix):
                message = event[len(prefix) :].replace("_", " ").title()
                parts.append(f"{color}{label}{cls.RESET}")
                parts.append(f"{cls.BOLD}{message}{cls.RESET}")
                for key, caption, key_color in highlights:
                    if key in event_dict:
                        parts.append(f"{caption}{key_color}{event_dict.pop(key)}{cls.RESET}")
                break
        else:
            parts.append(f"{color}{event.replace('_', ' ').title()}{cls.RESET}")

        context = " ".join(
            f"{key}={cls.CYAN}{value}{cls.RESET}"
            for key, value in sorted(event_dict.items())
            if not key.startswith("_") and key not in cls._METADATA_KEYS
        )
        if context:
            parts.append(context)

        return " | ".join(parts)
