"""
System configuration.

One configuration for the whole application, loaded from YAML:

    metrics:   engine defaults, benchmark preset, validation policy
    output:    report directory and file naming
    logging:   console/file logging (converted to log_system.LoggingConfig)

Search Order:
1. Explicit path passed to SystemConfig.load()
2. TRADEJOURNAL_CONFIG environment variable
3. ./config/system.yaml
4. Built-in defaults

Values may reference environment variables as ${VAR}; undefined variables
are left as-is. Files are deep-merged over the defaults, so partial files
only need the keys they change.

The metrics engine never reads this module. Callers convert the metrics
section with MetricsSection.to_engine_config() and pass it explicitly.
"""

import os
import re
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Literal

import yaml

from tradejournal.libraries.performance.models import MetricsConfig
from tradejournal.system import log_system

CONFIG_ENV_VAR = "TRADEJOURNAL_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/system.yaml")

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class MetricsSection:
    """Metrics engine defaults and analysis options."""

    risk_free_rate: float = 0.04
    initial_capital: float = 10000.0
    periodicity: Literal["daily", "weekly", "monthly"] = "daily"
    risk_per_trade: float = 0.02
    ruin_threshold: float = 0.5
    min_trades: int = 30
    min_return_periods: int = 2
    benchmark_preset: str = "default"
    presets_dir: str | None = None
    validation_policy: Literal["reject", "exclude"] = "reject"

    def to_engine_config(self, **overrides: Any) -> MetricsConfig:
        """
        Build the engine's MetricsConfig from this section.

        Args:
            **overrides: MetricsConfig fields that replace the configured values
                (e.g. risk_free_rate from a CLI flag). None values are ignored.

        Returns:
            Frozen MetricsConfig
        """
        values: dict[str, Any] = {
            "risk_free_rate": Decimal(str(self.risk_free_rate)),
            "initial_capital": Decimal(str(self.initial_capital)),
            "periodicity": self.periodicity,
            "risk_per_trade": Decimal(str(self.risk_per_trade)),
            "ruin_threshold": Decimal(str(self.ruin_threshold)),
            "min_trades": self.min_trades,
            "min_return_periods": self.min_return_periods,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return MetricsConfig(**values)


@dataclass
class OutputConfig:
    """Report output settings."""

    default_results_dir: str = "output/reports"
    timestamp_format: str = "%Y%m%d_%H%M%S"


@dataclass
class LoggingConfig:
    """Logging settings as written in system.yaml."""

    level: str = "INFO"
    format: str = "console"
    timestamp_format: str = "compact"
    enable_file: bool = True
    file_path: str = "logs/tradejournal.log"
    file_level: str = "WARNING"
    file_rotation: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 3
    console_width: int = 0

    def to_logger_config(self) -> log_system.LoggingConfig:
        """Convert to the LoggerFactory configuration model."""
        values = asdict(self)
        values["file_path"] = Path(self.file_path) if self.file_path else None
        return log_system.LoggingConfig(**values)


@dataclass
class SystemConfig:
    """Complete system configuration."""

    metrics: MetricsSection = field(default_factory=MetricsSection)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "SystemConfig":
        """
        Load configuration from YAML, merged over built-in defaults.

        Args:
            path: Explicit config file. If it does not exist, defaults are used.

        Returns:
            SystemConfig instance

        Raises:
            ValueError: If the file is not valid YAML or not a mapping
        """
        config_path = cls._resolve_path(path)

        raw: dict[str, Any] = {}
        if config_path is not None and config_path.exists():
            try:
                with open(config_path, "r") as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Failed to parse YAML from {config_path}: {e}")

            if loaded is None:
                loaded = {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Config file {config_path} must contain a mapping, got {type(loaded).__name__}")
            raw = _substitute_env_vars(loaded)

        merged = _deep_merge(asdict(cls()), raw)
        return cls._from_dict(merged)

    @staticmethod
    def _resolve_path(path: str | Path | None) -> Path | None:
        if path is not None:
            return Path(path)

        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path)

        if DEFAULT_CONFIG_PATH.exists():
            return DEFAULT_CONFIG_PATH

        return None

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "SystemConfig":
        """Build config from a (possibly partial) dictionary."""
        return cls(
            metrics=MetricsSection(**data.get("metrics", {})),
            output=OutputConfig(**data.get("output", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base. Override wins on conflict."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """Replace ${VAR} references in strings, recursing into dicts and lists."""
    if isinstance(value, dict):
        return {key: _substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


_system_config: SystemConfig | None = None


def get_system_config(path: str | Path | None = None) -> SystemConfig:
    """
    Get the system config singleton.

    Args:
        path: Explicit config file. When given, the file is loaded and
            replaces the cached instance.
    """
    global _system_config
    if path is not None or _system_config is None:
        _system_config = SystemConfig.load(path)
    return _system_config


def reload_system_config() -> SystemConfig:
    """Force reload of the system config singleton."""
    global _system_config
    _system_config = SystemConfig.load()
    return _system_config
