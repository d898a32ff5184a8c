"""Options and setup shared by the journal commands."""

from dataclasses import replace
from pathlib import Path

import click

from tradejournal.system import LoggerFactory, SystemConfig, get_system_config, reload_system_config


config_option = click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="System configuration file (default: $TRADEJOURNAL_CONFIG or config/system.yaml)",
)

log_level_option = click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Set logging level (DEBUG shows column mapping and per-trade details)",
)

policy_option = click.option(
    "--policy",
    type=click.Choice(["reject", "exclude"]),
    help="Invalid records: reject stops the import, exclude skips them (default from config)",
)


def setup_system(config_file: Path | None, log_level: str | None) -> SystemConfig:
    """
    Load system config and configure logging, applying the CLI log level.

    The override goes into a copy; the cached config keeps its file values.
    """
    system_config = get_system_config(config_file) if config_file else reload_system_config()

    if log_level:
        system_config = replace(system_config, logging=replace(system_config.logging, level=log_level.upper()))

    LoggerFactory.configure(system_config.logging.to_logger_config())
    return system_config
