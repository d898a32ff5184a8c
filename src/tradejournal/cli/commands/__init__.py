"""Commands __init__ - exports all commands."""

from tradejournal.cli.commands.excursion import excursion_command
from tradejournal.cli.commands.metrics import metrics_command
from tradejournal.cli.commands.presets import presets_command

__all__ = ["excursion_command", "metrics_command", "presets_command"]
