"""Reporting for journal analyses."""

from tradejournal.services.reporting.formatters import display_analysis_report, display_excursion_report
from tradejournal.services.reporting.writers import write_drawdowns_csv, write_json_report

__all__ = [
    "display_analysis_report",
    "display_excursion_report",
    "write_json_report",
    "write_drawdowns_csv",
]
