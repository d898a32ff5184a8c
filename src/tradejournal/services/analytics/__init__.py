"""Trade import and analytics orchestration."""

from tradejournal.services.analytics.loaders import load_benchmark_returns, load_price_points, load_trade_records
from tradejournal.services.analytics.service import AnalysisReport, ExcursionReport, JournalAnalyticsService

__all__ = [
    "JournalAnalyticsService",
    "AnalysisReport",
    "ExcursionReport",
    "load_trade_records",
    "load_price_points",
    "load_benchmark_returns",
]
