"""Report file writers.

- JSON report: full AnalysisReport (Decimals as strings, datetimes ISO 8601)
- Drawdown series: CSV via pandas, one row per closed trade
"""

from pathlib import Path

import pandas as pd

from tradejournal.services.analytics.service import AnalysisReport


def write_json_report(report: AnalysisReport, path: str | Path) -> Path:
    """Write the analysis as JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    return path


def write_drawdowns_csv(report: AnalysisReport, path: str | Path) -> Path:
    """Write the drawdown series as CSV (timestamp, equity, peak, drawdown_pct, in_drawdown)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    frame = pd.DataFrame(
        [
            {
                "timestamp": point.timestamp.isoformat() if point.timestamp else None,
                "equity": str(point.equity),
                "peak": str(point.peak),
                "drawdown_pct": str(point.drawdown_pct),
                "in_drawdown": point.in_drawdown,
            }
            for point in report.drawdowns
        ],
        columns=["timestamp", "equity", "peak", "drawdown_pct", "in_drawdown"],
    )
    frame.to_csv(path, index=False)
    return path
