"""
Trade Journal - performance analytics for logged trades.

Public API for computing journal metrics, excursions and insights.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tradejournal")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"  # Running from a source checkout


__all__ = [
    "__version__",
]
