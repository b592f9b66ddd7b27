"""
Equity Screener backend.

Data-acquisition core for the securities search and comparison dashboard:
caching, async operation state and live/synthetic market data fallback.
"""

__version__ = "0.1.0"
