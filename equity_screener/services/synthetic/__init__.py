"""
Synthetic market data used when live data is unavailable or disabled.
"""

from .generator import SyntheticDataGenerator, base_price

__all__ = ["SyntheticDataGenerator", "base_price"]
