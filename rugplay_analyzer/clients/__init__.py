"""
Market data providers for the Rugplay coin analyzer.
"""

from .rugplay_client import RugplayClient, MockRugplayClient, BaseMarketDataProvider
from .factory import create_market_data_provider, load_fixture_payloads

__all__ = [
    "RugplayClient",
    "MockRugplayClient",
    "BaseMarketDataProvider",
    "create_market_data_provider",
    "load_fixture_payloads"
]
