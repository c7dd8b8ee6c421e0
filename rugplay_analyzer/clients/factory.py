"""
Factory for creating market data providers.
"""

import json
from pathlib import Path
from typing import Optional

from ..config.models import APIConfig, RetryConfig
from .rugplay_client import BaseMarketDataProvider, MockRugplayClient, RugplayClient


def load_fixture_payloads(fixtures_path: str):
    """Load mock payloads from a JSON file laid out as MockRugplayClient expects."""
    with open(Path(fixtures_path), "r", encoding="utf-8") as f:
        return json.load(f)


def create_market_data_provider(
    api_config: APIConfig,
    retry_config: Optional[RetryConfig] = None,
    use_mock: bool = False,
    fixtures_path: Optional[str] = None
) -> BaseMarketDataProvider:
    """
    Create a market data provider.

    Args:
        api_config: API configuration settings
        retry_config: Retry behavior for the HTTP client
        use_mock: Whether to serve fixture payloads instead of calling the API
        fixtures_path: JSON file with payloads for the mock client

    Returns:
        Provider instance; the HTTP client must be entered as an async context manager
    """
    if use_mock:
        payloads = load_fixture_payloads(fixtures_path) if fixtures_path else {}
        return MockRugplayClient(payloads)
    return RugplayClient(api_config, retry_config)
