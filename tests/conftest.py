"""
Pytest configuration and shared fixtures.
"""

import pytest

from rugplay_analyzer.config.models import AnalysisConfig, AnalyzerConfig, APIConfig, RetryConfig

from builders import NOW, coin_payload, holders_payload


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def analyzer_config():
    """Analyzer configuration with a fast retry budget."""
    return AnalyzerConfig(
        api=APIConfig(base_url="https://rugplay.test/api/v1", api_key="key"),
        retry=RetryConfig(max_retries=2, initial_delay=0.01, max_delay=0.05, attempt_timeout=1.0),
        analysis=AnalysisConfig(analysis_timeout=5.0)
    )


@pytest.fixture
def mock_payloads():
    """Payloads for MockRugplayClient covering one healthy coin."""
    return {
        "coin": {"TEST": coin_payload("TEST", closes=[1.0 + i * 0.01 for i in range(40)])},
        "holders": {"TEST": holders_payload()},
        "top": {"coins": [{"symbol": "BIG", "marketCap": 10000000}, {"symbol": "TEST", "marketCap": 100000}]},
        "hopium": {"questions": [{"question": "Will TEST reach $2?", "yesPercentage": 80}]},
    }
