"""
Utility modules for the Rugplay coin analyzer.
"""

from .error_handling import (
    AnalysisError,
    ClientFetchError,
    FetchError,
    RetryingFetcher,
    ServerFetchError,
    TransportFetchError,
    is_retryable,
)
from .structured_logging import (
    ContextualLogger,
    CorrelationIdFilter,
    LogContext,
    LoggingManager,
    StructuredFormatter,
    get_logger,
    logging_manager,
    with_correlation_id,
)

__all__ = [
    "AnalysisError",
    "ClientFetchError",
    "FetchError",
    "RetryingFetcher",
    "ServerFetchError",
    "TransportFetchError",
    "is_retryable",
    "ContextualLogger",
    "CorrelationIdFilter",
    "LogContext",
    "LoggingManager",
    "StructuredFormatter",
    "get_logger",
    "logging_manager",
    "with_correlation_id",
]
