"""
Error types and retry-with-backoff for the market data fetch layer.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import aiohttp

from rugplay_analyzer.config.models import RetryConfig

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Base class for failures talking to the market data provider."""

    def __init__(self, message: str, status: Optional[int] = None, endpoint: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.endpoint = endpoint


class ClientFetchError(FetchError):
    """Client-class failure (HTTP 4xx): bad symbol, invalid auth. Never retried."""
    pass


class ServerFetchError(FetchError):
    """Server-class failure (HTTP 5xx). Retried."""
    pass


class TransportFetchError(FetchError):
    """Network or timeout failure below the HTTP layer. Retried."""
    pass


class AnalysisError(Exception):
    """Raised when an analysis cannot be produced from the fetched data."""
    pass


RETRYABLE_EXCEPTIONS = (
    ServerFetchError,
    TransportFetchError,
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    asyncio.TimeoutError,
    ConnectionError,
)


def is_retryable(error: BaseException) -> bool:
    """Only server-class and transport-level failures are worth retrying."""
    if isinstance(error, ClientFetchError):
        return False
    return isinstance(error, RETRYABLE_EXCEPTIONS)


def _as_fetch_error(error: BaseException, context: str) -> BaseException:
    if isinstance(error, FetchError):
        return error
    if isinstance(error, asyncio.TimeoutError):
        wrapped = TransportFetchError(f"Request timed out: {context}", endpoint=context)
    else:
        wrapped = TransportFetchError(f"Transport failure for {context}: {error}", endpoint=context)
    wrapped.__cause__ = error
    return wrapped


class RetryingFetcher:
    """
    Runs a provider call with bounded exponential-backoff retry.

    Each attempt gets its own timeout so a hung request cannot consume
    the whole retry budget. Client failures propagate on the first attempt.
    """

    def __init__(
        self,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep

    async def fetch(
        self,
        operation: Callable[[], Awaitable[Any]],
        max_retries: Optional[int] = None,
        initial_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        backoff_factor: Optional[float] = None,
        attempt_timeout: Optional[float] = None,
        context: str = "fetch"
    ) -> Any:
        """
        Execute ``operation`` with retry.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            max_retries: Retries after the first attempt
            initial_delay: Delay before the first retry in seconds
            max_delay: Upper bound for any single delay
            backoff_factor: Exponential growth factor of the delay
            attempt_timeout: Timeout of a single attempt in seconds
            context: Description used in log messages

        Returns:
            Result of the first successful attempt

        Raises:
            ClientFetchError: Immediately, on a client-class failure
            FetchError: The last failure once retries are exhausted
        """
        config = RetryConfig(
            max_retries=self.retry_config.max_retries if max_retries is None else max_retries,
            initial_delay=self.retry_config.initial_delay if initial_delay is None else initial_delay,
            max_delay=self.retry_config.max_delay if max_delay is None else max_delay,
            backoff_factor=self.retry_config.backoff_factor if backoff_factor is None else backoff_factor,
            attempt_timeout=self.retry_config.attempt_timeout if attempt_timeout is None else attempt_timeout,
        )

        last_exception: Optional[BaseException] = None

        for attempt in range(config.max_retries + 1):
            try:
                return await asyncio.wait_for(operation(), timeout=config.attempt_timeout)

            except Exception as e:
                if not is_retryable(e):
                    logger.debug(f"Not retrying {context}: {e}")
                    raise

                last_exception = _as_fetch_error(e, context)

                if attempt == config.max_retries:
                    logger.error(
                        f"All retry attempts exhausted for {context}. "
                        f"Final error: {last_exception}"
                    )
                    break

                delay = config.get_delay(attempt + 1)
                logger.warning(
                    f"Attempt {attempt + 1}/{config.max_retries + 1} failed for {context}: "
                    f"{last_exception}. Retrying in {delay:.2f} seconds..."
                )
                await self._sleep(delay)

        raise last_exception
