"""
Tests for fetch errors and the retrying fetcher.
"""

import asyncio

import aiohttp
import pytest

from rugplay_analyzer.config.models import RetryConfig
from rugplay_analyzer.utils.error_handling import (
    AnalysisError, ClientFetchError, FetchError, RetryingFetcher, ServerFetchError,
    TransportFetchError, is_retryable
)


class RecordingSleep:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class CountingOperation:
    """Raises ``errors`` in order, then returns ``result``; with ``repeat_last`` the last error never runs out."""

    def __init__(self, errors, result="ok", repeat_last=False):
        self.errors = list(errors)
        self.result = result
        self.repeat_last = repeat_last
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            if self.repeat_last and len(self.errors) == 1:
                raise self.errors[0]
            raise self.errors.pop(0)
        return self.result


def always_failing(error):
    return CountingOperation([error], repeat_last=True)


class TestErrorClassification:
    """Test which failures are retried."""

    def test_server_and_transport_are_retryable(self):
        assert is_retryable(ServerFetchError("boom", status=500))
        assert is_retryable(TransportFetchError("reset"))
        assert is_retryable(asyncio.TimeoutError())
        assert is_retryable(aiohttp.ClientConnectionError())
        assert is_retryable(aiohttp.ClientPayloadError("truncated body"))

    def test_client_errors_are_not_retryable(self):
        assert not is_retryable(ClientFetchError("missing", status=404))
        assert not is_retryable(ValueError("bad payload"))
        assert not is_retryable(FetchError("bad shape"))

    def test_fetch_error_carries_status(self):
        error = ServerFetchError("boom", status=503, endpoint="/top")
        assert error.status == 503
        assert error.endpoint == "/top"
        assert isinstance(error, FetchError)
        assert not isinstance(AnalysisError("x"), FetchError)


class TestRetryingFetcher:
    """Test the bounded retry loop."""

    def setup_method(self):
        self.sleep = RecordingSleep()
        self.config = RetryConfig(
            max_retries=3, initial_delay=1.0, max_delay=10.0, backoff_factor=2.0, attempt_timeout=1.0
        )
        self.fetcher = RetryingFetcher(self.config, sleep=self.sleep)

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        operation = CountingOperation([])
        assert await self.fetcher.fetch(operation) == "ok"
        assert operation.calls == 1
        assert self.sleep.delays == []

    @pytest.mark.asyncio
    async def test_server_error_attempted_max_retries_plus_one(self):
        operation = always_failing(ServerFetchError("boom", status=500))

        with pytest.raises(ServerFetchError):
            await self.fetcher.fetch(operation)

        assert operation.calls == self.config.max_retries + 1
        assert self.sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_client_error_attempted_once(self):
        operation = always_failing(ClientFetchError("not found", status=404))

        with pytest.raises(ClientFetchError):
            await self.fetcher.fetch(operation)

        assert operation.calls == 1
        assert self.sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self):
        operation = CountingOperation([
            ServerFetchError("boom", status=502),
            TransportFetchError("reset"),
        ])

        assert await self.fetcher.fetch(operation) == "ok"
        assert operation.calls == 3
        assert self.sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_delay_capped_at_max(self):
        operation = always_failing(ServerFetchError("boom", status=500))

        with pytest.raises(ServerFetchError):
            await self.fetcher.fetch(operation, max_retries=5, max_delay=3.0)

        assert self.sleep.delays == [1.0, 2.0, 3.0, 3.0, 3.0]

    @pytest.mark.asyncio
    async def test_per_call_overrides(self):
        operation = always_failing(ServerFetchError("boom", status=500))

        with pytest.raises(ServerFetchError):
            await self.fetcher.fetch(operation, max_retries=0)

        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_attempt_timeout_wrapped_as_transport_error(self):
        calls = 0

        async def hang():
            nonlocal calls
            calls += 1
            await asyncio.sleep(10)

        with pytest.raises(TransportFetchError) as exc_info:
            await self.fetcher.fetch(hang, max_retries=1, attempt_timeout=0.01, context="/coin/X")

        assert calls == 2
        assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)
        assert exc_info.value.endpoint == "/coin/X"

    @pytest.mark.asyncio
    async def test_connection_error_wrapped(self):
        operation = always_failing(aiohttp.ClientConnectionError("refused"))

        with pytest.raises(TransportFetchError):
            await self.fetcher.fetch(operation, max_retries=1)

        assert operation.calls == 2


class TestRetryConfig:
    """Test backoff delay computation."""

    def test_get_delay(self):
        config = RetryConfig(initial_delay=0.5, max_delay=3.0, backoff_factor=3.0)
        assert config.get_delay(1) == 0.5
        assert config.get_delay(2) == 1.5
        assert config.get_delay(3) == 3.0
        assert config.get_delay(4) == 3.0
