"""
Tests for the Rugplay API client, its payload parsers and the mock client.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from rugplay_analyzer.clients.factory import create_market_data_provider, load_fixture_payloads
from rugplay_analyzer.clients.rugplay_client import (
    MockRugplayClient, RugplayClient, parse_coin_details, parse_enriched_intelligence,
    parse_holder_behavior, parse_holders, parse_prediction_markets, parse_top_coins
)
from rugplay_analyzer.config.models import APIConfig, RetryConfig
from rugplay_analyzer.utils.error_handling import (
    ClientFetchError, FetchError, ServerFetchError, TransportFetchError
)

from builders import coin_payload, holders_payload


def _response(status=200, payload=None):
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload if payload is not None else {})
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


class TestPayloadParsers:
    """Test conversion of API responses into models."""

    def test_parse_coin_details(self):
        payload = coin_payload("MOON", closes=[1.0, 2.0])
        payload["candlestickData"].reverse()
        details = parse_coin_details(payload, "1h")

        assert details.coin.symbol == "MOON"
        assert details.coin.current_price == 2.0
        assert details.coin.creator_name == "alice"
        assert details.coin.is_listed is True
        assert [candle.time for candle in details.candles] == [0, 60]
        assert details.closes == (1.0, 2.0)
        assert len(details.volumes) == 2

    def test_parse_coin_details_tolerates_missing_fields(self):
        details = parse_coin_details({"coin": {"symbol": "X", "currentPrice": None}}, "1m")

        assert details.coin.current_price == 0.0
        assert details.coin.creator_id is None
        assert details.candles == ()
        assert details.timeframe == "1m"

    def test_parse_coin_details_requires_coin(self):
        with pytest.raises(FetchError):
            parse_coin_details({"error": "nope"}, "1m")

    def test_parse_holders_sorted_by_rank(self):
        payload = holders_payload([30, 20, 10])
        payload["holders"].reverse()
        holders = parse_holders(payload)

        assert [holder.rank for holder in holders.holders] == [1, 2, 3]
        assert holders.holders[0].balance == 30
        assert holders.holders[0].identity == "user1"
        assert holders.total_holders == 120

    def test_parse_holders_defaults_total(self):
        holders = parse_holders({"holders": [{"balance": 5, "percentage": 100}]})
        assert holders.total_holders == 1
        assert holders.holders[0].rank == 1

    def test_parse_top_coins_keeps_order(self):
        peers = parse_top_coins({"coins": [{"symbol": "A"}, {"symbol": "B", "marketCap": "12.5"}]})
        assert [peer.symbol for peer in peers] == ["A", "B"]
        assert peers[1].market_cap == 12.5

    def test_parse_prediction_markets(self):
        questions = parse_prediction_markets({"questions": [{"question": "Q?", "yesPercentage": 61}]})
        assert questions[0].yes_percentage == 61

    def test_parse_enriched_intelligence(self):
        analysis = {
            "riskAssessment": {"overallRiskScore": 40, "riskLevel": "MEDIUM"},
            "tradingIntelligence": {
                "entryExit": {"recommendation": "buy", "confidence": 70, "entryPrice": 1.2},
                "marketPsychology": {"sentiment": "bullish", "buyPressure": 64},
                "priceAction": {"trend": "neutral"},
            },
        }
        investigation = {
            "riskScore": 55,
            "majorHolderAnalysis": [
                {"userId": 1, "percentage": 30, "riskScore": 20, "riskFactors": ["Moderate concentration (>20%)"]},
                {"userId": 2, "percentage": 60, "riskScore": 55,
                 "riskFactors": ["Moderate concentration (>20%)", "High concentration (>50%)"]},
            ],
        }
        intelligence = parse_enriched_intelligence(analysis, investigation)

        assert intelligence.technical_levels.confidence == 70
        assert intelligence.technical_levels.entry_price == 1.2
        assert intelligence.technical_levels.exit_price is None
        assert intelligence.market_psychology.buy_pressure == 64
        assert intelligence.holder_behavior.risk_score == 55
        assert intelligence.holder_behavior.risk_factors == (
            "Moderate concentration (>20%)", "High concentration (>50%)"
        )

    def test_analysis_payload_carries_no_holder_behavior(self):
        analysis = {
            "tradingIntelligence": {
                "entryExit": {"recommendation": "wait", "confidence": 0},
                "marketPsychology": {"sentiment": "neutral", "buyPressure": 50},
            },
            "majorHolderAnalysis": [{"riskScore": 90}],
        }
        intelligence = parse_enriched_intelligence(analysis)

        assert intelligence.holder_behavior is None
        assert intelligence.market_psychology.buy_pressure == 50

    def test_investigation_alone(self):
        intelligence = parse_enriched_intelligence(None, {"majorHolderAnalysis": [{"riskScore": 80}]})

        assert intelligence.technical_levels is None
        assert intelligence.holder_behavior.risk_score == 80
        assert parse_holder_behavior({"majorHolderAnalysis": []}) is None

    def test_parse_empty_enriched_intelligence(self):
        assert parse_enriched_intelligence({}) is None
        assert parse_enriched_intelligence(None, None) is None


class TestRugplayClient:
    """Test HTTP status mapping and endpoint routing."""

    def setup_method(self):
        self.api_config = APIConfig(
            base_url="https://rugplay.test/api/v1",
            api_key="secret",
            intelligence_base_url="https://intel.test"
        )
        self.retry_config = RetryConfig(max_retries=2, initial_delay=0.01, max_delay=0.01)
        self.sleep = AsyncMock()
        self.client = RugplayClient(self.api_config, self.retry_config, sleep=self.sleep)

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        with pytest.raises(RuntimeError):
            await self.client._get_json("https://rugplay.test/api/v1/top")

    @pytest.mark.asyncio
    async def test_context_manager_sets_auth_header(self):
        async with self.client as client:
            assert client._session is not None
            assert client._session.headers["Authorization"] == "Bearer secret"
        assert self.client._session is None

    @pytest.mark.asyncio
    async def test_get_coin_details(self):
        session = MagicMock()
        session.get = MagicMock(return_value=_response(payload=coin_payload("MOON")))
        self.client._session = session

        details = await self.client.get_coin_details("moon", "1h")

        assert details.coin.symbol == "MOON"
        session.get.assert_called_once_with(
            "https://rugplay.test/api/v1/coin/MOON", params={"timeframe": "1h"}
        )

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self):
        session = MagicMock()
        session.get = MagicMock(side_effect=lambda *args, **kwargs: _response(status=500))
        self.client._session = session

        with pytest.raises(ServerFetchError) as exc_info:
            await self.client.get_top_coins()

        assert exc_info.value.status == 500
        assert session.get.call_count == self.retry_config.max_retries + 1
        assert self.sleep.await_count == self.retry_config.max_retries

    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self):
        session = MagicMock()
        session.get = MagicMock(side_effect=lambda *args, **kwargs: _response(status=404))
        self.client._session = session

        with pytest.raises(ClientFetchError) as exc_info:
            await self.client.get_holders("missing")

        assert exc_info.value.status == 404
        assert session.get.call_count == 1
        self.sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_failure(self):
        session = MagicMock()
        session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        self.client._session = session

        with pytest.raises(TransportFetchError):
            await self.client.get_prediction_markets()

        assert session.get.call_count == self.retry_config.max_retries + 1

    @pytest.mark.asyncio
    async def test_invalid_json_is_fetch_error(self):
        response = _response()
        response.__aenter__.return_value.json = AsyncMock(
            side_effect=json.JSONDecodeError("Expecting value", "<html>", 0)
        )
        session = MagicMock()
        session.get = MagicMock(return_value=response)
        self.client._session = session

        with pytest.raises(FetchError) as exc_info:
            await self.client.get_top_coins()

        assert exc_info.value.status == 200
        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)
        assert session.get.call_count == 1

    @pytest.mark.asyncio
    async def test_broken_body_is_retried_as_transport_failure(self):
        def broken_response(*args, **kwargs):
            response = _response()
            response.__aenter__.return_value.json = AsyncMock(
                side_effect=aiohttp.ClientPayloadError("Response payload is not completed")
            )
            return response

        session = MagicMock()
        session.get = MagicMock(side_effect=broken_response)
        self.client._session = session

        with pytest.raises(TransportFetchError):
            await self.client.get_holders("moon")

        assert session.get.call_count == self.retry_config.max_retries + 1

    @pytest.mark.asyncio
    async def test_enrichment_combines_intelligence_endpoints(self):
        payloads = {
            "https://intel.test/analysis/MOON": {
                "tradingIntelligence": {
                    "entryExit": {"recommendation": "wait", "confidence": 0},
                    "marketPsychology": {"sentiment": "neutral", "buyPressure": 50},
                }
            },
            "https://intel.test/investigator/MOON": {
                "riskScore": 50,
                "majorHolderAnalysis": [{"riskScore": 50, "riskFactors": ["High concentration (>50%)"]}],
            },
        }
        session = MagicMock()
        session.get = MagicMock(side_effect=lambda url, params=None: _response(payload=payloads[url]))
        self.client._session = session

        intelligence = await self.client.get_enriched_intelligence("moon")

        assert intelligence.market_psychology.buy_pressure == 50
        assert intelligence.holder_behavior.risk_score == 50
        called = sorted(call.args[0] for call in session.get.call_args_list)
        assert called == sorted(payloads)

    @pytest.mark.asyncio
    async def test_failed_intelligence_endpoint_is_absent(self):
        def route(url, params=None):
            if url.endswith("/investigator/MOON"):
                return _response(status=503)
            return _response(payload={
                "tradingIntelligence": {"marketPsychology": {"sentiment": "bullish", "buyPressure": 70}}
            })

        session = MagicMock()
        session.get = MagicMock(side_effect=route)
        self.client._session = session

        intelligence = await self.client.get_enriched_intelligence("moon")

        assert intelligence.market_psychology.buy_pressure == 70
        assert intelligence.holder_behavior is None

    @pytest.mark.asyncio
    async def test_both_intelligence_endpoints_failing(self):
        session = MagicMock()
        session.get = MagicMock(side_effect=lambda url, params=None: _response(status=404))
        self.client._session = session

        assert await self.client.get_enriched_intelligence("moon") is None
        assert session.get.call_count == 2

    @pytest.mark.asyncio
    async def test_enrichment_disabled_without_url(self):
        client = RugplayClient(APIConfig(), sleep=self.sleep)
        client._session = MagicMock()

        assert await client.get_enriched_intelligence("moon") is None
        client._session.get.assert_not_called()


class TestMockRugplayClient:
    """Test the fixture-backed client."""

    @pytest.mark.asyncio
    async def test_serves_payloads(self, mock_payloads):
        client = MockRugplayClient(mock_payloads)

        details = await client.get_coin_details("test", "1d")
        holders = await client.get_holders("TEST")
        peers = await client.get_top_coins()

        assert details.coin.symbol == "TEST"
        assert details.timeframe == "1m"
        assert holders.total_holders == 120
        assert [peer.symbol for peer in peers] == ["BIG", "TEST"]
        assert client.calls[0] == ("coin", "TEST", "1d")

    @pytest.mark.asyncio
    async def test_per_timeframe_payloads(self):
        client = MockRugplayClient({"coin": {"A": {"1h": coin_payload("A", closes=[3.0])}}})

        details = await client.get_coin_details("A", "1h")
        assert details.coin.current_price == 3.0

        with pytest.raises(ClientFetchError):
            await client.get_coin_details("A", "1d")

    @pytest.mark.asyncio
    async def test_unknown_symbol(self):
        client = MockRugplayClient({})

        with pytest.raises(ClientFetchError) as exc_info:
            await client.get_holders("NOPE")

        assert exc_info.value.status == 404
        assert await client.get_enriched_intelligence("NOPE") is None

    @pytest.mark.asyncio
    async def test_intelligence_from_both_payloads(self):
        client = MockRugplayClient({
            "analysis": {"A": {"tradingIntelligence": {"marketPsychology": {"buyPressure": 40}}}},
            "investigator": {"A": {"majorHolderAnalysis": [{"riskScore": 35}]}},
        })

        intelligence = await client.get_enriched_intelligence("a")

        assert intelligence.market_psychology.buy_pressure == 40
        assert intelligence.holder_behavior.risk_score == 35
        assert client.calls == [("analysis", "A"), ("investigator", "A")]


class TestProviderFactory:
    """Test provider creation."""

    def test_real_client(self):
        provider = create_market_data_provider(APIConfig(), RetryConfig(max_retries=1))
        assert isinstance(provider, RugplayClient)
        assert provider.fetcher.retry_config.max_retries == 1

    def test_mock_client_from_fixtures(self, tmp_path, mock_payloads):
        fixtures = tmp_path / "payloads.json"
        fixtures.write_text(json.dumps(mock_payloads))

        provider = create_market_data_provider(APIConfig(), use_mock=True, fixtures_path=str(fixtures))

        assert isinstance(provider, MockRugplayClient)
        assert provider.payloads == load_fixture_payloads(str(fixtures))
