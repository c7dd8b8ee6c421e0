"""
Rugplay API client with retry logic and typed error mapping.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import aiohttp

from ..config.models import APIConfig, RetryConfig
from ..models.core import (
    Candle, CoinDetails, CoinSnapshot, EnrichedIntelligence, HolderBehaviorRisk, HolderRecord,
    HoldersSnapshot, MarketPsychology, PeerRanking, PredictionQuestion, TechnicalLevels, VolumePoint
)
from ..utils.error_handling import (
    ClientFetchError, FetchError, RetryingFetcher, ServerFetchError, TransportFetchError
)


logger = logging.getLogger(__name__)


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_coin_details(payload: Dict[str, Any], timeframe: str) -> CoinDetails:
    """Parse a ``/coin/{symbol}`` response."""
    if not isinstance(payload, dict) or not isinstance(payload.get("coin"), dict):
        raise FetchError("Coin payload is missing the 'coin' object", endpoint="coin")

    coin_data = payload["coin"]
    creator_id = coin_data.get("creatorId")

    coin = CoinSnapshot(
        symbol=str(coin_data.get("symbol", "")),
        name=str(coin_data.get("name", "")),
        current_price=_to_float(coin_data.get("currentPrice")),
        market_cap=_to_float(coin_data.get("marketCap")),
        volume_24h=_to_float(coin_data.get("volume24h")),
        change_24h=_to_float(coin_data.get("change24h")),
        circulating_supply=_to_float(coin_data.get("circulatingSupply")),
        initial_supply=_to_float(coin_data.get("initialSupply")),
        total_supply=_to_float(coin_data.get("totalSupply")),
        pool_coin_amount=_to_float(coin_data.get("poolCoinAmount")),
        pool_base_currency_amount=_to_float(coin_data.get("poolBaseCurrencyAmount")),
        creator_id=str(creator_id) if creator_id is not None else None,
        creator_name=coin_data.get("creatorName") or "",
        creator_username=coin_data.get("creatorUsername") or "",
        created_at=coin_data.get("createdAt") or "",
        is_listed=bool(coin_data.get("isListed", False))
    )

    candles = sorted(
        (
            Candle(
                time=int(_to_float(item.get("time"))),
                open=_to_float(item.get("open")),
                high=_to_float(item.get("high")),
                low=_to_float(item.get("low")),
                close=_to_float(item.get("close")),
                volume=_to_float(item.get("volume"))
            )
            for item in payload.get("candlestickData") or []
        ),
        key=lambda candle: candle.time
    )

    volumes = sorted(
        (
            VolumePoint(time=int(_to_float(item.get("time"))), volume=_to_float(item.get("volume")))
            for item in payload.get("volumeData") or []
        ),
        key=lambda point: point.time
    )

    return CoinDetails(
        coin=coin,
        candles=tuple(candles),
        volumes=tuple(volumes),
        timeframe=payload.get("timeframe") or timeframe
    )


def parse_holders(payload: Dict[str, Any]) -> HoldersSnapshot:
    """Parse a ``/holders/{symbol}`` response, ordering holders by rank."""
    holders = []
    for position, item in enumerate(payload.get("holders") or [], start=1):
        identity = item.get("address") or item.get("username") or item.get("userId") or ""
        holders.append(HolderRecord(
            identity=str(identity),
            balance=_to_float(item.get("balance", item.get("quantity"))),
            percentage=_to_float(item.get("percentage")),
            rank=int(_to_float(item.get("rank"), position))
        ))

    holders.sort(key=lambda holder: holder.rank)
    total_holders = payload.get("totalHolders")

    return HoldersSnapshot(
        holders=tuple(holders),
        total_holders=int(_to_float(total_holders, len(holders)))
    )


def parse_top_coins(payload: Dict[str, Any]) -> Tuple[PeerRanking, ...]:
    """Parse the ``/top`` leaderboard, keeping its order."""
    return tuple(
        PeerRanking(
            symbol=str(item.get("symbol", "")),
            name=str(item.get("name", "")),
            market_cap=_to_float(item.get("marketCap"))
        )
        for item in payload.get("coins") or []
    )


def parse_prediction_markets(payload: Dict[str, Any]) -> Tuple[PredictionQuestion, ...]:
    """Parse the ``/hopium`` prediction-market questions."""
    return tuple(
        PredictionQuestion(
            question=str(item.get("question", "")),
            yes_percentage=_to_float(item.get("yesPercentage"))
        )
        for item in payload.get("questions") or []
    )


def parse_holder_behavior(payload: Optional[Dict[str, Any]]) -> Optional[HolderBehaviorRisk]:
    """Parse the per-holder risk of an ``/investigator/{symbol}`` response."""
    major_holders = (payload or {}).get("majorHolderAnalysis")
    if not isinstance(major_holders, list) or not major_holders:
        return None

    risk_factors: List[str] = []
    for holder in major_holders:
        for factor in holder.get("riskFactors") or []:
            if factor not in risk_factors:
                risk_factors.append(factor)
    return HolderBehaviorRisk(
        risk_score=max(_to_float(holder.get("riskScore")) for holder in major_holders),
        risk_factors=tuple(risk_factors)
    )


def parse_enriched_intelligence(
    analysis: Optional[Dict[str, Any]],
    investigation: Optional[Dict[str, Any]] = None
) -> Optional[EnrichedIntelligence]:
    """
    Combine the intelligence service responses into one payload.

    ``analysis`` is the ``/analysis/{symbol}`` response carrying entry/exit
    levels and market psychology; ``investigation`` is the
    ``/investigator/{symbol}`` response carrying holder risk. Either may be
    None. Returns None when no known section is present.
    """
    trading = (analysis or {}).get("tradingIntelligence") or {}

    technical_levels = None
    entry_exit = trading.get("entryExit")
    if isinstance(entry_exit, dict):
        technical_levels = TechnicalLevels(
            recommendation=str(entry_exit.get("recommendation", "wait")),
            confidence=_to_float(entry_exit.get("confidence")),
            entry_price=_optional_float(entry_exit.get("entryPrice")),
            exit_price=_optional_float(entry_exit.get("exitPrice")),
            stop_loss=_optional_float(entry_exit.get("stopLoss"))
        )

    market_psychology = None
    psychology = trading.get("marketPsychology")
    if isinstance(psychology, dict):
        market_psychology = MarketPsychology(
            sentiment=str(psychology.get("sentiment", "neutral")),
            buy_pressure=_optional_float(psychology.get("buyPressure")),
            sell_pressure=_optional_float(psychology.get("sellPressure"))
        )

    intelligence = EnrichedIntelligence(
        technical_levels=technical_levels,
        market_psychology=market_psychology,
        holder_behavior=parse_holder_behavior(investigation)
    )
    return None if intelligence.is_empty else intelligence


class BaseMarketDataProvider(ABC):
    """Abstract base class for market data providers."""

    @abstractmethod
    async def get_coin_details(self, symbol: str, timeframe: str = "1m") -> CoinDetails:
        """Get coin snapshot plus candles and volumes for one timeframe."""
        pass

    @abstractmethod
    async def get_holders(self, symbol: str) -> HoldersSnapshot:
        """Get the holder distribution of a coin."""
        pass

    @abstractmethod
    async def get_top_coins(self) -> Tuple[PeerRanking, ...]:
        """Get the market-cap leaderboard."""
        pass

    @abstractmethod
    async def get_prediction_markets(self) -> Tuple[PredictionQuestion, ...]:
        """Get open prediction-market questions."""
        pass

    async def get_enriched_intelligence(self, symbol: str) -> Optional[EnrichedIntelligence]:
        """Get the optional intelligence payload; None when unsupported."""
        return None


class RugplayClient(BaseMarketDataProvider):
    """
    Async Rugplay API client.

    Every request goes through a RetryingFetcher; HTTP statuses are mapped
    to typed fetch errors so only server-class and transport failures retry.
    """

    def __init__(
        self,
        api_config: APIConfig,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize the client with configuration.

        Args:
            api_config: API configuration settings
            retry_config: Retry behavior for every request
            sleep: Coroutine used for backoff delays
        """
        self.api_config = api_config
        self.fetcher = RetryingFetcher(retry_config or RetryConfig(), sleep=sleep)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        headers = {"Accept": "application/json"}
        if self.api_config.api_key:
            headers["Authorization"] = f"Bearer {self.api_config.api_key}"

        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.api_config.timeout),
            headers=headers
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._session:
            await self._session.close()
            self._session = None

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Perform one GET request.

        Raises:
            ClientFetchError: On HTTP 4xx
            ServerFetchError: On HTTP 5xx
            TransportFetchError: On connection failures and broken response bodies
            FetchError: On a body that is not JSON
        """
        if not self._session:
            raise RuntimeError("Client must be used as async context manager")

        try:
            async with self._session.get(url, params=params) as response:
                if response.status >= 500:
                    raise ServerFetchError(
                        f"Server error {response.status} for {url}",
                        status=response.status, endpoint=url
                    )
                if response.status >= 400:
                    raise ClientFetchError(
                        f"Client error {response.status} for {url}",
                        status=response.status, endpoint=url
                    )
                try:
                    return await response.json()
                except ValueError as e:
                    raise FetchError(
                        f"Invalid JSON from {url}: {e}", status=response.status, endpoint=url
                    ) from e
        except aiohttp.ContentTypeError as e:
            raise FetchError(f"Unexpected content type from {url}: {e}", endpoint=url) from e
        except aiohttp.ClientConnectionError as e:
            raise TransportFetchError(f"Connection failure for {url}: {e}", endpoint=url) from e
        except aiohttp.ClientPayloadError as e:
            raise TransportFetchError(f"Broken response body from {url}: {e}", endpoint=url) from e

    async def _request(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        base_url: Optional[str] = None
    ) -> Any:
        url = f"{(base_url or self.api_config.base_url).rstrip('/')}/{path.lstrip('/')}"
        return await self.fetcher.fetch(lambda: self._get_json(url, params), context=url)

    async def get_coin_details(self, symbol: str, timeframe: str = "1m") -> CoinDetails:
        payload = await self._request(f"/coin/{symbol.upper()}", params={"timeframe": timeframe})
        return parse_coin_details(payload, timeframe)

    async def get_holders(self, symbol: str) -> HoldersSnapshot:
        payload = await self._request(f"/holders/{symbol.upper()}")
        return parse_holders(payload)

    async def get_top_coins(self) -> Tuple[PeerRanking, ...]:
        payload = await self._request("/top")
        return parse_top_coins(payload)

    async def get_prediction_markets(self) -> Tuple[PredictionQuestion, ...]:
        payload = await self._request("/hopium")
        return parse_prediction_markets(payload)

    async def get_enriched_intelligence(self, symbol: str) -> Optional[EnrichedIntelligence]:
        """
        Fetch trading intelligence and holder investigation concurrently.

        A failed call leaves its part of the payload absent.
        """
        if not self.api_config.intelligence_base_url:
            return None

        symbol = symbol.upper()
        paths = (f"/analysis/{symbol}", f"/investigator/{symbol}")
        results = await asyncio.gather(
            *(self._request(path, base_url=self.api_config.intelligence_base_url) for path in paths),
            return_exceptions=True
        )

        payloads = []
        for path, result in zip(paths, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.warning(f"Intelligence request {path} failed: {result}")
                payloads.append(None)
            else:
                payloads.append(result)

        return parse_enriched_intelligence(*payloads)


class MockRugplayClient(BaseMarketDataProvider):
    """
    Mock client serving in-memory payloads.

    Payloads use the same JSON shapes as the real API and go through the
    same parsers. Layout::

        {
            "coin": {"SYMBOL": {"1m": {...}, "1h": {...}}},
            "holders": {"SYMBOL": {...}},
            "top": {...},
            "hopium": {...},
            "analysis": {"SYMBOL": {...}},
            "investigator": {"SYMBOL": {...}}
        }

    A coin entry may also be a single payload served for every timeframe.
    Unknown symbols raise ClientFetchError with status 404.
    """

    def __init__(self, payloads: Optional[Dict[str, Any]] = None):
        self.payloads = payloads or {}
        self.calls: List[Tuple[str, ...]] = []

    def _not_found(self, endpoint: str) -> ClientFetchError:
        return ClientFetchError(f"No fixture for {endpoint}", status=404, endpoint=endpoint)

    async def get_coin_details(self, symbol: str, timeframe: str = "1m") -> CoinDetails:
        self.calls.append(("coin", symbol.upper(), timeframe))
        entry = (self.payloads.get("coin") or {}).get(symbol.upper())
        if entry is None:
            raise self._not_found(f"/coin/{symbol.upper()}")

        if "coin" not in entry:
            if timeframe not in entry:
                raise self._not_found(f"/coin/{symbol.upper()}?timeframe={timeframe}")
            entry = entry[timeframe]
        return parse_coin_details(entry, timeframe)

    async def get_holders(self, symbol: str) -> HoldersSnapshot:
        self.calls.append(("holders", symbol.upper()))
        entry = (self.payloads.get("holders") or {}).get(symbol.upper())
        if entry is None:
            raise self._not_found(f"/holders/{symbol.upper()}")
        return parse_holders(entry)

    async def get_top_coins(self) -> Tuple[PeerRanking, ...]:
        self.calls.append(("top",))
        return parse_top_coins(self.payloads.get("top") or {})

    async def get_prediction_markets(self) -> Tuple[PredictionQuestion, ...]:
        self.calls.append(("hopium",))
        return parse_prediction_markets(self.payloads.get("hopium") or {})

    async def get_enriched_intelligence(self, symbol: str) -> Optional[EnrichedIntelligence]:
        symbol = symbol.upper()
        self.calls.append(("analysis", symbol))
        self.calls.append(("investigator", symbol))
        analysis = (self.payloads.get("analysis") or {}).get(symbol)
        investigation = (self.payloads.get("investigator") or {}).get(symbol)
        if analysis is None and investigation is None:
            return None
        return parse_enriched_intelligence(analysis, investigation)
