"""
Coin analysis engine.

Fetches everything one analysis needs concurrently, joins it fail-fast,
then runs the synchronous scoring pipeline over the joined bundle.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from rugplay_analyzer.analysis.aggregation import (
    BASIC_STRATEGY, ENRICHED_STRATEGY, RecommendationEngine, RiskAggregator
)
from rugplay_analyzer.analysis.enrichment import apply_enrichment
from rugplay_analyzer.analysis.report import (
    analyze_trading_opportunities, generate_opportunities, generate_summary, generate_warnings
)
from rugplay_analyzer.analysis.rug_pull import RugPullDetector
from rugplay_analyzer.analysis.scorers import (
    score_concentration, score_fundamental, score_liquidity, score_sentiment, score_technical
)
from rugplay_analyzer.analysis.suspicious import SuspiciousPatternDetector
from rugplay_analyzer.clients.rugplay_client import BaseMarketDataProvider
from rugplay_analyzer.config.models import AnalyzerConfig
from rugplay_analyzer.models.core import (
    AnalysisResult, EnrichedIntelligence, FactorScores, MarketDataBundle
)
from rugplay_analyzer.utils.error_handling import AnalysisError
from rugplay_analyzer.utils.structured_logging import get_logger, with_correlation_id

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CoinAnalyzer:
    """
    Analyze a coin and produce a recommendation, risk level and rug-pull assessment.

    Instances hold configuration and stateless collaborators only, so one
    analyzer can serve concurrent analyses of different symbols.
    """

    def __init__(
        self,
        provider: BaseMarketDataProvider,
        config: Optional[AnalyzerConfig] = None,
        clock: Callable[[], datetime] = _utc_now
    ):
        """
        Initialize the analyzer.

        Args:
            provider: Market data provider
            config: Analyzer configuration (defaults when omitted)
            clock: Source of "now" used for coin age
        """
        self.provider = provider
        self.config = config or AnalyzerConfig()
        self.clock = clock

        self.rug_pull_detector = RugPullDetector()
        self.suspicious_detector = SuspiciousPatternDetector()
        self.risk_aggregator = RiskAggregator()
        self.recommendation_engine = RecommendationEngine()

    @with_correlation_id()
    async def analyze_coin(
        self,
        symbol: str,
        timeout: Optional[float] = None,
        use_enrichment: Optional[bool] = None
    ) -> AnalysisResult:
        """
        Fetch market data for ``symbol`` and analyze it.

        Args:
            symbol: Coin symbol
            timeout: Seconds allowed for the whole fetch join (config default when None)
            use_enrichment: Fetch the intelligence payload (config default when None)

        Returns:
            AnalysisResult for the coin

        Raises:
            FetchError: When any required fetch fails after retries
            asyncio.TimeoutError: When the fetch join exceeds ``timeout``
        """
        symbol = symbol.upper()
        log = get_logger(__name__).with_context(symbol=symbol, operation="analyze_coin")
        log.info(f"Starting analysis for {symbol}")

        if timeout is None:
            timeout = self.config.analysis.analysis_timeout
        if use_enrichment is None:
            use_enrichment = self.config.analysis.use_enrichment

        try:
            bundle = await asyncio.wait_for(
                self.fetch_bundle(symbol, use_enrichment=use_enrichment),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            log.error(f"Analysis for {symbol} timed out after {timeout} seconds")
            raise

        result = self.score(bundle, self.clock())

        log.info(
            f"Finished analysis for {symbol}: {result.recommendation.value}, "
            f"risk {result.risk_level.value}, confidence {result.confidence:.1f}",
            recommendation=result.recommendation.value,
            risk_level=result.risk_level.value,
            strategy=result.strategy
        )
        return result

    async def fetch_bundle(self, symbol: str, use_enrichment: bool = True) -> MarketDataBundle:
        """
        Issue every fetch concurrently and join them.

        The join is fail-fast: the first failure cancels the sibling fetches
        and propagates. The enrichment fetch never fails the join.
        """
        timeframes = self.config.analysis.timeframes
        if not timeframes:
            raise AnalysisError("No analysis timeframes configured")

        coroutines: Dict[str, Awaitable[Any]] = {
            f"coin:{timeframe}": self.provider.get_coin_details(symbol, timeframe)
            for timeframe in timeframes
        }
        coroutines["holders"] = self.provider.get_holders(symbol)
        coroutines["top"] = self.provider.get_top_coins()
        if self.config.analysis.include_prediction_markets:
            coroutines["hopium"] = self.provider.get_prediction_markets()
        if use_enrichment:
            coroutines["enrichment"] = self._fetch_enrichment(symbol)

        tasks = {name: asyncio.ensure_future(coro) for name, coro in coroutines.items()}

        try:
            await asyncio.wait(list(tasks.values()), return_when=asyncio.FIRST_EXCEPTION)
        finally:
            # reached with unfinished tasks on the first failure or when the caller times out
            unfinished = [task for task in tasks.values() if not task.done()]
            for task in unfinished:
                task.cancel()
            if unfinished:
                await asyncio.gather(*unfinished, return_exceptions=True)

        errors = [
            task.exception() for task in tasks.values()
            if not task.cancelled() and task.exception() is not None
        ]
        if errors:
            logger.error(f"Fetch failed for {symbol}, aborting analysis: {errors[0]}")
            raise errors[0]

        results = {name: task.result() for name, task in tasks.items()}

        return MarketDataBundle(
            details={timeframe: results[f"coin:{timeframe}"] for timeframe in timeframes},
            holders=results["holders"],
            peers=results["top"],
            predictions=results.get("hopium"),
            enrichment=results.get("enrichment")
        )

    async def _fetch_enrichment(self, symbol: str) -> Optional[EnrichedIntelligence]:
        try:
            return await self.provider.get_enriched_intelligence(symbol)
        except Exception as e:
            logger.warning(f"Enrichment unavailable for {symbol}, using baseline factors: {e}")
            return None

    def score(self, bundle: MarketDataBundle, now: datetime) -> AnalysisResult:
        """
        Run the scoring pipeline over a joined bundle.

        Pure: the same bundle and ``now`` always give the same result.
        """
        primary = bundle.primary
        coin = primary.coin

        baseline = FactorScores(
            technical=score_technical(bundle.details, self.config.analysis.timeframe_weights),
            fundamental=score_fundamental(coin, bundle.peers, now),
            sentiment=score_sentiment(coin, bundle.predictions),
            liquidity=score_liquidity(coin),
            concentration=score_concentration(bundle.holders)
        )
        factors, enriched = apply_enrichment(baseline, bundle.enrichment, coin.current_price)
        strategy = ENRICHED_STRATEGY if enriched else BASIC_STRATEGY

        rug_pull = self.rug_pull_detector.assess(primary, bundle.holders)
        suspicious = self.suspicious_detector.detect(primary, bundle.holders)

        risk_level, confidence = self.risk_aggregator.aggregate(
            factors, suspicious.risk_score, strategy
        )
        recommendation = self.recommendation_engine.recommend(
            factors, suspicious.risk_score, strategy
        )
        outcome = self.recommendation_engine.apply_rug_pull_override(
            recommendation, confidence, rug_pull
        )

        summary = outcome.banner + generate_summary(
            outcome.recommendation, risk_level, outcome.confidence, coin
        )

        return AnalysisResult(
            coin=coin,
            recommendation=outcome.recommendation,
            risk_level=risk_level,
            confidence=outcome.confidence,
            summary=summary,
            rug_pull=rug_pull,
            factors=factors,
            suspicious_patterns=suspicious,
            trading_opportunities=analyze_trading_opportunities(factors),
            warnings=tuple(generate_warnings(
                coin, bundle.holders, factors.liquidity, factors.concentration, now
            )),
            opportunities=tuple(generate_opportunities(coin, factors.technical, factors.fundamental)),
            strategy=strategy.name,
            analyzed_at=now
        )
