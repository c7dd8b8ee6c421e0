"""
Factor scorers.

Each scorer starts from a neutral 50, applies an ordered list of additive
rules and clamps the result to [0, 100]. Every rule that fires leaves a
reasoning fragment and a signal string on the resulting FactorScore.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from rugplay_analyzer.analysis import indicators
from rugplay_analyzer.models.core import (
    CoinDetails, CoinSnapshot, FactorScore, HoldersSnapshot, PeerRanking, PredictionQuestion
)

logger = logging.getLogger(__name__)

BASE_SCORE = 50.0

TIMEFRAME_LABELS = {
    "1m": "Short-term",
    "1h": "Medium-term",
    "1d": "Long-term",
}


def clamp_score(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class ScoreBuilder:
    """Accumulates rule outcomes for one factor and freezes them into a FactorScore."""

    def __init__(self, base: float = BASE_SCORE):
        self.score = base
        self.fragments: List[str] = []
        self.signals: List[str] = []
        self.metrics: Dict[str, float] = {}

    def apply(self, delta: float, message: str, signal: Optional[str] = None) -> None:
        self.score += delta
        self.fragments.append(message)
        self.signals.append(signal or message)

    def note(self, message: str) -> None:
        """Record a reasoning fragment that does not move the score."""
        self.fragments.append(message)

    def build(self, reasoning: Optional[str] = None) -> FactorScore:
        return FactorScore(
            score=clamp_score(self.score),
            reasoning=reasoning if reasoning is not None else ". ".join(self.fragments),
            signals=tuple(self.signals),
            metrics=dict(self.metrics)
        )


# Technical


def score_timeframe(details: CoinDetails) -> FactorScore:
    """Technical score for a single timeframe."""
    candles = details.candles
    if not candles:
        return FactorScore(
            score=BASE_SCORE,
            reasoning="Insufficient data for technical analysis",
            signals=("No candlestick data available",)
        )

    builder = ScoreBuilder()
    current_price = details.coin.current_price
    prices = details.closes
    volumes = [point.volume for point in details.volumes]

    current_rsi = indicators.rsi(prices, 14)
    builder.metrics["rsi"] = current_rsi
    if current_rsi < 30:
        builder.apply(15, f"RSI indicates oversold conditions ({current_rsi:.2f})")
    elif current_rsi > 70:
        builder.apply(-15, f"RSI indicates overbought conditions ({current_rsi:.2f})")
    else:
        builder.note(f"RSI in neutral territory ({current_rsi:.2f})")

    sma20 = indicators.sma(prices, 20)
    sma50 = indicators.sma(prices, 50)
    if current_price > sma20 and current_price > sma50:
        builder.apply(10, "Price above both SMAs - bullish trend")
    elif current_price < sma20 and current_price < sma50:
        builder.apply(-10, "Price below both SMAs - bearish trend")

    macd = indicators.macd(prices)
    builder.metrics["macd_histogram"] = macd.histogram
    if macd.histogram > 0 and macd.histogram > macd.previous_histogram:
        builder.apply(8, "MACD showing increasing bullish momentum")
    elif macd.histogram < 0 and macd.histogram < macd.previous_histogram:
        builder.apply(-8, "MACD showing increasing bearish momentum")

    bands = indicators.bollinger_bands(prices)
    if current_price > bands.upper:
        builder.apply(-5, "Price above upper Bollinger Band - potential reversal")
    elif current_price < bands.lower:
        builder.apply(5, "Price below lower Bollinger Band - potential reversal")

    current_vwap = indicators.vwap(candles)
    builder.metrics["vwap"] = current_vwap
    if current_vwap > 0:
        if current_price > current_vwap:
            builder.apply(5, "Price above VWAP - bullish")
        else:
            builder.apply(-5, "Price below VWAP - bearish")

    levels = indicators.support_resistance(candles)
    if levels.nearest_support is not None:
        builder.apply(5, f"Strong support level at {levels.nearest_support:.2f}")
    if levels.nearest_resistance is not None:
        builder.apply(-3, f"Resistance level at {levels.nearest_resistance:.2f}")

    trend = indicators.volume_trend(volumes)
    builder.metrics["volume_trend"] = trend
    if trend > 0.1:
        builder.apply(8, "Increasing volume trend supports price movement")
    elif trend < -0.1:
        builder.apply(-5, "Decreasing volume may signal weakening momentum")

    current_volatility = indicators.volatility(prices)
    builder.metrics["volatility"] = current_volatility
    if current_volatility > 0.2:
        builder.apply(-5, "High volatility presents both opportunity and risk")
    elif current_volatility < 0.1:
        builder.note("Low volatility may indicate consolidation")

    price_action = indicators.price_action_patterns(candles)
    builder.score += price_action.score
    builder.signals.extend(price_action.patterns)
    if price_action.patterns:
        builder.note(f"Price action: {', '.join(price_action.patterns)}")

    return builder.build()


def score_technical(
    details_by_timeframe: Mapping[str, CoinDetails],
    timeframe_weights: Mapping[str, float]
) -> FactorScore:
    """
    Blend per-timeframe technical scores.

    Weights are normalized over the timeframes actually supplied, so a
    missing timeframe does not drag the blend toward zero.
    """
    if not details_by_timeframe:
        return FactorScore(
            score=BASE_SCORE,
            reasoning="Insufficient data for technical analysis",
            signals=("No candlestick data available",)
        )

    per_timeframe = {
        timeframe: score_timeframe(details)
        for timeframe, details in details_by_timeframe.items()
    }

    total_weight = sum(timeframe_weights.get(timeframe, 0.0) for timeframe in per_timeframe)
    if total_weight > 0:
        blended = sum(
            result.score * timeframe_weights.get(timeframe, 0.0)
            for timeframe, result in per_timeframe.items()
        ) / total_weight
    else:
        blended = sum(result.score for result in per_timeframe.values()) / len(per_timeframe)

    signals = []
    reasoning_parts = []
    metrics = {}
    for timeframe, result in per_timeframe.items():
        signals.extend(f"{timeframe}: {signal}" for signal in result.signals)
        label = TIMEFRAME_LABELS.get(timeframe, timeframe)
        reasoning_parts.append(f"{label} ({timeframe}): {result.reasoning}")
        metrics[f"{timeframe}_score"] = result.score
        for name, value in result.metrics.items():
            metrics[f"{timeframe}_{name}"] = value

    return FactorScore(
        score=clamp_score(blended),
        reasoning=". ".join(reasoning_parts),
        signals=tuple(signals),
        metrics=metrics
    )


# Fundamental


def parse_created_at(created_at: str) -> Optional[datetime]:
    """Parse an ISO-8601 creation timestamp; naive values are taken as UTC."""
    if not created_at:
        return None
    try:
        parsed = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable creation timestamp: {created_at!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def market_cap_rank(symbol: str, peers: Sequence[PeerRanking]) -> int:
    """1-based position of ``symbol`` in the leaderboard, 0 when absent."""
    for position, peer in enumerate(peers, start=1):
        if peer.symbol.upper() == symbol.upper():
            return position
    return 0


def score_fundamental(coin: CoinSnapshot, peers: Sequence[PeerRanking], now: datetime) -> FactorScore:
    builder = ScoreBuilder()

    created = parse_created_at(coin.created_at)
    if created is None:
        builder.note("Coin age unknown")
    else:
        age_days = (now - created).total_seconds() / 86400
        builder.metrics["age_days"] = age_days
        if age_days < 1:
            builder.apply(-30, "Extremely new coin - high risk")
        elif age_days < 7:
            builder.apply(-20, "Very new coin - proceed with caution")
        elif age_days < 30:
            builder.apply(-10, "New coin - elevated risk")
        else:
            builder.apply(5, "Established coin with price history")

    rank = market_cap_rank(coin.symbol, peers)
    builder.metrics["market_cap_rank"] = float(rank)
    if 0 < rank <= 10:
        builder.apply(20, "Top 10 coin by market cap")
    elif 0 < rank <= 50:
        builder.apply(10, "Top 50 coin by market cap")
    else:
        builder.apply(-5, "Lower market cap coin - higher risk/reward potential")

    if coin.market_cap > 0:
        volume_ratio = coin.volume_24h / coin.market_cap
        builder.metrics["volume_ratio"] = volume_ratio
        if volume_ratio > 0.1:
            builder.apply(10, "High trading volume relative to market cap")
        elif volume_ratio < 0.01:
            builder.apply(-15, "Low trading volume - liquidity concerns")

    if coin.is_listed:
        builder.apply(5, "Listed status provides additional legitimacy")

    if coin.initial_supply > 0:
        supply_ratio = coin.circulating_supply / coin.initial_supply
        if supply_ratio == 1:
            builder.apply(5, "All tokens in circulation - no additional dilution risk")
        elif supply_ratio < 1:
            undistributed = 1 - supply_ratio
            penalty = clamp_score(5 * undistributed, 0, 5)
            builder.apply(-penalty, f"{undistributed * 100:.1f}% of supply not yet circulating")

    return builder.build()


# Sentiment


def prediction_market_sentiment(
    coin: CoinSnapshot,
    predictions: Sequence[PredictionQuestion]
) -> Optional[float]:
    """Average yes-percentage of questions mentioning the coin's symbol or name."""
    symbol = coin.symbol.lower()
    name = coin.name.lower()

    related = [
        question.yes_percentage for question in predictions
        if (symbol and symbol in question.question.lower())
        or (name and name in question.question.lower())
    ]
    if not related:
        return None
    return sum(related) / len(related)


def score_sentiment(
    coin: CoinSnapshot,
    predictions: Optional[Sequence[PredictionQuestion]] = None
) -> FactorScore:
    builder = ScoreBuilder()
    change = coin.change_24h

    if change > 50:
        builder.metrics["price_action"] = 5
        builder.apply(25, "Extremely positive price action in 24h")
    elif change > 20:
        builder.metrics["price_action"] = 4
        builder.apply(15, "Strong positive price momentum")
    elif change > 5:
        builder.metrics["price_action"] = 3
        builder.apply(8, "Positive price movement")
    elif change < -50:
        builder.metrics["price_action"] = 0
        builder.apply(-25, "Severe price decline in 24h")
    elif change < -20:
        builder.metrics["price_action"] = 1
        builder.apply(-15, "Significant price decline")
    elif change < -5:
        builder.metrics["price_action"] = 2
        builder.apply(-8, "Negative price movement")
    else:
        builder.metrics["price_action"] = 2.5
        builder.note("Stable price action")

    if predictions is not None:
        average = prediction_market_sentiment(coin, predictions)
        if average is None:
            builder.metrics["prediction_market_sentiment"] = 50
            builder.note("No specific prediction market data available")
        else:
            builder.metrics["prediction_market_sentiment"] = average
            if average > 70:
                builder.apply(10, "Prediction markets show bullish sentiment")
            elif average < 30:
                builder.apply(-10, "Prediction markets show bearish sentiment")
            else:
                builder.note("Mixed sentiment in prediction markets")

    if coin.creator_name and coin.creator_name != "Anonymous":
        builder.metrics["creator_reputation"] = 1
        builder.apply(5, "Known creator adds credibility")
    else:
        builder.metrics["creator_reputation"] = 0

    return builder.build()


# Liquidity


def score_liquidity(coin: CoinSnapshot) -> FactorScore:
    pool_value = coin.pool_base_currency_amount
    if pool_value <= 0 and coin.pool_coin_amount <= 0:
        return FactorScore(
            score=0.0,
            reasoning="No liquidity pool data available",
            signals=("No liquidity pool data available",)
        )

    builder = ScoreBuilder()
    builder.metrics["pool_value"] = pool_value

    if pool_value < 10000:
        builder.apply(-30, "Very low liquidity pool - high slippage risk")
    elif pool_value < 50000:
        builder.apply(-15, "Low liquidity pool - moderate slippage risk")
    elif pool_value < 100000:
        builder.apply(-5, "Moderate liquidity pool")
    else:
        builder.apply(10, "Good liquidity depth")

    if coin.circulating_supply > 0:
        pool_ratio = coin.pool_coin_amount / coin.circulating_supply
        builder.metrics["pool_ratio"] = pool_ratio
        if pool_ratio > 0.5:
            builder.apply(-10, "High percentage of tokens in liquidity pool")
        elif pool_ratio < 0.01:
            builder.apply(-20, "Very low percentage of tokens in liquidity pool")

    if pool_value > 0:
        volume_to_liquidity = coin.volume_24h / pool_value
        builder.metrics["volume_to_liquidity"] = volume_to_liquidity
        if volume_to_liquidity > 10:
            builder.apply(-15, "Extremely high trading volume relative to liquidity")
        elif volume_to_liquidity > 5:
            builder.apply(-8, "High trading volume relative to liquidity")
        elif volume_to_liquidity < 0.1:
            builder.apply(-5, "Low trading activity relative to available liquidity")

    return builder.build()


# Concentration


def score_concentration(holders: HoldersSnapshot) -> FactorScore:
    if not holders.holders:
        return FactorScore(
            score=0.0,
            reasoning="No holder data available",
            signals=("Unable to assess concentration risk",)
        )

    builder = ScoreBuilder()

    top_percentage = holders.holders[0].percentage
    builder.metrics["top_holder_percentage"] = top_percentage
    if top_percentage > 80:
        builder.apply(-40, "Extreme concentration - single holder owns >80%")
    elif top_percentage > 50:
        builder.apply(-25, "High concentration - single holder owns >50%")
    elif top_percentage > 20:
        builder.apply(-10, "Moderate concentration - top holder owns >20%")
    else:
        builder.apply(10, "Good distribution - no single large holder")

    top5_percentage = sum(holder.percentage for holder in holders.holders[:5])
    builder.metrics["top5_percentage"] = top5_percentage
    if top5_percentage > 90:
        builder.apply(-30, "Extreme concentration - top 5 holders own >90%")
    elif top5_percentage > 70:
        builder.apply(-20, "High concentration - top 5 holders own >70%")
    elif top5_percentage > 50:
        builder.apply(-10, "Moderate concentration - top 5 holders own >50%")

    builder.metrics["total_holders"] = float(holders.total_holders)
    if holders.total_holders < 10:
        builder.apply(-20, "Very few total holders")
    elif holders.total_holders < 50:
        builder.apply(-10, "Limited holder base")
    elif holders.total_holders > 1000:
        builder.apply(10, "Large, distributed holder base")

    return builder.build()
