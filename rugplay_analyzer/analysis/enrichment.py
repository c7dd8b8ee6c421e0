"""
Factor scores derived from the optional intelligence payload.

Each function returns None when its part of the payload is missing or
unusable, in which case the baseline factor stands.
"""

import logging
from dataclasses import replace
from typing import Optional, Tuple

from rugplay_analyzer.analysis.scorers import BASE_SCORE, ScoreBuilder
from rugplay_analyzer.models.core import (
    EnrichedIntelligence, FactorScore, FactorScores, HolderBehaviorRisk, MarketPsychology,
    TechnicalLevels
)

logger = logging.getLogger(__name__)

BULLISH_CALLS = {"buy", "strong_buy", "strong buy"}
BEARISH_CALLS = {"sell", "strong_sell", "strong sell"}


def score_technical_levels(levels: Optional[TechnicalLevels], current_price: float) -> Optional[FactorScore]:
    """Technical score from pre-computed entry/exit levels."""
    if levels is None or levels.confidence <= 0:
        return None

    confidence = min(levels.confidence, 100.0)
    call = levels.recommendation.lower()

    if call in BULLISH_CALLS:
        builder = ScoreBuilder(BASE_SCORE + confidence / 2)
        builder.note(f"Intelligence service suggests {levels.recommendation} ({confidence:.0f}% confidence)")
    elif call in BEARISH_CALLS:
        builder = ScoreBuilder(BASE_SCORE - confidence / 2)
        builder.note(f"Intelligence service suggests {levels.recommendation} ({confidence:.0f}% confidence)")
    else:
        builder = ScoreBuilder()
        builder.note(f"Intelligence service suggests to {levels.recommendation}")
    builder.metrics["intelligence_confidence"] = confidence

    if levels.entry_price is not None and current_price < levels.entry_price:
        builder.apply(5, f"Price below suggested entry at {levels.entry_price:.6f}")
    if levels.exit_price is not None and current_price > levels.exit_price:
        builder.apply(-5, f"Price above suggested exit at {levels.exit_price:.6f}")
    if levels.stop_loss is not None and current_price < levels.stop_loss:
        builder.apply(-10, f"Price below stop loss at {levels.stop_loss:.6f}")

    return builder.build()


def score_market_psychology(psychology: Optional[MarketPsychology]) -> Optional[FactorScore]:
    """Sentiment score from measured buy pressure."""
    if psychology is None or psychology.buy_pressure is None:
        return None

    builder = ScoreBuilder(psychology.buy_pressure)
    builder.metrics["buy_pressure"] = psychology.buy_pressure
    if psychology.sell_pressure is not None:
        builder.metrics["sell_pressure"] = psychology.sell_pressure
    builder.note(f"Buy pressure at {psychology.buy_pressure:.1f}")

    sentiment = psychology.sentiment.lower()
    if sentiment == "bullish":
        builder.apply(10, "Market psychology is bullish")
    elif sentiment == "bearish":
        builder.apply(-10, "Market psychology is bearish")

    return builder.build()


def score_holder_behavior(behavior: Optional[HolderBehaviorRisk]) -> Optional[FactorScore]:
    """Concentration score as the complement of the holder-behavior risk score."""
    if behavior is None:
        return None

    return FactorScore(
        score=max(0.0, min(100.0, 100 - behavior.risk_score)),
        reasoning=f"Holder behavior risk score {behavior.risk_score:.0f}",
        signals=behavior.risk_factors,
        metrics={"holder_risk_score": behavior.risk_score}
    )


def apply_enrichment(
    baseline: FactorScores,
    enrichment: Optional[EnrichedIntelligence],
    current_price: float
) -> Tuple[FactorScores, bool]:
    """
    Supersede baseline factors with enrichment-derived ones.

    Returns:
        Tuple of (factor scores, whether any factor was superseded)
    """
    if enrichment is None or enrichment.is_empty:
        return baseline, False

    updates = {}

    technical = score_technical_levels(enrichment.technical_levels, current_price)
    if technical is not None:
        updates["technical"] = technical

    sentiment = score_market_psychology(enrichment.market_psychology)
    if sentiment is not None:
        updates["sentiment"] = sentiment

    concentration = score_holder_behavior(enrichment.holder_behavior)
    if concentration is not None:
        updates["concentration"] = concentration

    if not updates:
        return baseline, False

    logger.debug(f"Enrichment superseded factors: {sorted(updates)}")
    return replace(baseline, **updates), True
