"""
Risk aggregation and recommendation synthesis.

Both blends are parameterized by a WeightingStrategy. BASIC applies when
only baseline factors are available; ENRICHED applies when an external
intelligence payload superseded one or more factors.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from rugplay_analyzer.analysis.scorers import clamp_score
from rugplay_analyzer.models.core import (
    FactorScores, Recommendation, RiskLevel, RugPullAssessment, Severity
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactorWeights:
    """Blend weights for the five factors and the inverted suspicious score."""
    technical: float
    sentiment: float
    liquidity: float
    fundamental: float
    concentration: float
    suspicious_inverted: float

    def blend(self, factors: FactorScores, suspicious_score: float) -> float:
        return (
            factors.technical.score * self.technical
            + factors.sentiment.score * self.sentiment
            + factors.liquidity.score * self.liquidity
            + factors.fundamental.score * self.fundamental
            + factors.concentration.score * self.concentration
            + (100 - suspicious_score) * self.suspicious_inverted
        )


@dataclass(frozen=True)
class WeightingStrategy:
    name: str
    risk_weights: FactorWeights
    recommendation_weights: FactorWeights


BASIC_STRATEGY = WeightingStrategy(
    name="basic",
    risk_weights=FactorWeights(
        technical=0.25, sentiment=0.15, liquidity=0.15,
        fundamental=0.05, concentration=0.05, suspicious_inverted=0.35
    ),
    recommendation_weights=FactorWeights(
        technical=0.30, sentiment=0.15, liquidity=0.15,
        fundamental=0.05, concentration=0.05, suspicious_inverted=0.30
    )
)

ENRICHED_STRATEGY = WeightingStrategy(
    name="enriched",
    risk_weights=FactorWeights(
        technical=0.20, sentiment=0.15, liquidity=0.15,
        fundamental=0.05, concentration=0.15, suspicious_inverted=0.30
    ),
    recommendation_weights=FactorWeights(
        technical=0.25, sentiment=0.20, liquidity=0.15,
        fundamental=0.05, concentration=0.10, suspicious_inverted=0.25
    )
)

RISK_BANDS: Tuple[Tuple[float, RiskLevel], ...] = (
    (80, RiskLevel.VERY_LOW),
    (65, RiskLevel.LOW),
    (50, RiskLevel.MEDIUM),
    (35, RiskLevel.HIGH),
)

RECOMMENDATION_BANDS: Tuple[Tuple[float, Recommendation], ...] = (
    (75, Recommendation.STRONG_BUY),
    (65, Recommendation.BUY),
    (50, Recommendation.HOLD),
    (30, Recommendation.SELL),
)


class RiskAggregator:
    """Combines factor scores and the suspicious-pattern score into a risk level and confidence."""

    def aggregate(
        self,
        factors: FactorScores,
        suspicious_score: float,
        strategy: WeightingStrategy = BASIC_STRATEGY
    ) -> Tuple[RiskLevel, float]:
        """
        Returns:
            Tuple of (risk level, confidence in [70, 95])
        """
        if suspicious_score >= 90:
            return RiskLevel.VERY_HIGH, 95.0
        if suspicious_score >= 70:
            return RiskLevel.HIGH, 85.0

        weighted = strategy.risk_weights.blend(factors, suspicious_score)

        risk_level = RiskLevel.VERY_HIGH
        for threshold, level in RISK_BANDS:
            if weighted >= threshold:
                risk_level = level
                break

        return risk_level, self.confidence(factors, suspicious_score)

    @staticmethod
    def confidence(factors: FactorScores, suspicious_score: float) -> float:
        """Higher dispersion between technical, liquidity and inverted suspicious scores means lower confidence."""
        spread = float(np.std([
            factors.technical.score,
            factors.liquidity.score,
            100 - suspicious_score,
        ]))
        return clamp_score(95 - spread, 70, 95)


@dataclass(frozen=True)
class RecommendationOutcome:
    """Final recommendation after rug-pull overrides, with the summary banner they impose."""
    recommendation: Recommendation
    confidence: float
    banner: str = ""


class RecommendationEngine:
    """Maps aggregated scores to a recommendation, then applies rug-pull overrides."""

    def recommend(
        self,
        factors: FactorScores,
        suspicious_score: float,
        strategy: WeightingStrategy = BASIC_STRATEGY
    ) -> Recommendation:
        if suspicious_score >= 90:
            return Recommendation.STRONG_SELL
        if suspicious_score >= 70:
            return Recommendation.SELL

        overall = strategy.recommendation_weights.blend(factors, suspicious_score)

        for threshold, recommendation in RECOMMENDATION_BANDS:
            if overall >= threshold:
                return recommendation
        return Recommendation.STRONG_SELL

    def apply_rug_pull_override(
        self,
        recommendation: Recommendation,
        confidence: float,
        rug_pull: RugPullAssessment
    ) -> RecommendationOutcome:
        """
        Critical rug-pull risk forces STRONG_SELL and caps confidence at 90.
        High risk turns anything but STRONG_SELL into SELL and caps confidence at 80.
        """
        if rug_pull.risk_level == Severity.CRITICAL:
            if recommendation != Recommendation.STRONG_SELL:
                logger.info(f"Rug-pull override: {recommendation.value} -> STRONG_SELL")
            return RecommendationOutcome(
                recommendation=Recommendation.STRONG_SELL,
                confidence=min(confidence, 90.0),
                banner=f"DANGER: {rug_pull.short_description}. "
            )

        if rug_pull.risk_level == Severity.HIGH:
            if recommendation != Recommendation.STRONG_SELL:
                recommendation = Recommendation.SELL
                confidence = min(confidence, 80.0)
            return RecommendationOutcome(
                recommendation=recommendation,
                confidence=confidence,
                banner=f"WARNING: {rug_pull.short_description}. "
            )

        return RecommendationOutcome(recommendation=recommendation, confidence=confidence)
