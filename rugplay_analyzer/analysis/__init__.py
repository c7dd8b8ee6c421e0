"""
Analysis module for coin scoring, rug-pull detection and recommendations.
"""

from .indicators import (
    MACDResult, BollingerBands, SupportResistance, PriceActionResult
)
from .scorers import (
    ScoreBuilder, score_technical, score_fundamental, score_sentiment,
    score_liquidity, score_concentration
)
from .enrichment import apply_enrichment
from .rug_pull import RugPullDetector
from .suspicious import SuspiciousPatternDetector
from .aggregation import (
    BASIC_STRATEGY, ENRICHED_STRATEGY, RiskAggregator, RecommendationEngine,
    RecommendationOutcome, WeightingStrategy
)
from .report import generate_summary, generate_warnings, generate_opportunities
from .coin_analyzer import CoinAnalyzer

__all__ = [
    'MACDResult',
    'BollingerBands',
    'SupportResistance',
    'PriceActionResult',
    'ScoreBuilder',
    'score_technical',
    'score_fundamental',
    'score_sentiment',
    'score_liquidity',
    'score_concentration',
    'apply_enrichment',
    'RugPullDetector',
    'SuspiciousPatternDetector',
    'BASIC_STRATEGY',
    'ENRICHED_STRATEGY',
    'RiskAggregator',
    'RecommendationEngine',
    'RecommendationOutcome',
    'WeightingStrategy',
    'generate_summary',
    'generate_warnings',
    'generate_opportunities',
    'CoinAnalyzer',
]
