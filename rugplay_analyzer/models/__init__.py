"""
Data models for the Rugplay coin analyzer.
"""

from .core import (
    AnalysisResult,
    Candle,
    CoinDetails,
    CoinSnapshot,
    EnrichedIntelligence,
    FactorScore,
    FactorScores,
    HolderBehaviorRisk,
    HolderRecord,
    HoldersSnapshot,
    MarketDataBundle,
    MarketPsychology,
    PeerRanking,
    PredictionQuestion,
    Recommendation,
    RiskLevel,
    RugPullAssessment,
    RugPullIndicator,
    Severity,
    SuspiciousPatternReport,
    TechnicalLevels,
    TradingOpportunities,
    TradingOpportunity,
    VolumePoint,
)

__all__ = [
    "AnalysisResult",
    "Candle",
    "CoinDetails",
    "CoinSnapshot",
    "EnrichedIntelligence",
    "FactorScore",
    "FactorScores",
    "HolderBehaviorRisk",
    "HolderRecord",
    "HoldersSnapshot",
    "MarketDataBundle",
    "MarketPsychology",
    "PeerRanking",
    "PredictionQuestion",
    "Recommendation",
    "RiskLevel",
    "RugPullAssessment",
    "RugPullIndicator",
    "Severity",
    "SuspiciousPatternReport",
    "TechnicalLevels",
    "TradingOpportunities",
    "TradingOpportunity",
    "VolumePoint",
]
