"""
Report generation: summary text, warnings, opportunities and trading potentials.
"""

from datetime import datetime
from typing import List

from rugplay_analyzer.analysis.scorers import clamp_score, parse_created_at
from rugplay_analyzer.models.core import (
    CoinSnapshot, FactorScore, FactorScores, HoldersSnapshot, Recommendation, RiskLevel,
    TradingOpportunities, TradingOpportunity
)

RISK_LEVEL_DESCRIPTIONS = {
    RiskLevel.VERY_LOW: "Minimal risk for the cryptocurrency space, but still requires careful monitoring.",
    RiskLevel.LOW: "Lower risk relative to other cryptocurrencies, but still volatile.",
    RiskLevel.MEDIUM: "Moderate risk. Use standard risk management practices.",
    RiskLevel.HIGH: "High risk. Significant potential for losses. Only trade with funds you can afford to lose.",
    RiskLevel.VERY_HIGH: "Extremely high risk of rugpull or significant losses. Exercise maximum caution.",
}

RECOMMENDATION_DESCRIPTIONS = {
    Recommendation.STRONG_BUY: "Strong buy signal. Multiple indicators suggest significant upside potential.",
    Recommendation.BUY: "Buy signal. Favorable conditions for entry.",
    Recommendation.HOLD: "Hold position. Current conditions suggest maintaining existing positions.",
    Recommendation.SELL: "Sell signal. Consider reducing exposure.",
    Recommendation.STRONG_SELL: "Strong sell signal. Multiple indicators suggest increased risk.",
}


def generate_summary(
    recommendation: Recommendation,
    risk_level: RiskLevel,
    confidence: float,
    coin: CoinSnapshot
) -> str:
    """Render the fixed-order summary block."""
    return (
        f"Analysis Summary for {coin.name} ({coin.symbol}):\n"
        f"\n"
        f"• Risk Level: {risk_level.value}\n"
        f"• Confidence: {confidence:.1f}%\n"
        f"• Current Price: ${coin.current_price:.6f}\n"
        f"• Market Cap: ${coin.market_cap:.2f}\n"
        f"• 24h Volume: ${coin.volume_24h:.2f}\n"
        f"\n"
        f"{RISK_LEVEL_DESCRIPTIONS[risk_level]}\n"
        f"\n"
        f"{RECOMMENDATION_DESCRIPTIONS[recommendation]}"
    )


def generate_warnings(
    coin: CoinSnapshot,
    holders: HoldersSnapshot,
    liquidity: FactorScore,
    concentration: FactorScore,
    now: datetime
) -> List[str]:
    warnings = list(liquidity.signals) + list(concentration.signals)

    created = parse_created_at(coin.created_at)
    if created is not None and (now - created).total_seconds() / 86400 < 7:
        warnings.append("Extremely new coin - high probability of volatility and potential scam")

    if coin.market_cap > 0 and coin.volume_24h / coin.market_cap < 0.01:
        warnings.append("Very low trading volume relative to market cap")

    if holders.total_holders < 50:
        warnings.append("Very limited holder base increases manipulation risk")

    return warnings


def generate_opportunities(
    coin: CoinSnapshot,
    technical: FactorScore,
    fundamental: FactorScore
) -> List[str]:
    opportunities = []

    if technical.score > 60:
        opportunities.append("Technical indicators suggest potential upward momentum")

    if fundamental.score > 60:
        opportunities.append("Strong fundamentals provide good long-term potential")

    if coin.change_24h < -20 and technical.score > 40:
        opportunities.append(
            "Recent price decline may present buying opportunity if fundamentals remain strong"
        )

    if coin.market_cap > 0 and coin.volume_24h / coin.market_cap > 0.1:
        opportunities.append("High trading activity indicates strong market interest")

    return opportunities


def analyze_trading_opportunities(factors: FactorScores) -> TradingOpportunities:
    """Short, mid and long term trading potentials from the technical, liquidity and concentration scores."""
    technical = factors.technical.score
    liquidity = factors.liquidity.score
    concentration = factors.concentration.score

    short_potential, short_reasons = 70.0, []
    mid_potential, mid_reasons = 40.0, []
    long_potential, long_reasons = 30.0, []

    if technical > 50:
        short_potential += 25
        short_reasons.append("Strong technical indicators for quick gains")
    if liquidity < 25:
        short_potential -= 40
        short_reasons.append("Very low liquidity - high exit risk")

    if technical > 40 and liquidity > 30:
        mid_potential += 20
        mid_reasons.append("Decent technical setup with adequate liquidity")
    if concentration < 15:
        mid_potential -= 30
        mid_reasons.append("Extreme concentration - high rug pull risk")

    if technical > 60 and liquidity > 40 and concentration > 20:
        long_potential += 20
        long_reasons.append("Strong technical setup with decent liquidity")
    else:
        long_potential -= 20
        long_reasons.append("Long-term holding very risky in current market")

    return TradingOpportunities(
        short_term=TradingOpportunity(clamp_score(short_potential), tuple(short_reasons)),
        mid_term=TradingOpportunity(clamp_score(mid_potential), tuple(mid_reasons)),
        long_term=TradingOpportunity(clamp_score(long_potential), tuple(long_reasons))
    )
