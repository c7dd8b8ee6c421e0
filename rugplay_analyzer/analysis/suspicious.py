"""
Suspicious pattern detection: pump/dump, volume collapse and holder concentration.
"""

import logging
from typing import List

from rugplay_analyzer.analysis import indicators
from rugplay_analyzer.analysis.rug_pull import RECENT_WINDOW, is_dead_coin
from rugplay_analyzer.models.core import CoinDetails, HoldersSnapshot, SuspiciousPatternReport

logger = logging.getLogger(__name__)

EXTREME_HOLDER_SHARE = 80


def extreme_holder_present(holders: HoldersSnapshot) -> bool:
    """Whether any single holder owns more than 80% of the summed balances."""
    total_balance = sum(holder.balance for holder in holders.holders)
    if total_balance <= 0:
        return False
    return any(
        holder.balance / total_balance * 100 > EXTREME_HOLDER_SHARE
        for holder in holders.holders
    )


class SuspiciousPatternDetector:
    """Flags red-flag trading patterns independently of the rug-pull assessment."""

    def detect(self, details: CoinDetails, holders: HoldersSnapshot) -> SuspiciousPatternReport:
        volumes = [point.volume for point in details.volumes]

        if is_dead_coin(details.candles, volumes):
            return SuspiciousPatternReport(
                patterns=("Dead coin detected - No trading activity",),
                risk_score=100.0
            )

        patterns: List[str] = []
        risk_score = 0.0

        closes = [candle.close for candle in details.candles[-RECENT_WINDOW:]]
        changes = indicators.percentage_changes(closes)
        max_change = max(changes) if changes else 0.0
        min_change = min(changes) if changes else 0.0

        if max_change > 500:
            patterns.append("⚠️ Extreme pump detected (>500% spike)")
            risk_score += 60
        elif max_change > 200:
            patterns.append("Warning: Large pump detected (>200% spike)")
            risk_score += 40

        if min_change < -30:
            patterns.append("⚠️ Major dump in progress")
            risk_score += 50

        recent_volumes = volumes[-RECENT_WINDOW:]
        if recent_volumes:
            average_volume = sum(recent_volumes) / len(recent_volumes)
            latest_volume = recent_volumes[-1]
            if latest_volume == 0:
                patterns.append("⚠️ Zero volume - potential death")
                risk_score += 70
            elif latest_volume < average_volume * 0.1:
                patterns.append("Volume dying out")
                risk_score += 40

        total_balance = sum(holder.balance for holder in holders.holders)
        if holders.holders and total_balance > 0:
            top_share = holders.holders[0].balance / total_balance * 100
            if top_share > 90:
                patterns.append("🚨 Single wallet owns >90% - Extreme rug pull risk")
                risk_score += 80
            elif top_share > 50:
                patterns.append("⚠️ Single wallet owns >50% - High rug pull risk")
                risk_score += 60

        if extreme_holder_present(holders) and max_change > 100 and min_change < -20:
            patterns.append("🚨 Rug pull in progress")
            risk_score += 90

        if patterns:
            logger.debug(f"Suspicious patterns for {details.coin.symbol}: {patterns}")

        return SuspiciousPatternReport(
            patterns=tuple(patterns),
            risk_score=min(100.0, risk_score)
        )
