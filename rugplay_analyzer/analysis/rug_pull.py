"""
Rug-pull detection.

Classifies whether trading in a coin has effectively died and, if not,
accumulates a continuous rug-pull risk score from price, volume and
holder-distribution checks.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from rugplay_analyzer.analysis import indicators
from rugplay_analyzer.models.core import (
    Candle, CoinDetails, HoldersSnapshot, RugPullAssessment, RugPullIndicator, Severity
)

logger = logging.getLogger(__name__)

RECENT_WINDOW = 30
FLATLINE_WINDOW = 5
FLATLINE_THRESHOLD = 0.1

RISK_BANDS: Tuple[Tuple[float, Severity, str, str], ...] = (
    (70, Severity.CRITICAL, "Trading not recommended",
     "Critical risk - Multiple adverse indicators detected"),
    (50, Severity.HIGH, "Exercise extreme caution",
     "High risk - Adverse indicators present"),
    (30, Severity.MEDIUM, "Monitor closely",
     "Moderate risk - Some concerning indicators"),
    (0, Severity.LOW, "Standard trading risks apply",
     "Lower risk - No immediate concerns"),
)

DEAD_COIN_ASSESSMENT = RugPullAssessment(
    overall_risk=100.0,
    risk_level=Severity.CRITICAL,
    short_description="Rug pull detected - trading activity has ceased",
    indicators=(
        RugPullIndicator(
            name="Rug Pull",
            severity=Severity.CRITICAL,
            description="Trading activity has ceased after significant price drop",
            value=100.0
        ),
    ),
    suggested_action="Trading not recommended"
)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def is_dead_coin(candles: Sequence[Candle], volumes: Sequence[float]) -> bool:
    """
    Whether trading has effectively died.

    True when any of:
      * the price is more than 90% below its all-time high and recent volume
        is zero or down more than 95% against the full-history average;
      * the price is more than 70% below its all-time high, the last five
        bars are flat and none of them recovered;
      * recent volume is zero and the last five bars are flat.
    """
    recent_candles = candles[-RECENT_WINDOW:]
    if len(recent_candles) < 2:
        return False

    all_time_high = max(candle.high for candle in candles)
    current_price = recent_candles[-1].close
    drop_from_ath = (all_time_high - current_price) / all_time_high * 100 if all_time_high > 0 else 0.0

    if volumes:
        volume_avg = _mean(volumes)
        recent_volume_avg = _mean(volumes[-FLATLINE_WINDOW:])
        volume_drop = (volume_avg - recent_volume_avg) / volume_avg * 100 if volume_avg > 0 else 0.0
        volume_ceased = recent_volume_avg == 0
    else:
        volume_drop = 0.0
        volume_ceased = False

    closes = [candle.close for candle in recent_candles]
    changes = indicators.percentage_changes(closes)
    flat_moves = [abs(change) for change in indicators.percentage_changes(closes[-FLATLINE_WINDOW:])]

    is_flatlining = all(move < FLATLINE_THRESHOLD for move in flat_moves)
    has_no_recovery = all(change <= FLATLINE_THRESHOLD for change in changes[-FLATLINE_WINDOW:])
    has_massive_drop = drop_from_ath > 90
    has_volume_death = volume_ceased or volume_drop > 95

    return (
        (has_massive_drop and has_volume_death)
        or (drop_from_ath > 70 and has_no_recovery and is_flatlining)
        or (volume_ceased and is_flatlining)
    )


@dataclass
class PumpDumpState:
    """Outcome of the pump-then-dump state machine."""
    pump_phase: bool = False
    dump_phase: bool = False
    total_pump: float = 0.0
    total_dump: float = 0.0

    @property
    def fired(self) -> bool:
        return self.pump_phase and self.dump_phase and self.total_pump > 50 and self.total_dump < -30


def track_pump_and_dump(changes: Sequence[float]) -> PumpDumpState:
    """
    Walk bar-to-bar changes looking for a pump followed by a dump.

    A >10% bar opens the pump phase and later >5% bars extend it. Once
    pumping, a single <-10% bar opens the dump phase and later <-5% bars
    extend it.
    """
    state = PumpDumpState()
    for change in changes[1:]:
        if not state.pump_phase and change > 10:
            state.pump_phase = True
            state.total_pump = change
        elif state.pump_phase and change > 5:
            state.total_pump += change
        elif state.pump_phase and not state.dump_phase and change < -10:
            state.dump_phase = True
            state.total_dump = change
        elif state.dump_phase and change < -5:
            state.total_dump += change
    return state


def top_holders_share(holders: HoldersSnapshot, count: int = 5) -> Optional[float]:
    """Percentage of summed balances held by the top ``count`` holders."""
    total_balance = sum(holder.balance for holder in holders.holders)
    if total_balance <= 0:
        return None
    top_balance = sum(holder.balance for holder in holders.holders[:count])
    return top_balance / total_balance * 100


class RugPullDetector:
    """Stateless rug-pull risk assessor."""

    def assess(self, details: CoinDetails, holders: HoldersSnapshot) -> RugPullAssessment:
        """
        Assess rug-pull risk from the shortest-timeframe candles and the holder snapshot.

        Args:
            details: Coin details whose candles drive the price and volume checks
            holders: Holder distribution

        Returns:
            RugPullAssessment with the overall risk capped at 100
        """
        candles = details.candles
        candle_volumes = [candle.volume for candle in candles]

        if is_dead_coin(candles, candle_volumes):
            logger.warning(f"Dead coin detected for {details.coin.symbol}")
            return DEAD_COIN_ASSESSMENT

        found: List[RugPullIndicator] = []
        found.extend(self._price_indicators(candles))
        found.extend(self._volume_indicators(candle_volumes))
        found.extend(self._holder_indicators(holders))

        overall_risk = min(100.0, sum(self._weight(indicator) for indicator in found))

        for threshold, level, action, description in RISK_BANDS:
            if overall_risk >= threshold:
                break

        if level == Severity.CRITICAL:
            logger.warning(
                f"Critical rug-pull risk for {details.coin.symbol}: "
                f"{', '.join(indicator.name for indicator in found)}"
            )

        return RugPullAssessment(
            overall_risk=overall_risk,
            risk_level=level,
            short_description=description,
            indicators=tuple(found),
            suggested_action=action
        )

    # Indicator weights keyed by (name, severity)
    _WEIGHTS = {
        ("Pump and Dump", Severity.CRITICAL): 80,
        ("Suspicious Pump", Severity.HIGH): 40,
        ("Price Drop", Severity.CRITICAL): 60,
        ("Volatility", Severity.HIGH): 30,
        ("Volume Pattern", Severity.CRITICAL): 70,
        ("Volume", Severity.CRITICAL): 60,
        ("Concentration", Severity.CRITICAL): 70,
        ("Concentration", Severity.HIGH): 40,
    }

    def _weight(self, indicator: RugPullIndicator) -> float:
        return self._WEIGHTS[(indicator.name, indicator.severity)]

    def _price_indicators(self, candles: Sequence[Candle]) -> List[RugPullIndicator]:
        recent = candles[-RECENT_WINDOW:]
        if not recent:
            return []

        closes = [candle.close for candle in recent]
        changes = indicators.percentage_changes(closes)
        max_pump = max(changes)
        max_dump = min(changes)
        found = []

        state = track_pump_and_dump(changes)
        if state.fired:
            found.append(RugPullIndicator(
                name="Pump and Dump",
                severity=Severity.CRITICAL,
                description=(
                    f"{state.total_pump:.1f}% pump followed by {abs(state.total_dump):.1f}% dump"
                ),
                value=abs(state.total_dump)
            ))
        elif max_pump > 100:
            found.append(RugPullIndicator(
                name="Suspicious Pump",
                severity=Severity.HIGH,
                description=f"Rapid {max_pump:.1f}% price increase",
                value=max_pump
            ))
        elif max_dump < -30:
            found.append(RugPullIndicator(
                name="Price Drop",
                severity=Severity.CRITICAL,
                description=f"Rapid {abs(max_dump):.1f}% price decline",
                value=abs(max_dump)
            ))

        price_volatility = indicators.volatility(closes)
        if price_volatility > 50:
            found.append(RugPullIndicator(
                name="Volatility",
                severity=Severity.HIGH,
                description="Extreme price volatility detected",
                value=price_volatility
            ))

        return found

    def _volume_indicators(self, volumes: Sequence[float]) -> List[RugPullIndicator]:
        if not volumes:
            return []

        recent = volumes[-10:]
        volume_avg = _mean(volumes)
        recent_avg = _mean(recent)

        spikes = [
            (recent[i] / recent[i - 1] - 1) * 100 if recent[i - 1] > 0 else 0.0
            for i in range(1, len(recent))
        ]
        max_spike = max(spikes) if spikes else 0.0
        trend = (recent_avg / volume_avg - 1) * 100 if volume_avg > 0 else 0.0

        if max_spike > 500 and trend < -70:
            return [RugPullIndicator(
                name="Volume Pattern",
                severity=Severity.CRITICAL,
                description="Volume spike followed by significant decline",
                value=abs(trend)
            )]
        if recent_avg == 0:
            return [RugPullIndicator(
                name="Volume",
                severity=Severity.CRITICAL,
                description="Trading volume has ceased",
                value=0.0
            )]
        return []

    def _holder_indicators(self, holders: HoldersSnapshot) -> List[RugPullIndicator]:
        share = top_holders_share(holders)
        if share is None:
            return []

        description = f"Top 5 wallets control {share:.1f}% of supply"
        if share > 90:
            return [RugPullIndicator("Concentration", Severity.CRITICAL, description, share)]
        if share > 70:
            return [RugPullIndicator("Concentration", Severity.HIGH, description, share)]
        return []
