"""
Technical indicator library.

Stateless numeric functions over closing-price sequences or candle series.
Every function is total: sparse or degenerate input returns a neutral
default instead of raising.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from rugplay_analyzer.models.core import Candle


@dataclass(frozen=True)
class MACDResult:
    """MACD line, signal line and the last two histogram values."""
    macd_line: float
    signal_line: float
    histogram: float
    previous_histogram: float


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float


@dataclass(frozen=True)
class SupportResistance:
    """Nearest local support and resistance levels (None when none found)."""
    nearest_support: Optional[float] = None
    nearest_resistance: Optional[float] = None


@dataclass(frozen=True)
class PriceActionResult:
    score: float
    patterns: List[str]


def percentage_changes(prices: Sequence[float]) -> List[float]:
    """
    Bar-to-bar percentage changes.

    The first element is 0 so the result aligns with ``prices``; a change
    from a zero previous price is reported as 0.
    """
    changes = []
    for i, price in enumerate(prices):
        if i == 0 or prices[i - 1] == 0:
            changes.append(0.0)
        else:
            changes.append((price - prices[i - 1]) / prices[i - 1] * 100)
    return changes


def rsi(prices: Sequence[float], period: int = 14) -> float:
    """
    Relative Strength Index in [0, 100].

    Uses the plain mean of the last ``period`` gains and losses. Returns
    the neutral 50 when fewer than ``period + 1`` prices are available.
    """
    if period <= 0 or len(prices) < period + 1:
        return 50.0

    deltas = np.diff(np.asarray(prices, dtype=float))
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(np.mean(gains[-period:]))
    avg_loss = float(np.mean(losses[-period:]))

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def sma(prices: Sequence[float], period: int) -> float:
    """Mean of the last ``period`` prices; the last price if there are fewer, 0 if empty."""
    if not prices:
        return 0.0
    if period <= 0 or len(prices) < period:
        return float(prices[-1])
    return float(np.mean(prices[-period:]))


def ema_series(prices: Sequence[float], period: int) -> List[float]:
    """Running EMA seeded with the first price, one value per input price."""
    if not prices:
        return []

    multiplier = 2.0 / (period + 1)
    current = float(prices[0])
    series = [current]
    for price in prices[1:]:
        current = (price - current) * multiplier + current
        series.append(current)
    return series


def ema(prices: Sequence[float], period: int) -> float:
    """Exponential moving average of the whole series; 0 if empty."""
    series = ema_series(prices, period)
    return series[-1] if series else 0.0


def macd(
    prices: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9
) -> MACDResult:
    """
    MACD with a signal line taken as the EMA of the running MACD-line series.

    Because the EMA is causal, the histogram one bar back equals the same
    computation over ``prices[:-1]``.
    """
    if not prices:
        return MACDResult(0.0, 0.0, 0.0, 0.0)

    fast = ema_series(prices, fast_period)
    slow = ema_series(prices, slow_period)
    macd_line = [f - s for f, s in zip(fast, slow)]
    signal = ema_series(macd_line, signal_period)
    histogram = [line - sig for line, sig in zip(macd_line, signal)]

    return MACDResult(
        macd_line=macd_line[-1],
        signal_line=signal[-1],
        histogram=histogram[-1],
        previous_histogram=histogram[-2] if len(histogram) > 1 else 0.0
    )


def bollinger_bands(prices: Sequence[float], period: int = 20, std_dev: float = 2.0) -> BollingerBands:
    """Bands around the SMA at ``std_dev`` population standard deviations of the last ``period`` prices."""
    if not prices:
        return BollingerBands(0.0, 0.0, 0.0)

    middle = sma(prices, period)
    std = float(np.std(prices[-period:]))

    return BollingerBands(
        upper=middle + std_dev * std,
        middle=middle,
        lower=middle - std_dev * std
    )


def vwap(candles: Sequence[Candle]) -> float:
    """Volume-weighted average of the typical price over the entire history; 0 without volume."""
    cumulative_tpv = 0.0
    cumulative_volume = 0.0

    for candle in candles:
        typical_price = (candle.high + candle.low + candle.close) / 3
        cumulative_tpv += typical_price * candle.volume
        cumulative_volume += candle.volume

    if cumulative_volume <= 0:
        return 0.0
    return cumulative_tpv / cumulative_volume


def volatility(prices: Sequence[float]) -> float:
    """Population standard deviation of percentage returns, skipping zero previous prices."""
    if len(prices) < 2:
        return 0.0

    returns = [
        (prices[i] - prices[i - 1]) / prices[i - 1] * 100
        for i in range(1, len(prices))
        if prices[i - 1] != 0
    ]
    if not returns:
        return 0.0

    return float(np.std(returns))


def volume_trend(volumes: Sequence[float]) -> float:
    """Relative change of the mean of the last 5 volumes against the 5 before them."""
    if len(volumes) < 10:
        return 0.0

    recent = float(np.mean(volumes[-5:]))
    previous = float(np.mean(volumes[-10:-5]))

    if previous == 0:
        return 0.0
    return (recent - previous) / previous


def support_resistance(candles: Sequence[Candle]) -> SupportResistance:
    """
    Nearest support and resistance from local extremes.

    A bar is a support (resistance) when its low (high) is strictly below
    (above) the two bars on each side. Candidates are ordered by absolute
    distance to the last close.
    """
    supports = []
    resistances = []

    for i in range(2, len(candles) - 2):
        window = (candles[i - 2], candles[i - 1], candles[i + 1], candles[i + 2])
        if all(candles[i].low < other.low for other in window):
            supports.append(candles[i].low)
        if all(candles[i].high > other.high for other in window):
            resistances.append(candles[i].high)

    if not candles:
        return SupportResistance()

    last_close = candles[-1].close
    supports.sort(key=lambda level: abs(last_close - level))
    resistances.sort(key=lambda level: abs(last_close - level))

    return SupportResistance(
        nearest_support=supports[0] if supports else None,
        nearest_resistance=resistances[0] if resistances else None
    )


def price_action_patterns(candles: Sequence[Candle]) -> PriceActionResult:
    """Hammer and three-candle momentum detection over the last 3 candles."""
    if len(candles) < 3:
        return PriceActionResult(0.0, ["Insufficient data for pattern analysis"])

    recent = candles[-3:]
    patterns = []
    score = 0.0

    def is_hammer(candle: Candle) -> bool:
        body = abs(candle.close - candle.open)
        lower_shadow = min(candle.open, candle.close) - candle.low
        return lower_shadow > body * 2

    if any(is_hammer(candle) for candle in recent):
        patterns.append("Hammer pattern detected - potential reversal signal")
        score += 5

    if all(c.close > c.open for c in recent):
        patterns.append("Strong bullish momentum - consecutive green candles")
        score += 8
    elif all(c.close < c.open for c in recent):
        patterns.append("Strong bearish momentum - consecutive red candles")
        score -= 8

    return PriceActionResult(score, patterns)
