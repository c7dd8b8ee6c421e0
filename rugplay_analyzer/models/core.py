"""
Core data models for the Rugplay coin analyzer.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class RiskLevel(str, Enum):
    """Aggregated risk classification."""
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class Recommendation(str, Enum):
    """Trading recommendation classes."""
    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"


class Severity(str, Enum):
    """Severity of a rug-pull indicator and rug-pull risk band."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar."""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class VolumePoint:
    """Traded volume for one bar."""
    time: int
    volume: float


@dataclass(frozen=True)
class CoinSnapshot:
    """Point-in-time market and supply figures for a coin."""
    symbol: str
    name: str
    current_price: float = 0.0
    market_cap: float = 0.0
    volume_24h: float = 0.0
    change_24h: float = 0.0
    circulating_supply: float = 0.0
    initial_supply: float = 0.0
    total_supply: float = 0.0
    pool_coin_amount: float = 0.0
    pool_base_currency_amount: float = 0.0
    creator_id: Optional[str] = None
    creator_name: str = ""
    creator_username: str = ""
    created_at: str = ""
    is_listed: bool = False


@dataclass(frozen=True)
class CoinDetails:
    """Coin snapshot with the candle and volume series for one timeframe."""
    coin: CoinSnapshot
    candles: Tuple[Candle, ...] = ()
    volumes: Tuple[VolumePoint, ...] = ()
    timeframe: str = "1m"

    @property
    def closes(self) -> Tuple[float, ...]:
        return tuple(candle.close for candle in self.candles)


@dataclass(frozen=True)
class HolderRecord:
    """A single holder position."""
    identity: str
    balance: float
    percentage: float
    rank: int


@dataclass(frozen=True)
class HoldersSnapshot:
    """Holders ordered by rank plus the total holder count."""
    holders: Tuple[HolderRecord, ...] = ()
    total_holders: int = 0


@dataclass(frozen=True)
class PeerRanking:
    """One entry of the top-coins leaderboard."""
    symbol: str
    name: str = ""
    market_cap: float = 0.0


@dataclass(frozen=True)
class PredictionQuestion:
    """An open prediction-market question."""
    question: str
    yes_percentage: float


@dataclass(frozen=True)
class TechnicalLevels:
    """Pre-computed entry/exit levels from the intelligence service."""
    recommendation: str
    confidence: float
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    stop_loss: Optional[float] = None


@dataclass(frozen=True)
class MarketPsychology:
    """Market psychology metrics from the intelligence service."""
    sentiment: str
    buy_pressure: Optional[float] = None
    sell_pressure: Optional[float] = None


@dataclass(frozen=True)
class HolderBehaviorRisk:
    """Holder-behavior risk score from the intelligence service."""
    risk_score: float
    risk_factors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EnrichedIntelligence:
    """Optional enrichment payload; each part supersedes one factor."""
    technical_levels: Optional[TechnicalLevels] = None
    market_psychology: Optional[MarketPsychology] = None
    holder_behavior: Optional[HolderBehaviorRisk] = None

    @property
    def is_empty(self) -> bool:
        return (
            self.technical_levels is None
            and self.market_psychology is None
            and self.holder_behavior is None
        )


@dataclass(frozen=True)
class MarketDataBundle:
    """Everything one analysis pass consumes, fetched and joined up front."""
    details: Mapping[str, CoinDetails]
    holders: HoldersSnapshot
    peers: Tuple[PeerRanking, ...] = ()
    predictions: Optional[Tuple[PredictionQuestion, ...]] = None
    enrichment: Optional[EnrichedIntelligence] = None

    @property
    def primary(self) -> CoinDetails:
        """The first configured timeframe; drives the coin snapshot and the detectors."""
        return next(iter(self.details.values()))


@dataclass(frozen=True)
class FactorScore:
    """Score of a single analysis factor."""
    score: float
    reasoning: str
    signals: Tuple[str, ...] = ()
    metrics: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class FactorScores:
    """The five factor scores of an analysis."""
    technical: FactorScore
    fundamental: FactorScore
    sentiment: FactorScore
    liquidity: FactorScore
    concentration: FactorScore


@dataclass(frozen=True)
class RugPullIndicator:
    """A single categorized rug-pull indicator."""
    name: str
    severity: Severity
    description: str
    value: float


@dataclass(frozen=True)
class RugPullAssessment:
    """Rug-pull risk assessment."""
    overall_risk: float
    risk_level: Severity
    short_description: str
    indicators: Tuple[RugPullIndicator, ...]
    suggested_action: str
    estimated_minutes_to_rug_pull: Optional[float] = None


@dataclass(frozen=True)
class SuspiciousPatternReport:
    """Flagged suspicious patterns and their combined risk score."""
    patterns: Tuple[str, ...]
    risk_score: float


@dataclass(frozen=True)
class TradingOpportunity:
    """Trading potential for one horizon."""
    potential: float
    reasoning: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TradingOpportunities:
    """Short, mid and long term trading potentials."""
    short_term: TradingOpportunity
    mid_term: TradingOpportunity
    long_term: TradingOpportunity


@dataclass(frozen=True)
class AnalysisResult:
    """Full result of a coin analysis."""
    coin: CoinSnapshot
    recommendation: Recommendation
    risk_level: RiskLevel
    confidence: float
    summary: str
    rug_pull: RugPullAssessment
    factors: FactorScores
    suspicious_patterns: SuspiciousPatternReport
    trading_opportunities: TradingOpportunities
    warnings: Tuple[str, ...]
    opportunities: Tuple[str, ...]
    strategy: str
    analyzed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Render the result as a JSON-serializable dictionary."""
        return _jsonable(asdict(self))


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value
