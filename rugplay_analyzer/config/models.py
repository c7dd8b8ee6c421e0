"""
Configuration data models and validation.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class APIConfig:
    """Market data API configuration."""
    base_url: str = "https://rugplay.com/api/v1"
    api_key: str = ""
    timeout: int = 30
    intelligence_base_url: Optional[str] = None


@dataclass
class RetryConfig:
    """Configuration for retry behavior of the fetch layer."""
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_factor: float = 2.0
    attempt_timeout: float = 8.0

    def get_delay(self, attempt: int) -> float:
        """Calculate the delay before retry number ``attempt`` (1-indexed)."""
        delay = self.initial_delay * (self.backoff_factor ** (attempt - 1))
        return min(delay, self.max_delay)


@dataclass
class AnalysisConfig:
    """Analysis pipeline configuration."""
    timeframe_weights: Dict[str, float] = field(default_factory=lambda: {
        "1m": 0.2,
        "1h": 0.3,
        "1d": 0.5,
    })
    include_prediction_markets: bool = True
    use_enrichment: bool = True
    analysis_timeout: float = 60.0

    @property
    def timeframes(self) -> List[str]:
        return list(self.timeframe_weights.keys())


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    structured: bool = True


@dataclass
class AnalyzerConfig:
    """Main configuration container."""
    api: APIConfig = field(default_factory=APIConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> List[str]:
        """
        Validate configuration settings.

        Returns:
            List of validation errors, empty if valid
        """
        errors = []

        if not self.analysis.timeframe_weights:
            errors.append("At least one analysis timeframe must be configured")

        for timeframe, weight in self.analysis.timeframe_weights.items():
            if weight <= 0:
                errors.append(f"Timeframe weight for '{timeframe}' must be positive")

        if self.retry.max_retries < 0:
            errors.append("Max retries must be non-negative")

        if self.retry.initial_delay > self.retry.max_delay:
            errors.append("Initial retry delay cannot exceed the maximum delay")

        if not self.api.base_url.startswith(("http://", "https://")):
            errors.append(f"Invalid API base URL: {self.api.base_url}")

        return errors
