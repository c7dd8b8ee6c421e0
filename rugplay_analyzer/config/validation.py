"""
Configuration validation using Pydantic.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class TimeframeEnum(str, Enum):
    """Timeframes served by the coin details endpoint."""
    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"
    ONE_DAY = "1d"


class LogLevelEnum(str, Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class APIConfigValidator(BaseModel):
    """Pydantic model for API configuration validation."""
    base_url: str = Field(default="https://rugplay.com/api/v1", description="Rugplay API base URL")
    api_key: str = Field(default="", description="Bearer token for the Rugplay API")
    timeout: int = Field(default=30, ge=1, le=300, description="Session timeout in seconds")
    intelligence_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the optional intelligence service"
    )

    @field_validator('base_url', 'intelligence_base_url')
    @classmethod
    def validate_url(cls, v):
        """Validate URL format."""
        if v is None:
            return v
        if not v.startswith(('http://', 'https://')):
            raise ValueError("API URLs must start with http:// or https://")
        return v.rstrip('/')


class RetryConfigValidator(BaseModel):
    """Pydantic model for retry configuration validation."""
    max_retries: int = Field(default=3, ge=0, le=10, description="Maximum retry attempts")
    initial_delay: float = Field(default=1.0, ge=0.0, le=60.0, description="Delay before the first retry")
    max_delay: float = Field(default=10.0, ge=0.0, le=300.0, description="Upper bound for any retry delay")
    backoff_factor: float = Field(default=2.0, ge=1.0, le=10.0, description="Exponential backoff factor")
    attempt_timeout: float = Field(default=8.0, gt=0.0, le=120.0, description="Timeout for a single attempt")

    @model_validator(mode='after')
    def validate_delay_bounds(self):
        """Ensure the initial delay does not exceed the cap."""
        if self.initial_delay > self.max_delay:
            raise ValueError(
                f"initial_delay ({self.initial_delay}) must not exceed max_delay ({self.max_delay})"
            )
        return self


class AnalysisConfigValidator(BaseModel):
    """Pydantic model for analysis configuration validation."""
    timeframe_weights: Dict[TimeframeEnum, float] = Field(
        default_factory=lambda: {
            TimeframeEnum.ONE_MINUTE: 0.2,
            TimeframeEnum.ONE_HOUR: 0.3,
            TimeframeEnum.ONE_DAY: 0.5,
        },
        min_length=1,
        description="Technical-analysis timeframes and their blend weights"
    )
    include_prediction_markets: bool = Field(default=True, description="Fetch prediction-market sentiment")
    use_enrichment: bool = Field(default=True, description="Fetch the optional intelligence payload")
    analysis_timeout: float = Field(default=60.0, gt=0.0, le=600.0, description="Timeout for one analysis pass")

    @field_validator('timeframe_weights')
    @classmethod
    def validate_weights(cls, v):
        """Weights must be positive."""
        for timeframe, weight in v.items():
            if weight <= 0:
                raise ValueError(f"Weight for timeframe '{timeframe}' must be positive")
        return v


class LoggingConfigValidator(BaseModel):
    """Pydantic model for logging configuration validation."""
    level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Root log level")
    file: Optional[str] = Field(default=None, description="Optional rotating log file path")
    structured: bool = Field(default=True, description="Emit JSON structured logs")


class AnalyzerConfigValidator(BaseModel):
    """Main configuration validator using Pydantic."""
    api: APIConfigValidator = Field(default_factory=APIConfigValidator)
    retry: RetryConfigValidator = Field(default_factory=RetryConfigValidator)
    analysis: AnalysisConfigValidator = Field(default_factory=AnalysisConfigValidator)
    logging: LoggingConfigValidator = Field(default_factory=LoggingConfigValidator)

    model_config = {
        "validate_assignment": True,
        "extra": "forbid",
    }

    def to_config(self) -> 'AnalyzerConfig':
        """Convert to the dataclass configuration used at runtime."""
        from rugplay_analyzer.config.models import (
            AnalyzerConfig, APIConfig, RetryConfig, AnalysisConfig, LoggingConfig
        )

        return AnalyzerConfig(
            api=APIConfig(
                base_url=self.api.base_url,
                api_key=self.api.api_key,
                timeout=self.api.timeout,
                intelligence_base_url=self.api.intelligence_base_url
            ),
            retry=RetryConfig(
                max_retries=self.retry.max_retries,
                initial_delay=self.retry.initial_delay,
                max_delay=self.retry.max_delay,
                backoff_factor=self.retry.backoff_factor,
                attempt_timeout=self.retry.attempt_timeout
            ),
            analysis=AnalysisConfig(
                timeframe_weights={
                    timeframe.value: weight
                    for timeframe, weight in self.analysis.timeframe_weights.items()
                },
                include_prediction_markets=self.analysis.include_prediction_markets,
                use_enrichment=self.analysis.use_enrichment,
                analysis_timeout=self.analysis.analysis_timeout
            ),
            logging=LoggingConfig(
                level=self.logging.level.value,
                file=self.logging.file,
                structured=self.logging.structured
            )
        )


def validate_config_dict(config_data: Dict[str, Any]) -> AnalyzerConfigValidator:
    """
    Validate configuration dictionary using Pydantic.

    Args:
        config_data: Configuration dictionary

    Returns:
        Validated configuration object

    Raises:
        ValueError: If validation fails
    """
    try:
        return AnalyzerConfigValidator(**config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")


def get_env_var_mappings() -> Dict[str, str]:
    """
    Get mapping of environment variables to configuration paths.

    Returns:
        Dictionary mapping environment variable names to config paths
    """
    return {
        # API configuration
        'RUGPLAY_API_KEY': 'api.api_key',
        'RUGPLAY_API_BASE_URL': 'api.base_url',
        'RUGPLAY_API_TIMEOUT': 'api.timeout',
        'RUGPLAY_INTELLIGENCE_URL': 'api.intelligence_base_url',

        # Retry configuration
        'RUGPLAY_MAX_RETRIES': 'retry.max_retries',
        'RUGPLAY_INITIAL_DELAY': 'retry.initial_delay',
        'RUGPLAY_MAX_DELAY': 'retry.max_delay',
        'RUGPLAY_BACKOFF_FACTOR': 'retry.backoff_factor',
        'RUGPLAY_ATTEMPT_TIMEOUT': 'retry.attempt_timeout',

        # Analysis configuration
        'RUGPLAY_ANALYSIS_TIMEOUT': 'analysis.analysis_timeout',
        'RUGPLAY_USE_ENRICHMENT': 'analysis.use_enrichment',

        # Logging configuration
        'RUGPLAY_LOG_LEVEL': 'logging.level',
        'RUGPLAY_LOG_FILE': 'logging.file',
    }
