"""
Configuration management for the Rugplay coin analyzer.
"""

from .models import (
    AnalyzerConfig,
    APIConfig,
    RetryConfig,
    AnalysisConfig,
    LoggingConfig
)
from .manager import ConfigManager
from .validation import (
    AnalyzerConfigValidator,
    validate_config_dict,
    get_env_var_mappings,
    TimeframeEnum,
    LogLevelEnum
)

__all__ = [
    # Models
    'AnalyzerConfig',
    'APIConfig',
    'RetryConfig',
    'AnalysisConfig',
    'LoggingConfig',

    # Manager
    'ConfigManager',

    # Validation
    'AnalyzerConfigValidator',
    'validate_config_dict',
    'get_env_var_mappings',
    'TimeframeEnum',
    'LogLevelEnum',
]
