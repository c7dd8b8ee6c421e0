"""
Configuration manager for YAML/JSON files with environment overrides.
"""

import hashlib
import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import yaml

from rugplay_analyzer.config.models import AnalyzerConfig
from rugplay_analyzer.config.validation import (
    validate_config_dict, get_env_var_mappings
)

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Configuration manager.

    Supports YAML and JSON configuration files with environment variable
    overrides. A missing file is created with default settings.
    """

    def __init__(self, config_file_path: str = "config.yaml"):
        """
        Initialize configuration manager.

        Args:
            config_file_path: Path to the configuration file
        """
        self.config_file_path = os.path.abspath(config_file_path)
        self._config: Optional[AnalyzerConfig] = None
        self._config_hash: Optional[str] = None
        self._validation_errors: List[str] = []

    def load_config(self) -> AnalyzerConfig:
        """
        Load configuration from file with environment variable overrides.

        Returns:
            Loaded and validated configuration

        Raises:
            ValueError: If configuration is invalid
        """
        if not os.path.exists(self.config_file_path):
            self._create_default_config()

        current_hash = self._calculate_config_hash()
        if self._config_hash == current_hash and self._config is not None:
            return self._config

        try:
            config_data = self._load_config_file()
            config_data = self._apply_env_overrides(config_data)
            validated_config = validate_config_dict(config_data)
        except ValueError as e:
            self._validation_errors = [str(e)]
            raise

        self._config = validated_config.to_config()
        self._config_hash = current_hash
        self._validation_errors = []

        logger.debug(f"Loaded configuration from {self.config_file_path}")
        return self._config

    def get_config(self) -> AnalyzerConfig:
        """
        Get current configuration, loading if necessary.
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def get_validation_errors(self) -> List[str]:
        return self._validation_errors.copy()

    def is_config_valid(self) -> bool:
        return len(self._validation_errors) == 0

    def validate_config_file(self) -> Tuple[bool, List[str]]:
        """
        Validate configuration file without loading it.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        if not os.path.exists(self.config_file_path):
            return False, ["Configuration file does not exist"]

        try:
            config_data = self._load_config_file()
            config_data = self._apply_env_overrides(config_data)
            validated = validate_config_dict(config_data)
        except (ValueError, OSError, yaml.YAMLError) as e:
            return False, [str(e)]

        errors = validated.to_config().validate()
        return len(errors) == 0, errors

    def _load_config_file(self) -> Dict[str, Any]:
        """Load configuration data from file."""
        with open(self.config_file_path, 'r') as f:
            if self.config_file_path.endswith('.yaml') or self.config_file_path.endswith('.yml'):
                return yaml.safe_load(f) or {}
            elif self.config_file_path.endswith('.json'):
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {self.config_file_path}")

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration."""
        env_mappings = get_env_var_mappings()

        for env_var, config_path_str in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                # "retry.max_retries" -> ["retry", "max_retries"]
                config_path = config_path_str.split('.')

                current = config_data
                for key in config_path[:-1]:
                    if key not in current or current[key] is None:
                        current[key] = {}
                    current = current[key]

                current[config_path[-1]] = self._convert_env_value(env_var, env_value)

        return config_data

    def _convert_env_value(self, env_var: str, env_value: str) -> Any:
        """Convert environment variable value to appropriate type."""
        # Integer fields
        if env_var in ['RUGPLAY_API_TIMEOUT', 'RUGPLAY_MAX_RETRIES']:
            return int(env_value)

        # Float fields
        elif env_var in [
            'RUGPLAY_INITIAL_DELAY', 'RUGPLAY_MAX_DELAY', 'RUGPLAY_BACKOFF_FACTOR',
            'RUGPLAY_ATTEMPT_TIMEOUT', 'RUGPLAY_ANALYSIS_TIMEOUT'
        ]:
            return float(env_value)

        # Boolean fields
        elif env_var in ['RUGPLAY_USE_ENRICHMENT']:
            return env_value.lower() in ('true', '1', 'yes', 'on')

        else:
            return env_value

    def _create_default_config(self) -> None:
        """Create a default configuration file."""
        default_config = {
            'api': {
                'base_url': 'https://rugplay.com/api/v1',
                'api_key': '',
                'timeout': 30,
            },
            'retry': {
                'max_retries': 3,
                'initial_delay': 1.0,
                'max_delay': 10.0,
                'backoff_factor': 2.0,
                'attempt_timeout': 8.0,
            },
            'analysis': {
                'timeframe_weights': {'1m': 0.2, '1h': 0.3, '1d': 0.5},
                'include_prediction_markets': True,
                'use_enrichment': True,
                'analysis_timeout': 60.0,
            },
            'logging': {
                'level': 'INFO',
                'structured': True,
            },
        }

        config_dir = os.path.dirname(self.config_file_path)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(self.config_file_path, 'w') as f:
            if self.config_file_path.endswith('.json'):
                json.dump(default_config, f, indent=2)
            else:
                yaml.dump(default_config, f, default_flow_style=False, indent=2, sort_keys=False)

        logger.info(f"Created default configuration at {self.config_file_path}")

    def _calculate_config_hash(self) -> str:
        """Hash of the configuration file content plus relevant environment variables."""
        if not os.path.exists(self.config_file_path):
            return ""

        with open(self.config_file_path, 'rb') as f:
            content = f.read()

        env_vars = []
        for env_var in get_env_var_mappings().keys():
            env_value = os.getenv(env_var)
            if env_value is not None:
                env_vars.append(f"{env_var}={env_value}")

        combined_content = content + "|".join(sorted(env_vars)).encode()
        return hashlib.sha256(combined_content).hexdigest()
