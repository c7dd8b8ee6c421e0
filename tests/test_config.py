"""
Tests for configuration management.
"""

import json
import os
import tempfile
from unittest.mock import patch

import pytest
import yaml

from rugplay_analyzer.config.manager import ConfigManager
from rugplay_analyzer.config.models import AnalyzerConfig, RetryConfig
from rugplay_analyzer.config.validation import (
    AnalyzerConfigValidator, get_env_var_mappings, validate_config_dict
)


def test_analyzer_config_defaults():
    """Test AnalyzerConfig with default values."""
    config = AnalyzerConfig()

    assert config.api.base_url == "https://rugplay.com/api/v1"
    assert config.retry.max_retries == 3
    assert config.analysis.timeframes == ["1m", "1h", "1d"]
    assert config.analysis.timeframe_weights["1d"] == 0.5
    assert config.logging.structured is True


def test_analyzer_config_validation_success():
    """Test successful configuration validation."""
    assert AnalyzerConfig().validate() == []


def test_analyzer_config_validation_no_timeframes():
    """Test configuration validation with no timeframes."""
    config = AnalyzerConfig()
    config.analysis.timeframe_weights = {}

    errors = config.validate()
    assert "At least one analysis timeframe" in errors[0]


def test_analyzer_config_validation_delay_bounds():
    """Test configuration validation with an initial delay above the cap."""
    config = AnalyzerConfig(retry=RetryConfig(initial_delay=20.0, max_delay=10.0))

    errors = config.validate()
    assert "Initial retry delay cannot exceed the maximum delay" in errors


def test_pydantic_rejects_unknown_timeframe():
    """Test validation rejects timeframes the API does not serve."""
    with pytest.raises(ValueError):
        validate_config_dict({"analysis": {"timeframe_weights": {"2w": 1.0}}})


def test_pydantic_rejects_non_positive_weight():
    with pytest.raises(ValueError):
        validate_config_dict({"analysis": {"timeframe_weights": {"1m": 0}}})


def test_pydantic_rejects_unknown_section():
    with pytest.raises(ValueError):
        validate_config_dict({"database": {"url": "sqlite://"}})


def test_pydantic_strips_trailing_slash():
    validated = validate_config_dict({"api": {"base_url": "https://rugplay.test/api/v1/"}})
    assert validated.api.base_url == "https://rugplay.test/api/v1"


def test_pydantic_rejects_bad_url():
    with pytest.raises(ValueError):
        validate_config_dict({"api": {"intelligence_base_url": "ftp://intel"}})


def test_to_config_preserves_timeframe_order():
    validated = AnalyzerConfigValidator(analysis={"timeframe_weights": {"1h": 1.0, "1m": 2.0}})
    config = validated.to_config()

    assert config.analysis.timeframes == ["1h", "1m"]
    assert config.logging.level == "INFO"


def test_config_manager_create_default():
    """Test ConfigManager creates default config file."""
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = os.path.join(temp_dir, "config.yaml")
        manager = ConfigManager(config_path)

        config = manager.load_config()

        assert os.path.exists(config_path)
        assert config.analysis.timeframes == ["1m", "1h", "1d"]
        assert manager.is_config_valid()


def test_config_manager_create_default_json():
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = os.path.join(temp_dir, "nested", "config.json")
        ConfigManager(config_path).load_config()

        with open(config_path) as f:
            data = json.load(f)
        assert data["retry"]["max_retries"] == 3


def test_config_manager_load_custom():
    """Test ConfigManager loads custom configuration."""
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, "w") as f:
            yaml.dump({
                "api": {"api_key": "abc", "intelligence_base_url": "https://intel.test/"},
                "retry": {"max_retries": 5},
                "analysis": {"timeframe_weights": {"1h": 1.0}, "use_enrichment": False},
            }, f)

        config = ConfigManager(config_path).load_config()

        assert config.api.api_key == "abc"
        assert config.api.intelligence_base_url == "https://intel.test"
        assert config.retry.max_retries == 5
        assert config.analysis.timeframes == ["1h"]
        assert config.analysis.use_enrichment is False


def test_config_manager_env_overrides():
    """Test environment variables override file values."""
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = os.path.join(temp_dir, "config.yaml")
        env = {
            "RUGPLAY_API_KEY": "from-env",
            "RUGPLAY_MAX_RETRIES": "7",
            "RUGPLAY_INITIAL_DELAY": "0.5",
            "RUGPLAY_USE_ENRICHMENT": "false",
            "RUGPLAY_LOG_LEVEL": "DEBUG",
        }
        with patch.dict(os.environ, env):
            config = ConfigManager(config_path).load_config()

        assert config.api.api_key == "from-env"
        assert config.retry.max_retries == 7
        assert config.retry.initial_delay == 0.5
        assert config.analysis.use_enrichment is False
        assert config.logging.level == "DEBUG"


def test_config_manager_invalid_file():
    """Test invalid configuration raises ValueError and records the error."""
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, "w") as f:
            yaml.dump({"retry": {"max_retries": -1}}, f)

        manager = ConfigManager(config_path)
        with pytest.raises(ValueError):
            manager.load_config()

        assert not manager.is_config_valid()
        assert manager.get_validation_errors()


def test_config_manager_caches_until_file_changes():
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = os.path.join(temp_dir, "config.yaml")
        manager = ConfigManager(config_path)

        first = manager.load_config()
        assert manager.load_config() is first

        with open(config_path, "w") as f:
            yaml.dump({"retry": {"max_retries": 1}}, f)

        assert manager.load_config().retry.max_retries == 1


def test_validate_config_file():
    with tempfile.TemporaryDirectory() as temp_dir:
        missing = ConfigManager(os.path.join(temp_dir, "missing.yaml"))
        assert missing.validate_config_file() == (False, ["Configuration file does not exist"])

        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, "w") as f:
            yaml.dump({"retry": {"initial_delay": 30.0, "max_delay": 5.0}}, f)

        is_valid, errors = ConfigManager(config_path).validate_config_file()
        assert not is_valid
        assert errors


def test_env_var_mappings_target_known_sections():
    for path in get_env_var_mappings().values():
        section = path.split(".")[0]
        assert section in {"api", "retry", "analysis", "logging"}
