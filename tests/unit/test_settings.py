"""
Unit tests for the configuration settings module.

Tests cover:
- Valid configuration loading and defaults
- Missing required fields validation
- Invalid field format validation
- Conversion to adapter options and retry schedule
- Settings caching
"""

import logging
import os
from unittest.mock import patch

import pytest

from shopify_cosmos_sessions.config.settings import (
    CosmosSettings,
    clear_settings_cache,
    get_settings,
    load_settings,
)
from shopify_cosmos_sessions.errors import ConfigurationError, ErrorCode
from shopify_cosmos_sessions.session.cosmos_store import CosmosDBSessionStorage
from shopify_cosmos_sessions.telemetry import JSONFormatter

CONNECTION_STRING = (
    "AccountEndpoint=https://localhost:8081/;"
    "AccountKey=C2y6yDjf5/R+ob0N8A7Cgv30VRDJIWEHLM+4QDU5DE2nQ9nDuVTqobD4b8mGGyPMbIZnqyMsEcaGQy67XIw/Jw==;"
)


@pytest.fixture
def valid_env_vars():
    """Provide valid environment variables for testing."""
    return {
        "COSMOS_CONNECTION_STRING": CONNECTION_STRING,
        "COSMOS_DATABASE": "shopify",
    }


@pytest.fixture(autouse=True)
def reset_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def package_logger():
    logger = logging.getLogger("shopify_cosmos_sessions")
    handlers, level = logger.handlers[:], logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)


class TestCosmosSettings:
    """Tests for the CosmosSettings class."""

    def test_valid_configuration_loads_successfully(self, valid_env_vars):
        """Test that valid configuration loads without errors."""
        with patch.dict(os.environ, valid_env_vars, clear=True):
            settings = CosmosSettings(_env_file=None)

            assert settings.connection_string == CONNECTION_STRING
            assert settings.database == "shopify"
            assert settings.endpoint is None

    def test_default_values_are_applied(self, valid_env_vars):
        """Test that default values are correctly applied."""
        with patch.dict(os.environ, valid_env_vars, clear=True):
            settings = CosmosSettings(_env_file=None)

            assert settings.container == "shopify_sessions"
            assert settings.partition_key_path == "/id"
            assert settings.max_retries == 3
            assert settings.initial_delay == 0.5
            assert settings.max_delay == 5.0
            assert settings.attempt_timeout == 30.0
            assert settings.log_level == "INFO"

    def test_endpoint_and_key_are_accepted(self):
        env_vars = {
            "COSMOS_ENDPOINT": "https://account.documents.azure.com:443/",
            "COSMOS_KEY": "key==",
            "COSMOS_DATABASE": "shopify",
        }
        with patch.dict(os.environ, env_vars, clear=True):
            settings = CosmosSettings(_env_file=None)

            assert settings.endpoint == "https://account.documents.azure.com:443/"
            assert settings.key == "key=="

    def test_log_level_is_normalized(self, valid_env_vars):
        with patch.dict(os.environ, {**valid_env_vars, "COSMOS_LOG_LEVEL": "debug"}, clear=True):
            assert CosmosSettings(_env_file=None).log_level == "DEBUG"


class TestLoadSettings:
    """Tests for load_settings error reporting."""

    def test_missing_database_raises_configuration_error(self, valid_env_vars):
        env_vars = {k: v for k, v in valid_env_vars.items() if k != "COSMOS_DATABASE"}

        with patch.dict(os.environ, env_vars, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_settings(_env_file=None)

        assert exc_info.value.error_code == ErrorCode.CONFIGURATION_ERROR
        assert exc_info.value.details["missing_fields"] == ["database"]
        assert "database" in exc_info.value.message

    def test_missing_connection_info(self):
        with patch.dict(os.environ, {"COSMOS_DATABASE": "shopify"}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_settings(_env_file=None)

        assert exc_info.value.details["missing_fields"] == []
        assert "settings" in exc_info.value.details["invalid_fields"]

    def test_endpoint_without_key_is_rejected(self):
        env_vars = {
            "COSMOS_ENDPOINT": "https://account.documents.azure.com:443/",
            "COSMOS_DATABASE": "shopify",
        }
        with patch.dict(os.environ, env_vars, clear=True):
            with pytest.raises(ConfigurationError):
                load_settings(_env_file=None)

    @pytest.mark.parametrize("name,value", [
        ("COSMOS_ENDPOINT", "account.documents.azure.com"),
        ("COSMOS_PARTITION_KEY_PATH", "shop"),
        ("COSMOS_PARTITION_KEY_PATH", "/"),
        ("COSMOS_LOG_LEVEL", "VERBOSE"),
        ("COSMOS_MAX_RETRIES", "-1"),
        ("COSMOS_ATTEMPT_TIMEOUT", "0"),
        ("COSMOS_DATABASE", "   "),
    ])
    def test_invalid_values_are_reported(self, valid_env_vars, name, value):
        env_vars = {**valid_env_vars, "COSMOS_KEY": "key==", name: value}

        with patch.dict(os.environ, env_vars, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_settings(_env_file=None)

        field = name.removeprefix("COSMOS_").lower()
        assert field in exc_info.value.details["invalid_fields"]

    def test_overrides_take_precedence(self, valid_env_vars):
        with patch.dict(os.environ, valid_env_vars, clear=True):
            settings = load_settings(_env_file=None, container="sessions")

        assert settings.container == "sessions"


class TestSettingsConversion:
    """Tests for building adapter options from settings."""

    def test_retry_config(self, valid_env_vars):
        env_vars = {**valid_env_vars, "COSMOS_MAX_RETRIES": "5", "COSMOS_ATTEMPT_TIMEOUT": "2.5"}

        with patch.dict(os.environ, env_vars, clear=True):
            retry = CosmosSettings(_env_file=None).retry_config()

        assert retry.max_retries == 5
        assert retry.attempt_timeout == 2.5
        assert retry.initial_delay == 0.5

    def test_to_options(self, valid_env_vars):
        env_vars = {**valid_env_vars, "COSMOS_PARTITION_KEY_PATH": "/shopDomain"}
        by_shop = lambda shop: shop

        with patch.dict(os.environ, env_vars, clear=True):
            options = CosmosSettings(_env_file=None).to_options(
                get_partition_key_by_shop=by_shop,
                default_ttl=86400
            )

        assert options.partition_key_path == "/shopDomain"
        assert options.get_partition_key_by_id is None
        assert options.get_partition_key_by_shop is by_shop
        assert options.container_options == {"default_ttl": 86400}

    def test_from_settings_builds_storage(self, valid_env_vars, package_logger):
        with patch.dict(os.environ, valid_env_vars, clear=True):
            settings = CosmosSettings(_env_file=None)

        storage = CosmosDBSessionStorage.from_settings(settings)

        assert storage.db_name == "shopify"
        assert storage.options.container_name == "shopify_sessions"
        assert storage.initialization.started is False

    def test_from_settings_applies_log_level(self, valid_env_vars, package_logger):
        with patch.dict(os.environ, {**valid_env_vars, "COSMOS_LOG_LEVEL": "debug"}, clear=True):
            settings = CosmosSettings(_env_file=None)

        CosmosDBSessionStorage.from_settings(settings)
        CosmosDBSessionStorage.from_settings(settings)

        assert package_logger.level == logging.DEBUG
        json_handlers = [
            h for h in package_logger.handlers if isinstance(h.formatter, JSONFormatter)
        ]
        assert len(json_handlers) == 1


class TestSettingsCache:
    """Tests for get_settings caching."""

    def test_settings_are_cached(self, valid_env_vars):
        with patch.dict(os.environ, valid_env_vars, clear=True):
            first = get_settings()
            second = get_settings()

        assert first is second

    def test_clear_settings_cache_reloads(self, valid_env_vars):
        with patch.dict(os.environ, valid_env_vars, clear=True):
            first = get_settings()
            clear_settings_cache()
            second = get_settings()

        assert first is not second
        assert first == second
