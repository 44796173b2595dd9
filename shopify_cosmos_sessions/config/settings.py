"""
Environment configuration for the Cosmos DB session storage adapter.

This module loads connection settings from COSMOS_* environment variables
or a .env file using Pydantic settings, so apps can build the adapter
without hard-coding credentials.

Example .env:
    COSMOS_CONNECTION_STRING=AccountEndpoint=https://...;AccountKey=...
    COSMOS_DATABASE=shopify
    COSMOS_CONTAINER=shopify_sessions
"""

import logging
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shopify_cosmos_sessions.config.options import (
    DEFAULT_CONTAINER_NAME,
    DEFAULT_PARTITION_KEY_PATH,
    CosmosDBSessionStorageOptions,
    PartitionKeyCallback,
)
from shopify_cosmos_sessions.errors.codes import ErrorCode
from shopify_cosmos_sessions.errors.exceptions import ConfigurationError
from shopify_cosmos_sessions.resilience.retry import (
    ATTEMPT_TIMEOUT_SECONDS,
    BASE_DELAY_SECONDS,
    MAX_DELAY_SECONDS,
    MAX_RETRIES,
    RetryConfig,
)

logger = logging.getLogger(__name__)


class CosmosSettings(BaseSettings):
    """
    Cosmos DB session storage settings loaded from environment variables.

    Either connection_string, or both endpoint and key, must be provided.
    """

    # Connection
    endpoint: Optional[str] = Field(
        default=None,
        description="Cosmos DB account endpoint URL"
    )
    key: Optional[str] = Field(
        default=None,
        description="Cosmos DB account key"
    )
    connection_string: Optional[str] = Field(
        default=None,
        description="Cosmos DB connection string (AccountEndpoint=...;AccountKey=...)"
    )

    # Storage layout
    database: str = Field(
        ...,
        description="Database holding the sessions container"
    )
    container: str = Field(
        default=DEFAULT_CONTAINER_NAME,
        description="Container holding session documents"
    )
    partition_key_path: str = Field(
        default=DEFAULT_PARTITION_KEY_PATH,
        description="Container partition key path"
    )

    # Initialization retries
    max_retries: int = Field(
        default=MAX_RETRIES,
        ge=0,
        le=10,
        description="Retries after the first initialization attempt"
    )
    initial_delay: float = Field(
        default=BASE_DELAY_SECONDS,
        ge=0,
        description="Backoff before the first retry, in seconds"
    )
    max_delay: float = Field(
        default=MAX_DELAY_SECONDS,
        ge=0,
        description="Backoff cap, in seconds"
    )
    attempt_timeout: float = Field(
        default=ATTEMPT_TIMEOUT_SECONDS,
        gt=0,
        description="Deadline for one initialization attempt, in seconds"
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_prefix="COSMOS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("database", "container")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate that database and container names are not empty."""
        if not v or not v.strip():
            raise ValueError("cannot be empty")
        return v.strip()

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: Optional[str]) -> Optional[str]:
        """Validate that endpoint, when given, is an HTTP/HTTPS URL."""
        if v is None:
            return v
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("endpoint must be a valid HTTP/HTTPS URL")
        return v

    @field_validator("partition_key_path")
    @classmethod
    def validate_partition_key_path(cls, v: str) -> str:
        """Validate that the partition key path starts with '/'."""
        v = v.strip()
        if not v.startswith("/") or len(v) < 2:
            raise ValueError("partition_key_path must look like '/attribute'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    @model_validator(mode="after")
    def validate_connection(self) -> "CosmosSettings":
        """Validate that a connection string or an endpoint/key pair is provided."""
        if self.connection_string:
            return self
        if not self.endpoint or not self.key:
            raise ValueError(
                "connection_string, or both endpoint and key, must be provided"
            )
        return self

    def retry_config(self) -> RetryConfig:
        """Build the initialization retry schedule from these settings."""
        return RetryConfig(
            max_retries=self.max_retries,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            attempt_timeout=self.attempt_timeout
        )

    def to_options(
        self,
        get_partition_key_by_id: Optional[PartitionKeyCallback] = None,
        get_partition_key_by_shop: Optional[PartitionKeyCallback] = None,
        **container_options: Any
    ) -> CosmosDBSessionStorageOptions:
        """
        Build adapter options from these settings.

        Partition key callbacks cannot come from the environment, so they
        are passed in here.
        """
        return CosmosDBSessionStorageOptions(
            container_name=self.container,
            partition_key_path=self.partition_key_path,
            get_partition_key_by_id=get_partition_key_by_id,
            get_partition_key_by_shop=get_partition_key_by_shop,
            container_options=container_options,
            retry=self.retry_config()
        )


def load_settings(**overrides: Any) -> CosmosSettings:
    """
    Load settings from the environment, raising the package's error type.

    Args:
        **overrides: Values that take precedence over the environment

    Returns:
        CosmosSettings: Validated settings

    Raises:
        ConfigurationError: If required settings are missing or invalid,
            listing every problem in ``details``.
    """
    try:
        return CosmosSettings(**overrides)
    except ValidationError as e:
        missing_fields = []
        invalid_fields = {}

        for error in e.errors():
            field_name = ".".join(str(loc) for loc in error.get("loc", [])) or "settings"
            if error.get("type") == "missing":
                missing_fields.append(field_name)
            else:
                invalid_fields[field_name] = error.get("msg", str(error))

        parts = ["Failed to load Cosmos DB session storage settings"]
        if missing_fields:
            parts.append(f"Missing required fields: {', '.join(missing_fields)}")
        if invalid_fields:
            parts.append("Invalid field values: " + "; ".join(
                f"{name}: {msg}" for name, msg in invalid_fields.items()
            ))

        logger.error(
            "Session storage configuration invalid",
            extra={"extra_data": {
                "missing_fields": missing_fields,
                "invalid_fields": invalid_fields,
            }}
        )
        raise ConfigurationError(
            error_code=ErrorCode.CONFIGURATION_ERROR,
            message=". ".join(parts),
            details={
                "missing_fields": missing_fields,
                "invalid_fields": invalid_fields,
            }
        ) from e


# Global settings cache
_settings_cache: Optional[CosmosSettings] = None


def get_settings() -> CosmosSettings:
    """
    Get the settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = load_settings()

    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    This is primarily useful for testing to allow reloading settings
    with different environment variables.
    """
    global _settings_cache
    _settings_cache = None
