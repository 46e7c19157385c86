"""Configuration adapter implementation.

Concrete implementation of the ConfigurationPort interface.
Loads configuration from environment variables.
"""

from __future__ import annotations

import os
from typing import Literal, cast

from pydantic import ValidationError as PydanticValidationError

from ..domain.config import (
    ServiceConfiguration,
    ValidationIssue,
    ValidationLevel,
    ValidationResult,
)
from ..domain.exceptions import ConfigurationError
from ..ports.configuration import ConfigurationPort

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Environment = Literal["development", "staging", "production"]


class EnvironmentConfigurationAdapter(ConfigurationPort):
    """Adapter that loads configuration from environment variables."""

    def __init__(self, environ: dict[str, str] | None = None):
        """Initialize the adapter.

        Args:
            environ: Mapping to read instead of ``os.environ``
        """
        self._environ = environ

    def _get(self, name: str, default: str) -> str:
        source = self._environ if self._environ is not None else os.environ
        return source.get(name, default)

    def load_configuration(self) -> ServiceConfiguration:
        """Load service configuration from environment variables.

        Returns:
            ServiceConfiguration: Validated configuration

        Raises:
            ConfigurationError: If configuration is invalid
        """
        try:
            log_level = self._get("LOG_LEVEL", "INFO").upper()
            environment = self._get("ENVIRONMENT", "development").lower()
            log_format = self._get("LOG_FORMAT", "json").lower()

            if log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
                raise ValueError(f"Invalid log level: {log_level}")

            if environment not in ["development", "staging", "production"]:
                raise ValueError(f"Invalid environment: {environment}")

            if log_format not in ["json", "text"]:
                raise ValueError(f"Invalid log format: {log_format}")

            config = ServiceConfiguration(
                database_url=self._get("DATABASE_URL", "sqlite:///./newsletter.db"),
                pool_size=int(self._get("DB_POOL_SIZE", "10")),
                max_overflow=int(self._get("DB_MAX_OVERFLOW", "6")),
                pool_timeout_seconds=float(self._get("DB_POOL_TIMEOUT", "5")),
                statement_timeout_seconds=float(self._get("DB_STATEMENT_TIMEOUT", "10")),
                bulk_concurrency=int(self._get("BULK_CONCURRENCY", "8")),
                api_host=self._get("HOST", "0.0.0.0"),  # nosec B104
                api_port=int(self._get("PORT", "8000")),
                log_level=cast(LogLevel, log_level),
                log_format=cast(Literal["json", "text"], log_format),
                environment=cast(Environment, environment),
                trace_header=self._get("TRACE_HEADER", "x-trace-id").lower(),
            )
        except (ValueError, PydanticValidationError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        validation_result = self.validate_configuration(config)
        if not validation_result.is_valid:
            error_messages = [
                issue.message
                for issue in validation_result.get_issues_by_level(ValidationLevel.ERROR)
            ]
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(error_messages)}"
            )
        return config

    def validate_configuration(self, config: ServiceConfiguration) -> ValidationResult:
        """Validate a configuration object.

        Args:
            config: Configuration to validate

        Returns:
            ValidationResult: Result with validation status and any issues
        """
        result = ValidationResult(context="ServiceConfiguration")

        if config.environment == "production" and config.is_sqlite:
            result.add_issue(
                ValidationIssue(
                    level=ValidationLevel.ERROR,
                    category="DATABASE",
                    message="Production environment should not use SQLite",
                    resolution="Point DATABASE_URL at the PostgreSQL server",
                    details={"database_url": config.database_url.split("://")[0]},
                )
            )

        if config.bulk_concurrency > config.pool_size + config.max_overflow:
            result.add_issue(
                ValidationIssue(
                    level=ValidationLevel.WARNING,
                    category="CONFIG",
                    message="Bulk concurrency exceeds the connection pool capacity",
                    resolution="Lower BULK_CONCURRENCY or raise DB_POOL_SIZE",
                    details={
                        "bulk_concurrency": config.bulk_concurrency,
                        "pool_capacity": config.pool_size + config.max_overflow,
                    },
                )
            )

        result.diagnostics["environment"] = config.environment
        result.diagnostics["api_port"] = config.api_port
        result.diagnostics["log_format"] = config.log_format

        return result
