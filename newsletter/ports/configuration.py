"""Configuration port interface.

The service is configured once at process start; adapters decide where the
settings come from.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain.config import ServiceConfiguration, ValidationResult


class ConfigurationPort(ABC):
    """Abstract source of the service configuration."""

    @abstractmethod
    def load_configuration(self) -> ServiceConfiguration:
        """Read the store URL, pool limits, timeouts, bulk concurrency and logging settings.

        Returns:
            ServiceConfiguration: Configuration that passed ``validate_configuration``

        Raises:
            ConfigurationError: If a value is malformed or validation reports an error
        """

    @abstractmethod
    def validate_configuration(self, config: ServiceConfiguration) -> ValidationResult:
        """Check settings that are individually valid but unsafe together.

        Examples are an embedded SQLite store in production, or bulk
        concurrency exceeding the connection pool capacity.

        Args:
            config: Configuration to check

        Returns:
            ValidationResult: Errors block startup, warnings are informational
        """
