"""Configuration value objects for the newsletter service."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ValidationLevel(str, Enum):
    """Value object representing validation issue severity levels."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class ValidationIssue(BaseModel):
    """Value object representing a configuration validation issue."""

    level: ValidationLevel = Field(..., description="Issue severity")
    category: str = Field(..., description="Issue category: DATABASE, CONFIG, etc.")
    message: str = Field(..., description="Human-readable issue description")
    resolution: str | None = Field(None, description="Suggested resolution steps")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional context")

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        """Ensure category is uppercase."""
        return v.upper()

    model_config = ConfigDict(frozen=True, strict=True)


class ValidationResult(BaseModel):
    """Complete result of validating a configuration."""

    is_valid: bool = Field(default=True, description="Overall validation status")
    context: str = Field(default="", description="Validation context")
    issues: list[ValidationIssue] = Field(default_factory=list, description="All validation issues")
    diagnostics: dict[str, Any] = Field(default_factory=dict, description="Diagnostic information")

    def add_issue(self, issue: ValidationIssue) -> None:
        """Add a validation issue to the result."""
        self.issues.append(issue)
        if issue.level == ValidationLevel.ERROR:
            self.is_valid = False

    def get_issues_by_level(self, level: ValidationLevel) -> list[ValidationIssue]:
        """Get all issues of a specific level."""
        return [issue for issue in self.issues if issue.level == level]

    model_config = ConfigDict(strict=True)


class ServiceConfiguration(BaseModel):
    """Runtime configuration of the newsletter service."""

    model_config = ConfigDict(strict=True, frozen=True)

    database_url: str = Field(..., min_length=1, description="SQLAlchemy database URL")
    pool_size: int = Field(default=10, ge=1, le=100, description="Persistent pool connections")
    max_overflow: int = Field(default=6, ge=0, le=100, description="Extra burst connections")
    pool_timeout_seconds: float = Field(
        default=5.0, gt=0, le=300, description="Seconds to wait for a pooled connection"
    )
    statement_timeout_seconds: float = Field(
        default=10.0, gt=0, le=600, description="Seconds a single store statement may run"
    )
    bulk_concurrency: int = Field(
        default=8, ge=1, le=64, description="Addresses processed in parallel by bulk calls"
    )
    api_host: str = Field(default="0.0.0.0", min_length=1, description="Bind address")  # nosec B104
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port number")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["json", "text"] = Field(default="json", description="Log output format")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )
    trace_header: str = Field(
        default="x-trace-id",
        pattern=r"^[a-z0-9][a-z0-9-]*$",
        description="Request header carrying the caller's trace id",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Require a URL with a scheme SQLAlchemy can route to a dialect."""
        if "://" not in v:
            raise ValueError("Database URL must look like dialect[+driver]://...")
        return v

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured store is SQLite."""
        return self.database_url.startswith("sqlite")
