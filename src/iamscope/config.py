"""Configuration contract for iamscope.

Pydantic-validated settings shared by the resolution service, the Google
client handle and the logging setup. Direct os.environ/os.getenv usage is
confined to ``load_config_from_env()``; everything else receives a config
object.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

_TRUTHY = ("true", "1", "yes", "on")


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class IamScopeConfig(BaseModel):
    """Settings for effective-permission resolution.

    Environment variables (see ``load_config_from_env``):
        LOG_LEVEL                       : DEBUG | INFO | WARNING | ERROR | CRITICAL
        LOG_JSON                        : JSON log lines (default: false)
        SERVICE_NAME                    : logger / service identification
        GOOGLE_APPLICATION_CREDENTIALS  : service-account key file
        IAMSCOPE_SCOPES                 : comma-separated OAuth scopes
        GOOGLE_CLOUD_PROJECT_ID         : default resource for role checks
        IAMSCOPE_FETCH_CONCURRENCY      : parallel role fetches per call
        IAMSCOPE_OWNER_IMPLIES_ALL_ROLES: treat roles/owner as any role
    """

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level for the service",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )
    service_name: Optional[str] = Field(
        default=None,
        description="Service name for logger identification",
    )

    # Google credentials
    credentials_path: Optional[str] = Field(
        default=None,
        description="Service-account key file. None = Application Default Credentials.",
    )
    scopes: list[str] = Field(
        default_factory=lambda: [CLOUD_PLATFORM_SCOPE],
        description="OAuth scopes requested for the upstream clients",
    )

    # Resolution behaviour
    default_resource_id: Optional[str] = Field(
        default=None,
        description="Resource used by role checks that do not name one",
    )
    fetch_concurrency: int = Field(
        default=1,
        ge=1,
        description="Maximum in-flight role fetches per resolution call (1 = sequential)",
    )
    owner_implies_all_roles: bool = Field(
        default=True,
        description="Role checks succeed for any role when roles/owner is bound",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("scopes")
    @classmethod
    def validate_scopes(cls, v: list[str]) -> list[str]:
        scopes = [s.strip() for s in v if s and s.strip()]
        if not scopes:
            raise ValueError("At least one OAuth scope is required")
        return scopes

    @field_validator("default_resource_id", "credentials_path")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",  # Prevent accidental extra fields
    }


def load_config_from_env() -> IamScopeConfig:
    """Load configuration from environment variables.

    This is the ONLY place where os.getenv is allowed.

    Returns:
        IamScopeConfig instance with values from environment or defaults.
    """
    import os

    scopes_raw = os.getenv("IAMSCOPE_SCOPES", "")
    scopes = [s.strip() for s in scopes_raw.split(",") if s.strip()] or [CLOUD_PLATFORM_SCOPE]

    return IamScopeConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "false").lower() in _TRUTHY,
        service_name=os.getenv("SERVICE_NAME"),
        credentials_path=os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
        scopes=scopes,
        default_resource_id=os.getenv("GOOGLE_CLOUD_PROJECT_ID"),
        fetch_concurrency=int(os.getenv("IAMSCOPE_FETCH_CONCURRENCY", "1")),
        owner_implies_all_roles=os.getenv("IAMSCOPE_OWNER_IMPLIES_ALL_ROLES", "true").lower() in _TRUTHY,
    )


__all__ = [
    "CLOUD_PLATFORM_SCOPE",
    "IamScopeConfig",
    "LogLevel",
    "load_config_from_env",
]
