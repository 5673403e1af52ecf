"""Unified exception hierarchy for iamscope.

All errors inherit from IamScopeError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for protocol mapping
- HTTP and gRPC status mapping helpers

Propagation policy:
    UpstreamNotFound is the only failure that callers degrade on (a missing
    role contributes nothing, a missing policy means "no roles"). Everything
    else under ResolutionError means the computed permission set could be
    wrong or incomplete and must reach the caller.

Usage:
    from iamscope.exceptions import (
        IamScopeError,
        ResolutionError,
        UpstreamPermissionDenied,
        error_response,
    )
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "IamScopeError",
    "InputValidationError",
    "ConfigurationError",
    "ResolutionError",
    "UpstreamNotFound",
    "UpstreamPermissionDenied",
    "UpstreamTransient",
    "InternalResolutionError",
    "REQUIRED_UPSTREAM_PERMISSIONS",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
    # Protocol helpers
    "get_grpc_status_code",
    "error_response",
]

logger = logging.getLogger(__name__)

# Permissions the calling identity needs to read policies and the role catalog.
REQUIRED_UPSTREAM_PERMISSIONS: tuple[str, ...] = (
    "resourcemanager.projects.getIamPolicy",
    "iam.roles.get",
    "iam.roles.list",
)


# ---- Exception Hierarchy ----------------------------------------------------


class IamScopeError(Exception):
    """Base exception for iamscope.

    Attributes:
        code: Stable error code string for protocol mapping (e.g. "PERMISSION_DENIED").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
        http_status: Status code the HTTP layer should answer with.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"
    http_status: int = 500

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            body["details"] = {k: v for k, v in self.details.items() if v is not None}
        return body


class InputValidationError(IamScopeError):
    """Missing or blank required request field."""

    code: str = "INVALID_INPUT"
    message: str = "Invalid request"
    http_status: int = 400

    def __init__(self, message: str | None = None, *, field: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, field=field, **kwargs)
        self.field = field


class ConfigurationError(IamScopeError):
    """Invalid configuration or upstream clients that are not ready."""

    code: str = "CONFIGURATION_ERROR"
    message: str = "Google API clients failed to initialize. Please check service account setup."


class ResolutionError(IamScopeError):
    """Base for failures while resolving policies or roles."""

    code: str = "RESOLUTION_ERROR"
    message: str = "Permission resolution failed"


class UpstreamNotFound(ResolutionError):
    """The requested role or policy does not exist upstream."""

    code: str = "NOT_FOUND"
    message: str = "Upstream entity not found"
    http_status: int = 404


class UpstreamPermissionDenied(ResolutionError):
    """The caller's own credentials cannot read the policy or role catalog."""

    code: str = "PERMISSION_DENIED"
    message: str = (
        "Permission Denied: The service account does not have the necessary "
        "permissions to get IAM policy or role details."
    )
    http_status: int = 403

    def __init__(
        self,
        message: str | None = None,
        *,
        required_permissions: tuple[str, ...] | list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.required_permissions = tuple(required_permissions or REQUIRED_UPSTREAM_PERMISSIONS)

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["requiredPermissions"] = list(self.required_permissions)
        return body


class UpstreamTransient(ResolutionError):
    """Network, quota or availability failure. The whole call may be retried."""

    code: str = "UPSTREAM_UNAVAILABLE"
    message: str = "Upstream service is temporarily unavailable"
    http_status: int = 503


class InternalResolutionError(ResolutionError):
    """Unexpected failure during resolution."""

    code: str = "INTERNAL_ERROR"
    message: str = "An internal server error occurred."


# ---- Error Registry for Protocol Mapping ------------------------------------

_E = TypeVar("_E", bound=type[IamScopeError])


class ErrorRegistry:
    """Registry for mapping internal errors to external protocol codes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[IamScopeError]] = {}

    def register(self, code: str, error_cls: type[IamScopeError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[IamScopeError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[IamScopeError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("QUOTA_EXCEEDED")
        class QuotaExceeded(UpstreamTransient):
            code = "QUOTA_EXCEEDED"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register base errors. INTERNAL_ERROR resolves to the resolution-specific class.
error_registry.register("INVALID_INPUT", InputValidationError)
error_registry.register("CONFIGURATION_ERROR", ConfigurationError)
error_registry.register("RESOLUTION_ERROR", ResolutionError)
error_registry.register("NOT_FOUND", UpstreamNotFound)
error_registry.register("PERMISSION_DENIED", UpstreamPermissionDenied)
error_registry.register("UPSTREAM_UNAVAILABLE", UpstreamTransient)
error_registry.register("INTERNAL_ERROR", InternalResolutionError)


# ---- Protocol Helpers -------------------------------------------------------


def get_grpc_status_code(error: IamScopeError) -> Any:
    """Map IamScopeError to gRPC status code.

    Returns grpc.StatusCode value for the given error type.
    Import grpc locally to avoid hard dependency at module level.
    """
    import grpc

    error_to_status = {
        "INVALID_INPUT": grpc.StatusCode.INVALID_ARGUMENT,
        "CONFIGURATION_ERROR": grpc.StatusCode.FAILED_PRECONDITION,
        "NOT_FOUND": grpc.StatusCode.NOT_FOUND,
        "PERMISSION_DENIED": grpc.StatusCode.PERMISSION_DENIED,
        "UPSTREAM_UNAVAILABLE": grpc.StatusCode.UNAVAILABLE,
        "RESOLUTION_ERROR": grpc.StatusCode.INTERNAL,
        "INTERNAL_ERROR": grpc.StatusCode.INTERNAL,
    }
    return error_to_status.get(error.code, grpc.StatusCode.INTERNAL)


def error_response(error: BaseException) -> tuple[int, dict[str, Any]]:
    """Render any exception as ``(http_status, body)`` for the HTTP layer.

    Unknown exceptions are reported generically; their text only goes to ``details``.
    """
    if isinstance(error, IamScopeError):
        return error.http_status, error.to_dict()

    logger.error("Unexpected error during resolution: %s", error)
    generic = InternalResolutionError(details=str(error))
    return generic.http_status, generic.to_dict()
