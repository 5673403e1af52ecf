"""Centralized logging utilities for iamscope.

This module provides:
- Logging configuration from IamScopeConfig
- Safe preview utilities for sensitive data
- Secret redaction
- Request-scoped fields (request_id, resource_id) on every record
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from .config import IamScopeConfig, LogLevel


# Patterns for detecting secrets (common patterns to redact)
SECRET_PATTERNS = [
    r'(?i)(?:password|passwd|pwd|secret|token|key|api[_-]?key|auth[_-]?token)\s*[:=]\s*["\']?([^"\'\s]+)',
    r'(?i)(?:bearer|basic)\s+([a-zA-Z0-9+/=._-]+)',
    r'(?i)ya29\.[a-zA-Z0-9._-]+',  # Google OAuth access tokens
    r'(?i)"private_key_id"\s*:\s*"[^"]+"',
    r'(?i)(?:-----BEGIN\s+(?:RSA\s+)?(?:PRIVATE\s+)?KEY-----).*?(?:-----END\s+(?:RSA\s+)?(?:PRIVATE\s+)?KEY-----)',
]

_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "request_id", "resource_id",
}


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a safe, length-bounded preview of a value for logging.

    Converts any value to a single-line string, normalizes whitespace and
    truncates to ``limit`` characters.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A safe, truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple, set, frozenset)):
        if isinstance(value, (set, frozenset)):
            value = sorted(value, key=str)
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


def redact_secrets(text: str, replacement: str = "[REDACTED]") -> str:
    """Redact secret patterns (tokens, passwords, private keys) from text."""
    if not isinstance(text, str):
        return text

    result = text
    for pattern in SECRET_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE | re.DOTALL)

    return result


def safe_log_value(value: Any, limit: int = 240, redact: bool = True) -> str:
    """Combine ``safe_preview`` and ``redact_secrets`` for one logged value."""
    preview = safe_preview(value, limit=limit)
    if redact:
        preview = redact_secrets(preview)
    return preview


class ResolutionFormatter(logging.Formatter):
    """Formatter with request context and optional JSON output.

    - Adds request_id / resource_id from log records (if available)
    - Formats logs as JSON or plain text
    - Redacts secrets automatically
    """

    def __init__(
        self,
        include_context: bool = True,
        json_format: bool = True,
        redact_secrets: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.include_context = include_context
        self.json_format = json_format
        self.redact_secrets = redact_secrets

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, "request_id", None)
        resource_id = getattr(record, "resource_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            if request_id:
                log_data["request_id"] = str(request_id)
            if resource_id:
                log_data["resource_id"] = str(resource_id)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_log_value(value, redact=self.redact_secrets)

        if self.redact_secrets:
            log_data["message"] = redact_secrets(log_data["message"])

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if self.include_context:
            if request_id:
                parts.append(f"request_id={log_data['request_id']}")
            if resource_id:
                parts.append(f"resource_id={log_data['resource_id']}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class ResolutionLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds request_id and resource_id to log records.

    Usage:
        logger = get_resolution_logger(__name__, request_id=rid)
        logger.info("Resolving roles", resource_id="projects/p1")
    """

    def __init__(
        self,
        logger: logging.Logger,
        request_id: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.request_id = request_id
        self.resource_id = resource_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        request_id = kwargs.pop("request_id", self.request_id)
        resource_id = kwargs.pop("resource_id", self.resource_id)

        extra = kwargs.get("extra", {})
        if request_id:
            extra["request_id"] = request_id
        if resource_id:
            extra["resource_id"] = resource_id
        kwargs["extra"] = extra

        return msg, kwargs


_LEVEL_MAP = {
    LogLevel.DEBUG.value: logging.DEBUG,
    LogLevel.INFO.value: logging.INFO,
    LogLevel.WARNING.value: logging.WARNING,
    LogLevel.ERROR.value: logging.ERROR,
    LogLevel.CRITICAL.value: logging.CRITICAL,
}


def setup_logging(
    config: Optional[IamScopeConfig] = None,
    json_format: Optional[bool] = None,
    redact_secrets: bool = True,
) -> None:
    """Configure root logging for an iamscope process.

    Args:
        config: IamScopeConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json``
        redact_secrets: Whether to redact secrets (default: True)
    """
    if config is None:
        from .config import load_config_from_env
        config = load_config_from_env()

    level_name = config.log_level.value if isinstance(config.log_level, LogLevel) else str(config.log_level)
    log_level = _LEVEL_MAP.get(level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        ResolutionFormatter(
            include_context=True,
            json_format=config.log_json if json_format is None else json_format,
            redact_secrets=redact_secrets,
        )
    )
    root_logger.addHandler(console_handler)

    if config.service_name:
        logging.getLogger(config.service_name).setLevel(log_level)


def get_resolution_logger(
    name: str,
    request_id: Optional[str] = None,
    resource_id: Optional[str] = None,
) -> ResolutionLoggerAdapter:
    """Get a logger adapter bound to one resolution request.

    Example:
        logger = get_resolution_logger(__name__, request_id="req-1")
        logger.info("Policy fetched", resource_id="projects/p1")
    """
    logger = logging.getLogger(name)
    return ResolutionLoggerAdapter(logger, request_id=request_id, resource_id=resource_id)


__all__ = [
    "safe_preview",
    "redact_secrets",
    "safe_log_value",
    "ResolutionFormatter",
    "ResolutionLoggerAdapter",
    "setup_logging",
    "get_resolution_logger",
]
