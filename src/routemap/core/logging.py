"""Logging module for routemap.

Provides structured logging with JSON format and redaction of sensitive route parameters.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from routemap.core.config import LoggingConfig

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "extra_fields",
    ]
)


class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def __init__(self, redact_patterns: list[str] | None = None):
        """Initialize the JSON formatter.

        Args:
            redact_patterns: List of field names to redact from logs
        """
        super().__init__()
        self.redact_patterns = redact_patterns or []

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = getattr(record, "extra_fields", None)
        if isinstance(extra, dict):
            log_data.update(extra)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(self._redact_sensitive_data(log_data), default=str)

    def _redact_sensitive_data(self, data: dict[str, Any]) -> dict[str, Any]:
        """Redact sensitive data from log fields.

        Args:
            data: Dictionary potentially containing sensitive data

        Returns:
            Dictionary with sensitive fields redacted
        """
        redacted: dict[str, Any] = {}
        for key, value in data.items():
            if any(pattern.lower() in key.lower() for pattern in self.redact_patterns):
                redacted[key] = "***REDACTED***"
            elif isinstance(value, dict):
                redacted[key] = self._redact_sensitive_data(value)
            else:
                redacted[key] = value
        return redacted


class TextFormatter(logging.Formatter):
    """Custom text formatter for human-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(UTC).isoformat()
        base = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


class RoutemapLogger:
    """Routemap logger with structured routing events."""

    def __init__(self, config: LoggingConfig):
        """Initialize the routemap logger.

        Args:
            config: Logging configuration
        """
        self.config = config
        self._setup_logging()

    def _setup_logging(self) -> None:
        """Set up logging configuration."""
        logger = logging.getLogger("routemap")
        logger.setLevel(getattr(logging, self.config.level))
        logger.handlers.clear()

        handler: logging.Handler
        if self.config.output == "stdout":
            handler = logging.StreamHandler(sys.stdout)
        elif self.config.output == "stderr":
            handler = logging.StreamHandler(sys.stderr)
        else:
            # Assume it's a file path
            handler = logging.FileHandler(self.config.output)

        formatter: logging.Formatter
        if self.config.format == "json":
            formatter = JsonFormatter(redact_patterns=self.config.redact_params)
        else:
            formatter = TextFormatter()

        handler.setFormatter(formatter)
        logger.addHandler(handler)

        # Prevent propagation to root logger
        logger.propagate = False

    def get_logger(self, name: str = "routemap") -> logging.Logger:
        return logging.getLogger(name)

    def log_match(self, method: str, path: str, route_id: str, **kwargs: Any) -> None:
        """Log a successful route match.

        Args:
            method: HTTP method
            path: Request path
            route_id: Id of the matched route
            **kwargs: Additional fields to log
        """
        extra_fields: dict[str, Any] = {
            "event_type": "route_matched",
            "request": {"method": method, "path": path},
            "route": {"id": route_id},
        }
        extra_fields.update(kwargs)

        self.get_logger().info(
            f"{method} {path} -> {route_id}",
            extra={"extra_fields": extra_fields},
        )

    def log_match_failure(
        self,
        method: str,
        path: str,
        status: int,
        allowed_methods: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a request that did not resolve to a route.

        Args:
            method: HTTP method
            path: Request path
            status: 404 or 405
            allowed_methods: Methods registered for the path (405 only)
            **kwargs: Additional fields to log
        """
        extra_fields: dict[str, Any] = {
            "event_type": "route_not_matched",
            "request": {"method": method, "path": path},
            "status_code": status,
        }
        if allowed_methods:
            extra_fields["allowed_methods"] = allowed_methods
        extra_fields.update(kwargs)

        self.get_logger().warning(
            f"{method} {path} -> {status}",
            extra={"extra_fields": extra_fields},
        )

    def log_generation(
        self, name: str, params: dict[str, Any], uri: str | None, error: str | None = None
    ) -> None:
        """Log a URI generation attempt.

        Args:
            name: Route name
            params: Parameters supplied for the pattern
            uri: Generated URI, None if generation failed
            error: Failure reason if applicable
        """
        extra_fields: dict[str, Any] = {
            "event_type": "uri_generated",
            "route": {"name": name},
            "params": dict(params),
            "uri": uri,
        }
        if error:
            extra_fields["error"] = error

        log_level = logging.WARNING if error else logging.DEBUG
        message = f"URI for {name}: {uri}" if not error else f"URI for {name} failed - {error}"
        self.get_logger().log(log_level, message, extra={"extra_fields": extra_fields})


# Global logger instance (will be initialized by the application)
_routemap_logger: RoutemapLogger | None = None


def initialize_logging(config: LoggingConfig) -> RoutemapLogger:
    """Initialize the global routemap logger.

    Args:
        config: Logging configuration

    Returns:
        Initialized RoutemapLogger instance
    """
    global _routemap_logger
    _routemap_logger = RoutemapLogger(config)
    return _routemap_logger


def get_logger() -> RoutemapLogger:
    """Get the global routemap logger.

    Raises:
        RuntimeError: If logging has not been initialized
    """
    if _routemap_logger is None:
        raise RuntimeError("Logging not initialized. Call initialize_logging() first.")
    return _routemap_logger
