"""
Structured logging for the supply ledger.

structlog on top of stdlib logging: human-readable console output while
developing, JSON lines in production. Every entry carries the correlation ID
bound for the current CLI invocation or HTTP request, and participant
identities (wallet addresses) are shortened to a fingerprint before any
renderer sees them.
"""

import logging
import os
import secrets
import sys
import time
from collections.abc import MutableMapping
from typing import Any

import structlog

# Entry keys holding a participant identity
IDENTITY_FIELDS = frozenset({"caller", "actor_id", "address", "owner"})


def generate_correlation_id() -> str:
    """128 random bits as a 22-character URL-safe string."""
    return secrets.token_urlsafe(16)


def get_correlation_id() -> str:
    """Correlation ID bound to the current context, binding a fresh one if unset."""
    cid = structlog.contextvars.get_contextvars().get("correlation_id")
    if not cid:
        cid = generate_correlation_id()
        set_correlation_id(cid)
    return cid


def set_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def mask_identity(identity: Any) -> str:
    """
    Shorten an identity to a fingerprint that is still recognizable in logs.

    Example:
        >>> mask_identity("0x5B38Da6a701c568545dCfcB03FcB875f56beddC4")
        '0x5B…ddC4'
    """
    text = str(identity)
    if len(text) <= 10:
        return "***"
    return f"{text[:4]}…{text[-4:]}"


def redact_context(context: dict[str, Any]) -> dict[str, Any]:
    """Copy of context with identity fields masked."""
    return {
        key: mask_identity(value) if key in IDENTITY_FIELDS and value else value
        for key, value in context.items()
    }


def redact_identities(
    logger: logging.Logger, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor: mask identity fields on every entry."""
    for key in IDENTITY_FIELDS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = mask_identity(event_dict[key])
    return event_dict


def ensure_correlation_id(
    logger: logging.Logger, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor: entries logged outside a bound context still get an ID."""
    event_dict.setdefault("correlation_id", get_correlation_id())
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    log_level: str = "INFO",
) -> None:
    """
    Configure structured logging for the application.

    Args:
        json_output: JSON lines (production) instead of console rendering
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper())

    # stderr keeps stdout clean for CLI output and --json dumps
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        ensure_correlation_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_identities,
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.ExceptionRenderer(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def is_production() -> bool:
    """True when ENVIRONMENT is 'production' (defaults to development)."""
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


class LogOperation:
    """
    Log one ledger operation as a timed unit.

    Start is logged at debug level. Completion is logged at info level.
    A LedgerError is a refused call and is logged as a warning without a
    trace; anything else is an error.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        operation: str,
        **context: Any,
    ):
        self.log = logger.bind(operation=operation, **context)
        self.operation = operation
        self.start_time: float = 0.0

    def __enter__(self) -> "LogOperation":
        self.start_time = time.perf_counter()
        self.log.debug(f"{self.operation} started")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)

        if exc_type is None:
            self.log.info(f"{self.operation} completed", duration_ms=duration_ms)
            return

        from supply_ledger.kernel.errors import LedgerError

        if isinstance(exc_val, LedgerError):
            self.log.warning(
                f"{self.operation} rejected",
                duration_ms=duration_ms,
                error_type=exc_type.__name__,
                error=str(exc_val),
            )
        else:
            self.log.error(
                f"{self.operation} failed",
                duration_ms=duration_ms,
                exc_info=not is_production(),
            )
