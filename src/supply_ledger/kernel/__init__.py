"""
Kernel - event store, execution environment and ambient infrastructure

The kernel knows nothing about products or roles. It supplies the durable
append-only log, the caller/timestamp context every call runs under, the
error hierarchy, and the logging/metrics/retry plumbing the ledger uses.
"""

from supply_ledger.kernel.environment import (
    CallContext,
    Clock,
    ExecutionEnvironment,
    ManualClock,
    SystemClock,
)
from supply_ledger.kernel.errors import (
    AuthorizationError,
    CommandIdempotencyViolation,
    ConnectivityError,
    DeploymentNotFound,
    EventStoreError,
    InvariantViolation,
    LedgerError,
    NotFoundError,
    RetailerMismatch,
    StateError,
    StreamVersionConflict,
)
from supply_ledger.kernel.events import Event

__all__ = [
    # Environment
    "CallContext",
    "Clock",
    "ExecutionEnvironment",
    "ManualClock",
    "SystemClock",
    # Events
    "Event",
    # Errors
    "LedgerError",
    "AuthorizationError",
    "RetailerMismatch",
    "StateError",
    "NotFoundError",
    "ConnectivityError",
    "DeploymentNotFound",
    "InvariantViolation",
    "EventStoreError",
    "CommandIdempotencyViolation",
    "StreamVersionConflict",
]
