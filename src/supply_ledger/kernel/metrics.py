"""
Prometheus metrics for the supply ledger.

Exposes call volume, rejections, latency, and the current shape of the
ledger (products per stage, registered participants per role).
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Gauge, Histogram, start_http_server

# ============================================================================
# Event Store Metrics
# ============================================================================

events_appended_total = Counter(
    "supply_ledger_events_appended_total",
    "Total number of events appended to the event store",
    ["stream_type", "event_type"],
)

events_loaded_total = Counter(
    "supply_ledger_events_loaded_total",
    "Total number of events loaded from the event store",
    ["scope"],  # scope: stream, all
)

stream_version_conflicts_total = Counter(
    "supply_ledger_stream_version_conflicts_total",
    "Total number of optimistic locking version conflicts",
    ["stream_type"],
)

# ============================================================================
# Call Metrics
# ============================================================================

ledger_calls_total = Counter(
    "supply_ledger_calls_total",
    "Total number of mutating ledger calls",
    ["operation", "status"],  # status: success, rejected, failure
)

ledger_call_rejections_total = Counter(
    "supply_ledger_call_rejections_total",
    "Mutating calls rejected by validation, by error kind",
    ["operation", "error_type"],
)

ledger_call_duration_seconds = Histogram(
    "supply_ledger_call_duration_seconds",
    "Duration of mutating ledger calls in seconds",
    ["operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

# ============================================================================
# Ledger Shape Metrics
# ============================================================================

products_by_stage = Gauge(
    "supply_ledger_products_by_stage",
    "Number of products currently in each stage",
    ["stage"],
)

role_records_total = Gauge(
    "supply_ledger_role_records_total",
    "Number of registered role records per role kind",
    ["kind"],
)

# ============================================================================
# Helpers
# ============================================================================

P = ParamSpec("P")
R = TypeVar("R")


def track_ledger_call(operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator recording duration and outcome of a mutating ledger call.

    LedgerError subclasses count as "rejected" (the call was refused by
    validation); anything else counts as "failure".
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            from supply_ledger.kernel.errors import LedgerError

            start = time.perf_counter()
            status = "success"
            try:
                return func(*args, **kwargs)
            except LedgerError as e:
                status = "rejected"
                ledger_call_rejections_total.labels(
                    operation=operation, error_type=type(e).__name__
                ).inc()
                raise
            except Exception:
                status = "failure"
                raise
            finally:
                ledger_call_duration_seconds.labels(operation=operation).observe(
                    time.perf_counter() - start
                )
                ledger_calls_total.labels(operation=operation, status=status).inc()

        return wrapper

    return decorator


def update_ledger_shape_metrics(
    stage_counts: dict[str, int],
    role_counts: dict[str, int],
) -> None:
    """Refresh the per-stage and per-role gauges."""
    for stage, count in stage_counts.items():
        products_by_stage.labels(stage=stage).set(count)
    for kind, count in role_counts.items():
        role_records_total.labels(kind=kind).set(count)


def start_metrics_server(port: int = 9090) -> None:
    """Start Prometheus metrics HTTP server."""
    start_http_server(port)
