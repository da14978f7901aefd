"""
Base Event model for the ledger's append-only log

Every committed mutation becomes one or more events. Projections (role
registry, product ledger) are nothing more than a fold over these events,
so the log alone is enough to rebuild the whole ledger.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Event(BaseModel):
    """
    Base event class - all ledger events are stored in this envelope

    Events are:
    - Immutable (never modified after creation)
    - Append-only (never deleted)
    - Timestamped with the environment-supplied call time
    - Versioned per stream (optimistic locking)

    The domain-specific data lives in ``payload``; the ``event_type`` names
    the payload model in ``ledger.events``.
    """

    event_id: str = Field(
        ...,
        description="Unique event identifier",
    )

    stream_id: str = Field(
        ...,
        description="Aggregate identifier: 'ledger', 'product-7', 'retailer-2', ...",
    )

    stream_type: str = Field(
        ...,
        description="Type of aggregate: 'ledger', 'product' or a role kind",
    )

    event_type: str = Field(
        ...,
        description="Specific event type: 'ProductCreated', 'ProductSold', ...",
    )

    occurred_at: datetime = Field(
        ...,
        description="Timestamp supplied by the execution environment for the call",
    )

    actor_id: str | None = Field(
        default=None,
        description="Caller identity that issued the mutating call",
    )

    command_id: str = Field(
        ...,
        description="ID of the call that caused this event (idempotency key)",
    )

    payload: dict = Field(
        default_factory=dict,
        description="Event-specific data (must be JSON-serializable)",
    )

    version: int = Field(
        ...,
        description="Stream version after this event (monotonically increasing)",
        ge=1,
    )

    sequence: int | None = Field(
        default=None,
        description="Global commit position, set on events read back from the store",
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "event_id": "evt-4vN2mQ8xT1kQe0cLrB7s9A",
                    "stream_id": "product-1",
                    "stream_type": "product",
                    "event_type": "ProductCreated",
                    "occurred_at": "2025-01-15T10:30:00Z",
                    "actor_id": "0xCustomer",
                    "command_id": "cmd-Jd83kLa0QpZx7mWc2vBn1g",
                    "payload": {"product_id": 1, "name": "Widget", "description": "desc"},
                    "version": 1,
                }
            ]
        },
    }


def create_event(
    *,
    event_id: str,
    stream_id: str,
    stream_type: str,
    event_type: str,
    occurred_at: datetime,
    command_id: str,
    version: int,
    actor_id: str | None = None,
    payload: dict | None = None,
) -> Event:
    """Factory function for creating events with all required fields"""
    return Event(
        event_id=event_id,
        stream_id=stream_id,
        stream_type=stream_type,
        event_type=event_type,
        occurred_at=occurred_at,
        actor_id=actor_id,
        command_id=command_id,
        payload=payload or {},
        version=version,
    )
