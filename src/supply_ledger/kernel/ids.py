"""
Identifier helpers

Ledger entities (products, role records) get dense integer IDs from the
counter allocator. Events and calls still need opaque unique keys, and
every aggregate needs a stable stream name - both live here.
"""

import secrets

LEDGER_STREAM_ID = "ledger"


def generate_id(prefix: str = "") -> str:
    """
    Generate an opaque unique identifier

    Uses 128 bits of cryptographic randomness encoded as URL-safe base64
    (22 characters), optionally prefixed: ``generate_id("evt")`` gives
    ``"evt-4vN2mQ8xT1kQe0cLrB7s9A"``.
    """
    token = secrets.token_urlsafe(16)
    return f"{prefix}-{token}" if prefix else token


def generate_event_id() -> str:
    return generate_id("evt")


def generate_command_id() -> str:
    return generate_id("cmd")


def stream_id_for(stream_type: str, entity_id: int) -> str:
    """Stream name for an integer-keyed aggregate, e.g. ``product-3``"""
    return f"{stream_type}-{entity_id}"
