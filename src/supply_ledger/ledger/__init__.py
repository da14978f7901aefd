"""
Ledger Module - role registry, product ledger and stage-transition engine

Products move through a fixed sequence of custody stages:
ORDERED → RAW_MATERIAL_SUPPLIED → MANUFACTURED → DISTRIBUTED → RETAILED → SOLD

Each move is performed by a participant registered (by the ledger owner)
in the matching role, and each stage entry is timestamped once.
"""

from supply_ledger.ledger.models import (
    STAGE_LABELS,
    Product,
    RoleKind,
    RoleRecord,
    Stage,
    TimestampRecord,
)

__all__ = [
    "STAGE_LABELS",
    "Product",
    "RoleKind",
    "RoleRecord",
    "Stage",
    "TimestampRecord",
]
