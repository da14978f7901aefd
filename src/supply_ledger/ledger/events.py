"""
Ledger Events - facts recorded in the append-only log

Each payload model is serialized into Event.payload. Event names are past
tense: by the time one exists, the ledger has already accepted it.
"""

from datetime import datetime

from pydantic import BaseModel

from supply_ledger.ledger.models import RoleKind, Stage


class LedgerCreated(BaseModel):
    """The ledger instance came into existence with a fixed owner"""

    owner: str
    created_at: datetime


class RoleRegistered(BaseModel):
    """The owner added a participant to a role catalog"""

    kind: RoleKind
    role_id: int
    address: str
    name: str
    place: str
    registered_at: datetime


class ProductCreated(BaseModel):
    """A product was ordered and entered the ORDERED stage"""

    product_id: int
    name: str
    description: str
    ordered_at: datetime


class StageAdvanced(BaseModel):
    """
    A product moved forward one stage

    Recorded under the transition's own event type (RawMaterialSupplied,
    ProductManufactured, ProductDistributed, ProductRetailed, ProductSold).
    ``role_id`` is the caller's role record for ``role_kind``.
    """

    product_id: int
    from_stage: Stage
    to_stage: Stage
    role_kind: RoleKind
    role_id: int
    entered_at: datetime


LEDGER_EVENT_TYPES = {
    "LedgerCreated": LedgerCreated,
    "RoleRegistered": RoleRegistered,
    "ProductCreated": ProductCreated,
    "RawMaterialSupplied": StageAdvanced,
    "ProductManufactured": StageAdvanced,
    "ProductDistributed": StageAdvanced,
    "ProductRetailed": StageAdvanced,
    "ProductSold": StageAdvanced,
}
