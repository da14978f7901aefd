"""
Ledger Commands - requests to change ledger state

Commands carry only what the caller asks for. Who is asking and when is
supplied separately by the CallContext, so a command can never claim a
caller identity it doesn't have.
"""

from pydantic import BaseModel

from supply_ledger.ledger.models import RoleKind


# Registry Commands


class RegisterRole(BaseModel):
    """
    Register a participant in one of the four role catalogs

    Owner-only. Name and place are opaque strings and are not validated.
    """

    kind: RoleKind
    address: str
    name: str
    place: str


# Product Commands


class CreateProduct(BaseModel):
    """Order a new product; open to any caller"""

    name: str
    description: str


class AdvanceProduct(BaseModel):
    """Base for the five stage transitions - all name just the product"""

    product_id: int


class SupplyRawMaterial(AdvanceProduct):
    """ORDERED → RAW_MATERIAL_SUPPLIED, by a registered supplier"""


class Manufacture(AdvanceProduct):
    """RAW_MATERIAL_SUPPLIED → MANUFACTURED, by a registered manufacturer"""


class Distribute(AdvanceProduct):
    """MANUFACTURED → DISTRIBUTED, by a registered distributor"""


class Retail(AdvanceProduct):
    """DISTRIBUTED → RETAILED, by a registered retailer"""


class Sell(AdvanceProduct):
    """RETAILED → SOLD, only by the retailer that retailed the product"""


LEDGER_COMMAND_TYPES = {
    "RegisterRole": RegisterRole,
    "CreateProduct": CreateProduct,
    "SupplyRawMaterial": SupplyRawMaterial,
    "Manufacture": Manufacture,
    "Distribute": Distribute,
    "Retail": Retail,
    "Sell": Sell,
}
