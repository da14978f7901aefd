"""
Ledger Domain Models - stages, role records, products, timestamps

Records are frozen pydantic models. The projections replace a record
wholesale when a transition commits, so a reader holding a record always
holds a complete, self-consistent snapshot.
"""

from datetime import datetime
from enum import Enum, IntEnum

from pydantic import BaseModel, Field


class Stage(IntEnum):
    """
    Product custody stages, in their only legal order

    ORDERED → RAW_MATERIAL_SUPPLIED → MANUFACTURED → DISTRIBUTED → RETAILED → SOLD

    The integer values are the ledger's wire representation and give the
    total order used by every "at or past" comparison.
    """

    ORDERED = 0
    RAW_MATERIAL_SUPPLIED = 1
    MANUFACTURED = 2
    DISTRIBUTED = 3
    RETAILED = 4
    SOLD = 5

    @property
    def is_terminal(self) -> bool:
        return self is Stage.SOLD


STAGE_LABELS: dict[Stage, str] = {
    Stage.ORDERED: "Product Ordered",
    Stage.RAW_MATERIAL_SUPPLIED: "Raw Material Supply Stage",
    Stage.MANUFACTURED: "Manufacturing Stage",
    Stage.DISTRIBUTED: "Distribution Stage",
    Stage.RETAILED: "Retail Stage",
    Stage.SOLD: "Product Sold",
}


def stage_label(stage: Stage) -> str:
    """Descriptive label for a stage (pure function of the stage)"""
    return STAGE_LABELS[Stage(stage)]


class RoleKind(str, Enum):
    """
    The four supply-chain capabilities a participant can be registered for

    Each kind has its own catalog and its own ID counter.
    """

    SUPPLIER = "supplier"
    MANUFACTURER = "manufacturer"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"


class RoleRecord(BaseModel):
    """
    An immutable registration binding an identity to one role kind

    Attributes:
        kind: Which catalog the record belongs to
        id: Dense per-catalog ID starting at 1
        address: Identity allowed to act in this role
        name: Participant name (opaque)
        place: Participant location (opaque)
    """

    kind: RoleKind
    id: int = Field(ge=1)
    address: str
    name: str
    place: str

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "kind": "supplier",
                    "id": 1,
                    "address": "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4",
                    "name": "Acme Ores",
                    "place": "Pilbara",
                }
            ]
        },
    }


class Product(BaseModel):
    """
    One tracked item and the participants it has passed through

    A role-ID field is filled exactly when the product reaches the stage it
    represents, and holds the ID of the role record whose caller performed
    that transition.
    """

    id: int = Field(ge=1)
    name: str
    description: str
    supplier_role_id: int | None = None
    manufacturer_role_id: int | None = None
    distributor_role_id: int | None = None
    retailer_role_id: int | None = None
    stage: Stage = Stage.ORDERED

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": 1,
                    "name": "Widget",
                    "description": "Aluminium widget, batch 7",
                    "supplier_role_id": 1,
                    "manufacturer_role_id": 1,
                    "distributor_role_id": None,
                    "retailer_role_id": None,
                    "stage": 2,
                }
            ]
        },
    }

    @property
    def stage_label(self) -> str:
        return stage_label(self.stage)

    def role_id_for(self, kind: RoleKind) -> int | None:
        """Role ID bound for the given kind (None until that stage is reached)"""
        return getattr(self, f"{kind.value}_role_id")


class TimestampRecord(BaseModel):
    """
    When a product entered each stage

    Each field is written once, by the call that entered the stage.
    """

    ordered_at: datetime | None = None
    raw_supply_at: datetime | None = None
    manufacture_at: datetime | None = None
    distribution_at: datetime | None = None
    retail_at: datetime | None = None
    sold_at: datetime | None = None

    model_config = {"frozen": True}

    def entered(self) -> list[datetime]:
        """All recorded instants, in stage order"""
        values = [
            self.ordered_at,
            self.raw_supply_at,
            self.manufacture_at,
            self.distribution_at,
            self.retail_at,
            self.sold_at,
        ]
        return [v for v in values if v is not None]
