"""
The stage-transition table

Every forward move of a product is described by one row: the stage it
requires, the stage it produces, who may perform it, and which product
and timestamp fields it writes. Handlers, invariants and projections all
read from this table, so the state machine is defined in exactly one place.
"""

from dataclasses import dataclass

from supply_ledger.ledger.models import RoleKind, Stage


@dataclass(frozen=True)
class Transition:
    """
    One legal stage transition

    Attributes:
        operation: Facade method / command name in snake_case
        command_type: Command name ("SupplyRawMaterial", ...)
        event_type: Event recorded when the transition commits
        from_stage: Stage the product must currently be in
        to_stage: Stage the product moves to
        role_kind: Role the caller must hold
        role_field: Product field bound to the caller's role ID (None when
            the transition re-uses an existing binding)
        timestamp_field: TimestampRecord field set on commit
        requires_bound_role: Caller's role record must be the one already
            bound on the product for role_kind
    """

    operation: str
    command_type: str
    event_type: str
    from_stage: Stage
    to_stage: Stage
    role_kind: RoleKind
    role_field: str | None
    timestamp_field: str
    requires_bound_role: bool = False


SUPPLY_RAW_MATERIAL = Transition(
    operation="supply_raw_material",
    command_type="SupplyRawMaterial",
    event_type="RawMaterialSupplied",
    from_stage=Stage.ORDERED,
    to_stage=Stage.RAW_MATERIAL_SUPPLIED,
    role_kind=RoleKind.SUPPLIER,
    role_field="supplier_role_id",
    timestamp_field="raw_supply_at",
)

MANUFACTURE = Transition(
    operation="manufacture",
    command_type="Manufacture",
    event_type="ProductManufactured",
    from_stage=Stage.RAW_MATERIAL_SUPPLIED,
    to_stage=Stage.MANUFACTURED,
    role_kind=RoleKind.MANUFACTURER,
    role_field="manufacturer_role_id",
    timestamp_field="manufacture_at",
)

DISTRIBUTE = Transition(
    operation="distribute",
    command_type="Distribute",
    event_type="ProductDistributed",
    from_stage=Stage.MANUFACTURED,
    to_stage=Stage.DISTRIBUTED,
    role_kind=RoleKind.DISTRIBUTOR,
    role_field="distributor_role_id",
    timestamp_field="distribution_at",
)

RETAIL = Transition(
    operation="retail",
    command_type="Retail",
    event_type="ProductRetailed",
    from_stage=Stage.DISTRIBUTED,
    to_stage=Stage.RETAILED,
    role_kind=RoleKind.RETAILER,
    role_field="retailer_role_id",
    timestamp_field="retail_at",
)

SELL = Transition(
    operation="sell",
    command_type="Sell",
    event_type="ProductSold",
    from_stage=Stage.RETAILED,
    to_stage=Stage.SOLD,
    role_kind=RoleKind.RETAILER,
    role_field=None,
    timestamp_field="sold_at",
    requires_bound_role=True,
)

TRANSITIONS: tuple[Transition, ...] = (
    SUPPLY_RAW_MATERIAL,
    MANUFACTURE,
    DISTRIBUTE,
    RETAIL,
    SELL,
)

TRANSITIONS_BY_OPERATION = {t.operation: t for t in TRANSITIONS}
TRANSITIONS_BY_EVENT_TYPE = {t.event_type: t for t in TRANSITIONS}

# Field recording entry into each stage, ORDERED included
STAGE_TIMESTAMP_FIELDS: dict[Stage, str] = {Stage.ORDERED: "ordered_at"} | {
    t.to_stage: t.timestamp_field for t in TRANSITIONS
}

# Product role-ID field and the stage at which it becomes set
ROLE_FIELD_STAGES: dict[str, Stage] = {
    t.role_field: t.to_stage for t in TRANSITIONS if t.role_field is not None
}
