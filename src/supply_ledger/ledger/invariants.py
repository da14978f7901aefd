"""
Ledger Invariants - the checks every mutating call must pass

Pure functions over projection state: no side effects, no I/O. A handler
runs all of them before it builds an event, which is what makes a
transition all-or-nothing.

Validation order for stage transitions is fixed:
1. the product exists
2. the product is in exactly the required stage
3. the caller holds the required role (for sell: the bound retailer)
"""

from supply_ledger.kernel.errors import (
    AuthorizationError,
    InvariantViolation,
    NotFoundError,
    RetailerMismatch,
    StateError,
)
from supply_ledger.ledger.counters import PRODUCT_COLLECTION
from supply_ledger.ledger.models import Product, RoleKind, RoleRecord, Stage, TimestampRecord
from supply_ledger.ledger.projections import ProductLedger, RoleRegistry
from supply_ledger.ledger.transitions import (
    ROLE_FIELD_STAGES,
    STAGE_TIMESTAMP_FIELDS,
    Transition,
)


# Registry Invariants


def validate_owner(registry: RoleRegistry, caller: str) -> None:
    """
    Only the ledger owner may register participants

    Raises:
        AuthorizationError: If caller is not the owner
    """
    if not registry.is_owner(caller):
        raise AuthorizationError(caller, "ledger owner")


def resolve_caller_role(registry: RoleRegistry, kind: RoleKind, caller: str) -> RoleRecord:
    """
    Find the role record of the given kind held by the caller

    Raises:
        AuthorizationError: If the caller holds no record of that kind
    """
    record = registry.resolve(kind, caller)
    if record is None:
        raise AuthorizationError(caller, f"registered {kind.value}")
    return record


def validate_role_exists(registry: RoleRegistry, kind: RoleKind, role_id: int) -> RoleRecord:
    """
    Raises:
        NotFoundError: If role_id is outside the catalog's allocated range
    """
    record = registry.get(kind, role_id)
    if record is None:
        raise NotFoundError(kind.value.capitalize(), role_id)
    return record


# Product Invariants


def validate_product_exists(products: ProductLedger, product_id: int) -> Product:
    """
    Product IDs are valid in [1, product_count]

    Raises:
        NotFoundError: If product_id is outside the allocated range
    """
    if not products.counters.contains(PRODUCT_COLLECTION, product_id):
        raise NotFoundError("Product", product_id)
    product = products.get(product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def validate_stage(product: Product, required: Stage) -> None:
    """
    The product must be in exactly the required stage - no skipping, no
    repeating. A retried call that already committed fails here.

    Raises:
        StateError: If the product's stage differs from required
    """
    if product.stage != required:
        raise StateError(product.id, product.stage.name, required.name)


def validate_bound_role(product: Product, record: RoleRecord) -> None:
    """
    The caller's record must be the one already bound on the product

    Used by sell: only the retailer that retailed the product may sell it.

    Raises:
        RetailerMismatch: If a different record of the same kind is calling
    """
    bound = product.role_id_for(record.kind)
    if bound != record.id:
        raise RetailerMismatch(record.address, product.id, bound)


def validate_transition(
    transition: Transition,
    products: ProductLedger,
    registry: RoleRegistry,
    product_id: int,
    caller: str,
) -> tuple[Product, RoleRecord]:
    """
    Run every check a stage transition needs, in the mandated order

    Returns:
        The product as it is now and the caller's role record

    Raises:
        NotFoundError, StateError, AuthorizationError
    """
    product = validate_product_exists(products, product_id)
    validate_stage(product, transition.from_stage)
    record = resolve_caller_role(registry, transition.role_kind, caller)
    if transition.requires_bound_role:
        validate_bound_role(product, record)
    return product, record


# Consistency checks (used after replay and in tests)


def check_product_consistency(product: Product, timestamps: TimestampRecord) -> None:
    """
    Verify the structural invariants of one product record

    - each role-ID field is set iff the stage is at or past its stage
    - each timestamp is set iff its stage has been entered
    - recorded timestamps are non-decreasing in stage order

    Raises:
        InvariantViolation: On the first inconsistency found
    """
    for field, stage in ROLE_FIELD_STAGES.items():
        is_set = getattr(product, field) is not None
        if is_set != (product.stage >= stage):
            raise InvariantViolation(
                f"Product {product.id} at {product.stage.name} has {field}="
                f"{getattr(product, field)}"
            )

    for stage, field in STAGE_TIMESTAMP_FIELDS.items():
        is_set = getattr(timestamps, field) is not None
        if is_set != (product.stage >= stage):
            raise InvariantViolation(
                f"Product {product.id} at {product.stage.name} has {field}="
                f"{getattr(timestamps, field)}"
            )

    entered = timestamps.entered()
    if any(later < earlier for earlier, later in zip(entered, entered[1:])):
        raise InvariantViolation(f"Product {product.id} timestamps are out of order")
