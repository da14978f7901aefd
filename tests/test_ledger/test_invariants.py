"""
Tests for ledger invariants (pure validation functions)
"""

from datetime import datetime, timedelta, timezone

import pytest

from supply_ledger.kernel.errors import (
    AuthorizationError,
    InvariantViolation,
    NotFoundError,
    RetailerMismatch,
    StateError,
)
from supply_ledger.ledger.counters import PRODUCT_COLLECTION
from supply_ledger.ledger.invariants import (
    check_product_consistency,
    resolve_caller_role,
    validate_bound_role,
    validate_owner,
    validate_product_exists,
    validate_role_exists,
    validate_stage,
)
from supply_ledger.ledger.models import Product, RoleKind, RoleRecord, Stage, TimestampRecord
from supply_ledger.ledger.projections import ProductLedger, RoleRegistry

T0 = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def retailer(role_id: int, address: str) -> RoleRecord:
    return RoleRecord(kind=RoleKind.RETAILER, id=role_id, address=address, name="Shop", place="Leeds")


def test_validate_owner(role_registry: RoleRegistry) -> None:
    role_registry.owner = "0xOwner"
    validate_owner(role_registry, "0xowner")

    with pytest.raises(AuthorizationError) as exc_info:
        validate_owner(role_registry, "0xIntruder")
    assert exc_info.value.caller == "0xIntruder"


def test_resolve_caller_role(role_registry: RoleRegistry) -> None:
    record = retailer(1, "0xShop")
    role_registry.counters.commit("retailer", 1)
    role_registry.roles[RoleKind.RETAILER][1] = record
    role_registry._by_address[(RoleKind.RETAILER, "0xshop")] = 1

    assert resolve_caller_role(role_registry, RoleKind.RETAILER, "0xSHOP") == record
    with pytest.raises(AuthorizationError):
        resolve_caller_role(role_registry, RoleKind.SUPPLIER, "0xShop")


def test_validate_role_exists(role_registry: RoleRegistry) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        validate_role_exists(role_registry, RoleKind.SUPPLIER, 1)
    assert exc_info.value.collection == "Supplier"
    assert exc_info.value.identifier == 1


@pytest.mark.parametrize("product_id", [0, -1, 2])
def test_validate_product_exists_out_of_range(
    product_ledger: ProductLedger, product_id: int
) -> None:
    product_ledger.counters.commit(PRODUCT_COLLECTION, 1)
    product_ledger.products[1] = Product(id=1, name="Widget", description="desc")

    with pytest.raises(NotFoundError):
        validate_product_exists(product_ledger, product_id)
    assert validate_product_exists(product_ledger, 1).id == 1


def test_validate_stage_exact_match() -> None:
    product = Product(id=1, name="Widget", description="desc", stage=Stage.MANUFACTURED)
    validate_stage(product, Stage.MANUFACTURED)

    # Neither behind nor ahead is acceptable
    for required in (Stage.RAW_MATERIAL_SUPPLIED, Stage.DISTRIBUTED):
        with pytest.raises(StateError) as exc_info:
            validate_stage(product, required)
        assert exc_info.value.current_stage == "MANUFACTURED"


def test_validate_bound_role() -> None:
    product = Product(
        id=4,
        name="Widget",
        description="desc",
        supplier_role_id=1,
        manufacturer_role_id=1,
        distributor_role_id=1,
        retailer_role_id=2,
        stage=Stage.RETAILED,
    )
    validate_bound_role(product, retailer(2, "0xShop"))

    with pytest.raises(RetailerMismatch) as exc_info:
        validate_bound_role(product, retailer(1, "0xOther"))
    assert exc_info.value.product_id == 4
    assert exc_info.value.retailer_role_id == 2


def test_consistent_product_passes() -> None:
    product = Product(
        id=1, name="Widget", description="desc", supplier_role_id=1,
        stage=Stage.RAW_MATERIAL_SUPPLIED,
    )
    timestamps = TimestampRecord(ordered_at=T0, raw_supply_at=T0 + timedelta(seconds=1))
    check_product_consistency(product, timestamps)


def test_role_id_set_early_is_inconsistent() -> None:
    product = Product(id=1, name="Widget", description="desc", supplier_role_id=1)
    with pytest.raises(InvariantViolation):
        check_product_consistency(product, TimestampRecord(ordered_at=T0))


def test_missing_timestamp_is_inconsistent() -> None:
    product = Product(
        id=1, name="Widget", description="desc", supplier_role_id=1,
        stage=Stage.RAW_MATERIAL_SUPPLIED,
    )
    with pytest.raises(InvariantViolation):
        check_product_consistency(product, TimestampRecord(ordered_at=T0))


def test_out_of_order_timestamps_are_inconsistent() -> None:
    product = Product(
        id=1, name="Widget", description="desc", supplier_role_id=1,
        stage=Stage.RAW_MATERIAL_SUPPLIED,
    )
    timestamps = TimestampRecord(ordered_at=T0, raw_supply_at=T0 - timedelta(seconds=1))
    with pytest.raises(InvariantViolation):
        check_product_consistency(product, timestamps)
