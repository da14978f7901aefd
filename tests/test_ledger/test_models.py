"""
Tests for ledger domain models
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from supply_ledger.ledger.models import (
    STAGE_LABELS,
    Product,
    RoleKind,
    RoleRecord,
    Stage,
    TimestampRecord,
    stage_label,
)


def test_stages_are_totally_ordered() -> None:
    stages = list(Stage)
    assert stages == sorted(stages)
    assert Stage.ORDERED < Stage.RAW_MATERIAL_SUPPLIED < Stage.SOLD
    assert [s.value for s in stages] == [0, 1, 2, 3, 4, 5]


def test_only_sold_is_terminal() -> None:
    assert [s for s in Stage if s.is_terminal] == [Stage.SOLD]


@pytest.mark.parametrize(
    "stage,label",
    [
        (Stage.ORDERED, "Product Ordered"),
        (Stage.RAW_MATERIAL_SUPPLIED, "Raw Material Supply Stage"),
        (Stage.MANUFACTURED, "Manufacturing Stage"),
        (Stage.DISTRIBUTED, "Distribution Stage"),
        (Stage.RETAILED, "Retail Stage"),
        (Stage.SOLD, "Product Sold"),
    ],
)
def test_stage_labels(stage: Stage, label: str) -> None:
    assert stage_label(stage) == label


def test_every_stage_has_a_label() -> None:
    assert set(STAGE_LABELS) == set(Stage)


def test_stage_label_accepts_wire_integer() -> None:
    assert stage_label(3) == "Distribution Stage"


def test_new_product_defaults() -> None:
    product = Product(id=1, name="Widget", description="desc")
    assert product.stage == Stage.ORDERED
    assert product.stage_label == "Product Ordered"
    for kind in RoleKind:
        assert product.role_id_for(kind) is None


def test_product_is_frozen() -> None:
    product = Product(id=1, name="Widget", description="desc")
    with pytest.raises(ValidationError):
        product.stage = Stage.SOLD


def test_product_id_starts_at_one() -> None:
    with pytest.raises(ValidationError):
        Product(id=0, name="Widget", description="desc")


def test_role_record_round_trips_kind() -> None:
    record = RoleRecord(
        kind="retailer", id=2, address="0xShop", name="Corner Shop", place="Leeds"
    )
    assert record.kind is RoleKind.RETAILER
    assert record.model_dump(mode="json")["kind"] == "retailer"


def test_timestamp_record_entered_in_stage_order() -> None:
    start = datetime(2025, 1, 15, tzinfo=timezone.utc)
    record = TimestampRecord(
        ordered_at=start,
        raw_supply_at=start + timedelta(hours=1),
        manufacture_at=start + timedelta(hours=2),
    )
    assert record.entered() == [
        start,
        start + timedelta(hours=1),
        start + timedelta(hours=2),
    ]
    assert TimestampRecord().entered() == []
