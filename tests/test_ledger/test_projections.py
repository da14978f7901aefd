"""
Tests for ledger projections

Events are built by hand here so that the fold itself is under test,
including its refusal to fold a log that could not have been produced by
the handlers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from supply_ledger.kernel.errors import InvariantViolation
from supply_ledger.kernel.events import create_event
from supply_ledger.kernel.ids import generate_command_id, generate_event_id
from supply_ledger.ledger.models import RoleKind, Stage
from supply_ledger.ledger.projections import ProductLedger, RoleRegistry

T0 = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def event(event_type: str, stream_id: str, version: int, payload: dict, at: datetime = T0):
    return create_event(
        event_id=generate_event_id(),
        stream_id=stream_id,
        stream_type=stream_id.split("-")[0],
        event_type=event_type,
        occurred_at=at,
        command_id=generate_command_id(),
        actor_id="0xActor",
        payload=payload,
        version=version,
    )


def role_registered(kind: str, role_id: int, address: str):
    return event(
        "RoleRegistered",
        f"{kind}-{role_id}",
        1,
        {
            "kind": kind,
            "role_id": role_id,
            "address": address,
            "name": f"{kind} {role_id}",
            "place": "Somewhere",
            "registered_at": T0.isoformat(),
        },
    )


def product_created(product_id: int):
    return event(
        "ProductCreated",
        f"product-{product_id}",
        1,
        {
            "product_id": product_id,
            "name": "Widget",
            "description": "desc",
            "ordered_at": T0.isoformat(),
        },
    )


def stage_advanced(event_type: str, product_id: int, version: int, from_stage, to_stage, kind, role_id, at):
    return event(
        event_type,
        f"product-{product_id}",
        version,
        {
            "product_id": product_id,
            "from_stage": int(from_stage),
            "to_stage": int(to_stage),
            "role_kind": kind,
            "role_id": role_id,
            "entered_at": at.isoformat(),
        },
        at=at,
    )


class TestRoleRegistry:
    def test_owner_set_once(self, role_registry: RoleRegistry) -> None:
        created = event("LedgerCreated", "ledger", 1, {"owner": "0xOwner", "created_at": T0.isoformat()})
        role_registry.apply_event(created)
        assert role_registry.owner == "0xOwner"
        assert role_registry.is_owner("0XOWNER")
        assert not role_registry.is_owner("0xSomeoneElse")

        with pytest.raises(InvariantViolation):
            role_registry.apply_event(created)

    def test_no_owner_means_nobody_is_owner(self, role_registry: RoleRegistry) -> None:
        assert not role_registry.is_owner("0xOwner")

    def test_registration_and_lookup(self, role_registry: RoleRegistry) -> None:
        role_registry.apply_event(role_registered("supplier", 1, "0xSup"))
        role_registry.apply_event(role_registered("retailer", 1, "0xShop"))

        assert role_registry.count(RoleKind.SUPPLIER) == 1
        assert role_registry.count(RoleKind.MANUFACTURER) == 0
        assert role_registry.resolve(RoleKind.SUPPLIER, "0XSUP").id == 1
        # Registration is per kind
        assert role_registry.resolve(RoleKind.MANUFACTURER, "0xSup") is None
        assert role_registry.get(RoleKind.RETAILER, 1).address == "0xShop"
        assert role_registry.get(RoleKind.RETAILER, 2) is None

    def test_first_registration_of_address_wins(self, role_registry: RoleRegistry) -> None:
        role_registry.apply_event(role_registered("retailer", 1, "0xShop"))
        role_registry.apply_event(role_registered("retailer", 2, "0xshop"))

        assert role_registry.count(RoleKind.RETAILER) == 2
        assert role_registry.resolve(RoleKind.RETAILER, "0xShop").id == 1

    def test_list_roles_in_id_order(self, role_registry: RoleRegistry) -> None:
        for role_id in (1, 2, 3):
            role_registry.apply_event(role_registered("distributor", role_id, f"0xD{role_id}"))

        records = role_registry.list_roles(RoleKind.DISTRIBUTOR)
        assert [r.id for r in records] == [1, 2, 3]
        assert role_registry.role_counts()[RoleKind.DISTRIBUTOR] == 3

    def test_gap_in_role_ids_is_corruption(self, role_registry: RoleRegistry) -> None:
        with pytest.raises(InvariantViolation):
            role_registry.apply_event(role_registered("supplier", 2, "0xSup"))


class TestProductLedger:
    def test_product_created(self, product_ledger: ProductLedger) -> None:
        product_ledger.apply_event(product_created(1))

        product = product_ledger.get(1)
        assert product.name == "Widget"
        assert product.stage == Stage.ORDERED
        assert product_ledger.get_timestamps(1).ordered_at == T0
        assert product_ledger.count() == 1
        assert product_ledger.version(1) == 1

    def test_stage_advanced_swaps_records(self, product_ledger: ProductLedger) -> None:
        product_ledger.apply_event(product_created(1))
        before = product_ledger.get(1)
        later = T0 + timedelta(hours=1)

        product_ledger.apply_event(
            stage_advanced(
                "RawMaterialSupplied", 1, 2,
                Stage.ORDERED, Stage.RAW_MATERIAL_SUPPLIED, "supplier", 3, later,
            )
        )

        after = product_ledger.get(1)
        assert before.stage == Stage.ORDERED
        assert after.stage == Stage.RAW_MATERIAL_SUPPLIED
        assert after.supplier_role_id == 3
        assert product_ledger.get_timestamps(1).raw_supply_at == later
        assert product_ledger.version(1) == 2

    def test_skipped_stage_is_corruption(self, product_ledger: ProductLedger) -> None:
        product_ledger.apply_event(product_created(1))

        with pytest.raises(InvariantViolation):
            product_ledger.apply_event(
                stage_advanced(
                    "ProductManufactured", 1, 2,
                    Stage.RAW_MATERIAL_SUPPLIED, Stage.MANUFACTURED, "manufacturer", 1, T0,
                )
            )
        assert product_ledger.get(1).stage == Stage.ORDERED

    def test_transition_for_missing_product_is_corruption(
        self, product_ledger: ProductLedger
    ) -> None:
        with pytest.raises(InvariantViolation):
            product_ledger.apply_event(
                stage_advanced(
                    "RawMaterialSupplied", 1, 2,
                    Stage.ORDERED, Stage.RAW_MATERIAL_SUPPLIED, "supplier", 1, T0,
                )
            )

    def test_stage_counts_cover_every_stage(self, product_ledger: ProductLedger) -> None:
        product_ledger.apply_event(product_created(1))
        product_ledger.apply_event(product_created(2))

        counts = product_ledger.stage_counts()
        assert set(counts) == set(Stage)
        assert counts[Stage.ORDERED] == 2
        assert sum(counts.values()) == 2
        assert [p.id for p in product_ledger.list_all()] == [1, 2]
