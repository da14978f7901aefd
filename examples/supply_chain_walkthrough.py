#!/usr/bin/env python3
"""
Supply Chain Walkthrough - One product from order to sale

Scenario:
- A ledger owner registers an ore supplier, a factory, a haulier and two shops
- A customer orders a widget
- Each participant moves it one stage along
- The rival shop tries to sell a widget it never stocked and is refused
- The ledger is reopened from its event log and shows identical state

Run:
    python examples/supply_chain_walkthrough.py
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

from supply_ledger import SupplyLedger
from supply_ledger.kernel.environment import ManualClock
from supply_ledger.kernel.errors import AuthorizationError

OWNER = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
SUPPLIER = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"
MANUFACTURER = "0x4B20993Bc481177ec7E8f571ceCaE8A9e22C02db"
DISTRIBUTOR = "0x78731D3Ca6b7E34aC0F824c42a7cC18A495cabaB"
RETAILER = "0x617F2E2fD72FD9D5503197092aC168c91465E7f2"
RIVAL = "0x17F6AD8Ef982297579C203069C1DbfFE4348c372"
CUSTOMER = "0x5c6B0f7Bf3E7ce046039Bd8FABdfD3f9F5021678"


def print_section(title: str) -> None:
    print(f"\n{'='*70}")
    print(f"  {title}")
    print(f"{'='*70}\n")


def main() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "walkthrough.db"
        clock = ManualClock(datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc))
        ledger = SupplyLedger(db_path, owner=OWNER, clock=clock)

        print_section("Registering participants")
        ledger.register_supplier(SUPPLIER, "Acme Ores", "Pilbara", caller=OWNER)
        ledger.register_manufacturer(MANUFACTURER, "Forge Works", "Detroit", caller=OWNER)
        ledger.register_distributor(DISTRIBUTOR, "Fast Freight", "Rotterdam", caller=OWNER)
        ledger.register_retailer(RETAILER, "Corner Shop", "Leeds", caller=OWNER)
        ledger.register_retailer(RIVAL, "Big Box", "York", caller=OWNER)
        print(f"✓ Suppliers: {ledger.supplier_count()}, manufacturers: {ledger.manufacturer_count()}, "
              f"distributors: {ledger.distributor_count()}, retailers: {ledger.retailer_count()}")

        print_section("Moving a widget through the chain")
        product_id = ledger.create_product("Widget", "Aluminium widget, batch 7", caller=CUSTOMER)
        print(f"✓ Ordered product #{product_id}: {ledger.stage_label(product_id)}")

        for operation, caller in [
            ("supply_raw_material", SUPPLIER),
            ("manufacture", MANUFACTURER),
            ("distribute", DISTRIBUTOR),
            ("retail", RETAILER),
        ]:
            clock.advance_days(1)
            product = getattr(ledger, operation)(product_id, caller=caller)
            print(f"✓ {operation}: {product.stage_label}")

        print_section("A rival retailer tries to sell it")
        try:
            ledger.sell(product_id, caller=RIVAL)
        except AuthorizationError as e:
            print(f"✗ Refused: {e}")

        clock.advance_days(1)
        product = ledger.sell(product_id, caller=RETAILER)
        print(f"✓ sell: {product.stage_label}")

        print("\nTimestamps:")
        for field, value in ledger.timestamps(product_id):
            print(f"  {field}: {value.isoformat()}")

        print_section("Reopening from the event log")
        reopened = SupplyLedger(db_path)
        same = reopened.product(product_id) == ledger.product(product_id)
        print(f"Events in log: {reopened.event_store.count_events()}")
        print(f"{'✓' if same else '✗'} Replayed product matches: {same}")

        summary = reopened.summary()
        print(f"\nSold: {summary.completion.sold}, in progress: {summary.completion.in_progress}")


if __name__ == "__main__":
    main()
