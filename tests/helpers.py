"""
Test Helper Functions - identities, builders and assertions

Keeps lifecycle tests short: register the standard cast of participants
once, then walk a product to whatever stage a test needs.
"""

from supply_ledger.facade import SupplyLedger
from supply_ledger.ledger.invariants import check_product_consistency
from supply_ledger.ledger.models import Stage

OWNER = "0xOwner"
SUPPLIER = "0xSupplier"
MANUFACTURER = "0xManufacturer"
DISTRIBUTOR = "0xDistributor"
RETAILER = "0xRetailer"
OUTSIDER = "0xOutsider"

# Stage reached → (operation, caller) that reaches it
STEPS = {
    Stage.RAW_MATERIAL_SUPPLIED: ("supply_raw_material", SUPPLIER),
    Stage.MANUFACTURED: ("manufacture", MANUFACTURER),
    Stage.DISTRIBUTED: ("distribute", DISTRIBUTOR),
    Stage.RETAILED: ("retail", RETAILER),
    Stage.SOLD: ("sell", RETAILER),
}


def register_participants(ledger: SupplyLedger) -> None:
    """Register SUPPLIER, MANUFACTURER, DISTRIBUTOR and RETAILER as #1 of their role"""
    ledger.register_supplier(SUPPLIER, "Acme Ores", "Pilbara", caller=OWNER)
    ledger.register_manufacturer(MANUFACTURER, "Forge Works", "Detroit", caller=OWNER)
    ledger.register_distributor(DISTRIBUTOR, "Fast Freight", "Rotterdam", caller=OWNER)
    ledger.register_retailer(RETAILER, "Corner Shop", "Leeds", caller=OWNER)


def create_product_at(
    ledger: SupplyLedger,
    stage: Stage,
    name: str = "Widget",
) -> int:
    """
    Create a product and advance it to the given stage using the standard cast

    Returns:
        The product ID
    """
    product_id = ledger.create_product(name, f"{name} description", caller=OUTSIDER)
    for target in Stage:
        if target == Stage.ORDERED:
            continue
        if target > stage:
            break
        operation, caller = STEPS[target]
        getattr(ledger, operation)(product_id, caller=caller)
    return product_id


def assert_consistent(ledger: SupplyLedger) -> None:
    """Every product satisfies the role-binding and timestamp invariants"""
    for product in ledger.list_products():
        check_product_consistency(product, ledger.timestamps(product.id))
