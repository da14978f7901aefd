"""
Ledger Projections - current state folded from the event log

RoleRegistry holds the owner and the four role catalogs; ProductLedger
holds products and their timestamp log. Both are arenas keyed by the
integer IDs the shared CounterAllocator hands out, and both can be
rebuilt at any time by replaying the event store from the start.

apply_event trusts the event: validation happened in the handler before
the event was committed. Replay still checks stage order and ID density so
a corrupt log is detected instead of silently folded.
"""

from supply_ledger.kernel.environment import normalize_identity
from supply_ledger.kernel.errors import InvariantViolation
from supply_ledger.kernel.events import Event
from supply_ledger.ledger.counters import PRODUCT_COLLECTION, CounterAllocator
from supply_ledger.ledger.events import (
    LedgerCreated,
    ProductCreated,
    RoleRegistered,
    StageAdvanced,
)
from supply_ledger.ledger.models import Product, RoleKind, RoleRecord, Stage, TimestampRecord
from supply_ledger.ledger.transitions import TRANSITIONS_BY_EVENT_TYPE


class RoleRegistry:
    """
    Projection: ledger owner and the four role catalogs

    One generic registry replaces four parallel ones - every record is
    tagged with its RoleKind and every lookup takes the kind.
    """

    EVENT_TYPES = ("LedgerCreated", "RoleRegistered")

    def __init__(self, counters: CounterAllocator) -> None:
        self.counters = counters
        self.owner: str | None = None
        self.roles: dict[RoleKind, dict[int, RoleRecord]] = {kind: {} for kind in RoleKind}
        self._by_address: dict[tuple[RoleKind, str], int] = {}

    def apply_event(self, event: Event) -> None:
        """Apply an event to update projection state"""
        if event.event_type == "LedgerCreated":
            payload = LedgerCreated.model_validate(event.payload)
            if self.owner is not None:
                raise InvariantViolation("Ledger owner is already set and cannot change")
            self.owner = payload.owner

        elif event.event_type == "RoleRegistered":
            payload = RoleRegistered.model_validate(event.payload)
            self.counters.commit(payload.kind.value, payload.role_id)
            record = RoleRecord(
                kind=payload.kind,
                id=payload.role_id,
                address=payload.address,
                name=payload.name,
                place=payload.place,
            )
            self.roles[payload.kind][payload.role_id] = record
            # First registration of an address wins the lookup
            self._by_address.setdefault(
                (payload.kind, normalize_identity(payload.address)), payload.role_id
            )

    def is_owner(self, identity: str) -> bool:
        return self.owner is not None and normalize_identity(identity) == normalize_identity(
            self.owner
        )

    def get(self, kind: RoleKind, role_id: int) -> RoleRecord | None:
        """Get role record by kind and ID"""
        return self.roles[kind].get(role_id)

    def resolve(self, kind: RoleKind, address: str) -> RoleRecord | None:
        """Role record of this kind held by an identity, if any"""
        role_id = self._by_address.get((kind, normalize_identity(address)))
        return self.roles[kind][role_id] if role_id is not None else None

    def count(self, kind: RoleKind) -> int:
        return self.counters.current(kind.value)

    def list_roles(self, kind: RoleKind) -> list[RoleRecord]:
        """All records of a kind in ID order"""
        return [self.roles[kind][i] for i in sorted(self.roles[kind])]

    def role_counts(self) -> dict[RoleKind, int]:
        return {kind: self.count(kind) for kind in RoleKind}


class ProductLedger:
    """
    Projection: product records and their timestamp log

    Records are frozen; a committed transition swaps in new Product and
    TimestampRecord objects rather than mutating the old ones.
    """

    EVENT_TYPES = ("ProductCreated", *TRANSITIONS_BY_EVENT_TYPE)

    def __init__(self, counters: CounterAllocator) -> None:
        self.counters = counters
        self.products: dict[int, Product] = {}
        self.timestamps: dict[int, TimestampRecord] = {}
        self.versions: dict[int, int] = {}

    def apply_event(self, event: Event) -> None:
        """Apply an event to update projection state"""
        if event.event_type == "ProductCreated":
            payload = ProductCreated.model_validate(event.payload)
            self.counters.commit(PRODUCT_COLLECTION, payload.product_id)
            self.products[payload.product_id] = Product(
                id=payload.product_id,
                name=payload.name,
                description=payload.description,
            )
            self.timestamps[payload.product_id] = TimestampRecord(ordered_at=payload.ordered_at)
            self.versions[payload.product_id] = event.version

        elif event.event_type in TRANSITIONS_BY_EVENT_TYPE:
            transition = TRANSITIONS_BY_EVENT_TYPE[event.event_type]
            payload = StageAdvanced.model_validate(event.payload)
            product = self.products.get(payload.product_id)
            if product is None or product.stage != transition.from_stage:
                found = product.stage.name if product is not None else "missing"
                raise InvariantViolation(
                    f"{event.event_type} for product {payload.product_id} "
                    f"found it {found}, expected {transition.from_stage.name}"
                )

            update: dict = {"stage": transition.to_stage}
            if transition.role_field is not None:
                update[transition.role_field] = payload.role_id
            self.products[payload.product_id] = product.model_copy(update=update)
            self.timestamps[payload.product_id] = self.timestamps[
                payload.product_id
            ].model_copy(update={transition.timestamp_field: payload.entered_at})
            self.versions[payload.product_id] = event.version

    def get(self, product_id: int) -> Product | None:
        """Get product by ID"""
        return self.products.get(product_id)

    def get_timestamps(self, product_id: int) -> TimestampRecord | None:
        return self.timestamps.get(product_id)

    def version(self, product_id: int) -> int:
        """Current stream version of a product (0 if unknown)"""
        return self.versions.get(product_id, 0)

    def count(self) -> int:
        return self.counters.current(PRODUCT_COLLECTION)

    def list_all(self) -> list[Product]:
        """All products in ID order"""
        return [self.products[i] for i in sorted(self.products)]

    def stage_counts(self) -> dict[Stage, int]:
        counts = {stage: 0 for stage in Stage}
        for product in self.products.values():
            counts[product.stage] += 1
        return counts
