"""
SupplyLedger - main façade class

This is the primary interface to the supply ledger. It hides event
sourcing, projections and handlers behind the ledger's method surface.

Example:
    >>> from supply_ledger import SupplyLedger
    >>> ledger = SupplyLedger("ledger.db", owner="0xOwner")
    >>> ledger.register_supplier("0xSup", "Acme Ores", "Pilbara", caller="0xOwner")
    1
    >>> pid = ledger.create_product("Widget", "desc", caller="0xShop")
    >>> ledger.supply_raw_material(pid, caller="0xSup").stage
    <Stage.RAW_MATERIAL_SUPPLIED: 1>
"""

import threading
from pathlib import Path

from supply_ledger.kernel.environment import Clock, ExecutionEnvironment
from supply_ledger.kernel.errors import AuthorizationError, LedgerError
from supply_ledger.kernel.event_store import SQLiteEventStore
from supply_ledger.kernel.events import Event
from supply_ledger.kernel.ids import generate_command_id, stream_id_for
from supply_ledger.kernel.logging import LogOperation, get_logger
from supply_ledger.kernel.metrics import (
    track_ledger_call,
    update_ledger_shape_metrics,
)
from supply_ledger.ledger.commands import LEDGER_COMMAND_TYPES, CreateProduct, RegisterRole
from supply_ledger.ledger.counters import PRODUCT_COLLECTION, CounterAllocator
from supply_ledger.ledger.handlers import LedgerCommandHandlers
from supply_ledger.ledger.invariants import validate_product_exists, validate_role_exists
from supply_ledger.ledger.models import (
    Product,
    RoleKind,
    RoleRecord,
    TimestampRecord,
    stage_label,
)
from supply_ledger.ledger.projections import ProductLedger, RoleRegistry
from supply_ledger.ledger.reports import LedgerSummary, build_summary
from supply_ledger.ledger.transitions import (
    DISTRIBUTE,
    MANUFACTURE,
    RETAIL,
    SELL,
    SUPPLY_RAW_MATERIAL,
    Transition,
)

logger = get_logger(__name__)


class SupplyLedger:
    """
    Supply ledger main façade

    Mutating calls are serialized on one lock per instance and run
    catch up → validate → append → apply as a single step. Queries take the
    same lock just long enough to catch up on events committed by other
    instances and pick up frozen records, so they never observe a
    half-applied transition or a stale one.
    """

    def __init__(
        self,
        sqlite_path: str | Path,
        owner: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Open (or create) a ledger

        Args:
            sqlite_path: Path to the SQLite event log
            owner: Owner identity. Required when the ledger is new; when
                opening an existing ledger it must match the recorded owner.
            clock: Time source (system clock if None)

        Raises:
            LedgerError: If the ledger is new and no owner was given
            AuthorizationError: If owner differs from the recorded owner
        """
        self.sqlite_path = Path(sqlite_path)
        self.environment = ExecutionEnvironment(clock)

        self.event_store = SQLiteEventStore(self.sqlite_path)
        self.handlers = LedgerCommandHandlers()

        self.counters = CounterAllocator()
        self.role_registry = RoleRegistry(self.counters)
        self.product_ledger = ProductLedger(self.counters)

        self._lock = threading.RLock()
        # Commit sequence of the last event folded into the projections
        self._applied_sequence = 0

        self._rebuild_projections()

        if self.role_registry.owner is None:
            if owner is None:
                raise LedgerError(
                    f"Ledger at {self.sqlite_path} has no owner - pass owner= to create it"
                )
            self._create_ledger(owner)
        elif owner is not None and not self.role_registry.is_owner(owner):
            raise AuthorizationError(
                owner,
                "ledger owner",
                f"Ledger at {self.sqlite_path} already has a different owner",
            )

    def _rebuild_projections(self) -> None:
        """Rebuild all projections from the event store"""
        with self._lock, LogOperation(
            logger, "rebuild_projections", db_path=str(self.sqlite_path)
        ):
            self._catch_up()
            self._refresh_shape_metrics()

    def _catch_up(self) -> int:
        """
        Fold events committed since the last call into the projections

        Picks up commits from any writer on the same file, this instance
        included, in commit order. Must be called with the lock held.

        Returns:
            Number of events applied
        """
        events = self.event_store.load_all_events(after_sequence=self._applied_sequence)
        for event in events:
            self._apply(event)
            self.environment.observe(event.occurred_at)
            if event.sequence is not None:
                self._applied_sequence = event.sequence
        if events:
            self._refresh_shape_metrics()
        return len(events)

    def refresh(self) -> int:
        """
        Pick up events committed by other ledger instances

        Queries and mutations already do this; long-running holders of a
        ledger (metrics server) call it to keep the shape gauges current.

        Returns:
            Number of events applied
        """
        with self._lock:
            return self._catch_up()

    def _apply(self, event: Event) -> None:
        if event.event_type in RoleRegistry.EVENT_TYPES:
            self.role_registry.apply_event(event)
        elif event.event_type in ProductLedger.EVENT_TYPES:
            self.product_ledger.apply_event(event)
        else:
            logger.warning(
                "Skipping event of unknown type",
                event_type=event.event_type,
                event_id=event.event_id,
            )

    def _commit(self, events: list[Event]) -> None:
        """
        Append events, then fold the log into the projections

        A stale instance loses the version check with StreamVersionConflict;
        it still catches up, so retrying the same call validates against
        the current state.
        """
        try:
            for event in events:
                self.event_store.append(event.stream_id, event.version - 1, [event])
        finally:
            self._catch_up()

    def _refresh_shape_metrics(self) -> None:
        update_ledger_shape_metrics(
            {stage.name: n for stage, n in self.product_ledger.stage_counts().items()},
            {kind.value: n for kind, n in self.role_registry.role_counts().items()},
        )

    def _create_ledger(self, owner: str) -> None:
        with self._lock, LogOperation(logger, "create_ledger", owner=owner):
            context = self.environment.context_for(owner)
            events = self.handlers.handle_create_ledger(owner, context, generate_command_id())
            self._commit(events)

    # Registry operations

    def owner(self) -> str:
        """The ledger owner's identity"""
        with self._lock:
            owner = self.role_registry.owner
        if owner is None:
            raise LedgerError(f"Ledger at {self.sqlite_path} has no owner")
        return owner

    @track_ledger_call("register_role")
    def register_role(
        self,
        kind: RoleKind | str,
        address: str,
        name: str,
        place: str,
        *,
        caller: str,
    ) -> int:
        """
        Register a participant in a role catalog (owner only)

        Args:
            kind: Catalog to register in
            address: Identity that will act in this role
            name: Participant name
            place: Participant location
            caller: Identity issuing the call

        Returns:
            The new record's ID within its catalog

        Raises:
            AuthorizationError: If caller is not the owner
        """
        command = RegisterRole(kind=RoleKind(kind), address=address, name=name, place=place)
        with self._lock, LogOperation(
            logger, "register_role", kind=command.kind.value, caller=caller
        ):
            self._catch_up()
            context = self.environment.context_for(caller)
            events = self.handlers.handle_register_role(
                command, context, generate_command_id(), self.role_registry
            )
            self._commit(events)
        return events[0].payload["role_id"]

    def register_supplier(self, address: str, name: str, place: str, *, caller: str) -> int:
        return self.register_role(RoleKind.SUPPLIER, address, name, place, caller=caller)

    def register_manufacturer(self, address: str, name: str, place: str, *, caller: str) -> int:
        return self.register_role(RoleKind.MANUFACTURER, address, name, place, caller=caller)

    def register_distributor(self, address: str, name: str, place: str, *, caller: str) -> int:
        return self.register_role(RoleKind.DISTRIBUTOR, address, name, place, caller=caller)

    def register_retailer(self, address: str, name: str, place: str, *, caller: str) -> int:
        return self.register_role(RoleKind.RETAILER, address, name, place, caller=caller)

    def role_record(self, kind: RoleKind | str, role_id: int) -> RoleRecord:
        """
        Raises:
            NotFoundError: If role_id is outside the catalog's range
        """
        with self._lock:
            self._catch_up()
            return validate_role_exists(self.role_registry, RoleKind(kind), role_id)

    def supplier_record(self, role_id: int) -> RoleRecord:
        return self.role_record(RoleKind.SUPPLIER, role_id)

    def manufacturer_record(self, role_id: int) -> RoleRecord:
        return self.role_record(RoleKind.MANUFACTURER, role_id)

    def distributor_record(self, role_id: int) -> RoleRecord:
        return self.role_record(RoleKind.DISTRIBUTOR, role_id)

    def retailer_record(self, role_id: int) -> RoleRecord:
        return self.role_record(RoleKind.RETAILER, role_id)

    def role_count(self, kind: RoleKind | str) -> int:
        with self._lock:
            self._catch_up()
            return self.role_registry.count(RoleKind(kind))

    def supplier_count(self) -> int:
        return self.role_count(RoleKind.SUPPLIER)

    def manufacturer_count(self) -> int:
        return self.role_count(RoleKind.MANUFACTURER)

    def distributor_count(self) -> int:
        return self.role_count(RoleKind.DISTRIBUTOR)

    def retailer_count(self) -> int:
        return self.role_count(RoleKind.RETAILER)

    def list_roles(self, kind: RoleKind | str) -> list[RoleRecord]:
        with self._lock:
            self._catch_up()
            return self.role_registry.list_roles(RoleKind(kind))

    # Product operations

    @track_ledger_call("create_product")
    def create_product(self, name: str, description: str, *, caller: str) -> int:
        """
        Order a new product (any caller)

        Returns:
            The new product's ID
        """
        command = CreateProduct(name=name, description=description)
        with self._lock, LogOperation(logger, "create_product", caller=caller):
            self._catch_up()
            context = self.environment.context_for(caller)
            events = self.handlers.handle_create_product(
                command, context, generate_command_id(), self.product_ledger
            )
            self._commit(events)
        return events[0].payload["product_id"]

    def _advance(self, transition: Transition, product_id: int, caller: str) -> Product:
        command = LEDGER_COMMAND_TYPES[transition.command_type](product_id=product_id)
        with self._lock, LogOperation(
            logger, transition.operation, product_id=product_id, caller=caller
        ):
            self._catch_up()
            context = self.environment.context_for(caller)
            events = self.handlers.handle_transition(
                transition,
                command,
                context,
                generate_command_id(),
                self.product_ledger,
                self.role_registry,
            )
            self._commit(events)
            return self.product_ledger.products[product_id]

    @track_ledger_call("supply_raw_material")
    def supply_raw_material(self, product_id: int, *, caller: str) -> Product:
        """ORDERED → RAW_MATERIAL_SUPPLIED (registered supplier)"""
        return self._advance(SUPPLY_RAW_MATERIAL, product_id, caller)

    @track_ledger_call("manufacture")
    def manufacture(self, product_id: int, *, caller: str) -> Product:
        """RAW_MATERIAL_SUPPLIED → MANUFACTURED (registered manufacturer)"""
        return self._advance(MANUFACTURE, product_id, caller)

    @track_ledger_call("distribute")
    def distribute(self, product_id: int, *, caller: str) -> Product:
        """MANUFACTURED → DISTRIBUTED (registered distributor)"""
        return self._advance(DISTRIBUTE, product_id, caller)

    @track_ledger_call("retail")
    def retail(self, product_id: int, *, caller: str) -> Product:
        """DISTRIBUTED → RETAILED (registered retailer)"""
        return self._advance(RETAIL, product_id, caller)

    @track_ledger_call("sell")
    def sell(self, product_id: int, *, caller: str) -> Product:
        """RETAILED → SOLD (only the retailer that retailed the product)"""
        return self._advance(SELL, product_id, caller)

    # Product queries

    def product_count(self) -> int:
        with self._lock:
            self._catch_up()
            return self.product_ledger.count()

    def product(self, product_id: int) -> Product:
        """
        Raises:
            NotFoundError: If product_id is outside [1, product_count]
        """
        with self._lock:
            self._catch_up()
            return validate_product_exists(self.product_ledger, product_id)

    def stage_label(self, product_id: int) -> str:
        return stage_label(self.product(product_id).stage)

    def timestamps(self, product_id: int) -> TimestampRecord:
        with self._lock:
            self._catch_up()
            validate_product_exists(self.product_ledger, product_id)
            return self.product_ledger.timestamps[product_id]

    def list_products(self) -> list[Product]:
        with self._lock:
            self._catch_up()
            return self.product_ledger.list_all()

    def history(self, product_id: int) -> list[Event]:
        """Committed events of a product, oldest first (audit trail)"""
        self.product(product_id)
        return self.event_store.load_stream(stream_id_for(PRODUCT_COLLECTION, product_id))

    # Reporting

    def summary(self, activity_days: int = 10) -> LedgerSummary:
        """Aggregate counts for dashboards"""
        with self._lock:
            self._catch_up()
            products = self.product_ledger.list_all()
            timestamp_records = [self.product_ledger.timestamps[p.id] for p in products]
            role_counts = self.role_registry.role_counts()
        return build_summary(products, timestamp_records, role_counts, activity_days)
