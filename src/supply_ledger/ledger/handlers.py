"""
Ledger Handlers - Command→Event transformation

Handlers are the decision-making layer. They:
1. Read current state (from projections passed in)
2. Run the invariants
3. Build the events that record the change
4. Return them for the caller to append

Handlers never write anything. If any check fails they raise before an
event exists, so a rejected call leaves no trace anywhere.
"""

from supply_ledger.kernel.environment import CallContext
from supply_ledger.kernel.events import Event, create_event
from supply_ledger.kernel.ids import LEDGER_STREAM_ID, generate_event_id, stream_id_for
from supply_ledger.ledger.commands import AdvanceProduct, CreateProduct, RegisterRole
from supply_ledger.ledger.counters import PRODUCT_COLLECTION
from supply_ledger.ledger.events import (
    LedgerCreated,
    ProductCreated,
    RoleRegistered,
    StageAdvanced,
)
from supply_ledger.ledger.invariants import validate_owner, validate_transition
from supply_ledger.ledger.projections import ProductLedger, RoleRegistry
from supply_ledger.ledger.transitions import Transition


class LedgerCommandHandlers:
    """
    Command handlers for the supply ledger

    Stateless: everything a decision depends on arrives as an argument -
    the command, the CallContext (caller + timestamp) and the projections.
    """

    def handle_create_ledger(
        self,
        owner: str,
        context: CallContext,
        command_id: str,
    ) -> list[Event]:
        """
        Record the ledger's creation and its owner

        Only ever produces version 1 of the ledger stream; the event store
        rejects a second creation with StreamVersionConflict.
        """
        event_payload = LedgerCreated(
            owner=owner,
            created_at=context.timestamp,
        ).model_dump(mode="json")

        event = create_event(
            event_id=generate_event_id(),
            stream_id=LEDGER_STREAM_ID,
            stream_type="ledger",
            event_type="LedgerCreated",
            occurred_at=context.timestamp,
            command_id=command_id,
            actor_id=context.caller,
            payload=event_payload,
            version=1,
        )

        return [event]

    def handle_register_role(
        self,
        command: RegisterRole,
        context: CallContext,
        command_id: str,
        registry: RoleRegistry,
    ) -> list[Event]:
        """
        Handle RegisterRole command

        Args:
            command: RegisterRole command
            context: Caller and timestamp
            command_id: Idempotency key
            registry: Current role registry

        Returns:
            A single RoleRegistered event carrying the next catalog ID

        Raises:
            AuthorizationError: If the caller is not the ledger owner
        """
        validate_owner(registry, context.caller)

        role_id = registry.counters.peek_next(command.kind.value)

        event_payload = RoleRegistered(
            kind=command.kind,
            role_id=role_id,
            address=command.address,
            name=command.name,
            place=command.place,
            registered_at=context.timestamp,
        ).model_dump(mode="json")

        event = create_event(
            event_id=generate_event_id(),
            stream_id=stream_id_for(command.kind.value, role_id),
            stream_type=command.kind.value,
            event_type="RoleRegistered",
            occurred_at=context.timestamp,
            command_id=command_id,
            actor_id=context.caller,
            payload=event_payload,
            version=1,
        )

        return [event]

    def handle_create_product(
        self,
        command: CreateProduct,
        context: CallContext,
        command_id: str,
        products: ProductLedger,
    ) -> list[Event]:
        """
        Handle CreateProduct command

        Open to any caller. The product starts ORDERED with no role
        bindings and ordered_at set to the call timestamp.
        """
        product_id = products.counters.peek_next(PRODUCT_COLLECTION)

        event_payload = ProductCreated(
            product_id=product_id,
            name=command.name,
            description=command.description,
            ordered_at=context.timestamp,
        ).model_dump(mode="json")

        event = create_event(
            event_id=generate_event_id(),
            stream_id=stream_id_for(PRODUCT_COLLECTION, product_id),
            stream_type=PRODUCT_COLLECTION,
            event_type="ProductCreated",
            occurred_at=context.timestamp,
            command_id=command_id,
            actor_id=context.caller,
            payload=event_payload,
            version=1,
        )

        return [event]

    def handle_transition(
        self,
        transition: Transition,
        command: AdvanceProduct,
        context: CallContext,
        command_id: str,
        products: ProductLedger,
        registry: RoleRegistry,
    ) -> list[Event]:
        """
        Handle any of the five stage-transition commands

        Validates (in order) that the product exists, that it is in
        transition.from_stage, and that the caller holds the required
        role. The single resulting event sets stage, role binding and
        timestamp together.

        Args:
            transition: Row of the transition table for this command
            command: The transition command (carries product_id)
            context: Caller and timestamp
            command_id: Idempotency key
            products: Current product ledger
            registry: Current role registry

        Returns:
            A single event of type transition.event_type

        Raises:
            NotFoundError: If the product doesn't exist
            StateError: If the product is not in transition.from_stage
            AuthorizationError: If the caller lacks the role (RetailerMismatch
                for a sell by a different retailer)
        """
        product, record = validate_transition(
            transition, products, registry, command.product_id, context.caller
        )

        event_payload = StageAdvanced(
            product_id=product.id,
            from_stage=transition.from_stage,
            to_stage=transition.to_stage,
            role_kind=record.kind,
            role_id=record.id,
            entered_at=context.timestamp,
        ).model_dump(mode="json")

        event = create_event(
            event_id=generate_event_id(),
            stream_id=stream_id_for(PRODUCT_COLLECTION, product.id),
            stream_type=PRODUCT_COLLECTION,
            event_type=transition.event_type,
            occurred_at=context.timestamp,
            command_id=command_id,
            actor_id=context.caller,
            payload=event_payload,
            version=products.version(product.id) + 1,
        )

        return [event]
