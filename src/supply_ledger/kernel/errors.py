"""
Custom exceptions for the supply ledger

Every rejected call surfaces one of these. The ledger never recovers
internally: a validation failure aborts before any event is written, so the
exception is the whole outcome of the call.
"""


class LedgerError(Exception):
    """Base exception for all supply ledger errors"""

    pass


class EventStoreError(LedgerError):
    """Base class for event store errors"""

    pass


class CommandIdempotencyViolation(EventStoreError):
    """
    Raised when a command_id was already used by a different stream

    A repeated command_id on the same stream is not an error - the store
    returns the previously committed events instead.
    """

    def __init__(self, command_id: str, message: str = "") -> None:
        self.command_id = command_id
        super().__init__(message or f"Command {command_id} already processed")


class StreamVersionConflict(EventStoreError):
    """
    Raised when stream version doesn't match expected (optimistic locking)

    Another writer committed to the stream first. Nothing was written;
    reload and retry.
    """

    def __init__(
        self, stream_id: str, expected_version: int, actual_version: int
    ) -> None:
        self.stream_id = stream_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Stream {stream_id} version mismatch: "
            f"expected {expected_version}, got {actual_version}"
        )


class InvariantViolation(LedgerError):
    """
    Raised when ledger state would become internally inconsistent

    Seeing this means the event log itself is corrupt (a counter gap, a
    regressing stage) - callers cannot trigger it through the public API.
    """

    pass


class AuthorizationError(LedgerError):
    """Raised when the caller lacks the ownership or role an operation requires"""

    def __init__(self, caller: str, required: str, message: str = "") -> None:
        self.caller = caller
        self.required = required
        super().__init__(message or f"Caller {caller} is not authorized: requires {required}")


class RetailerMismatch(AuthorizationError):
    """Raised when a retailer tries to sell a product another retailer stocked"""

    def __init__(self, caller: str, product_id: int, retailer_role_id: int | None) -> None:
        self.product_id = product_id
        self.retailer_role_id = retailer_role_id
        super().__init__(
            caller,
            f"retailer #{retailer_role_id}",
            f"Caller {caller} is not retailer #{retailer_role_id}, "
            f"which retailed product {product_id}",
        )


class StateError(LedgerError):
    """Raised when a product is not in the stage a transition requires"""

    def __init__(self, product_id: int, current_stage: str, required_stage: str) -> None:
        self.product_id = product_id
        self.current_stage = current_stage
        self.required_stage = required_stage
        super().__init__(
            f"Product {product_id} is {current_stage}, must be {required_stage}"
        )


class NotFoundError(LedgerError):
    """Raised when an identifier lies outside its collection's allocated range"""

    def __init__(self, collection: str, identifier: int | str) -> None:
        self.collection = collection
        self.identifier = identifier
        super().__init__(f"{collection} {identifier} not found")


class ConnectivityError(LedgerError):
    """Raised when the hosting environment or a ledger locator cannot be reached"""

    pass


class DeploymentNotFound(ConnectivityError):
    """Raised when no ledger is deployed for the requested network"""

    def __init__(self, network_id: str, available: list[str]) -> None:
        self.network_id = network_id
        self.available = available
        listed = ", ".join(available) if available else "none"
        super().__init__(
            f"No ledger deployed on network {network_id}. Available networks: {listed}"
        )
