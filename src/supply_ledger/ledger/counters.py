"""
Counter Allocator - dense per-collection IDs

Each collection (products and the four role catalogs) has its own
counter starting at 1. Handlers *peek* the next ID to stamp it into a
creation event; the cursor only moves when that event is applied, so a
rejected or failed call never burns an ID.
"""

from supply_ledger.kernel.errors import InvariantViolation

PRODUCT_COLLECTION = "product"


class CounterAllocator:
    """Per-collection monotonic ID cursor"""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def current(self, collection: str) -> int:
        """Number of IDs committed so far (= highest allocated ID)"""
        return self._counts.get(collection, 0)

    def peek_next(self, collection: str) -> int:
        """ID the next committed creation in this collection will receive"""
        return self.current(collection) + 1

    def commit(self, collection: str, allocated_id: int) -> None:
        """
        Advance the cursor to an ID carried by a committed creation event

        Raises:
            InvariantViolation: If allocated_id is not exactly the next ID
        """
        expected = self.peek_next(collection)
        if allocated_id != expected:
            raise InvariantViolation(
                f"{collection} ID {allocated_id} out of sequence, expected {expected}"
            )
        self._counts[collection] = allocated_id

    def contains(self, collection: str, candidate_id: int) -> bool:
        """True if candidate_id lies in the allocated range [1, current]"""
        return 1 <= candidate_id <= self.current(collection)

    def to_dict(self) -> dict[str, int]:
        return dict(self._counts)
