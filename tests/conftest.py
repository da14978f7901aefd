"""
Pytest configuration and shared fixtures

Every fixture that needs time uses a ManualClock, so timestamps in
assertions are exact and never depend on the machine running the tests.
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import pytest

from supply_ledger.facade import SupplyLedger
from supply_ledger.kernel.environment import ExecutionEnvironment, ManualClock
from supply_ledger.kernel.event_store import SQLiteEventStore
from supply_ledger.ledger.counters import CounterAllocator
from supply_ledger.ledger.handlers import LedgerCommandHandlers
from supply_ledger.ledger.projections import ProductLedger, RoleRegistry
from tests.helpers import OWNER, register_participants

START_TIME = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_db() -> Iterator[Path]:
    """Provide a temporary database file that's cleaned up after test"""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    for suffix in ("", "-wal", "-shm"):
        path = Path(f"{db_path}{suffix}")
        if path.exists():
            path.unlink()


@pytest.fixture
def event_store(temp_db: Path) -> SQLiteEventStore:
    """Provide a fresh event store for each test"""
    return SQLiteEventStore(temp_db)


@pytest.fixture
def clock() -> ManualClock:
    """Controllable clock starting at 2025-01-15 12:00:00 UTC"""
    return ManualClock(START_TIME)


@pytest.fixture
def environment(clock: ManualClock) -> ExecutionEnvironment:
    return ExecutionEnvironment(clock)


@pytest.fixture
def counters() -> CounterAllocator:
    return CounterAllocator()


@pytest.fixture
def role_registry(counters: CounterAllocator) -> RoleRegistry:
    return RoleRegistry(counters)


@pytest.fixture
def product_ledger(counters: CounterAllocator) -> ProductLedger:
    return ProductLedger(counters)


@pytest.fixture
def handlers() -> LedgerCommandHandlers:
    return LedgerCommandHandlers()


@pytest.fixture
def ledger(tmp_path: Path, clock: ManualClock) -> SupplyLedger:
    """A fresh ledger owned by OWNER"""
    return SupplyLedger(tmp_path / "ledger.db", owner=OWNER, clock=clock)


@pytest.fixture
def staffed_ledger(ledger: SupplyLedger) -> SupplyLedger:
    """A ledger with one participant registered in every role"""
    register_participants(ledger)
    return ledger
