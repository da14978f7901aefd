"""
Execution environment - caller identity and call timestamps

The ledger never reads the wall clock or guesses who is calling. Each
mutating call receives a CallContext carrying both, issued by an
ExecutionEnvironment. Swapping the clock for a ManualClock makes every
operation deterministic in tests.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Protocol

from pydantic import BaseModel, Field


class Clock(Protocol):
    """Protocol for time sources"""

    def now(self) -> datetime:
        """Return current UTC datetime"""
        ...


class SystemClock:
    """Production clock backed by the system time"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """
    Controllable clock for deterministic tests and replays

    Time only moves when the test moves it.
    """

    def __init__(self, initial_time: datetime | None = None) -> None:
        self._current_time = initial_time or datetime(1970, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current_time

    def set_time(self, dt: datetime) -> None:
        self._current_time = dt

    def advance_seconds(self, seconds: int) -> None:
        self._current_time += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        self._current_time += timedelta(days=days)


class CallContext(BaseModel):
    """
    Who is calling, and when

    Passed explicitly into every ledger handler in place of ambient
    globals.
    """

    caller: str = Field(..., description="Caller identity (address)")
    timestamp: datetime = Field(..., description="Environment-supplied call time")

    model_config = {"frozen": True}


class ExecutionEnvironment:
    """
    Issues call contexts with non-decreasing timestamps

    A clock that steps backwards (NTP adjustment, a test rewinding a
    ManualClock) never produces a timestamp earlier than one already
    issued; the previous value is reused instead.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or SystemClock()
        self._last_issued: datetime | None = None
        self._lock = threading.Lock()

    def context_for(self, caller: str) -> CallContext:
        with self._lock:
            now = self.clock.now()
            if self._last_issued is not None and now < self._last_issued:
                now = self._last_issued
            self._last_issued = now
            return CallContext(caller=caller, timestamp=now)

    def observe(self, timestamp: datetime) -> None:
        """Raise the floor to a timestamp already committed to the ledger"""
        with self._lock:
            if self._last_issued is None or timestamp > self._last_issued:
                self._last_issued = timestamp


def normalize_identity(identity: str) -> str:
    """Canonical form used when comparing identities (addresses are case-insensitive)"""
    return identity.strip().lower()
