from __future__ import annotations

import threading
from typing import Optional, Union


class SimulationClock:
    """
    Global simulation clock in abstract time units.

    Pass the ledger's lock so clock updates and balance updates are
    serialized by the same lock.
    """

    def __init__(
        self,
        start: int = 0,
        lock: Optional[Union[threading.Lock, threading.RLock]] = None,
    ) -> None:
        if start < 0:
            raise ValueError("Clock cannot start before time 0")
        self._time = start
        self._lock = lock if lock is not None else threading.RLock()

    def now(self) -> int:
        with self._lock:
            return self._time

    def advance(self, units: int) -> int:
        if units < 0:
            raise ValueError(f"Cannot move the clock backwards by {units}")
        with self._lock:
            self._time += units
            return self._time
