from __future__ import annotations

import threading
from typing import List, Optional

from .errors import TableFullError
from .logging_config import get_logger
from .models import ScheduleResult, SystemMetrics, TransactionMetrics

logger = get_logger("metrics")


class MetricsTracker:
    """
    Timing records for submitted transactions, indexed by submission order.

    The scheduler mutates the records it is handed, so ``get`` and ``all``
    return the live objects rather than copies.
    """

    def __init__(self, capacity: int = 100) -> None:
        if capacity <= 0:
            raise ValueError("Metrics capacity must be positive")
        self.capacity = capacity
        self._records: List[TransactionMetrics] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def record_arrival(self, arrival_time: int, execution_time: int) -> TransactionMetrics:
        with self._lock:
            if len(self._records) >= self.capacity:
                raise TableFullError("Metrics table", self.capacity)
            entry = TransactionMetrics(
                transaction_id=len(self._records) + 1,
                arrival_time=arrival_time,
                execution_time=execution_time,
                remaining_time=execution_time,
            )
            self._records.append(entry)

        logger.debug(
            "Transaction T%d arrived at %d",
            entry.transaction_id,
            arrival_time,
            extra={"transaction_id": entry.transaction_id, "execution_time": execution_time},
        )
        return entry

    def get(self, transaction_id: int) -> Optional[TransactionMetrics]:
        with self._lock:
            if 0 < transaction_id <= len(self._records):
                return self._records[transaction_id - 1]
        return None

    def all(self) -> List[TransactionMetrics]:
        with self._lock:
            return list(self._records)

    def unfinished(self) -> List[TransactionMetrics]:
        with self._lock:
            return [m for m in self._records if m.remaining_time > 0]


def compute_system_metrics(result: ScheduleResult) -> SystemMetrics:
    """
    Compute throughput and CPU utilization given populated per-transaction
    metrics and timeline slices.
    """
    if not result.transactions:
        system = SystemMetrics(cpu_busy_time=0, makespan=0, throughput=0.0, cpu_utilization=0.0)
        result.system = system
        return system

    makespan = max(t.completion_time for t in result.transactions)
    cpu_busy_time = sum(slice_.end_time - slice_.start_time for slice_ in result.timeline)

    throughput = len(result.transactions) / makespan if makespan > 0 else 0.0
    cpu_utilization = cpu_busy_time / makespan if makespan > 0 else 0.0

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
    )
    result.system = system
    return system


def summarize_transaction_metrics(transactions: List[TransactionMetrics]) -> dict:
    """
    Return averages of waiting and turnaround time for quick comparison.
    """
    if not transactions:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0}

    n = len(transactions)
    return {
        "avg_waiting": sum(t.waiting_time for t in transactions) / n,
        "avg_turnaround": sum(t.turnaround_time for t in transactions) / n,
    }
