from __future__ import annotations

from typing import List, Optional

from .clock import SimulationClock
from .errors import SchedulingQueueFullError
from .logging_config import get_logger
from .metrics import MetricsTracker, compute_system_metrics
from .models import ScheduleResult, ScheduledSlice, TransactionMetrics

logger = get_logger("scheduler")

DEFAULT_QUANTUM = 2


class RunQueue:
    """
    Bounded circular FIFO of transaction metrics.

    An entry may only be queued once at a time; it goes back in after being
    dequeued with time still remaining.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("Queue capacity must be positive")
        self.capacity = capacity
        self._items: List[Optional[TransactionMetrics]] = [None] * capacity
        self._front = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    def __contains__(self, entry: TransactionMetrics) -> bool:
        for i in range(self._size):
            if self._items[(self._front + i) % self.capacity] is entry:
                return True
        return False

    def enqueue(self, entry: TransactionMetrics) -> None:
        if self._size == self.capacity:
            raise SchedulingQueueFullError(self.capacity)
        if entry in self:
            raise ValueError(f"Transaction T{entry.transaction_id} is already queued")
        rear = (self._front + self._size) % self.capacity
        self._items[rear] = entry
        self._size += 1

    def dequeue(self) -> TransactionMetrics:
        if self._size == 0:
            raise IndexError("dequeue from an empty run queue")
        entry = self._items[self._front]
        self._items[self._front] = None
        self._front = (self._front + 1) % self.capacity
        self._size -= 1
        return entry


def round_robin(
    queue: RunQueue,
    clock: SimulationClock,
    quantum: int = DEFAULT_QUANTUM,
) -> ScheduleResult:
    """
    Preemptive round robin over everything currently in ``queue``.

    Each dequeued transaction runs for ``quantum`` units and goes to the back
    of the queue, or runs out its remaining time and completes at the current
    clock. Turnaround and waiting time are recomputed after every dequeue, so
    only the figures left after a transaction's last slice are final.
    """
    if quantum is None or quantum <= 0:
        raise ValueError("Round Robin requires a positive quantum")

    timeline: List[ScheduledSlice] = []
    scheduled: List[TransactionMetrics] = []
    seen: set[int] = set()

    while not queue.is_empty():
        t = queue.dequeue()
        if id(t) not in seen:
            seen.add(id(t))
            scheduled.append(t)

        slice_start = clock.now()
        if t.remaining_time > quantum:
            clock.advance(quantum)
            t.remaining_time -= quantum
            queue.enqueue(t)
        else:
            clock.advance(t.remaining_time)
            t.completion_time = clock.now()
            t.remaining_time = 0
            logger.debug(
                "T%d completed at %d",
                t.transaction_id,
                t.completion_time,
                extra={"transaction_id": t.transaction_id},
            )

        slice_end = clock.now()
        if slice_end > slice_start:
            timeline.append(ScheduledSlice(transaction_id=t.transaction_id, start_time=slice_start, end_time=slice_end))

        t.turnaround_time = t.completion_time - t.arrival_time
        t.waiting_time = t.turnaround_time - t.execution_time

    scheduled.sort(key=lambda m: m.transaction_id)
    result = ScheduleResult(algorithm="Round Robin", quantum=quantum, transactions=scheduled, timeline=timeline)
    compute_system_metrics(result)
    logger.info(
        "Round robin pass finished at time %d",
        clock.now(),
        extra={"transactions": len(scheduled), "quantum": quantum},
    )
    return result


def schedule_pending(
    tracker: MetricsTracker,
    clock: SimulationClock,
    quantum: int = DEFAULT_QUANTUM,
    capacity: Optional[int] = None,
) -> ScheduleResult:
    """
    Queue every tracked transaction that still has time remaining, in
    submission order, and run a round robin pass over them.

    The result lists every tracked transaction, finished ones included, so
    it can be shown as one table.
    """
    queue = RunQueue(capacity or tracker.capacity)
    for entry in tracker.unfinished():
        queue.enqueue(entry)

    result = round_robin(queue, clock, quantum)
    result.transactions = tracker.all()
    compute_system_metrics(result)
    return result
