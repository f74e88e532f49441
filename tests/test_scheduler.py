import pytest

from ledger_scheduler.clock import SimulationClock
from ledger_scheduler.errors import SchedulingQueueFullError, TableFullError
from ledger_scheduler.metrics import MetricsTracker, summarize_transaction_metrics
from ledger_scheduler.models import TransactionMetrics
from ledger_scheduler.scheduler import RunQueue, round_robin, schedule_pending


def _tracker(execution_times, arrivals=None):
    tracker = MetricsTracker(capacity=10)
    arrivals = arrivals or [0] * len(execution_times)
    for arrival, burst in zip(arrivals, execution_times):
        tracker.record_arrival(arrival, burst)
    return tracker


def _queued(tracker):
    queue = RunQueue(tracker.capacity)
    for entry in tracker.all():
        queue.enqueue(entry)
    return queue


def test_rr_quantum_2_completion_times():
    tracker = _tracker([5, 2, 4])
    result = round_robin(_queued(tracker), SimulationClock(), quantum=2)

    completion = {t.transaction_id: t.completion_time for t in result.transactions}
    assert completion == {1: 11, 2: 4, 3: 10}
    assert [(s.transaction_id, s.start_time, s.end_time) for s in result.timeline] == [
        (1, 0, 2),
        (2, 2, 4),
        (3, 4, 6),
        (1, 6, 8),
        (3, 8, 10),
        (1, 10, 11),
    ]


def test_rr_is_deterministic():
    runs = []
    for _ in range(3):
        tracker = _tracker([5, 2, 4])
        result = round_robin(_queued(tracker), SimulationClock(), quantum=2)
        runs.append([(t.completion_time, t.waiting_time) for t in result.transactions])
    assert runs[0] == runs[1] == runs[2]


def test_final_turnaround_and_waiting():
    tracker = _tracker([5, 2, 4, 1], arrivals=[0, 1, 3, 6])
    clock = SimulationClock(start=7)
    result = round_robin(_queued(tracker), clock, quantum=2)

    for t in result.transactions:
        assert t.remaining_time == 0
        assert t.turnaround_time == t.completion_time - t.arrival_time
        assert t.waiting_time == t.turnaround_time - t.execution_time
    assert clock.now() == 7 + 12
    assert result.system.cpu_busy_time == 12


def test_rr_exact_quantum_finishes_without_requeue():
    tracker = _tracker([2, 2])
    result = round_robin(_queued(tracker), SimulationClock(), quantum=2)
    assert [len([s for s in result.timeline if s.transaction_id == i]) for i in (1, 2)] == [1, 1]
    assert [t.completion_time for t in result.transactions] == [2, 4]


def test_rr_requires_positive_quantum():
    with pytest.raises(ValueError):
        round_robin(RunQueue(1), SimulationClock(), quantum=0)


def test_schedule_pending_skips_finished_transactions():
    tracker = _tracker([3, 1])
    clock = SimulationClock()
    first = schedule_pending(tracker, clock, quantum=2)
    assert [t.completion_time for t in first.transactions] == [4, 3]

    tracker.record_arrival(clock.now(), 2)
    second = schedule_pending(tracker, clock, quantum=2)

    assert [t.completion_time for t in second.transactions] == [4, 3, 6]
    assert {s.transaction_id for s in second.timeline} == {3}


def test_summary_averages():
    tracker = _tracker([5, 2, 4])
    result = round_robin(_queued(tracker), SimulationClock(), quantum=2)
    summary = summarize_transaction_metrics(result.transactions)
    assert summary["avg_turnaround"] == pytest.approx((11 + 4 + 10) / 3)
    assert summary["avg_waiting"] == pytest.approx((6 + 2 + 6) / 3)


def test_run_queue_is_fifo_and_circular():
    queue = RunQueue(2)
    a, b, c = (TransactionMetrics(i, 0, 1, 1) for i in (1, 2, 3))
    queue.enqueue(a)
    queue.enqueue(b)
    assert queue.dequeue() is a
    queue.enqueue(c)
    assert queue.dequeue() is b
    assert queue.dequeue() is c
    assert queue.is_empty()
    with pytest.raises(IndexError):
        queue.dequeue()


def test_run_queue_rejects_duplicates_and_overflow():
    queue = RunQueue(2)
    a, b, c = (TransactionMetrics(i, 0, 1, 1) for i in (1, 2, 3))
    queue.enqueue(a)
    with pytest.raises(ValueError):
        queue.enqueue(a)
    queue.enqueue(b)
    with pytest.raises(SchedulingQueueFullError):
        queue.enqueue(c)
    assert len(queue) == 2


def test_metrics_tracker_capacity():
    tracker = MetricsTracker(capacity=1)
    tracker.record_arrival(0, 3)
    with pytest.raises(TableFullError):
        tracker.record_arrival(0, 3)
    assert tracker.get(1).remaining_time == 3
    assert tracker.get(2) is None


def test_rr_keeps_distinct_entries_with_equal_fields():
    twins = [TransactionMetrics(1, 0, 3, 3), TransactionMetrics(1, 0, 3, 3)]
    queue = RunQueue(2)
    for entry in twins:
        queue.enqueue(entry)

    result = round_robin(queue, SimulationClock(), quantum=2)

    assert len(result.transactions) == 2
    assert sorted(t.completion_time for t in twins) == [5, 6]
