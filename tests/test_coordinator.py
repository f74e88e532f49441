import io
from decimal import Decimal

import pytest
from rich.console import Console

from ledger_scheduler.clock import SimulationClock
from ledger_scheduler.config import SimulationConfig, build_coordinator
from ledger_scheduler.coordinator import TransactionCoordinator
from ledger_scheduler.errors import SlotOutOfRangeError
from ledger_scheduler.ledger import Ledger
from ledger_scheduler.metrics import MetricsTracker
from ledger_scheduler.models import ProcessStatus, TransactionKind
from ledger_scheduler.notifications import ConsoleChannel, Notifier, QueueChannel
from ledger_scheduler.process_table import ProcessTable


class _FixedRng:
    """Hands out execution times from a fixed list."""

    def __init__(self, values):
        self.values = list(values)

    def randint(self, low, high):
        value = self.values.pop(0)
        assert low <= value <= high
        return value


def _coordinator(execution_times, max_processes=10, channel=None):
    notifier = Notifier(channel or QueueChannel())
    ledger = Ledger(capacity=3, notifier=notifier)
    return TransactionCoordinator(
        ledger=ledger,
        process_table=ProcessTable(capacity=max_processes),
        tracker=MetricsTracker(capacity=max_processes),
        clock=SimulationClock(lock=ledger.lock),
        notifier=notifier,
        rng=_FixedRng(execution_times),
    )


def test_submit_records_process_metrics_and_clock():
    with _coordinator([3, 2]) as coord:
        coord.create_account(100, "50")

        first = coord.deposit(1, "20")
        second = coord.withdraw(1, "30")

        assert first.success and second.success
        assert second.balance == Decimal("40")
        assert (first.arrival_time, second.arrival_time) == (0, 3)
        assert coord.clock.now() == 5

        records = coord.process_table.list_all()
        assert [r.status for r in records] == [ProcessStatus.COMPLETED, ProcessStatus.COMPLETED]
        assert [r.execution_time for r in records] == [3, 2]

        metrics = coord.tracker.all()
        assert [(m.transaction_id, m.remaining_time) for m in metrics] == [(1, 3), (2, 2)]


def test_failed_withdrawal_is_marked_failed():
    with _coordinator([1]) as coord:
        coord.create_account(100, "10")

        outcome = coord.withdraw(1, "25")

        assert not outcome.success
        assert outcome.status is ProcessStatus.FAILED
        assert outcome.error_code == "INSUFFICIENT_FUNDS"
        assert "Insufficient funds" in outcome.message
        assert coord.process_table.get(outcome.process_id).status is ProcessStatus.FAILED
        assert coord.check_balance(1) == Decimal("10")
        # The failed transaction still consumed its simulated time.
        assert coord.clock.now() == 1


def test_invalid_account_outcome():
    with _coordinator([2]) as coord:
        outcome = coord.deposit(3, "5")
        assert outcome.error_code == "INVALID_ACCOUNT"
        assert outcome.status is ProcessStatus.FAILED
        assert outcome.transaction_id == 1


def test_process_table_full_rejects_without_touching_ledger():
    channel = QueueChannel()
    with _coordinator([1, 1, 1], max_processes=2, channel=channel) as coord:
        coord.create_account(1, "0")
        outcomes = [coord.deposit(1, "10") for _ in range(3)]

        assert [o.success for o in outcomes] == [True, True, False]
        assert outcomes[2].error_code == "TABLE_FULL"
        assert outcomes[2].process_id is None
        assert len(coord.process_table.list_all()) == 2
        assert coord.check_balance(1) == Decimal("20")
        assert channel.delivered[-1].startswith("Deposit rejected")


def test_notification_failure_is_reported_not_raised():
    channel = QueueChannel()
    with _coordinator([1], channel=channel) as coord:
        coord.create_account(1, "5")
        channel.close()

        outcome = coord.deposit(1, "1")

        assert outcome.success
        assert outcome.notification_error is not None
        assert outcome.notification_error.code == "NOTIFICATION_DELIVERY_FAILED"


def test_schedule_continues_from_global_clock():
    with _coordinator([5, 2, 4]) as coord:
        coord.create_account(1, "100")
        coord.deposit(1, "1")
        coord.deposit(1, "1")
        coord.withdraw(1, "1")
        assert coord.clock.now() == 11

        result = coord.schedule(quantum=2)

        arrivals = [t.arrival_time for t in result.transactions]
        assert arrivals == [0, 5, 7]
        assert [t.completion_time for t in result.transactions] == [22, 15, 21]
        for t in result.transactions:
            assert t.turnaround_time == t.completion_time - t.arrival_time
            assert t.waiting_time == t.turnaround_time - t.execution_time


def test_create_account_fills_next_free_slot():
    with _coordinator([]) as coord:
        assert [coord.create_account(c, 0) for c in (1, 2, 3)] == [1, 2, 3]
        with pytest.raises(SlotOutOfRangeError):
            coord.create_account(4, 0)


def test_submit_rejects_non_positive_amount():
    with _coordinator([1]) as coord:
        with pytest.raises(ValueError):
            coord.submit(1, "0", TransactionKind.DEPOSIT)
        assert coord.process_table.list_all() == []


def test_build_coordinator_draws_times_in_range():
    config = SimulationConfig(max_accounts=2, max_processes=20, seed=7)
    with build_coordinator(config) as coord:
        coord.create_account(1, "1000")
        outcomes = [coord.deposit(1, "1") for _ in range(20)]
        assert all(1 <= o.execution_time <= 5 for o in outcomes)

    with build_coordinator(config) as again:
        again.create_account(1, "1000")
        assert [again.deposit(1, "1").execution_time for _ in range(20)] == [o.execution_time for o in outcomes]


def test_broken_console_channel_still_records_deposit():
    stream = io.StringIO()
    channel = ConsoleChannel(Console(file=stream))
    with _coordinator([2], channel=channel) as coord:
        coord.create_account(1, "10")
        stream.close()

        outcome = coord.deposit(1, "5")

        assert outcome.success
        assert outcome.notification_error.code == "NOTIFICATION_DELIVERY_FAILED"
        assert coord.check_balance(1) == Decimal("15")
        assert coord.process_table.get(outcome.process_id).status is ProcessStatus.COMPLETED
        assert coord.clock.now() == 2


class _ExplodingLedger(Ledger):
    def deposit(self, account_id, amount):
        raise RuntimeError("disk on fire")


def test_unexpected_worker_error_marks_process_failed():
    ledger = _ExplodingLedger(capacity=1)
    coord = TransactionCoordinator(
        ledger=ledger,
        process_table=ProcessTable(capacity=2),
        tracker=MetricsTracker(capacity=2),
        clock=SimulationClock(lock=ledger.lock),
        rng=_FixedRng([3]),
    )
    with coord:
        outcome = coord.deposit(1, "5")

        assert not outcome.success
        assert outcome.status is ProcessStatus.FAILED
        assert "disk on fire" in outcome.message
        assert coord.process_table.get(outcome.process_id).status is ProcessStatus.FAILED
        assert coord.clock.now() == 3


def test_schedule_rejects_explicit_zero_quantum():
    with _coordinator([1]) as coord:
        coord.create_account(1, "10")
        coord.deposit(1, "1")
        with pytest.raises(ValueError):
            coord.schedule(quantum=0)
