"""
End-to-end handling of a single deposit or withdrawal.

Each submission draws a simulated execution time, registers a process,
records the arrival in the metrics tracker, runs the ledger operation on a
worker thread and waits for it, then advances the clock. Submissions
complete strictly in the order they were made.
"""

from __future__ import annotations

import random
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Optional

from .clock import SimulationClock
from .errors import LedgerSchedulerError, TableFullError
from .ledger import Ledger, to_amount
from .logging_config import get_logger
from .metrics import MetricsTracker
from .models import LedgerResult, ProcessStatus, ScheduleResult, TransactionKind, TransactionOutcome
from .notifications import Notifier
from .process_table import ProcessTable
from .scheduler import DEFAULT_QUANTUM, schedule_pending

logger = get_logger("coordinator")


class TransactionCoordinator:
    def __init__(
        self,
        ledger: Ledger,
        process_table: ProcessTable,
        tracker: MetricsTracker,
        clock: SimulationClock,
        notifier: Optional[Notifier] = None,
        rng: Optional[random.Random] = None,
        min_execution_time: int = 1,
        max_execution_time: int = 5,
        quantum: int = DEFAULT_QUANTUM,
    ) -> None:
        if not 1 <= min_execution_time <= max_execution_time:
            raise ValueError("Execution time range must satisfy 1 <= min <= max")
        self.ledger = ledger
        self.process_table = process_table
        self.tracker = tracker
        self.clock = clock
        self.notifier = notifier or ledger.notifier
        self.rng = rng or random.Random()
        self.min_execution_time = min_execution_time
        self.max_execution_time = max_execution_time
        self.quantum = quantum
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="transaction")

    def __enter__(self) -> "TransactionCoordinator":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # -- accounts ---------------------------------------------------------

    def create_account(self, customer_id: int, initial_balance, slot: Optional[int] = None) -> int:
        """
        Create an account in ``slot``, or in the first free slot when omitted.
        """
        if slot is None:
            slot = self.ledger.next_free_slot()
            if slot is None:
                slot = self.ledger.capacity
        return self.ledger.create_account(customer_id, initial_balance, slot)

    def check_balance(self, account_id: int) -> Decimal:
        return self.ledger.check_balance(account_id)

    # -- transactions -----------------------------------------------------

    def deposit(self, account_id: int, amount) -> TransactionOutcome:
        return self.submit(account_id, amount, TransactionKind.DEPOSIT)

    def withdraw(self, account_id: int, amount) -> TransactionOutcome:
        return self.submit(account_id, amount, TransactionKind.WITHDRAW)

    def submit(self, account_id: int, amount, kind: TransactionKind) -> TransactionOutcome:
        kind = TransactionKind(kind)
        amount = to_amount(amount)
        if amount <= 0:
            raise ValueError(f"{kind.value.capitalize()} amount must be positive")
        execution_time = self.rng.randint(self.min_execution_time, self.max_execution_time)

        try:
            process_id = self.process_table.add_process(account_id, amount, kind, execution_time)
        except TableFullError as exc:
            return self._reject(account_id, amount, kind, exc)

        try:
            metrics = self.tracker.record_arrival(self.clock.now(), execution_time)
        except TableFullError as exc:
            self.process_table.update_status(process_id, ProcessStatus.FAILED)
            return self._reject(account_id, amount, kind, exc, process_id=process_id)

        operation = self.ledger.deposit if kind is TransactionKind.DEPOSIT else self.ledger.withdraw

        self.process_table.update_status(process_id, ProcessStatus.RUNNING)
        future = self._executor.submit(operation, account_id, amount)
        result: Optional[LedgerResult] = None
        error: Optional[LedgerSchedulerError] = None
        try:
            result = future.result()
        except LedgerSchedulerError as exc:
            error = exc
        except Exception as exc:
            logger.exception("Transaction worker failed", extra={"process_id": process_id})
            error = LedgerSchedulerError(f"unexpected error: {exc}")

        self.clock.advance(execution_time)

        outcome = TransactionOutcome(
            transaction_id=metrics.transaction_id,
            process_id=process_id,
            account_id=account_id,
            kind=kind,
            amount=amount,
            success=error is None,
            status=ProcessStatus.COMPLETED if error is None else ProcessStatus.FAILED,
            message="",
            execution_time=execution_time,
            arrival_time=metrics.arrival_time,
        )
        self.process_table.update_status(process_id, outcome.status)

        if result is not None:
            outcome.balance = result.balance
            outcome.notification_error = result.notification_error
            verb = "Deposit of" if kind is TransactionKind.DEPOSIT else "Withdrawal of"
            outcome.message = f"{verb} {amount:.2f} on Account ID={account_id} completed. New balance {result.balance:.2f}"
        else:
            outcome.error_code = error.code
            outcome.notification_error = error.notification_error
            outcome.message = f"{kind.value.capitalize()} failed: {error.message}"

        logger.info(
            "Transaction T%d: %s",
            outcome.transaction_id,
            outcome.message,
            extra={
                "transaction_id": outcome.transaction_id,
                "process_id": process_id,
                "status": outcome.status,
                "execution_time": execution_time,
            },
        )
        return outcome

    def _reject(
        self,
        account_id: int,
        amount: Decimal,
        kind: TransactionKind,
        exc: TableFullError,
        process_id: Optional[int] = None,
    ) -> TransactionOutcome:
        message = f"{kind.value.capitalize()} rejected: {exc.message}"
        logger.warning(message, extra={"account_id": account_id, "error_code": exc.code})
        return TransactionOutcome(
            transaction_id=None,
            process_id=process_id,
            account_id=account_id,
            kind=kind,
            amount=amount,
            success=False,
            status=ProcessStatus.FAILED if process_id is not None else None,
            message=message,
            error_code=exc.code,
            notification_error=self.notifier.send(message),
        )

    # -- scheduling -------------------------------------------------------

    def schedule(self, quantum: Optional[int] = None) -> ScheduleResult:
        """
        Run round robin over every transaction that has not been scheduled to
        completion yet. The clock continues from where submissions left it.
        """
        return schedule_pending(self.tracker, self.clock, self.quantum if quantum is None else quantum)
