"""
Typed errors raised by the ledger, the bookkeeping tables and the scheduler.

Every error carries a machine-readable ``code`` and the structured values
that caused it, so callers catch by type and report without parsing text:

    LedgerSchedulerError
    +-- InvalidAccountError
    +-- InsufficientFundsError
    +-- SlotOutOfRangeError
    +-- TableFullError
    +-- SchedulingQueueFullError
    +-- NotificationDeliveryError
"""

from __future__ import annotations

from typing import Any, Optional


class LedgerSchedulerError(Exception):
    """Base class for every error this package raises on purpose."""

    code: str = "LEDGER_SCHEDULER_ERROR"

    def __init__(self, message: str, **data: Any) -> None:
        super().__init__(message)
        self.message = message
        self.data = data
        # Set by the ledger when the outcome notification could not be sent.
        self.notification_error: Optional[NotificationDeliveryError] = None

    def __str__(self) -> str:
        return self.message


class InvalidAccountError(LedgerSchedulerError):
    code = "INVALID_ACCOUNT"

    def __init__(self, account_id: int) -> None:
        super().__init__(f"Invalid or non-existent account ID={account_id}", account_id=account_id)
        self.account_id = account_id


class InsufficientFundsError(LedgerSchedulerError):
    code = "INSUFFICIENT_FUNDS"

    def __init__(self, account_id: int, balance: Any, amount: Any) -> None:
        super().__init__(
            f"Insufficient funds in account ID={account_id}: balance {balance:.2f}, requested {amount:.2f}",
            account_id=account_id,
            balance=balance,
            amount=amount,
        )
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class SlotOutOfRangeError(LedgerSchedulerError):
    code = "SLOT_OUT_OF_RANGE"

    def __init__(self, slot: int, capacity: int) -> None:
        super().__init__(
            f"Account slot {slot} is outside the table (capacity {capacity})",
            slot=slot,
            capacity=capacity,
        )
        self.slot = slot
        self.capacity = capacity


class TableFullError(LedgerSchedulerError):
    code = "TABLE_FULL"

    def __init__(self, table: str, capacity: int) -> None:
        super().__init__(f"{table} full (capacity {capacity})", table=table, capacity=capacity)
        self.table = table
        self.capacity = capacity


class SchedulingQueueFullError(LedgerSchedulerError):
    code = "QUEUE_FULL"

    def __init__(self, capacity: int) -> None:
        super().__init__(f"Scheduling queue full (capacity {capacity})", capacity=capacity)
        self.capacity = capacity


class NotificationDeliveryError(LedgerSchedulerError):
    code = "NOTIFICATION_DELIVERY_FAILED"

    def __init__(self, reason: str, notification: str) -> None:
        super().__init__(f"Notification not delivered: {reason}", reason=reason, notification=notification)
        self.reason = reason
        self.notification = notification
