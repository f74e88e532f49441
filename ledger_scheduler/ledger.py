"""
Shared account ledger.

A fixed number of account slots guarded by one lock. Every operation,
reads included, takes the same lock, so a reported balance always matches
the last committed deposit or withdrawal.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from decimal import Decimal
from typing import List, Optional

from .errors import InsufficientFundsError, InvalidAccountError, SlotOutOfRangeError
from .logging_config import get_logger
from .models import Account, LedgerResult
from .notifications import Notifier

logger = get_logger("ledger")


def to_amount(value) -> Decimal:
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number, got {value!r}")
    return amount


class Ledger:
    def __init__(self, capacity: int = 10, notifier: Optional[Notifier] = None) -> None:
        if capacity <= 0:
            raise ValueError("Ledger capacity must be positive")
        self.capacity = capacity
        self.notifier = notifier or Notifier()
        self.lock = threading.RLock()
        self._slots: List[Account] = [Account() for _ in range(capacity)]

    def _lookup(self, account_id: int) -> Account:
        # Caller holds the lock.
        if not 0 < account_id <= self.capacity:
            raise InvalidAccountError(account_id)
        account = self._slots[account_id - 1]
        if not account.allocated:
            raise InvalidAccountError(account_id)
        return account

    def create_account(self, customer_id: int, initial_balance, slot: int) -> int:
        """
        Populate ``slot`` with a new account and return its id (``slot + 1``).
        """
        balance = to_amount(initial_balance)
        if balance < 0:
            raise ValueError("Initial balance cannot be negative")

        with self.lock:
            if not 0 <= slot < self.capacity:
                logger.warning(
                    "Account creation failed: slot out of range",
                    extra={"slot": slot, "capacity": self.capacity},
                )
                raise SlotOutOfRangeError(slot, self.capacity)

            account = self._slots[slot]
            account.account_id = slot + 1
            account.customer_id = customer_id
            account.balance = balance

            logger.info(
                "Account created: ID=%d, CustomerID=%d, Balance=%.2f",
                account.account_id,
                customer_id,
                balance,
                extra={"account_id": account.account_id, "customer_id": customer_id},
            )
            return account.account_id

    def deposit(self, account_id: int, amount) -> LedgerResult:
        amount = to_amount(amount)
        if amount <= 0:
            raise ValueError("Deposit amount must be positive")

        with self.lock:
            try:
                account = self._lookup(account_id)
            except InvalidAccountError as exc:
                logger.warning("Deposit failed: invalid account", extra={"account_id": account_id})
                exc.notification_error = self.notifier.send(
                    f"Deposit failed. Invalid Account ID={account_id}"
                )
                raise

            account.balance += amount
            logger.info(
                "Deposit: Account ID=%d, Amount=%.2f, New Balance=%.2f",
                account_id,
                amount,
                account.balance,
                extra={"account_id": account_id, "amount": amount, "balance": account.balance},
            )
            error = self.notifier.send(f"Deposit of {amount:.2f} to Account ID={account_id} completed.")
            return LedgerResult(account_id=account_id, balance=account.balance, notification_error=error)

    def withdraw(self, account_id: int, amount) -> LedgerResult:
        amount = to_amount(amount)
        if amount <= 0:
            raise ValueError("Withdrawal amount must be positive")

        with self.lock:
            try:
                account = self._lookup(account_id)
            except InvalidAccountError as exc:
                logger.warning("Withdraw failed: invalid account", extra={"account_id": account_id})
                exc.notification_error = self.notifier.send(
                    f"Withdrawal failed. Invalid Account ID={account_id}"
                )
                raise

            if account.balance < amount:
                logger.warning(
                    "Withdraw failed: insufficient funds",
                    extra={"account_id": account_id, "amount": amount, "balance": account.balance},
                )
                exc = InsufficientFundsError(account_id, account.balance, amount)
                exc.notification_error = self.notifier.send(
                    f"Withdrawal failed. Insufficient funds. Account ID={account_id}"
                )
                raise exc

            account.balance -= amount
            logger.info(
                "Withdraw: Account ID=%d, Amount=%.2f, New Balance=%.2f",
                account_id,
                amount,
                account.balance,
                extra={"account_id": account_id, "amount": amount, "balance": account.balance},
            )
            error = self.notifier.send(f"Withdrawal of {amount:.2f} from Account ID={account_id} completed.")
            return LedgerResult(account_id=account_id, balance=account.balance, notification_error=error)

    def check_balance(self, account_id: int) -> Decimal:
        with self.lock:
            return self._lookup(account_id).balance

    def accounts(self) -> List[Account]:
        """Copies of every allocated account, in slot order."""
        with self.lock:
            return [replace(a) for a in self._slots if a.allocated]

    def next_free_slot(self) -> Optional[int]:
        with self.lock:
            for idx, account in enumerate(self._slots):
                if not account.allocated:
                    return idx
            return None
