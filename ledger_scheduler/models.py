from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .errors import NotificationDeliveryError


class TransactionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class ProcessStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass
class Account:
    """
    One slot of the account table. ``account_id == 0`` marks a free slot.
    """

    account_id: int = 0
    customer_id: int = 0
    balance: Decimal = Decimal("0")

    @property
    def allocated(self) -> bool:
        return self.account_id != 0


@dataclass
class ProcessRecord:
    process_id: int
    account_id: int
    amount: Decimal
    kind: TransactionKind
    status: ProcessStatus
    execution_time: int


@dataclass
class TransactionMetrics:
    """
    Timing record for one submitted transaction, in abstract time units.

    ``remaining_time`` starts equal to ``execution_time`` and is only
    decremented by the scheduler.
    """

    transaction_id: int
    arrival_time: int
    execution_time: int
    remaining_time: int
    completion_time: int = 0
    turnaround_time: int = 0
    waiting_time: int = 0

    @property
    def finished(self) -> bool:
        return self.remaining_time == 0


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a transaction in the Gantt chart.
    """

    transaction_id: int
    start_time: int
    end_time: int

    @property
    def label(self) -> str:
        return f"T{self.transaction_id}"


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float


@dataclass
class ScheduleResult:
    algorithm: str
    quantum: Optional[int]
    transactions: List[TransactionMetrics] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    system: Optional[SystemMetrics] = None


@dataclass
class LedgerResult:
    account_id: int
    balance: Decimal
    notification_error: Optional["NotificationDeliveryError"] = None


@dataclass
class TransactionOutcome:
    """
    What the coordinator reports back for one submitted transaction.
    """

    transaction_id: Optional[int]
    process_id: Optional[int]
    account_id: int
    kind: TransactionKind
    amount: Decimal
    success: bool
    status: Optional[ProcessStatus]
    message: str
    balance: Optional[Decimal] = None
    execution_time: Optional[int] = None
    arrival_time: Optional[int] = None
    error_code: Optional[str] = None
    notification_error: Optional["NotificationDeliveryError"] = None
