from __future__ import annotations

import threading
from dataclasses import replace
from decimal import Decimal
from typing import List, Optional

from .errors import TableFullError
from .logging_config import get_logger
from .models import ProcessRecord, ProcessStatus, TransactionKind

logger = get_logger("process_table")


class ProcessTable:
    """
    Append-only table of transaction processes with a fixed capacity.

    Records are never evicted; once ``capacity`` records exist every further
    ``add_process`` raises ``TableFullError``.
    """

    def __init__(self, capacity: int = 100) -> None:
        if capacity <= 0:
            raise ValueError("Process table capacity must be positive")
        self.capacity = capacity
        self._records: List[ProcessRecord] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def add_process(
        self,
        account_id: int,
        amount: Decimal,
        kind: TransactionKind,
        execution_time: int,
    ) -> int:
        if execution_time < 1:
            raise ValueError("Execution time must be at least 1")

        with self._lock:
            if len(self._records) >= self.capacity:
                logger.warning("Process table full. Cannot add more processes.", extra={"capacity": self.capacity})
                raise TableFullError("Process table", self.capacity)

            record = ProcessRecord(
                process_id=len(self._records) + 1,
                account_id=account_id,
                amount=amount,
                kind=kind,
                status=ProcessStatus.PENDING,
                execution_time=execution_time,
            )
            self._records.append(record)

        logger.info(
            "Process created: ID=%d, Account ID=%d, Amount=%.2f, Status=PENDING",
            record.process_id,
            account_id,
            amount,
            extra={"process_id": record.process_id, "account_id": account_id, "kind": kind},
        )
        return record.process_id

    def update_status(self, process_id: int, status: ProcessStatus) -> bool:
        """
        Set the status of ``process_id``. Unknown ids are logged and ignored.
        """
        with self._lock:
            for record in self._records:
                if record.process_id == process_id:
                    record.status = status
                    break
            else:
                logger.warning("Process ID=%d not found; status unchanged", process_id)
                return False

        logger.info(
            "Process ID=%d updated to status=%s",
            process_id,
            status.value,
            extra={"process_id": process_id, "status": status},
        )
        return True

    def get(self, process_id: int) -> Optional[ProcessRecord]:
        with self._lock:
            for record in self._records:
                if record.process_id == process_id:
                    return replace(record)
        return None

    def list_all(self) -> List[ProcessRecord]:
        with self._lock:
            return [replace(r) for r in self._records]
