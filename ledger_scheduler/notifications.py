"""
Transaction notifications.

The ledger reports every deposit/withdraw outcome through a ``Notifier``.
A failed delivery is logged and handed back to the caller; it never stops
the session.
"""

from __future__ import annotations

import queue
from typing import List, Optional

from rich.console import Console

from .errors import NotificationDeliveryError
from .logging_config import get_logger

logger = get_logger("notifications")


class NotificationChannel:
    """
    Transport for outcome messages. ``notify`` returns the acknowledged text
    or raises ``NotificationDeliveryError``.
    """

    def notify(self, message: str) -> str:
        raise NotImplementedError


class QueueChannel(NotificationChannel):
    """
    In-process send-then-receive channel.

    Each message is put on a queue and read straight back as its own ack,
    the same round trip a message-queue transport makes.
    """

    def __init__(self, maxsize: int = 16) -> None:
        self._queue: "queue.Queue[str]" = queue.Queue(maxsize=maxsize)
        self.delivered: List[str] = []
        self.closed = False

    def notify(self, message: str) -> str:
        if self.closed:
            raise NotificationDeliveryError("channel closed", message)
        try:
            self._queue.put_nowait(message)
        except queue.Full as exc:
            raise NotificationDeliveryError("channel full", message) from exc
        try:
            ack = self._queue.get_nowait()
        except queue.Empty as exc:
            raise NotificationDeliveryError("no acknowledgement", message) from exc
        self.delivered.append(ack)
        return ack

    def close(self) -> None:
        self.closed = True


class ConsoleChannel(QueueChannel):
    """QueueChannel that also prints every acknowledged message."""

    def __init__(self, console: Optional[Console] = None, maxsize: int = 16) -> None:
        super().__init__(maxsize=maxsize)
        self.console = console or Console()

    def notify(self, message: str) -> str:
        ack = super().notify(message)
        self.console.print(f"[cyan]IPC Notification:[/cyan] {ack}")
        return ack


class Notifier:
    def __init__(self, channel: Optional[NotificationChannel] = None) -> None:
        self.channel = channel or QueueChannel()

    def send(self, message: str) -> Optional[NotificationDeliveryError]:
        """
        Deliver ``message``; return the delivery error instead of raising it.
        """
        try:
            self.channel.notify(message)
        except NotificationDeliveryError as exc:
            error = exc
        except Exception as exc:
            # Transport failures (closed stream, broken pipe) count as undelivered.
            error = NotificationDeliveryError(str(exc), message)
            error.__cause__ = exc
        else:
            logger.debug("Notification delivered", extra={"notification": message})
            return None

        logger.error(
            "Notification delivery failed: %s",
            error.reason,
            extra={"notification": message, "error_code": error.code},
        )
        return error
