# CFGSYNC Status Model
# Connection/update health with observable status changes

import logging
import queue
import threading
from collections.abc import Callable
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ConnectionStatus(str, Enum):
    """Health of the repository connection for the current connect cycle."""

    OPENED = "opened"
    OPEN_FAILED = "open_failed"
    UPDATE_FAILED = "update_failed"


StatusListener = Callable[[ConnectionStatus], None]

_STATUS_TEXT: dict[ConnectionStatus, str] = {
    ConnectionStatus.OPENED: "Opened",
    ConnectionStatus.OPEN_FAILED: "Open repository failed",
    ConnectionStatus.UPDATE_FAILED: "Update repository failed",
}


class DirectDispatcher:
    """Deliver notifications inline on the publishing thread."""

    def post(self, callback: Callable[[], None]) -> None:
        callback()


class QueuedDispatcher:
    """
    Deliver notifications on a designated dispatch context.

    Callbacks posted from any thread are queued and run, in post order,
    when the owning context calls ``drain()``.
    """

    def __init__(self) -> None:
        self._queue: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()

    def post(self, callback: Callable[[], None]) -> None:
        self._queue.put(callback)

    @property
    def pending(self) -> int:
        """Number of queued callbacks."""
        return self._queue.qsize()

    def drain(self) -> int:
        """
        Run every queued callback.

        Returns:
            Number of callbacks that were run.
        """
        count = 0
        while True:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                return count
            callback()
            count += 1


class StatusModel:
    """
    Observable connection status.

    The status is undefined (None) until the first connect attempt. Every
    change is broadcast exactly once to the listeners registered at the time
    of the change, through the configured dispatcher.
    """

    def __init__(self, dispatcher: Optional[DirectDispatcher | QueuedDispatcher] = None):
        self._dispatcher = dispatcher or DirectDispatcher()
        self._status: Optional[ConnectionStatus] = None
        self._listeners: list[StatusListener] = []
        self._lock = threading.RLock()

    @property
    def status(self) -> Optional[ConnectionStatus]:
        """Current status, None before the first connect attempt."""
        return self._status

    @property
    def status_text(self) -> str:
        """Human-readable status."""
        if self._status is None:
            return "Unknown"
        return _STATUS_TEXT[self._status]

    @property
    def is_opened(self) -> bool:
        return self._status == ConnectionStatus.OPENED

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """
        Register a listener for status changes.

        Args:
            listener: Callable receiving the new status.

        Returns:
            Callable that removes the listener again.
        """
        with self._lock:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: StatusListener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def set_status(self, value: ConnectionStatus) -> bool:
        """
        Change the status and notify listeners.

        Args:
            value: New status.

        Returns:
            True if the status changed (and a notification was published).
        """
        with self._lock:
            if self._status == value:
                return False
            self._status = value
            listeners = list(self._listeners)
            logger.debug("Repository status changed to %s", value.value)
            # posted under the lock so delivery order matches change order
            self._dispatcher.post(lambda: self._deliver(listeners, value))
        return True

    @staticmethod
    def _deliver(listeners: list[StatusListener], value: ConnectionStatus) -> None:
        for listener in listeners:
            try:
                listener(value)
            except Exception:
                logger.exception("Status listener %r failed", listener)
