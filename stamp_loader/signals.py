"""
Module for the stop signal shared by sibling workers.
"""
import queue
import threading
from typing import List, Optional


class StopSignal:
    """Broadcast stop request shared by all workers of a run.

    Any worker may send at most one error on its own failure. The first
    error sent is the stop reason; every worker observes the signal at its
    next loop boundary. The error buffer holds ``capacity`` entries so a
    sender never blocks, even when nobody is polling.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._errors: "queue.Queue[BaseException]" = queue.Queue(maxsize=capacity)
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[BaseException] = None

    def send(self, error: BaseException) -> None:
        """Raise the signal with ``error`` as the cause. Never blocks."""
        with self._lock:
            if self._reason is None:
                self._reason = error
            try:
                self._errors.put_nowait(error)
            except queue.Full:
                pass  # the first error is already recorded as the reason
            self._event.set()

    def is_set(self) -> bool:
        """Non-blocking check of whether a stop was requested."""
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    @property
    def reason(self) -> Optional[BaseException]:
        return self._reason

    def errors(self) -> List[BaseException]:
        """All errors sent so far, in order."""
        with self._lock:
            return list(self._errors.queue)
