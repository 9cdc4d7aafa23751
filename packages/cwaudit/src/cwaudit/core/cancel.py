from __future__ import annotations

import threading

CANCELLED = "cancelled"


class Cancelled(Exception):
    """Raised inside a check when the run was cancelled while it was executing."""

    def __init__(self, output: str = "") -> None:
        super().__init__(CANCELLED)
        self.output = output


class CancelToken:
    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._cause = ""

    def cancel(self, cause: str = CANCELLED) -> None:
        with self._lock:
            if not self._event.is_set():
                self._cause = cause
                self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    @property
    def cause(self) -> str:
        with self._lock:
            return self._cause
