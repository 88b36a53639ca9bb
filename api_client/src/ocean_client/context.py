"""
context.py

Per-call cancellation and deadline handle.

A Context is created by the caller, passed to one or more calls, and may be
cancelled from any thread. The execution pipeline checks it before sending,
bounds the transport send by its deadline, and turns a cancellation into a
TransportError.
"""

import threading
import time
from typing import Callable, List, Optional


class Context:
    """Cancellation signal with an optional deadline."""

    def __init__(self, timeout: Optional[float] = None):
        """
        :param timeout: seconds from now after which calls using this
            context fail with a timeout; None means no deadline
        """
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must be non-negative, got {timeout}")
        self._deadline = None if timeout is None else time.monotonic() + timeout
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel every call using this context. Safe to call repeatedly."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback run (on the cancelling thread) when the context
        is cancelled. Runs immediately if it already is.

        :return: function that unregisters the callback
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def remove() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return remove
        callback()
        return lambda: None
