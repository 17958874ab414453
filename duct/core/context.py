"""Cancellable, deadline-bounded context for launch operations."""

import threading
import time
from typing import Optional

from ..services.exceptions import LaunchCancelledError


class Context:
    """Cancellation token threaded through engine calls and readiness checks.

    A context is done once it is cancelled, once its deadline passes, or once
    its parent is done. Readiness checks should poll ``done()`` or sleep with
    ``wait()`` so that they return promptly on cancellation.
    """

    def __init__(self, timeout: Optional[float] = None, parent: Optional["Context"] = None):
        self._event = threading.Event()
        self._parent = parent
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            if self.deadline is None or parent.deadline < self.deadline:
                self.deadline = parent.deadline

    def cancel(self) -> None:
        """Cancel this context and every child derived from it."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether ``cancel()`` was called on this context or an ancestor."""
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``, returning True early if the context is done."""
        end = time.monotonic() + seconds
        while not self.done():
            left = end - time.monotonic()
            if left <= 0:
                return False
            remaining = self.remaining()
            if remaining is not None:
                left = min(left, remaining)
            # Short slices so parent cancellation is noticed.
            if self._event.wait(min(left, 0.05)):
                return True
        return True

    def raise_if_done(self, operation: str = "launch") -> None:
        """Raise LaunchCancelledError if the context is cancelled or expired."""
        if self.cancelled:
            raise LaunchCancelledError(f"{operation} cancelled")
        if self.expired:
            raise LaunchCancelledError(f"{operation} deadline exceeded")
