"""Signal watcher that tears a composition down on SIGINT/SIGTERM."""

import logging
import os
import queue
import signal
import threading
from enum import Enum
from typing import Callable, Dict, Iterable, Optional

from ..services.exceptions import ComposerStateError
from .constants import WATCHER_JOIN_TIMEOUT, WATCHER_THREAD_NAME

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)

_SIGNALLED = "signalled"
_CANCELLED = "cancelled"


class WatcherState(Enum):
    """Lifecycle of a signal watcher."""

    IDLE = "idle"
    ARMED = "armed"
    FIRED = "fired"
    CANCELLED = "cancelled"


class SignalWatcher:
    """Races termination signals against cancellation on a background thread.

    Python only runs signal handlers on the main thread, so the handler does
    the minimum there: it puts the previous handlers back, then posts the
    signal to the watcher thread. The thread blocks on a single queue fed by
    both the handler and ``disarm()``, acts on whichever event arrives first,
    and exits. The action runs at most once per watcher.
    """

    def __init__(
        self,
        action: Callable[[int], None],
        forward: bool = False,
        signals: Iterable[int] = DEFAULT_SIGNALS,
        logger: Optional[logging.Logger] = None,
    ):
        self.action = action
        self.forward = forward
        self.signals = tuple(signals)
        self.logger = logger or logging.getLogger(__name__)
        self.fired_signal: Optional[int] = None
        self._state = WatcherState.IDLE
        self._lock = threading.Lock()
        self._events: "queue.SimpleQueue" = queue.SimpleQueue()
        self._previous: Dict[int, object] = {}
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def arm(self) -> None:
        """Install the signal handlers and start the watcher thread.

        Raises:
            ComposerStateError: If the watcher was armed before, or if called
                off the main thread.
        """
        with self._lock:
            if self._state is not WatcherState.IDLE:
                raise ComposerStateError(f"signal watcher cannot be armed from state {self._state.value}")
            if threading.current_thread() is not threading.main_thread():
                raise ComposerStateError("signal handlers can only be installed from the main thread")

            for signum in self.signals:
                self._previous[signum] = signal.signal(signum, self._handle)

            self._state = WatcherState.ARMED
            self._thread = threading.Thread(target=self._watch, name=WATCHER_THREAD_NAME, daemon=True)
            self._thread.start()

    def disarm(self, timeout: Optional[float] = WATCHER_JOIN_TIMEOUT) -> None:
        """Cancel the watcher without running its action and wait for it to exit.

        Safe to call in any state and from the watcher thread itself.
        """
        with self._lock:
            armed = self._state is WatcherState.ARMED
            if armed:
                self._state = WatcherState.CANCELLED

        if armed:
            if threading.current_thread() is threading.main_thread():
                self._restore_handlers()
            self._events.put((_CANCELLED, None))

        self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the watcher thread to exit."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)

    def _handle(self, signum, frame) -> None:
        # Runs on the main thread between bytecodes; keep it lock-free.
        self._restore_handlers()
        if self._state is WatcherState.ARMED:
            self._events.put((_SIGNALLED, signum))
        else:
            # Disarmed off the main thread: step aside and re-deliver.
            os.kill(os.getpid(), signum)

    def _restore_handlers(self) -> None:
        previous, self._previous = self._previous, {}
        for signum, handler in previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)

    def _watch(self) -> None:
        kind, signum = self._events.get()
        if kind == _CANCELLED:
            return

        with self._lock:
            fire = self._state is WatcherState.ARMED
            if fire:
                self._state = WatcherState.FIRED
                self.fired_signal = signum

        if not fire:
            # Lost the race to disarm(); the handler is gone, so re-deliver.
            os.kill(os.getpid(), signum)
            return

        self.logger.info(f"Signalled ({signal.Signals(signum).name}); will terminate containers now")
        try:
            self.action(signum)
        except Exception as e:
            self.logger.error(f"Teardown after signal failed: {e}")

        if self.forward:
            os.kill(os.getpid(), signum)
