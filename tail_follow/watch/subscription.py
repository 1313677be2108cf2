import logging
import threading
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("tail_follow.watch.subscription")

LineCallback = Callable[[str], Any]
ErrorCallback = Callable[[BaseException], Any]
CompleteCallback = Callable[[], Any]


class Subscription:
    """
    One observer's view of one following session.

    Delivery rules:
    - on_line is called from the session thread, in arrival order.
    - Exactly one terminal notification: on_error (at most once) or on_complete
      (once, on expiry or cancellation). Nothing is delivered after it.
    - cancel() is cooperative: the loop notices it before its next tick.
    """

    def __init__(
        self,
        on_line: LineCallback,
        on_error: Optional[ErrorCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
    ) -> None:
        if not callable(on_line):
            raise TypeError("on_line must be callable")
        self._on_line = on_line
        self._on_error = on_error
        self._on_complete = on_complete

        # Set by cancel() and by the lifetime timer; wakes the session's poll wait.
        self._stop_event = threading.Event()
        self._cancel_requested = threading.Event()
        self._done = threading.Event()
        self._terminal_lock = threading.Lock()
        self._terminated = False
        self._thread: Optional[threading.Thread] = None
        self._status: Optional[Callable[[], Dict[str, object]]] = None

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested.is_set()

    @property
    def done(self) -> bool:
        """True once the session loop exited and its source handle was released."""
        return self._done.is_set()

    def cancel(self, join_timeout_s: Optional[float] = None) -> bool:
        """
        Request the session to stop.

        With join_timeout_s, also wait (bounded) for the session thread.
        Returns True if the thread is still running afterwards.
        """
        self._cancel_requested.set()
        self._stop_event.set()
        t = self._thread
        if join_timeout_s is not None and t is not None and t is not threading.current_thread():
            if t.is_alive():
                t.join(timeout=float(join_timeout_s or 0.0))
        return bool(t is not None and t.is_alive())

    dispose = cancel

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the session to end. Returns True if it did."""
        return self._done.wait(timeout)

    def status(self) -> Dict[str, object]:
        fn = self._status
        if fn is None:
            return {}
        return fn()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: object) -> None:
        self.cancel(join_timeout_s=5.0)

    # -- session side -------------------------------------------------------

    def _attach(self, thread: threading.Thread, status: Callable[[], Dict[str, object]]) -> None:
        self._thread = thread
        self._status = status

    def _deliver_line(self, line: str) -> None:
        # Errors raised by the observer propagate to the session, which ends it.
        if self._terminated:
            return
        self._on_line(line)

    def _deliver_error(self, exc: BaseException) -> bool:
        if not self._claim_terminal():
            return False
        cb = self._on_error
        if cb is None:
            logger.error("tail session failed with no error handler: %s", exc)
            return True
        try:
            cb(exc)
        except Exception:
            logger.exception("on_error callback raised")
        return True

    def _deliver_complete(self) -> bool:
        if not self._claim_terminal():
            return False
        cb = self._on_complete
        if cb is None:
            return True
        try:
            cb()
        except Exception:
            logger.exception("on_complete callback raised")
        return True

    def _claim_terminal(self) -> bool:
        with self._terminal_lock:
            if self._terminated:
                return False
            self._terminated = True
            return True

    def _finish(self) -> None:
        self._done.set()
