import logging
import threading
from typing import Callable, Optional

from ..errors import InvalidConfiguration

logger = logging.getLogger("tail_follow.watch.lifetime")


class LifetimeController:
    """
    Single-shot session timer: Active -> Expired, exactly once.

    The expired flag is a threading.Event, so the timer thread's write is visible
    to the session loop without extra locking. It is never cleared.
    """

    def __init__(self, ttl_s: float, on_expire: Optional[Callable[[], None]] = None) -> None:
        try:
            ttl = float(ttl_s)
        except (TypeError, ValueError):
            raise InvalidConfiguration(f"ttl must be a number of seconds, got {ttl_s!r}") from None
        if not (ttl > 0.0):
            raise InvalidConfiguration(f"ttl must be positive, got {ttl_s!r}")
        self._ttl_s = ttl
        self._on_expire = on_expire
        self._expired = threading.Event()
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    @property
    def expired(self) -> bool:
        return self._expired.is_set()

    @property
    def armed(self) -> bool:
        return self._timer is not None

    def arm(self) -> "LifetimeController":
        with self._lock:
            if self._timer is not None:
                raise RuntimeError("lifetime controller is already armed")
            t = threading.Timer(self._ttl_s, self._fire)
            t.daemon = True
            t.name = "tail-follow-ttl"
            self._timer = t
        t.start()
        return self

    def disarm(self) -> None:
        """Stop a pending timer (session ended for another reason). State is left as is."""
        t = self._timer
        if t is not None:
            t.cancel()

    def _fire(self) -> None:
        if self._expired.is_set():
            return
        self._expired.set()
        logger.debug("session lifetime of %.3fs elapsed", self._ttl_s)
        cb = self._on_expire
        if cb is not None:
            cb()
