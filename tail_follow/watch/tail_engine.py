import logging
import threading
from contextlib import closing
from typing import Dict, Optional

from ..errors import DecodingError, SourceUnavailable, TailError
from .byte_source import SourceProvider, describe_target
from .lifetime import LifetimeController
from .line_splitter import LineSplitter
from .session_status import build_session_status
from .subscription import Subscription

logger = logging.getLogger("tail_follow.watch.tail_engine")


class TailSession:
    """
    Poll loop of one following session.

    Each session owns its source handle, cursor, line splitter and lifetime timer;
    nothing is shared with other sessions on the same target.

    Per tick:
      - length < cursor : source was truncated/rotated, restart from offset 0
      - length == cursor: nothing new
      - length > cursor : read [cursor, length), split, deliver, advance
    """

    def __init__(
        self,
        provider: SourceProvider,
        subscription: Subscription,
        *,
        start_offset: Optional[int],
        poll_interval_s: float,
        ttl_s: float,
        encoding: str = "utf-8",
        errors: str = "strict",
    ) -> None:
        self._provider = provider
        self._sub = subscription
        self._start_offset = None if start_offset is None else int(start_offset)
        self._poll_interval_s = float(poll_interval_s)
        self._splitter = LineSplitter(encoding=encoding, errors=errors)
        # Raises InvalidConfiguration before any thread exists.
        self._lifetime = LifetimeController(ttl_s, on_expire=subscription._stop_event.set)
        self._target = describe_target(provider)

        self._cursor = 0
        self._lines_emitted = 0
        self._truncations = 0
        self._state = "starting"
        self._last_error = ""
        self._thread: Optional[threading.Thread] = None
        self._handle = None
        self._open_error: Optional[BaseException] = None

    @property
    def cursor(self) -> int:
        return self._cursor

    def start(self) -> Subscription:
        # Open and seed the cursor on the caller's thread: appends made right after
        # subscribe() returns are already past the start point.
        self._open_error = self._open()
        t = threading.Thread(target=self.run, name=f"tail-follow:{self._target}", daemon=True)
        self._thread = t
        self._sub._attach(t, self.status)
        self._lifetime.arm()
        t.start()
        return self._sub

    def status(self) -> Dict[str, object]:
        return build_session_status(
            target=self._target,
            state=self._state,
            cursor=self._cursor,
            pending_bytes=len(self._splitter.pending),
            lines_emitted=self._lines_emitted,
            truncations=self._truncations,
            poll_interval_s=self._poll_interval_s,
            ttl_s=self._lifetime.ttl_s,
            last_error=self._last_error,
        )

    def run(self) -> None:
        try:
            err = self._follow()
            if err is not None:
                self._state = "failed"
                self._last_error = str(err)
                logger.warning("tail session %s failed: %s", self._target, err)
                self._sub._deliver_error(err)
            else:
                logger.debug("tail session %s ended (%s)", self._target, self._state)
                self._sub._deliver_complete()
        finally:
            self._lifetime.disarm()
            self._sub._finish()

    def _open(self) -> Optional[BaseException]:
        try:
            handle = self._provider()
        except TailError as e:
            return e
        except OSError as e:
            return SourceUnavailable(f"cannot open {self._target}: {e}", target=self._target)
        try:
            if self._start_offset is None:
                self._cursor = int(handle.current_length())
            else:
                self._cursor = self._start_offset
        except (TailError, OSError) as e:
            handle.close()
            if isinstance(e, TailError):
                return e
            return SourceUnavailable(f"cannot read {self._target}: {e}", target=self._target)
        self._handle = handle
        self._state = "active"
        logger.debug("following %s from offset %d", self._target, self._cursor)
        return None

    def _follow(self) -> Optional[BaseException]:
        """Run the loop with the handle held; return the error that ended it, if any."""
        if self._open_error is not None:
            return self._open_error
        with closing(self._handle):
            try:
                self._loop(self._handle)
            except TailError as e:
                return e
            except OSError as e:
                return SourceUnavailable(f"cannot read {self._target}: {e}", target=self._target)
            except Exception as e:
                # Raised by the observer's on_line.
                return e
            finally:
                self._handle = None
        return None

    def _loop(self, handle) -> None:
        stop = self._sub._stop_event
        while not self._should_stop():
            stop.wait(self._poll_interval_s)
            if self._should_stop():
                break
            self._poll_once(handle)

    def _should_stop(self) -> bool:
        if self._lifetime.expired:
            self._state = "expired"
            return True
        if self._sub.cancelled:
            self._state = "cancelled"
            return True
        return False

    def _poll_once(self, handle) -> None:
        size = int(handle.current_length())
        if size < self._cursor:
            logger.info(
                "%s shrank from %d to %d bytes; re-reading from offset 0",
                self._target,
                self._cursor,
                size,
            )
            self._cursor = 0
            self._splitter.reset()
            self._truncations += 1
        if size == self._cursor:
            return

        data = handle.read_range(self._cursor, size - self._cursor)
        if not data:
            return
        try:
            lines, _rest = self._splitter.extract(data)
        except DecodingError as e:
            self._cursor += len(data)
            for line in e.lines:
                self._emit(line)
            raise
        for line in lines:
            self._emit(line)
        # A short read only advances by what was actually consumed.
        self._cursor += len(data)

    def _emit(self, line: str) -> None:
        self._sub._deliver_line(line)
        self._lines_emitted += 1
