from typing import List, Tuple

from ..errors import DecodingError


class LineSplitter:
    """
    Turn appended bytes into complete, terminator-stripped lines.

    Notes:
    - Terminators are b"\\r\\n" and a bare b"\\n". A lone b"\\r" is ordinary data.
    - Bytes after the last terminator stay in the pending fragment and are only
      emitted once a later chunk terminates them, so a line that is still being
      written is never surfaced early.
    - One splitter belongs to one session.
    """

    def __init__(self, encoding: str = "utf-8", errors: str = "strict") -> None:
        self._encoding = str(encoding or "utf-8")
        self._errors = str(errors or "strict")
        self._pending = b""

    @property
    def pending(self) -> bytes:
        return self._pending

    def reset(self) -> None:
        self._pending = b""

    def extract(self, new_bytes: bytes) -> Tuple[List[str], bytes]:
        buf = self._pending + bytes(new_bytes or b"")
        parts = buf.split(b"\n")
        # The last element is whatever follows the final terminator (maybe b"").
        self._pending = parts.pop()
        lines: List[str] = []
        for raw in parts:
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            try:
                lines.append(raw.decode(self._encoding, self._errors))
            except UnicodeDecodeError as e:
                # Lines after the bad one in this chunk are dropped with the session.
                raise DecodingError(
                    f"cannot decode line as {self._encoding}: {e.reason} at byte {e.start}",
                    raw=raw,
                    lines=lines,
                ) from e
        return lines, self._pending
