from typing import List, Optional


class TailError(Exception):
    """Base class for every error surfaced by a following session."""


class SourceUnavailable(TailError):
    """
    The byte source could not be opened or read.

    Not retried: the session that hit it ends with an error notification.
    """

    def __init__(self, message: str, *, target: str = "") -> None:
        super().__init__(message)
        self.target = str(target or "")


class DecodingError(TailError):
    """
    A complete line could not be decoded as text.

    `lines` holds the lines of the same chunk that decoded fine before the bad one,
    `raw` the undecodable line bytes (terminator stripped).
    """

    def __init__(self, message: str, *, raw: bytes = b"", lines: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.raw = bytes(raw or b"")
        self.lines: List[str] = list(lines or [])


class InvalidConfiguration(TailError, ValueError):
    """Non-positive poll interval / ttl or a negative start offset."""
