"""
Byte source providers.

A provider is a zero-argument callable returning a fresh handle. A handle exposes:

  - current_length() -> int
  - read_range(start, length) -> bytes
  - close()

Every open/read failure is raised as SourceUnavailable. The engine only relies on
these three calls, so a real file and an in-memory buffer are interchangeable.
"""

import io
import os
import threading
from pathlib import Path
from typing import Callable, Optional, Union

from ..errors import InvalidConfiguration, SourceUnavailable

SourceProvider = Callable[[], "SourceHandle"]
Target = Union[str, "os.PathLike[str]", SourceProvider]


class _FileHandle:
    def __init__(self, path: Path) -> None:
        self._path = path
        try:
            # Plain read-only open: no locks are taken, writers may keep appending.
            self._fh = path.open("rb")
        except OSError as e:
            raise SourceUnavailable(f"cannot open {path}: {e}", target=str(path)) from e

    def current_length(self) -> int:
        try:
            return int(os.fstat(self._fh.fileno()).st_size)
        except (OSError, ValueError) as e:
            raise SourceUnavailable(f"cannot stat {self._path}: {e}", target=str(self._path)) from e

    def read_range(self, start: int, length: int) -> bytes:
        try:
            self._fh.seek(int(start))
            return self._fh.read(int(length))
        except (OSError, ValueError) as e:
            raise SourceUnavailable(f"cannot read {self._path}: {e}", target=str(self._path)) from e

    def close(self) -> None:
        self._fh.close()

    def __repr__(self) -> str:
        return f"<file source {self._path}>"


class _BufferHandle:
    def __init__(self, buf: Union[bytearray, io.BytesIO], lock: threading.Lock) -> None:
        self._buf = buf
        self._lock = lock
        self._closed = False
        # BytesIO contents taken by the last current_length(); read_range() slices it.
        self._snapshot = b""

    def _snapshot_len(self) -> int:
        buf = self._buf
        if isinstance(buf, io.BytesIO):
            # One getvalue() per poll. A getbuffer() view would make an unlocked
            # writer's next write fail with BufferError while it is alive.
            self._snapshot = buf.getvalue()
            return len(self._snapshot)
        return len(buf)

    def current_length(self) -> int:
        if self._closed:
            raise SourceUnavailable("buffer source handle is closed")
        try:
            with self._lock:
                return int(self._snapshot_len())
        except ValueError as e:
            # BytesIO closed by its owner.
            raise SourceUnavailable(f"buffer unavailable: {e}") from e

    def read_range(self, start: int, length: int) -> bytes:
        if self._closed:
            raise SourceUnavailable("buffer source handle is closed")
        s = int(start)
        e = s + int(length)
        try:
            with self._lock:
                buf = self._buf
                if isinstance(buf, io.BytesIO):
                    if e > len(self._snapshot):
                        self._snapshot = buf.getvalue()
                    return self._snapshot[s:e]
                return bytes(buf[s:e])
        except ValueError as err:
            raise SourceUnavailable(f"buffer unavailable: {err}") from err

    def close(self) -> None:
        # The buffer belongs to the caller; only this handle is retired.
        self._closed = True

    def __repr__(self) -> str:
        return "<buffer source>"


SourceHandle = Union[_FileHandle, _BufferHandle]


def file_source(path: Union[str, "os.PathLike[str]"]) -> SourceProvider:
    p = Path(path).expanduser()

    def _open() -> _FileHandle:
        return _FileHandle(p)

    _open.target = str(p)  # type: ignore[attr-defined]
    return _open


def buffer_source(buf: Union[bytearray, io.BytesIO], lock: Optional["threading.Lock"] = None) -> SourceProvider:
    """
    Provider over a caller-owned growable buffer (tests, in-process producers).

    Writers appending to a bytearray from another thread should share `lock`.
    BytesIO writers need no lock for the engine to see a consistent length.
    """
    if not isinstance(buf, (bytearray, io.BytesIO)):
        raise TypeError(f"buffer_source expects bytearray or BytesIO, got {type(buf).__name__}")
    lk = lock if lock is not None else threading.Lock()

    def _open() -> _BufferHandle:
        return _BufferHandle(buf, lk)

    _open.target = "<buffer>"  # type: ignore[attr-defined]
    return _open


def resolve_source(target: Target) -> SourceProvider:
    """Accept a path or an already-built provider callable."""
    if callable(target):
        return target
    if isinstance(target, (str, os.PathLike)):
        if not str(target):
            raise InvalidConfiguration("empty target path")
        return file_source(target)
    raise TypeError(f"unsupported tail target: {target!r}")


def describe_target(provider: SourceProvider) -> str:
    return str(getattr(provider, "target", "") or getattr(provider, "__name__", "") or repr(provider))
