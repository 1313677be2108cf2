from typing import Optional

from .config import TailConfig
from .errors import InvalidConfiguration
from .watch.byte_source import SourceProvider, Target, resolve_source
from .watch.subscription import CompleteCallback, ErrorCallback, LineCallback, Subscription
from .watch.tail_engine import TailSession


def _positive(name: str, v: float) -> float:
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"{name} must be a number, got {v!r}") from None
    if not (f > 0.0):
        raise InvalidConfiguration(f"{name} must be positive, got {v!r}")
    return f


class TailStream:
    """
    Cold stream of lines appended to one target.

    Nothing is opened until subscribe(); every subscription runs its own session
    (own handle, cursor and pending fragment), even for the same target.
    """

    def __init__(self, reader: "TailReader", provider: SourceProvider, start_offset: Optional[int]) -> None:
        self._reader = reader
        self._provider = provider
        self._start_offset = start_offset

    def subscribe(
        self,
        on_line: LineCallback,
        on_error: Optional[ErrorCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
    ) -> Subscription:
        r = self._reader
        sub = Subscription(on_line, on_error=on_error, on_complete=on_complete)
        session = TailSession(
            self._provider,
            sub,
            start_offset=self._start_offset,
            poll_interval_s=r.poll_interval_s,
            ttl_s=r.ttl_s,
            encoding=r.encoding,
            errors=r.errors,
        )
        return session.start()


class TailReader:
    """
    Entry point: follow(target) -> TailStream, stream.subscribe(...) -> Subscription.

    source_factory is the provider used when follow() gets no target, e.g. a
    buffer_source() in tests.
    """

    def __init__(
        self,
        poll_interval_s: float = 5.0,
        ttl_s: float = 3600.0,
        *,
        source_factory: Optional[SourceProvider] = None,
        encoding: str = "utf-8",
        errors: str = "strict",
    ) -> None:
        self.poll_interval_s = _positive("poll_interval_s", poll_interval_s)
        self.ttl_s = _positive("ttl_s", ttl_s)
        if source_factory is not None and not callable(source_factory):
            raise InvalidConfiguration("source_factory must be callable")
        self.source_factory = source_factory
        TailConfig(encoding=encoding, errors=errors).validate()
        self.encoding = encoding
        self.errors = errors

    @classmethod
    def default(cls, source_factory: Optional[SourceProvider] = None) -> "TailReader":
        return cls(5.0, 3600.0, source_factory=source_factory)

    @classmethod
    def from_config(cls, cfg: TailConfig, source_factory: Optional[SourceProvider] = None) -> "TailReader":
        cfg.validate()
        return cls(
            cfg.poll_interval,
            cfg.ttl_s,
            source_factory=source_factory,
            encoding=cfg.encoding,
            errors=cfg.errors,
        )

    def follow(self, target: Optional[Target] = None, start_offset: Optional[int] = None) -> TailStream:
        """
        Follow a path (or provider). Without start_offset only future appends are
        emitted; with it, following starts at that byte offset.
        """
        if target is None:
            if self.source_factory is None:
                raise InvalidConfiguration("no target given and no source_factory configured")
            provider = self.source_factory
        else:
            provider = resolve_source(target)
        if start_offset is not None:
            try:
                off = int(start_offset)
            except (TypeError, ValueError):
                raise InvalidConfiguration(f"start_offset must be an integer, got {start_offset!r}") from None
            if isinstance(start_offset, bool) or off < 0:
                raise InvalidConfiguration(f"start_offset must be >= 0, got {start_offset!r}")
            start_offset = off
        return TailStream(self, provider, start_offset)
