from .byte_source import buffer_source, file_source, resolve_source
from .lifetime import LifetimeController
from .line_splitter import LineSplitter
from .subscription import Subscription
from .tail_engine import TailSession

__all__ = [
    "LifetimeController",
    "LineSplitter",
    "Subscription",
    "TailSession",
    "buffer_source",
    "file_source",
    "resolve_source",
]
