from typing import Any

from .errors import DecodingError, InvalidConfiguration, SourceUnavailable, TailError
from .reader import TailReader, TailStream
from .watch.byte_source import buffer_source, file_source
from .watch.subscription import Subscription

__all__ = [
    "DecodingError",
    "InvalidConfiguration",
    "SourceUnavailable",
    "Subscription",
    "TailError",
    "TailReader",
    "TailStream",
    "buffer_source",
    "file_source",
    "main",
]


def main(argv: Any = None) -> int:
    # Lazy import: library users never pay for argparse/signal setup.
    from .cli import main as _main

    return int(_main(argv))
