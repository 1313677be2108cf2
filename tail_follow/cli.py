import argparse
import signal
import sys
import threading
from contextlib import closing
from pathlib import Path
from typing import List, Optional

from .config import default_config_home, load_config
from .errors import InvalidConfiguration, TailError
from .reader import TailReader
from .watch.byte_source import file_source
from .watch.tail_offsets import offset_for_last_lines

_MISSING_TARGET = "Please enter the filename to process."


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tail_follow",
        description="Follow a growing file and print every newly appended line.",
    )
    p.add_argument("path", nargs="?", default=None, help="file to follow")
    p.add_argument("--poll-interval", type=float, default=None, help="seconds between growth checks (default: 5)")
    p.add_argument("--ttl-hours", type=float, default=None, help="stop following after this many hours (default: 1)")
    start = p.add_mutually_exclusive_group()
    start.add_argument("--offset", type=int, default=None, help="start at this byte offset instead of the end")
    start.add_argument("-n", "--lines", type=int, default=None, help="replay the last N complete lines first")
    p.add_argument("--encoding", default=None, help="text encoding of the file (default: utf-8)")
    p.add_argument(
        "--errors",
        default=None,
        help="decode error handler: strict|replace|ignore|backslashreplace (default: strict)",
    )
    p.add_argument(
        "--config-home",
        default=str(default_config_home()),
        help="directory holding config.json (default: ./config/tail_follow)",
    )
    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))

    if not args.path:
        print(_MISSING_TARGET, file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 2

    # Persisted config first; explicit flags (any accepted spelling) win.
    cfg = load_config(Path(args.config_home).expanduser())
    if args.poll_interval is not None:
        cfg.poll_interval = float(args.poll_interval)
    if args.ttl_hours is not None:
        cfg.ttl_hours = float(args.ttl_hours)
    if args.encoding is not None:
        cfg.encoding = str(args.encoding)
    if args.errors is not None:
        cfg.errors = str(args.errors).strip().lower()
    if args.lines is not None:
        cfg.replay_last_lines = int(args.lines)

    try:
        reader = TailReader.from_config(cfg)
    except InvalidConfiguration as e:
        print(f"[tail] ERROR: {e}", file=sys.stderr)
        return 2

    path = Path(args.path).expanduser()
    provider = file_source(path)
    start_offset = args.offset
    if start_offset is None and cfg.replay_last_lines > 0:
        try:
            with closing(provider()) as handle:
                start_offset = offset_for_last_lines(handle, last_lines=cfg.replay_last_lines)
        except TailError as e:
            print(f"[tail] ERROR: {e}", file=sys.stderr)
            return 1

    stop_event = threading.Event()
    failure: List[BaseException] = []

    def _on_line(line: str) -> None:
        print(line, flush=True)

    def _on_error(exc: BaseException) -> None:
        failure.append(exc)
        stop_event.set()

    def _handle_signal(_sig, _frame):
        stop_event.set()

    try:
        stream = reader.follow(provider, start_offset=start_offset)
    except InvalidConfiguration as e:
        print(f"[tail] ERROR: {e}", file=sys.stderr)
        return 2

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    print(
        f"[tail] following {path} (poll={cfg.poll_interval}s ttl={cfg.ttl_hours}h)",
        file=sys.stderr,
    )
    sub = stream.subscribe(_on_line, on_error=_on_error, on_complete=stop_event.set)
    try:
        stop_event.wait()
    finally:
        still = sub.cancel(join_timeout_s=max(1.0, cfg.poll_interval))
        if still:
            print("[tail] WARN: session did not stop in time", file=sys.stderr)

    if failure:
        print(f"[tail] ERROR: {failure[0]}", file=sys.stderr)
        return 1
    return 0
