import codecs
import json
import os
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import InvalidConfiguration


_ALLOWED_ERRORS = ("strict", "replace", "ignore", "backslashreplace")


@dataclass
class TailConfig:
    # Seconds between two growth checks.
    poll_interval: float = 5.0
    # Session lifetime; following stops by itself once it elapses.
    ttl_hours: float = 1.0
    encoding: str = "utf-8"
    # Codec error handler for complete lines. "strict" surfaces DecodingError.
    errors: str = "strict"
    # CLI only: replay the last N complete lines before following.
    replay_last_lines: int = 0

    @property
    def ttl_s(self) -> float:
        return float(self.ttl_hours) * 3600.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> "TailConfig":
        if not (float(self.poll_interval) > 0.0):
            raise InvalidConfiguration(f"poll_interval must be positive, got {self.poll_interval!r}")
        if not (float(self.ttl_hours) > 0.0):
            raise InvalidConfiguration(f"ttl_hours must be positive, got {self.ttl_hours!r}")
        try:
            codecs.lookup(self.encoding)
            terminators = ("\n".encode(self.encoding), "\r".encode(self.encoding))
        except (LookupError, UnicodeError):
            raise InvalidConfiguration(f"unknown text encoding: {self.encoding!r}") from None
        # Lines are split on raw b"\n" bytes before decoding.
        if terminators != (b"\n", b"\r"):
            raise InvalidConfiguration(
                f"encoding {self.encoding!r} does not keep line terminators as single ASCII bytes"
            )
        if self.errors not in _ALLOWED_ERRORS:
            raise InvalidConfiguration(f"unsupported errors handler: {self.errors!r}")
        if int(self.replay_last_lines) < 0:
            raise InvalidConfiguration(f"replay_last_lines must be >= 0, got {self.replay_last_lines!r}")
        return self

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TailConfig":
        """
        Build a config from loosely-typed JSON.

        Unparseable values fall back to the defaults; range checks are left to validate().
        """

        def _to_int(v: Any, default: int) -> int:
            try:
                if v is None or isinstance(v, bool):
                    return int(default)
                if isinstance(v, (int, float)):
                    return int(v)
                s = str(v).strip()
                if not s:
                    return int(default)
                try:
                    return int(s)
                except ValueError:
                    return int(float(s))
            except (TypeError, ValueError):
                return int(default)

        def _to_float(v: Any, default: float) -> float:
            try:
                if v is None or isinstance(v, bool):
                    return float(default)
                if isinstance(v, (int, float)):
                    return float(v)
                s = str(v).strip()
                if not s:
                    return float(default)
                return float(s)
            except (TypeError, ValueError):
                return float(default)

        errors = str(d.get("errors") or "strict").strip().lower()
        if errors not in _ALLOWED_ERRORS:
            errors = "strict"
        return TailConfig(
            poll_interval=_to_float(d.get("poll_interval"), 5.0),
            ttl_hours=_to_float(d.get("ttl_hours"), 1.0),
            encoding=str(d.get("encoding") or "utf-8").strip() or "utf-8",
            errors=errors,
            replay_last_lines=max(0, _to_int(d.get("replay_last_lines"), 0)),
        )


def default_config_home() -> Path:
    """
    Where the CLI looks for config.json by default: ./config/tail_follow.

    Pass --config-home to use another directory.
    """
    try:
        return (Path.cwd() / "config" / "tail_follow").resolve()
    except OSError:
        return Path.cwd() / "config" / "tail_follow"


def config_path(config_home: Path) -> Path:
    return config_home / "config.json"


def _try_load_config(config_home: Path) -> Optional[TailConfig]:
    p = config_path(config_home)
    try:
        obj = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(obj, dict):
        return None
    return TailConfig.from_dict(obj)


def load_config(config_home: Path) -> TailConfig:
    cfg = _try_load_config(config_home)
    if cfg is not None:
        return cfg
    return TailConfig()


def save_config(config_home: Path, cfg: TailConfig) -> None:
    p = config_path(config_home)
    p.parent.mkdir(parents=True, exist_ok=True)
    data = json.dumps(cfg.to_dict(), ensure_ascii=False, indent=2) + "\n"
    fd, tmp_path = tempfile.mkstemp(prefix="tail_follow.", suffix=".tmp", dir=str(p.parent))
    os.close(fd)
    try:
        Path(tmp_path).write_text(data, encoding="utf-8")
        Path(tmp_path).replace(p)
    except OSError:
        try:
            Path(tmp_path).unlink()
        except OSError:
            pass
        raise
