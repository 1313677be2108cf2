from __future__ import annotations

from typing import Dict


def build_session_status(
    *,
    target: str,
    state: str,
    cursor: int,
    pending_bytes: int,
    lines_emitted: int,
    truncations: int,
    poll_interval_s: float,
    ttl_s: float,
    last_error: str,
) -> Dict[str, object]:
    """
    Build the status payload of one following session.

    Notes:
    - Pure: no IO, no locks. Callers pass a snapshot of the session counters.
    - state is one of: starting, active, expired, cancelled, failed.
    """
    return {
        "target": str(target or ""),
        "state": str(state or ""),
        "cursor": int(cursor or 0),
        "pending_bytes": int(pending_bytes or 0),
        "lines_emitted": int(lines_emitted or 0),
        "truncations": int(truncations or 0),
        "poll_interval_s": float(poll_interval_s or 0.0),
        "ttl_s": float(ttl_s or 0.0),
        "last_error": str(last_error or ""),
    }
