import json
import sys
from datetime import datetime, timezone


_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40, "critical": 50}
_min_level = _LEVELS["info"]


def configure(level: str) -> None:
    """Drop events below ``level`` (LOG_LEVEL names, case-insensitive)."""
    global _min_level
    _min_level = _LEVELS.get((level or "info").strip().lower(), _LEVELS["info"])


def log_event(level: str, event: str, **fields) -> None:
    lvl = level.lower()
    if _LEVELS.get(lvl, _LEVELS["info"]) < _min_level:
        return
    payload = {
        "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
        "level": lvl,
        "event": event,
    }
    payload.update(fields or {})
    try:
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
    except (OSError, ValueError):
        # best-effort logging
        pass
