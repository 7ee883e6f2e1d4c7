"""Append-only decision log stored as JSON lines."""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

DEFAULT_FILENAME = "decisions.log"

_ZERO_TIME = "0001-01-01T00:00:00Z"
_RFC3339 = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def _format_time(value: datetime | None) -> str:
    if value is None:
        return _ZERO_TIME
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    if not offset:
        return text + "Z"
    return text + value.isoformat()[-6:]


def _parse_time(text: str | None) -> datetime | None:
    if not text or text == _ZERO_TIME:
        return None
    match = _RFC3339.match(text.strip())
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {text!r}")
    day, clock, fraction, zone = match.groups()
    fraction = (fraction or "")[:6].ljust(6, "0")
    zone = "+00:00" if zone in ("Z", "z") else zone
    return datetime.fromisoformat(f"{day}T{clock}.{fraction}{zone}")


@dataclass
class Entry:
    """One recorded command outcome."""

    verb: str
    outcome: str
    args: dict[str, str] | None = None
    detail: str = ""
    timestamp: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ts": _format_time(self.timestamp), "verb": self.verb}
        if self.args:
            data["args"] = dict(self.args)
        data["outcome"] = self.outcome
        if self.detail:
            data["detail"] = self.detail
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entry":
        return cls(
            verb=data.get("verb", ""),
            outcome=data.get("outcome", ""),
            args=dict(data["args"]) if data.get("args") else None,
            detail=data.get("detail", ""),
            timestamp=_parse_time(data.get("ts")),
        )


class AuditLog:
    """Thread-safe appender for the decisions log under a store root."""

    def __init__(self, root: str | Path, now: Callable[[], datetime] | None = None) -> None:
        if not str(root):
            raise ValueError("audit: empty root")
        root = Path(root)
        root.mkdir(parents=True, exist_ok=True)
        self._path = root / DEFAULT_FILENAME
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()

    def record(self, entry: Entry) -> None:
        """Append *entry*, stamping it with the current time if it has none."""
        with self._lock:
            if entry.timestamp is None:
                entry = replace(entry, timestamp=self._now())
            line = json.dumps(entry.to_dict(), ensure_ascii=False)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")

    def path(self) -> Path:
        return self._path