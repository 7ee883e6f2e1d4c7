"""The signal record shared by all sources, and the HTTP helper they use."""

from __future__ import annotations

import hashlib
import re
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol

from .retry import HttpStatusError

SIGNAL_SCHEMA_VERSION = 1

_ZERO_TIME = "0001-01-01T00:00:00Z"
_RFC3339 = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def _format_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    if not value.utcoffset():
        return text + "Z"
    return text + value.isoformat()[-6:]


def _parse_time(text: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp; empty or zero values give None."""
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
class Signal:
    """One external item (repository, story, package, paper, release note)."""

    id: str
    source: str
    url: str
    title: str = ""
    summary: str = ""
    captured_at: datetime | None = None
    language: str = ""
    stars: int = 0
    topic_tags: list[str] = field(default_factory=list)
    license: str = ""
    maintenance_score: float = 0.0
    last_commit: datetime | None = None
    schema_version: int = SIGNAL_SCHEMA_VERSION

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "schema_version": self.schema_version,
            "id": self.id,
            "source": self.source,
            "url": self.url,
            "title": self.title,
            "captured_at": _format_time(self.captured_at),
        }
        optional = {
            "summary": self.summary,
            "language": self.language,
            "stars": self.stars,
            "topic_tags": list(self.topic_tags),
            "license": self.license,
            "maintenance_score": self.maintenance_score,
            "last_commit": _format_time(self.last_commit),
        }
        data.update({key: value for key, value in optional.items() if value})
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Signal":
        return cls(
            id=data.get("id", ""),
            source=data.get("source", ""),
            url=data.get("url", ""),
            title=data.get("title", ""),
            summary=data.get("summary", ""),
            captured_at=_parse_time(data.get("captured_at")),
            language=data.get("language", ""),
            stars=int(data.get("stars") or 0),
            topic_tags=list(data.get("topic_tags") or []),
            license=data.get("license", ""),
            maintenance_score=float(data.get("maintenance_score") or 0.0),
            last_commit=_parse_time(data.get("last_commit")),
            schema_version=int(data.get("schema_version") or SIGNAL_SCHEMA_VERSION),
        )


class Source(Protocol):
    """Anything that can produce signals."""

    def name(self) -> str: ...

    def fetch(self) -> list[Signal]: ...


def signal_id(source: str, url: str) -> str:
    """Stable identifier derived from the source name and URL."""
    digest = hashlib.sha256(f"{source}|{url}".encode("utf-8")).hexdigest()
    return "sha256:" + digest


def http_get(
    url: str,
    headers: Mapping[str, str] | None = None,
    timeout: float = 15.0,
    source: str = "",
) -> bytes:
    """GET *url* and return the body; any status other than 200 raises HttpStatusError."""
    request = urllib.request.Request(url, headers=dict(headers or {}), method="GET")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            status = response.status
            body = response.read()
    except urllib.error.HTTPError as exc:
        try:
            detail = exc.read()
        except OSError:
            detail = b""
        raise HttpStatusError(source, exc.code, detail.decode("utf-8", "replace")) from None
    if status != 200:
        raise HttpStatusError(source, status, body.decode("utf-8", "replace"))
    return body