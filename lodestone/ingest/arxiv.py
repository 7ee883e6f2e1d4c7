"""Recent papers from the arXiv Atom query API."""

from __future__ import annotations

import time
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable
from urllib.parse import urlencode

from .cache import cache_path, load_cache, save_cache
from .retry import default_retry_config, retry_fetch
from .source import Signal, _parse_time, http_get, signal_id

NAME = "arxiv"
DEFAULT_BASE_URL = "https://export.arxiv.org"
DEFAULT_QUERY = "cat:cs.AI"
DEFAULT_MAX_RESULTS = 30
DEFAULT_TIMEOUT = 15.0

ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"
_FEED_TAG = f"{{{ATOM_NAMESPACE}}}feed"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _text(element: ET.Element, name: str) -> str:
    found = _children(element, name)
    return "".join(found[0].itertext()) if found else ""


def _entry_to_signal(entry: ET.Element, now: datetime) -> Signal:
    tags = [
        c.get("term", "") for c in _children(entry, "category") if c.get("term", "")
    ]
    id_url = _text(entry, "id").strip()
    published = _parse_time(_text(entry, "published").strip() or None)
    return Signal(
        id=signal_id(NAME, id_url),
        source=NAME,
        url=id_url,
        title=_text(entry, "title").strip(),
        summary=_text(entry, "summary").strip(),
        captured_at=now,
        topic_tags=tags,
        last_commit=published.astimezone(timezone.utc) if published else None,
    )


def parse_atom(data: bytes | str, now: datetime) -> list[Signal]:
    """Turn an arXiv Atom feed into signals captured at *now*."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ValueError(f"decode atom: {exc}") from exc
    if root.tag != _FEED_TAG:
        raise ValueError(f"decode atom: expected Atom feed, got {root.tag!r}")
    try:
        return [_entry_to_signal(entry, now) for entry in _children(root, "entry")]
    except ValueError as exc:
        raise ValueError(f"decode atom: {exc}") from exc


class ArXiv:
    """Queries arXiv for the newest submissions matching a search query."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        cache_dir: str | Path | None = None,
        query: str = DEFAULT_QUERY,
        max_results: int = DEFAULT_MAX_RESULTS,
        timeout: float = DEFAULT_TIMEOUT,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.base_url = base_url
        self.cache_dir = cache_dir
        self.query = query
        self.max_results = max_results
        self.timeout = timeout
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep or time.sleep

    def name(self) -> str:
        return NAME

    def fetch(self) -> list[Signal]:
        """Return today's papers, from the cache when present."""
        now = self._now()
        path = cache_path(self.cache_dir, NAME, now)
        cached = load_cache(path)
        if cached is not None:
            return cached
        signals = retry_fetch(
            default_retry_config(self._sleep), NAME, lambda: self._fetch_once(now)
        )
        save_cache(path, signals)
        return signals

    def _fetch_once(self, now: datetime) -> list[Signal]:
        params = {
            "max_results": str(self.max_results),
            "search_query": self.query,
            "sortBy": "submittedDate",
            "sortOrder": "descending",
        }
        url = f"{self.base_url}/api/query?{urlencode(params)}"
        body = http_get(
            url,
            headers={"Accept": "application/atom+xml"},
            timeout=self.timeout,
            source=NAME,
        )
        return parse_atom(body, now)