"""Popular AI-related packages from the npm registry search."""

from __future__ import annotations

import json
import math
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
from urllib.parse import urlencode

from .cache import cache_path, load_cache, save_cache
from .retry import default_retry_config, retry_fetch
from .source import Signal, _parse_time, http_get, signal_id

NAME = "npm_trending"
DEFAULT_BASE_URL = "https://registry.npmjs.org"
DEFAULT_KEYWORDS = "ai,llm,mcp,agent"
DEFAULT_SIZE = 20
DEFAULT_TIMEOUT = 15.0


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _object_to_signal(obj: dict[str, Any], now: datetime) -> Signal:
    package = obj.get("package") or {}
    final = float((obj.get("score") or {}).get("final") or 0.0)
    name = package.get("name") or ""
    url = (package.get("links") or {}).get("npm") or "https://www.npmjs.com/package/" + name
    published = _parse_time(package.get("date"))
    return Signal(
        id=signal_id(NAME, url),
        source=NAME,
        url=url,
        title=name,
        summary=package.get("description") or "",
        captured_at=now,
        language="JavaScript",
        stars=_round_half_away(final * 1000),
        topic_tags=list(package.get("keywords") or []),
        maintenance_score=final,
        last_commit=published.astimezone(timezone.utc) if published else None,
    )


class NPMTrending:
    """Searches the npm registry for popular packages carrying the given keywords."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        cache_dir: str | Path | None = None,
        keywords: str = DEFAULT_KEYWORDS,
        size: int = DEFAULT_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.base_url = base_url
        self.cache_dir = cache_dir
        self.keywords = keywords
        self.size = size
        self.timeout = timeout
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep or time.sleep

    def name(self) -> str:
        return NAME

    def fetch(self) -> list[Signal]:
        """Return today's packages, from the cache when present."""
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

    def build_query(self) -> str:
        """Turn the comma-separated keywords into a `keywords:x keywords:y` search text."""
        parts = [f"keywords:{k.strip()}" for k in self.keywords.split(",") if k.strip()]
        return " ".join(parts)

    def _fetch_once(self, now: datetime) -> list[Signal]:
        params = {
            "popularity": "1.0",
            "size": str(self.size),
            "text": self.build_query(),
        }
        url = f"{self.base_url}/-/v1/search?{urlencode(params)}"
        body = http_get(
            url, headers={"Accept": "application/json"}, timeout=self.timeout, source=NAME
        )
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise ValueError(f"decode response: {exc}") from exc
        return [_object_to_signal(obj, now) for obj in payload.get("objects") or []]