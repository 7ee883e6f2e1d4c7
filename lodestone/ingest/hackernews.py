"""AI-related top stories from the Hacker News Firebase API."""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

from .cache import cache_path, load_cache, save_cache
from .retry import default_retry_config, retry_fetch
from .source import Signal, http_get, signal_id

NAME = "hackernews"
DEFAULT_BASE_URL = "https://hacker-news.firebaseio.com"
DEFAULT_SCAN_LIMIT = 100
DEFAULT_FINAL_LIMIT = 50
DEFAULT_TIMEOUT = 15.0
DEFAULT_KEYWORDS = ("ai", "llm", "mcp", "claude", "agent")
ITEM_URL_FORMAT = "https://news.ycombinator.com/item?id={}"


def match_keywords(title: str, keywords: Iterable[str]) -> list[str]:
    """Return the sorted, de-duplicated lower-case keywords contained in *title*."""
    lower = title.lower()
    matched = {k for k in keywords if k and k in lower}
    return sorted(matched)


def _item_to_signal(item: dict[str, Any], matched: list[str], now: datetime) -> Signal:
    url = item.get("url") or ITEM_URL_FORMAT.format(int(item.get("id") or 0))
    return Signal(
        id=signal_id(NAME, url),
        source=NAME,
        url=url,
        title=item.get("title") or "",
        captured_at=now,
        stars=int(item.get("score") or 0),
        topic_tags=matched,
    )


class HackerNews:
    """Scans the current top stories and keeps those whose title mentions a keyword."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        cache_dir: str | Path | None = None,
        keywords: Iterable[str] | None = None,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
        final_limit: int = DEFAULT_FINAL_LIMIT,
        timeout: float = DEFAULT_TIMEOUT,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.base_url = base_url
        self.cache_dir = cache_dir
        self.keywords = list(DEFAULT_KEYWORDS if keywords is None else keywords)
        self.scan_limit = scan_limit
        self.final_limit = final_limit
        self.timeout = timeout
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep or time.sleep

    def name(self) -> str:
        return NAME

    def fetch(self) -> list[Signal]:
        """Return today's matching stories, from the cache when present."""
        now = self._now()
        path = cache_path(self.cache_dir, NAME, now)
        cached = load_cache(path)
        if cached is not None:
            return cached

        top_ids = list(self._request(f"{self.base_url}/v0/topstories.json") or [])
        keywords = [k.lower() for k in self.keywords]

        signals: list[Signal] = []
        for item_id in top_ids[: self.scan_limit]:
            if len(signals) >= self.final_limit:
                break
            item = self._fetch_item(item_id)
            if item is None or item.get("type") != "story" or not item.get("title"):
                continue
            matched = match_keywords(item["title"], keywords)
            if matched:
                signals.append(_item_to_signal(item, matched, now))

        save_cache(path, signals)
        return signals

    def _fetch_item(self, item_id: int) -> dict[str, Any] | None:
        raw = self._request(f"{self.base_url}/v0/item/{item_id}.json")
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ValueError(f"decode item {item_id}: expected an object")
        return raw

    def _request(self, endpoint: str) -> Any:
        return retry_fetch(
            default_retry_config(self._sleep), NAME, lambda: self._get_json(endpoint)
        )

    def _get_json(self, endpoint: str) -> Any:
        body = http_get(
            endpoint,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
            source=NAME,
        )
        if not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ValueError(f"decode body: {exc}") from exc