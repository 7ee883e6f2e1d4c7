"""Recently active, well-starred repositories from the GitHub search API."""

from __future__ import annotations

import json
import os
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable
from urllib.parse import urlencode

from .cache import cache_path, load_cache, save_cache
from .retry import default_retry_config, retry_fetch
from .source import Signal, _parse_time, http_get, signal_id

NAME = "github_trending"
DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_PER_PAGE = 30
DEFAULT_RECENT_DAYS = 30
DEFAULT_MIN_STARS = 50
DEFAULT_TIMEOUT = 15.0


def _repo_to_signal(repo: dict[str, Any], now: datetime) -> Signal:
    url = repo.get("html_url") or ""
    license_info = repo.get("license") or {}
    pushed = _parse_time(repo.get("pushed_at"))
    return Signal(
        id=signal_id(NAME, url),
        source=NAME,
        url=url,
        title=repo.get("full_name") or "",
        summary=repo.get("description") or "",
        captured_at=now,
        language=repo.get("language") or "",
        stars=int(repo.get("stargazers_count") or 0),
        topic_tags=list(repo.get("topics") or []),
        license=license_info.get("key") or "",
        last_commit=pushed.astimezone(timezone.utc) if pushed else None,
    )


class GithubTrending:
    """Searches GitHub for starred repositories pushed within the recent window."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        cache_dir: str | Path | None = None,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        min_stars: int = DEFAULT_MIN_STARS,
        recent_days: int = DEFAULT_RECENT_DAYS,
        per_page: int = DEFAULT_PER_PAGE,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.base_url = base_url
        self.cache_dir = cache_dir
        self.token = os.environ.get("GITHUB_TOKEN", "") if token is None else token
        self.timeout = timeout
        self.min_stars = min_stars
        self.recent_days = recent_days
        self.per_page = per_page
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep or time.sleep

    def name(self) -> str:
        return NAME

    def fetch(self) -> list[Signal]:
        """Return today's signals, from the cache when present."""
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
        cutoff = (now - timedelta(days=self.recent_days)).strftime("%Y-%m-%d")
        params = {
            "order": "desc",
            "per_page": str(self.per_page),
            "q": f"stars:>={self.min_stars} pushed:>{cutoff}",
            "sort": "stars",
        }
        url = f"{self.base_url}/search/repositories?{urlencode(params)}"
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = "Bearer " + self.token
        body = http_get(url, headers=headers, timeout=self.timeout, source=NAME)
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise ValueError(f"decode response: {exc}") from exc
        return [_repo_to_signal(item, now) for item in payload.get("items") or []]