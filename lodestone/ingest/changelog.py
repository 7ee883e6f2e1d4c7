"""Release notes scraped from vendor changelog pages."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .cache import cache_path, load_cache, save_cache
from .retry import default_retry_config, retry_fetch
from .source import Signal, http_get, signal_id

ANTHROPIC_NAME = "anthropic_changelog"
ANTHROPIC_DEFAULT_URL = "https://docs.anthropic.com/en/release-notes/api"
OPENAI_NAME = "openai_changelog"
OPENAI_DEFAULT_URL = "https://platform.openai.com/docs/changelog"
DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_ENTRIES = 30
USER_AGENT = "lodestone/0.1"

_HEADING_RE = re.compile(
    r"""<h([23])(?:[^>]*?\s+id=["']([^"']+)["'])?[^>]*>(.*?)</h[23]>""",
    re.IGNORECASE | re.DOTALL,
)
_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_ZERO_DATE = "0001-01-01"


@dataclass
class ChangelogEntry:
    """One dated heading found on a changelog page."""

    title: str
    date: datetime | None = None
    slug: str = ""

    def to_signal(self, source: str, base_page: str, now: datetime) -> Signal:
        url = f"{base_page}#{self.slug}" if self.slug else base_page
        return Signal(
            id=signal_id(source, url),
            source=source,
            url=url,
            title=self.title,
            captured_at=now,
            last_commit=self.date,
        )


def strip_tags(text: str) -> str:
    """Replace markup with spaces and collapse whitespace."""
    text = _TAG_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_date(text: str) -> datetime | None:
    """Return the first YYYY-MM-DD date in *text* as UTC midnight, or None."""
    match = _DATE_RE.search(text)
    if match is None:
        return None
    try:
        return datetime.strptime(match.group(1), "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def parse_changelog_html(html: str) -> list[ChangelogEntry]:
    """Collect the h2/h3 headings of a changelog page as entries."""
    entries: list[ChangelogEntry] = []
    for match in _HEADING_RE.finditer(html):
        slug = match.group(2) or ""
        inner = strip_tags(match.group(3))
        if not inner:
            continue
        date = extract_date(inner)
        prefix = date.strftime("%Y-%m-%d") if date else _ZERO_DATE
        title = inner.removeprefix(prefix).strip()
        title = title.strip("·-—:").strip()
        entries.append(ChangelogEntry(title=title or inner, date=date, slug=slug))
    return entries


class ChangelogScraper:
    """Fetches one changelog page and turns its headings into signals."""

    def __init__(
        self,
        name: str,
        page_url: str,
        cache_dir: str | Path | None = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        timeout: float = DEFAULT_TIMEOUT,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._name = name
        self.page_url = page_url
        self.cache_dir = cache_dir
        self.max_entries = max_entries
        self.timeout = timeout
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep or time.sleep

    def name(self) -> str:
        return self._name

    def fetch(self) -> list[Signal]:
        """Return today's entries, from the cache when present."""
        now = self._now()
        path = cache_path(self.cache_dir, self._name, now)
        cached = load_cache(path)
        if cached is not None:
            return cached
        signals = retry_fetch(
            default_retry_config(self._sleep), self._name, lambda: self._fetch_once(now)
        )
        save_cache(path, signals)
        return signals

    def _fetch_once(self, now: datetime) -> list[Signal]:
        body = http_get(
            self.page_url,
            headers={"Accept": "text/html", "User-Agent": USER_AGENT},
            timeout=self.timeout,
            source=self._name,
        )
        entries = parse_changelog_html(body.decode("utf-8", "replace"))
        if len(entries) > self.max_entries:
            entries = entries[: self.max_entries]
        return [e.to_signal(self._name, self.page_url, now) for e in entries]


def anthropic_changelog(**kwargs: Any) -> ChangelogScraper:
    """Scraper for the Anthropic API release notes."""
    kwargs.setdefault("page_url", ANTHROPIC_DEFAULT_URL)
    return ChangelogScraper(ANTHROPIC_NAME, **kwargs)


def openai_changelog(**kwargs: Any) -> ChangelogScraper:
    """Scraper for the OpenAI platform changelog."""
    kwargs.setdefault("page_url", OPENAI_DEFAULT_URL)
    return ChangelogScraper(OPENAI_NAME, **kwargs)