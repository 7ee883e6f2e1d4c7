"""Per-day JSON cache of fetched signals."""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .source import Signal


def cache_path(cache_dir: str | Path | None, source: str, now: datetime) -> Path | None:
    """Return the cache file for *source* on the day of *now*, or None without a cache dir."""
    if not cache_dir:
        return None
    return Path(cache_dir) / f"{source}-{now:%Y-%m-%d}.json"


def load_cache(path: str | Path | None) -> list[Signal] | None:
    """Return the cached signals, or None when there is no cache file."""
    if path is None:
        return None
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    data = json.loads(raw)
    return [Signal.from_dict(item) for item in data or []]


def save_cache(path: str | Path | None, signals: Iterable[Signal]) -> None:
    """Write *signals* atomically to *path*; does nothing without a path."""
    if path is None:
        return
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps([s.to_dict() for s in signals], indent=2, ensure_ascii=False)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".tmp.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise