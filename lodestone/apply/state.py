"""Persistent record of applied recommendations, stored as JSON lines."""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from ..ingest.source import _format_time, _parse_time

STATE_FILENAME = "applies.jsonl"

_ZERO_TIME = "0001-01-01T00:00:00Z"


@dataclass
class ApplyRecord:
    """One apply run: the branch it created and the state of its pull request."""

    rec_id: str
    branch: str
    status: str = ""
    pr_number: int = 0
    pr_url: str = ""
    applied_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"rec_id": self.rec_id, "branch": self.branch}
        if self.pr_number:
            data["pr_number"] = self.pr_number
        if self.pr_url:
            data["pr_url"] = self.pr_url
        data["status"] = self.status
        data["applied_at"] = _format_time(self.applied_at) or _ZERO_TIME
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ApplyRecord":
        return cls(
            rec_id=data.get("rec_id", ""),
            branch=data.get("branch", ""),
            status=data.get("status", ""),
            pr_number=int(data.get("pr_number") or 0),
            pr_url=data.get("pr_url", ""),
            applied_at=_parse_time(data.get("applied_at")),
        )


class ApplyState:
    """The `applies.jsonl` file under a store root."""

    def __init__(self, root: str | Path) -> None:
        root = Path(root)
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f"mkdir {root}: {exc}") from exc
        self._path = root / STATE_FILENAME

    def path(self) -> Path:
        return self._path

    def list(self) -> list[ApplyRecord]:
        """Return every recorded apply in file order; a missing file gives none."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        records = []
        for line in text.splitlines():
            try:
                records.append(ApplyRecord.from_dict(json.loads(line)))
            except ValueError as exc:
                raise ValueError(f"decode apply: {exc}") from exc
        return records

    def append(self, record: ApplyRecord) -> None:
        """Append *record*, stamping it with the current time if it has none."""
        if record.applied_at is None:
            record.applied_at = datetime.now(timezone.utc)
        line = json.dumps(record.to_dict(), ensure_ascii=False)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")

    def find_by(self, identifier: str) -> ApplyRecord | None:
        """Return the first apply whose branch or recommendation id is *identifier*."""
        return next(
            (a for a in self.list() if identifier in (a.branch, a.rec_id)), None
        )

    def replace(self, updated: ApplyRecord) -> None:
        """Rewrite the file atomically, replacing every record on *updated*'s branch."""
        records = [
            updated if a.branch == updated.branch else a for a in self.list()
        ]
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=self._path.name + ".tmp."
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                for record in records:
                    handle.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")
            os.replace(tmp_name, self._path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise