"""Safety gates that must all pass before a recommendation is applied."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable

from ..ingest.source import _format_time
from .state import ApplyRecord

MIN_COMPATIBILITY = 0.85
RATE_LIMIT_WINDOW = timedelta(hours=24)


class Risk(str, Enum):
    LOW = "low"
    MED = "med"
    HIGH = "high"


class Effort(str, Enum):
    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"


@dataclass
class Recommendation:
    """The parts of a scored recommendation the apply flow relies on."""

    id: str = ""
    signal_id: str = ""
    risk: Risk | str = ""
    effort: Effort | str = ""
    compatibility: float = 0.0


@dataclass(frozen=True)
class GateViolation:
    gate: str
    message: str

    def __str__(self) -> str:
        return f'safety gate "{self.gate}": {self.message}'


@dataclass
class GateResult:
    passed: bool = True
    violations: list[GateViolation] = field(default_factory=list)


class GateError(Exception):
    """A safety gate blocked the apply."""

    def __init__(self, message: str, violations: Iterable[GateViolation]) -> None:
        self.violations = list(violations)
        detail = "; ".join(str(v) for v in self.violations)
        super().__init__(f"{message}: {detail}")


def _label(value: Risk | Effort | str) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _window_label(window: timedelta) -> str:
    seconds = int(window.total_seconds())
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h{minutes}m{secs}s"


def check_recommendation(rec: Recommendation) -> GateResult:
    """Only low-risk, extra-small, highly compatible recommendations may be applied."""
    violations = []
    if rec.risk != Risk.LOW:
        violations.append(
            GateViolation("risk", f'risk = "{_label(rec.risk)}", want low')
        )
    if rec.effort != Effort.XS:
        violations.append(
            GateViolation("effort", f'effort = "{_label(rec.effort)}", want XS')
        )
    if rec.compatibility < MIN_COMPATIBILITY:
        violations.append(
            GateViolation(
                "compatibility",
                f"compatibility = {rec.compatibility:.3f}, want >= {MIN_COMPATIBILITY:.2f}",
            )
        )
    return GateResult(passed=not violations, violations=violations)


def check_rate_limit(applies: Iterable[ApplyRecord], now: datetime) -> GateResult:
    """Fail if any apply happened within the rate-limit window before *now*."""
    cutoff = now - RATE_LIMIT_WINDOW
    for record in applies:
        if record.applied_at is not None and record.applied_at > cutoff:
            return GateResult(
                passed=False,
                violations=[
                    GateViolation(
                        "rate_limit",
                        f'apply "{record.rec_id}" from {_format_time(record.applied_at)} '
                        f"is within {_window_label(RATE_LIMIT_WINDOW)}",
                    )
                ],
            )
    return GateResult()


def check_clean_git(status: str) -> GateResult:
    """Pass only when `git status --porcelain` printed nothing."""
    if not status:
        return GateResult()
    return GateResult(
        passed=False,
        violations=[GateViolation("git_clean", f"git status is dirty:\n{status}")],
    )