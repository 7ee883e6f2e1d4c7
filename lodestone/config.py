"""Loading of the optional `.lodestone.yaml` project configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_FILENAME = ".lodestone.yaml"


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or parsed."""


@dataclass
class LodestoneConfig:
    """Thresholds that steer signal ingestion and filtering."""

    min_stars: int = 50
    min_age_days: int = 30
    max_last_commit_age_days: int = 180
    require_license: bool = True


@dataclass
class Config:
    """The project configuration with defaults filled in."""

    goals: list[str] = field(default_factory=list)
    tech_interests: list[str] = field(default_factory=list)
    lodestone: LodestoneConfig = field(default_factory=LodestoneConfig)


def defaults() -> Config:
    """Return the configuration used when no file overrides anything."""
    return Config()


def _string_list(value: Any, key: str, path: Path) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"parse {path}: {key} must be a list of strings")
    return list(value)


def _int_value(value: Any, key: str, path: Path) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"parse {path}: lodestone.{key} must be an integer")
    return value


def _bool_value(value: Any, key: str, path: Path) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"parse {path}: lodestone.{key} must be a boolean")
    return value


def load(path: str | Path) -> Config:
    """Load the configuration at *path*, overlaying set fields onto the defaults.

    A missing or empty file yields the defaults.
    """
    path = Path(path)
    cfg = defaults()
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return cfg
    except OSError as exc:
        raise ConfigError(f"read {path}: {exc}") from exc
    if not raw:
        return cfg

    try:
        overlay = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"parse {path}: {exc}") from exc
    if overlay is None:
        return cfg
    if not isinstance(overlay, dict):
        raise ConfigError(f"parse {path}: top level must be a mapping")

    if overlay.get("goals") is not None:
        cfg.goals = _string_list(overlay["goals"], "goals", path)
    if overlay.get("tech_interests") is not None:
        cfg.tech_interests = _string_list(overlay["tech_interests"], "tech_interests", path)

    block = overlay.get("lodestone")
    if block is None:
        return cfg
    if not isinstance(block, dict):
        raise ConfigError(f"parse {path}: lodestone must be a mapping")

    settings = cfg.lodestone
    for key in ("min_stars", "min_age_days", "max_last_commit_age_days"):
        if block.get(key) is not None:
            setattr(settings, key, _int_value(block[key], key, path))
    if block.get("require_license") is not None:
        settings.require_license = _bool_value(block["require_license"], "require_license", path)
    return cfg