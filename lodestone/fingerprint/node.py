"""Dependency and framework detection from a Node.js package manifest."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

NODE_FRAMEWORKS = {
    "react": "react",
    "vue": "vue",
    "next": "next",
    "@anthropic-ai/sdk": "anthropic-sdk",
    "svelte": "svelte",
    "@modelcontextprotocol/sdk": "mcp-sdk",
}


def _dependency_map(value: Any, key: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
        raise ValueError(f"package.json: {key} must map names to version strings")
    return value


def parse_package_json(root: str | Path) -> tuple[dict[str, str], list[str]]:
    """Read `package.json` under *root* and return its dependencies and known frameworks.

    Regular dependencies win over dev dependencies of the same name. A missing
    file yields nothing; malformed JSON raises ValueError.
    """
    path = Path(root) / "package.json"
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return {}, []

    manifest = json.loads(raw)
    if not isinstance(manifest, dict):
        raise ValueError("package.json: top level must be an object")

    deps = dict(_dependency_map(manifest.get("dependencies"), "dependencies"))
    for name, version in _dependency_map(
        manifest.get("devDependencies"), "devDependencies"
    ).items():
        deps.setdefault(name, version)

    frameworks = sorted(NODE_FRAMEWORKS[dep] for dep in deps if dep in NODE_FRAMEWORKS)
    return deps, frameworks