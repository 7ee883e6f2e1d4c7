"""Git and GitHub CLI runners used by the apply flow."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Protocol


class CommandError(Exception):
    """An external command was missing or exited unsuccessfully."""


class GitRunner(Protocol):
    def status(self, repo_root: str | Path) -> str: ...

    def create_branch(self, repo_root: str | Path, branch: str) -> None: ...

    def add(self, repo_root: str | Path, *args: str) -> None: ...

    def commit(self, repo_root: str | Path, message: str) -> None: ...

    def push(self, repo_root: str | Path, branch: str) -> None: ...

    def delete_branch_local(self, repo_root: str | Path, branch: str) -> None: ...

    def delete_branch_remote(self, repo_root: str | Path, branch: str) -> None: ...


class PRRunner(Protocol):
    def create_draft_pr(
        self, repo_root: str | Path, branch: str, title: str, body: str
    ) -> tuple[int, str]: ...

    def close_pr(self, repo_root: str | Path, number: int) -> None: ...


def _run(command: list[str], repo_root: str | Path, label: str) -> str:
    try:
        completed = subprocess.run(
            command, cwd=repo_root, capture_output=True, text=True, check=False
        )
    except OSError as exc:
        raise CommandError(f"{label}: {exc}") from exc
    if completed.returncode != 0:
        raise CommandError(
            f"{label}: exit status {completed.returncode} (stderr: {completed.stderr})"
        )
    return completed.stdout


def _git(repo_root: str | Path, *args: str) -> str:
    return _run(["git", *args], repo_root, "git " + " ".join(args))


class RealGit:
    """Runs the `git` binary in the repository."""

    def status(self, repo_root: str | Path) -> str:
        return _git(repo_root, "status", "--porcelain")

    def create_branch(self, repo_root: str | Path, branch: str) -> None:
        _git(repo_root, "switch", "-c", branch)

    def add(self, repo_root: str | Path, *args: str) -> None:
        _git(repo_root, "add", *args)

    def commit(self, repo_root: str | Path, message: str) -> None:
        _git(repo_root, "commit", "-m", message)

    def push(self, repo_root: str | Path, branch: str) -> None:
        _git(repo_root, "push", "-u", "origin", branch)

    def delete_branch_local(self, repo_root: str | Path, branch: str) -> None:
        _git(repo_root, "branch", "-D", branch)

    def delete_branch_remote(self, repo_root: str | Path, branch: str) -> None:
        _git(repo_root, "push", "origin", "--delete", branch)


class RealPR:
    """Opens and closes pull requests with the `gh` CLI."""

    def create_draft_pr(
        self, repo_root: str | Path, branch: str, title: str, body: str
    ) -> tuple[int, str]:
        if shutil.which("gh") is None:
            raise CommandError(
                f"gh CLI not in PATH; branch {branch} ist gepusht, PR bitte manuell öffnen"
            )
        output = _run(
            [
                "gh", "pr", "create", "--draft",
                "--base", "main", "--head", branch,
                "--title", title, "--body", body,
            ],
            repo_root,
            "gh pr create",
        )
        url = output.strip()
        return parse_pr_number(url), url

    def close_pr(self, repo_root: str | Path, number: int) -> None:
        if shutil.which("gh") is None:
            raise CommandError("gh CLI not in PATH")
        _run(
            ["gh", "pr", "close", str(number), "--delete-branch"],
            repo_root,
            "gh pr close",
        )


def parse_pr_number(url: str) -> int:
    """Return the trailing number of a pull-request URL, or 0 if there is none."""
    _, slash, tail = url.rpartition("/")
    if not slash or not tail:
        return 0
    try:
        return int(tail)
    except ValueError:
        return 0