"""Thin wrapper around the git and GitHub CLI executables.

Commands run synchronously in the workspace root with no retry and no
timeout; a non-zero exit raises :class:`GitCommandError` carrying the
command's stderr.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Sequence

logger = logging.getLogger("cycles.git")

PROTECTED_BRANCHES = ("main", "master")


class GitCommandError(RuntimeError):
    """A git or gh invocation failed or the executable is missing."""

    def __init__(self, command: Sequence[str], message: str):
        self.command = list(command)
        super().__init__(message)


class GitClient:
    """Run version-control commands for one workspace."""

    def __init__(self, cwd: Path | str):
        self.cwd = Path(cwd)

    def _run(self, command: List[str]) -> str:
        logger.info(f"Running: {' '.join(command[:3])}")
        try:
            completed = subprocess.run(
                command,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise GitCommandError(command, f"{command[0]} executable not found") from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip() or f"exit status {e.returncode}"
            raise GitCommandError(command, f"`{' '.join(command[:2])}` failed: {detail}") from e
        return completed.stdout

    def stage_all(self) -> None:
        self._run(["git", "add", "."])

    def commit(self, message: str) -> None:
        self._run(["git", "commit", "-m", message])

    def current_branch(self) -> str:
        return self._run(["git", "rev-parse", "--abbrev-ref", "HEAD"]).strip()

    def push(self, branch: str) -> None:
        self._run(["git", "push", "-u", "origin", branch])

    def create_pull_request(self, title: str, body: str, base: str = "main") -> str:
        """Open a PR with the GitHub CLI and return its output (usually the URL)."""
        return self._run(["gh", "pr", "create", "--title", title, "--body", body, "--base", base]).strip()
