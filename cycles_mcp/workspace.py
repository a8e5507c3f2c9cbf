"""Workspace management for the cycles workflow.

This module provides the filesystem side of the workflow: where documents
live under a repository root, reading and writing them, and listing the
cycle and task directories.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from .readme import CycleReadme

logger = logging.getLogger("cycles.workspace")

CONFIG_FILENAME = ".cycles-config.json"
TASK_FILE_PATTERN = re.compile(r"^\d{3}-.*\.md$")
CYCLE_DIR_PATTERN = re.compile(r"^(\d{2})-(.+)$")


class Workspace:
    """Locate and persist workflow documents within a repository."""

    def __init__(self, root: Path | str):
        self.root = Path(root).expanduser().resolve()
        self.docs_dir = self.root / "docs"
        self.cycles_dir = self.docs_dir / "cycles"
        self.github_dir = self.root / ".github"

    # ------------------------------------------------------------------
    # Well-known paths
    # ------------------------------------------------------------------

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def workflow_path(self) -> Path:
        return self.root / "WORKFLOW.md"

    @property
    def cycles_md_path(self) -> Path:
        return self.docs_dir / "cycles.md"

    @property
    def pr_template_path(self) -> Path:
        return self.github_dir / "pull_request_template.md"

    def relative(self, path: Path) -> str:
        """Render a path relative to the root for user-facing messages."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)

    # ------------------------------------------------------------------
    # Document store
    # ------------------------------------------------------------------

    def read_text(self, path: Path) -> str:
        """Read a document; raises FileNotFoundError when it is missing."""
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: Path, content: str) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.debug(f"Wrote {self.relative(path)} ({len(content)} chars)")
        return path

    def ensure_docs_structure(self) -> None:
        self.docs_dir.mkdir(parents=True, exist_ok=True)
        self.cycles_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Directory listing
    # ------------------------------------------------------------------

    def list_names(self, path: Path) -> List[str]:
        """List entry names in a directory, empty when it does not exist."""
        path = Path(path)
        if not path.is_dir():
            return []
        return sorted(entry.name for entry in path.iterdir())

    def find_cycle_dir(self, cycle_number: str) -> Optional[Path]:
        """Find the directory for a cycle number such as "01"."""
        prefix = f"{cycle_number}-"
        for name in self.list_names(self.cycles_dir):
            candidate = self.cycles_dir / name
            if name.startswith(prefix) and candidate.is_dir():
                return candidate
        return None

    def task_files(self, cycle_dir: Path) -> List[str]:
        """Task document names in a cycle, in sorted order."""
        return [name for name in self.list_names(cycle_dir) if TASK_FILE_PATTERN.match(name)]

    def readme_path(self, cycle_dir: Path) -> Path:
        return Path(cycle_dir) / "README.md"

    def list_cycles(self) -> List[Dict[str, Any]]:
        """List all cycles with their README progress, if any."""
        cycles: List[Dict[str, Any]] = []
        for name in self.list_names(self.cycles_dir):
            match = CYCLE_DIR_PATTERN.match(name)
            path = self.cycles_dir / name
            if not match or not path.is_dir():
                continue
            readme = self.readme_path(path)
            progress = None
            if readme.exists():
                progress = CycleReadme.parse(self.read_text(readme)).current_progress().to_dict()
            cycles.append(
                {
                    "cycle_number": match.group(1),
                    "directory": name,
                    "readme_path": str(readme) if readme.exists() else None,
                    "task_files": self.task_files(path),
                    "progress": progress,
                }
            )
        return cycles
