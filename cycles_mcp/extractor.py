"""Recover task records from task documents.

A task document is recognised by its ``# Task NNN: Title`` heading. Its
dependencies come from the ``**Must complete first:**`` line written by
add-task. Documents without the heading are skipped rather than treated as
errors, and the skip is reported back through :class:`ScanResult`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional

from .models import NO_DEPENDENCIES, ScanResult, TaskRecord
from .workspace import Workspace

logger = logging.getLogger("cycles.extractor")

_HEADING_PATTERN = re.compile(r"# Task (\d{3}): (.+)")
_DEPENDENCY_LINE_PATTERN = re.compile(r"\*\*Must complete first:\*\* (.+)")
_TASK_REFERENCE_PATTERN = re.compile(r"Task (\d{3})")


def parse_dependencies(text: str) -> List[str]:
    """Collect ``Task NNN`` references in order of first appearance."""
    text = text.strip()
    if not text or text == NO_DEPENDENCIES:
        return []
    numbers: List[str] = []
    for number in _TASK_REFERENCE_PATTERN.findall(text):
        if number not in numbers:
            numbers.append(number)
    return numbers


def dependency_text(content: str) -> str:
    """Return the declared dependency text, or the sentinel when absent."""
    match = _DEPENDENCY_LINE_PATTERN.search(content)
    return match.group(1).strip() if match else NO_DEPENDENCIES


def extract_task_record(content: str, file_name: str = "") -> Optional[TaskRecord]:
    """Build a TaskRecord from a task document, or None if it is not one."""
    heading = _HEADING_PATTERN.search(content)
    if not heading:
        return None
    return TaskRecord(
        number=heading.group(1),
        title=heading.group(2).strip(),
        dependencies=parse_dependencies(dependency_text(content)),
        file_name=file_name,
    )


def scan_cycle(workspace: Workspace, cycle_dir: Path) -> ScanResult:
    """Extract records from every task document in a cycle directory."""
    result = ScanResult()
    for name in workspace.task_files(cycle_dir):
        try:
            content = workspace.read_text(Path(cycle_dir) / name)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping {name}: unreadable ({e})")
            result.skipped.append(name)
            continue
        record = extract_task_record(content, name)
        if record is None:
            logger.warning(f"Skipping {name}: no '# Task NNN: title' heading found")
            result.skipped.append(name)
            continue
        result.records.append(record)
    return result
