"""Progress recalculation from checklist markers.

Only two marker forms count: ``- [x]`` (done) and ``- [ ]`` (pending).
Progress is a pure function of the current markers, so recomputing on an
unchanged document produces byte-identical output.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from .models import ProgressState

_MARKER_PATTERN = re.compile(r"- \[([x ])\]")
_SUMMARY_PATTERN = re.compile(r"\*\*Completed\*\*: \d+/\d+ tasks \(\d+%\)")
_BAR_PATTERN = re.compile(r"\[[^\[\]\n]*\] \d+%")


def count_markers(text: str) -> Tuple[int, int]:
    """Return ``(completed, total)`` checklist marker counts."""
    marks = _MARKER_PATTERN.findall(text)
    return sum(1 for mark in marks if mark == "x"), len(marks)


def compute_progress(completed: int, total: int) -> ProgressState:
    return ProgressState.from_counts(completed, total)


def progress_from_text(text: str) -> ProgressState:
    return compute_progress(*count_markers(text))


def rewrite_progress(text: str, state: ProgressState) -> str:
    """Rewrite the summary and bar fields in place; absent anchors are skipped."""
    text = _SUMMARY_PATTERN.sub(lambda _: state.summary_line(), text, count=1)
    return _BAR_PATTERN.sub(lambda _: state.bar_line(), text, count=1)


def task_entry_pattern(task_number: str, completed: bool) -> re.Pattern:
    """Match the task-list entry ``- [ ] **[NNN]`` (or ``- [x]``) for a task."""
    mark = "x" if completed else " "
    return re.compile(rf"- \[{mark}\] \*\*\[{re.escape(task_number)}\]")


def mark_task_complete(text: str, task_number: str) -> Tuple[str, bool]:
    """Flip the pending task-list marker for a task.

    Returns the new text and whether a pending marker was found. ``False``
    means the task does not exist or is already complete.
    """
    updated, flips = task_entry_pattern(task_number, completed=False).subn(
        f"- [x] **[{task_number}]", text
    )
    return updated, flips > 0


def recalculate(text: str, counted: Optional[str] = None) -> Tuple[str, ProgressState]:
    """Count markers in ``counted`` (default ``text``) and rewrite ``text``'s progress fields."""
    state = progress_from_text(text if counted is None else counted)
    return rewrite_progress(text, state), state
