"""Structured view of a cycle README.

The README is split once on its level-2 headings into a preamble and an
ordered list of sections. The sections this system owns (task list, task
dependencies, progress tracker) are edited as data and the document is
serialized back; text outside those sections is carried through untouched,
so ``CycleReadme.parse(text).render() == text``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .models import ProgressState
from .progress import mark_task_complete, progress_from_text, recalculate
from .templates import NO_TASKS_PLACEHOLDER, format_hours

TASKS_HEADING = re.compile(r"^## Tasks \((\d+) total\)\s*$")
DEPENDENCIES_HEADING = "## Task Dependencies"
PROGRESS_HEADING = "## Progress Tracker"
SESSION_LOG_HEADING = "### Session Log"

_ESTIMATED_HOURS = re.compile(r"\*\*Estimated Hours\*\*: (\d+(?:\.\d+)?) hours")
_TASK_ENTRY = re.compile(r"^- \[([x ])\] \*\*\[(\d{3})\]")
_TABLE_DIVIDER = re.compile(r"^\|\s*-{3,}")
_NOT_STARTED_ROW = re.compile(r"^\|\s*-\s*\|\s*-\s*\|\s*-\s*\|\s*Not started\s*\|\s*$")


@dataclass(slots=True)
class Section:
    """A level-2 heading and the lines up to the next one."""

    heading: str
    lines: List[str] = field(default_factory=list)

    @property
    def body(self) -> str:
        return "\n".join(self.lines)

    @body.setter
    def body(self, text: str) -> None:
        self.lines = text.split("\n")

    def set_content(self, content: str) -> None:
        """Replace the body with ``content`` framed by blank lines."""
        self.lines = ["", *content.split("\n"), ""]


class CycleReadme:
    """In-memory cycle README with typed accessors for owned sections."""

    def __init__(self, preamble: List[str], sections: List[Section]):
        self.preamble = preamble
        self.sections = sections

    @classmethod
    def parse(cls, text: str) -> "CycleReadme":
        preamble: List[str] = []
        sections: List[Section] = []
        in_fence = False
        for line in text.split("\n"):
            if line.startswith("```"):
                in_fence = not in_fence
            if not in_fence and line.startswith("## "):
                sections.append(Section(heading=line))
            elif sections:
                sections[-1].lines.append(line)
            else:
                preamble.append(line)
        return cls(preamble, sections)

    def render(self) -> str:
        lines = list(self.preamble)
        for section in self.sections:
            lines.append(section.heading)
            lines.extend(section.lines)
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Section lookup
    # ------------------------------------------------------------------

    def find_section(self, heading: str) -> Optional[Section]:
        for section in self.sections:
            if section.heading.strip() == heading:
                return section
        return None

    @property
    def tasks_section(self) -> Optional[Section]:
        for section in self.sections:
            if TASKS_HEADING.match(section.heading):
                return section
        return None

    @property
    def dependencies_section(self) -> Optional[Section]:
        return self.find_section(DEPENDENCIES_HEADING)

    @property
    def progress_section(self) -> Optional[Section]:
        for section in self.sections:
            if section.heading.startswith(PROGRESS_HEADING):
                return section
        return None

    @property
    def has_task_list(self) -> bool:
        return self.tasks_section is not None

    # ------------------------------------------------------------------
    # Header fields
    # ------------------------------------------------------------------

    @property
    def task_count(self) -> int:
        section = self.tasks_section
        if section is None:
            return 0
        return int(TASKS_HEADING.match(section.heading).group(1))

    @task_count.setter
    def task_count(self, value: int) -> None:
        section = self.tasks_section
        if section is None:
            raise ValueError("Cycle README has no '## Tasks (N total)' section")
        section.heading = f"## Tasks ({value} total)"

    @property
    def estimated_hours(self) -> Optional[float]:
        for line in self.preamble:
            match = _ESTIMATED_HOURS.search(line)
            if match:
                return float(match.group(1))
        return None

    @estimated_hours.setter
    def estimated_hours(self, hours: float) -> None:
        replacement = f"**Estimated Hours**: {format_hours(hours)} hours"
        for index, line in enumerate(self.preamble):
            if _ESTIMATED_HOURS.search(line):
                self.preamble[index] = _ESTIMATED_HOURS.sub(lambda _: replacement, line, count=1)
                return

    # ------------------------------------------------------------------
    # Task list
    # ------------------------------------------------------------------

    def task_entries(self) -> List[tuple[str, bool]]:
        """``(number, completed)`` for every task-list entry, in order."""
        section = self.tasks_section
        if section is None:
            return []
        entries = []
        for line in section.lines:
            match = _TASK_ENTRY.match(line)
            if match:
                entries.append((match.group(2), match.group(1) == "x"))
        return entries

    def completed_task_numbers(self) -> Set[str]:
        return {number for number, completed in self.task_entries() if completed}

    def add_task_entry(self, number: str, file_name: str, title: str, hours: float) -> None:
        """Append a pending entry to the task list and refresh the task count."""
        section = self.tasks_section
        if section is None:
            raise ValueError("Cycle README has no '## Tasks (N total)' section")

        entry = f"- [ ] **[{number}](./{file_name})** - {title} ({format_hours(hours)}h)"
        placeholder = [i for i, line in enumerate(section.lines) if line.strip() == NO_TASKS_PLACEHOLDER]
        if placeholder:
            section.lines[placeholder[0]] = entry
        else:
            content_end = len(section.lines)
            while content_end > 0 and not section.lines[content_end - 1].strip():
                content_end -= 1
            if content_end == 0:
                section.lines[0:0] = ["", entry]
            else:
                section.lines.insert(content_end, entry)

        self.task_count = len(self.task_entries())

    def mark_task_complete(self, number: str) -> bool:
        """Check off a task; False when it is missing or already complete."""
        section = self.tasks_section
        if section is None:
            return False
        updated, flipped = mark_task_complete(section.body, number)
        if not flipped:
            return False
        section.body = updated

        dependencies = self.dependencies_section
        if dependencies is not None:
            dependencies.body = dependencies.body.replace(f"- [ ] [{number}](", f"- [x] [{number}](")
        return True

    # ------------------------------------------------------------------
    # Dependencies and progress
    # ------------------------------------------------------------------

    def set_dependency_section(self, content: str) -> None:
        """Replace the dependency section, inserting it before the tracker if absent."""
        section = self.dependencies_section
        if section is None:
            section = Section(heading=DEPENDENCIES_HEADING)
            anchor = self.progress_section
            if anchor is not None:
                position = self.sections.index(anchor)
            elif self.tasks_section is not None:
                position = self.sections.index(self.tasks_section) + 1
            else:
                position = len(self.sections)
            self.sections.insert(position, section)
        section.set_content(content)

    def current_progress(self) -> ProgressState:
        """Progress counted over the task list only."""
        section = self.tasks_section
        return progress_from_text(section.body if section is not None else self.render())

    def recalculate_progress(self) -> ProgressState:
        """Recount task-list markers and rewrite the tracker's summary and bar."""
        section = self.progress_section
        if section is None:
            return self.current_progress()
        tasks = self.tasks_section
        section.body, state = recalculate(section.body, tasks.body if tasks is not None else self.render())
        return state

    # ------------------------------------------------------------------
    # Session log
    # ------------------------------------------------------------------

    def log_session(
        self,
        session_date: str,
        duration: str,
        task_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> bool:
        """Add a session-log row, newest first. False when there is no log table."""
        row = f"| {session_date} | {duration} | {task_number or '-'} | {notes or '-'} |"
        for section in self.sections:
            try:
                start = next(i for i, line in enumerate(section.lines) if line.strip() == SESSION_LOG_HEADING)
            except StopIteration:
                continue
            for index in range(start + 1, len(section.lines)):
                line = section.lines[index]
                if _NOT_STARTED_ROW.match(line):
                    section.lines[index] = row
                    return True
                if _TABLE_DIVIDER.match(line):
                    if index + 1 < len(section.lines) and _NOT_STARTED_ROW.match(section.lines[index + 1]):
                        section.lines[index + 1] = row
                    else:
                        section.lines.insert(index + 1, row)
                    return True
            return False
        return False
