"""Group tasks into parallel-execution tiers.

Tier 0 holds every task without dependencies; tier k holds the tasks whose
dependencies all sit in tiers 0..k-1. Tasks that can never be placed,
because of a dependency cycle or a reference to a task that does not exist,
are gathered into one final tier flagged ``unresolved`` so the grouping
always terminates and every task appears exactly once.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Set

from .models import DependencyGroup, TaskRecord
from .templates import NO_DEPENDENCIES_PLACEHOLDER

PARALLELIZATION_TIP = (
    "> **Parallelization tip:** Tasks within the same group can be worked on simultaneously "
    "by different team members or agents. Tasks in different groups must be completed sequentially."
)


def group_tasks(records: Sequence[TaskRecord]) -> List[DependencyGroup]:
    """Partition records into ordered dependency tiers, preserving file order."""
    groups: List[DependencyGroup] = []
    placed: Set[str] = set()
    remaining = list(records)

    while remaining:
        frontier = [task for task in remaining if all(dep in placed for dep in task.dependencies)]
        if not frontier:
            groups.append(DependencyGroup(index=len(groups), tasks=remaining, unresolved=True))
            break
        groups.append(DependencyGroup(index=len(groups), tasks=frontier))
        placed.update(task.number for task in frontier)
        remaining = [task for task in remaining if task.number not in placed]

    return groups


def group_label(index: int, count: int) -> str:
    if index == 0:
        return "Start Immediately"
    if index == count - 1 and count > 2:
        return "Final Tasks"
    return f"After Group {index}"


def group_marker(index: int, count: int) -> str:
    if index == 0:
        return "🟢"
    if index == count - 1:
        return "🔴"
    return "🟡"


def unresolved_numbers(groups: Iterable[DependencyGroup]) -> List[str]:
    """Task numbers that landed in the fallback tier."""
    numbers: List[str] = []
    for group in groups:
        if group.unresolved:
            numbers.extend(group.numbers)
    return numbers


def render_task_line(record: TaskRecord, completed: bool = False) -> str:
    mark = "x" if completed else " "
    line = f"- [{mark}] [{record.number}](./{record.file_name}) - {record.title}"
    if record.has_dependencies:
        line += f" - needs {', '.join(record.dependencies)}"
    return line


def render_dependency_section(
    groups: Sequence[DependencyGroup],
    completed: Optional[Set[str]] = None,
) -> str:
    """Render the body of the "Task Dependencies" section.

    ``completed`` holds task numbers already checked off in the task list so
    regenerating the section keeps their markers.
    """
    if not groups:
        return NO_DEPENDENCIES_PLACEHOLDER

    completed = completed or set()
    count = len(groups)
    lines: List[str] = []
    for group in groups:
        lines.append(
            f"**{group_marker(group.index, count)} Group {group.index + 1}** "
            f"({group_label(group.index, count)}):"
        )
        lines.extend(render_task_line(task, task.number in completed) for task in group.tasks)
        lines.append("")

    stuck = unresolved_numbers(groups)
    if stuck:
        lines.append(
            f"> ⚠️ **Unresolved dependencies:** {', '.join(stuck)} "
            "(circular or missing task references); review their \"Must complete first\" lines."
        )
        lines.append("")

    lines.append(PARALLELIZATION_TIP)
    return "\n".join(lines)
