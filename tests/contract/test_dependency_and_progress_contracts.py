"""
Contract tests for task grouping, progress recalculation and numbering.

These pin down the behavior the cycle README relies on: every task lands in
exactly one dependency group, dependent tasks always sit in later groups,
cycles terminate, and progress is a pure function of checklist markers.
"""

import itertools

import pytest

from cycles_mcp.grouping import group_tasks
from cycles_mcp.models import ProgressState, TaskRecord
from cycles_mcp.numbering import next_number
from cycles_mcp.progress import mark_task_complete, progress_from_text, recalculate

TRACKER = "**Completed**: 0/0 tasks (0%)\n\n```\n[░░░░░░░░░░░░░░░░░░░░] 0%\n```\n"


def _task(number, *dependencies):
    return TaskRecord(number=number, title=f"Task {number}", dependencies=list(dependencies))


ACYCLIC_CASES = [
    [_task("001"), _task("002", "001"), _task("003", "001")],
    [_task("001"), _task("002", "001"), _task("003", "002"), _task("004", "003")],
    [_task("004", "001", "003"), _task("003", "002"), _task("002"), _task("001")],
    [_task("001"), _task("002"), _task("003", "001", "002"), _task("005", "003"), _task("006", "001")],
]


class TestProgressContracts:
    """Contracts for the progress recalculator."""

    def test_recalculation_is_idempotent(self):
        """
        Given: a task list with some checked markers
        When: progress is recalculated twice
        Then: the second pass changes nothing
        """
        text = "- [x] **[001]** a\n- [ ] **[002]** b\n- [ ] **[003]** c\n\n" + TRACKER

        once, first = recalculate(text)
        twice, second = recalculate(once)

        assert once == twice
        assert first == second

    def test_zero_total_is_safe(self):
        """
        Given: no checklist markers
        When: progress is computed
        Then: percentage is 0 and the bar is empty
        """
        state = progress_from_text("no tasks yet")

        assert state.percentage == 0
        assert state.bar == "░" * 20

    @pytest.mark.parametrize("total", range(1, 13))
    def test_bar_always_twenty_glyphs(self, total):
        for completed in range(total + 1):
            assert len(ProgressState.from_counts(completed, total).bar) == 20

    def test_flip_of_completed_task_reports_not_found(self):
        """
        Given: a task whose marker is already checked
        When: it is marked complete again
        Then: the flip reports no match instead of silently succeeding
        """
        text = "- [x] **[001](./001-a.md)** - A (2h)\n"

        updated, found = mark_task_complete(text, "001")

        assert found is False
        assert updated == text


class TestGroupingContracts:
    """Contracts for the dependency grouper."""

    @pytest.mark.parametrize("records", ACYCLIC_CASES + [
        [_task("001", "002"), _task("002", "001"), _task("003")],
        [_task("001", "099"), _task("002", "001"), _task("003")],
    ])
    def test_every_task_exactly_once(self, records):
        groups = group_tasks(records)

        placed = [number for group in groups for number in group.numbers]
        assert sorted(placed) == sorted(record.number for record in records)
        assert len(placed) == len(set(placed))

    @pytest.mark.parametrize("records", ACYCLIC_CASES)
    def test_dependencies_sit_in_earlier_groups(self, records):
        """
        Given: tasks without cycles or dangling references
        When: they are grouped
        Then: each task's group is after every one of its dependencies' groups
        """
        groups = group_tasks(records)
        index_of = {number: group.index for group in groups for number in group.numbers}

        for record in records:
            for dependency in record.dependencies:
                assert index_of[record.number] > index_of[dependency]
        assert not any(group.unresolved for group in groups)

    @pytest.mark.parametrize("order", list(itertools.permutations(["A", "B"])))
    def test_two_task_cycle_terminates_in_one_group(self, order):
        records = {"A": _task("001", "002"), "B": _task("002", "001")}

        groups = group_tasks([records[key] for key in order])

        assert len(groups) == 1
        assert groups[0].unresolved is True
        assert sorted(groups[0].numbers) == ["001", "002"]


class TestNumberingContracts:
    """Contracts for number allocation."""

    def test_next_after_existing(self):
        assert next_number(["01-foo", "02-bar"], 2) == "03"

    def test_first_allocation(self):
        assert next_number([], 2) == "01"


class TestWorkedExample:
    """The three-task example used throughout the cycle documentation."""

    def test_groups_and_progress(self):
        """
        Given: 001 (no deps), 002 and 003 (both need 001)
        When: they are grouped and 001 is then completed
        Then: groups are [[001], [002, 003]] and progress moves from 0% to 33%
        """
        groups = group_tasks([_task("001"), _task("002", "001"), _task("003", "001")])
        assert [group.numbers for group in groups] == [["001"], ["002", "003"]]

        task_list = (
            "- [ ] **[001](./001-a.md)** - A (2h)\n"
            "- [ ] **[002](./002-b.md)** - B (2h)\n"
            "- [ ] **[003](./003-c.md)** - C (2h)\n"
        )
        assert progress_from_text(task_list).bar_line() == "[░░░░░░░░░░░░░░░░░░░░] 0%"

        task_list, found = mark_task_complete(task_list, "001")
        state = progress_from_text(task_list)

        assert found is True
        assert state.summary_line() == "**Completed**: 1/3 tasks (33%)"
        assert state.bar_line() == "[███████░░░░░░░░░░░░░] 33%"
