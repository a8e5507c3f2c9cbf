"""MCP server exposing cycle-based development workflow tools."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from cycles_mcp.cycles_logging import log_error_with_context, setup_logging
from cycles_mcp.templates import TemplateType, load_template
from cycles_mcp.workflow import CycleWorkflow
from cycles_mcp.workspace import CONFIG_FILENAME, Workspace

mcp = FastMCP("cycles-mcp")


ROOT_ENV = "CYCLES_WORKSPACE_ROOT"


def _candidate_bases() -> List[Path]:
    cwd = Path.cwd().resolve()
    return [cwd, *cwd.parents]


def _locate_workspace_root() -> Optional[Path]:
    for base in _candidate_bases():
        if (base / CONFIG_FILENAME).exists():
            return base
    return None


def _resolve_root(root: Optional[str], *, initializing: bool = False) -> Path:
    if root:
        resolved = Path(root).expanduser().resolve()
        if not resolved.exists():
            raise ValueError(f"Provided root '{root}' does not exist.")
        return resolved

    env_root = os.getenv(ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.exists():
            raise ValueError(
                f"Environment variable {ROOT_ENV} points to '{env_root}', which does not exist."
            )
        return env_path

    detected_root = _locate_workspace_root()
    if detected_root:
        return detected_root

    # A fresh repository has no config yet; init-workflow creates it in the cwd.
    if initializing:
        return Path.cwd().resolve()

    raise ValueError(
        "Unable to determine project root automatically. Provide the 'root' argument when calling the tool "
        f"or set the {ROOT_ENV} environment variable."
    )


def _workflow(root: Optional[str], *, initializing: bool = False) -> CycleWorkflow:
    return CycleWorkflow(_resolve_root(root, initializing=initializing))


def _run(root: Optional[str], operation: str, *args, initializing: bool = False, **kwargs) -> str:
    """Call one CycleWorkflow handler; an unresolvable root is reported as text."""
    try:
        workflow = _workflow(root, initializing=initializing)
    except ValueError as e:
        log_error_with_context(e, {"operation": operation, "root": root})
        return f"❌ {e}"
    return getattr(workflow, operation)(*args, **kwargs)


@mcp.tool()
def init_workflow(
    sizing_mode: str,
    cycle_duration_unit: str,
    cycle_duration_value: int,
    hours_per_cycle: float,
    simple_tier: Optional[str] = None,
    difficulty: Optional[str] = None,
    task_duration: Optional[str] = None,
    detail_level: Optional[str] = None,
    project_name: Optional[str] = None,
    root: Optional[str] = None,
) -> str:
    """STEP 1: Initialize the cycle-based workflow in a repository.
    Creates .cycles-config.json, WORKFLOW.md, docs/cycles.md, docs/cycles/ and the PR template.
    sizing_mode is 'simple' (with simple_tier junior|mid|senior) or 'granular'
    (with difficulty, task_duration 0.5h|1h|2h|4h|8h and detail_level high|medium|low)."""

    return _run(
        root,
        "init_workflow",
        initializing=True,
        project_name=project_name,
        sizing_mode=sizing_mode,
        simple_tier=simple_tier,
        difficulty=difficulty,
        task_duration=task_duration,
        detail_level=detail_level,
        cycle_duration_unit=cycle_duration_unit,
        cycle_duration_value=cycle_duration_value,
        hours_per_cycle=hours_per_cycle,
    )


@mcp.tool()
def create_cycle(
    cycle_name: str,
    cycle_description: Optional[str] = None,
    cycle_goal: Optional[str] = None,
    success_criteria: Optional[str] = None,
    deliverables: Optional[str] = None,
    root: Optional[str] = None,
) -> str:
    """STEP 2: Create the next development cycle with its README.
    Prerequisites: workflow initialized via init_workflow."""

    return _run(
        root,
        "create_cycle",
        cycle_name,
        cycle_description=cycle_description,
        cycle_goal=cycle_goal,
        success_criteria=success_criteria,
        deliverables=deliverables,
    )


@mcp.tool()
def add_task(
    cycle_number: str,
    task_title: str,
    task_overview: Optional[str] = None,
    task_steps: Optional[str] = None,
    acceptance_criteria: Optional[str] = None,
    testing_instructions: Optional[str] = None,
    tips: Optional[str] = None,
    troubleshooting: Optional[str] = None,
    next_steps: Optional[str] = None,
    prerequisites: Optional[str] = None,
    dependencies: Optional[str] = None,
    conflicts: Optional[str] = None,
    modified_areas: Optional[str] = None,
    difficulty: Optional[str] = None,
    duration: Optional[str] = None,
    detail_level: Optional[str] = None,
    root: Optional[str] = None,
) -> str:
    """STEP 3: Add a task to a cycle and regroup the cycle's tasks by dependency.
    dependencies names prerequisite tasks, e.g. "Task 001, Task 002"; omit it for a task
    that can start immediately. difficulty, duration and detail_level override the
    configured sizing only when all three are given."""

    return _run(
        root,
        "add_task",
        cycle_number,
        task_title,
        task_overview=task_overview,
        task_steps=task_steps,
        acceptance_criteria=acceptance_criteria,
        testing_instructions=testing_instructions,
        tips=tips,
        troubleshooting=troubleshooting,
        next_steps=next_steps,
        prerequisites=prerequisites,
        dependencies=dependencies,
        conflicts=conflicts,
        modified_areas=modified_areas,
        difficulty=difficulty,
        duration=duration,
        detail_level=detail_level,
    )


@mcp.tool()
def commit_task(
    cycle_number: str,
    message: str,
    body: Optional[str] = None,
    root: Optional[str] = None,
) -> str:
    """Stage all changes and commit them as feat(cycle-NN): <message>."""

    return _run(root, "commit_task", cycle_number, message, body=body)


@mcp.tool()
def push_branch(root: Optional[str] = None) -> str:
    """Push the current feature branch to origin. Refuses main and master."""

    return _run(root, "push_branch")


@mcp.tool()
def create_pr(
    cycle_number: str,
    task_number: str,
    task_title: str,
    changes: List[str],
    acceptance_criteria: List[str],
    notes: Optional[str] = None,
    root: Optional[str] = None,
) -> str:
    """Open a pull request with the GitHub CLI and mark the task complete.
    Falls back to manual instructions with the rendered PR body when gh is unavailable."""

    return _run(
        root,
        "create_pr",
        cycle_number,
        task_number,
        task_title,
        changes,
        acceptance_criteria,
        notes=notes,
    )


@mcp.tool()
def update_progress(
    cycle_number: str,
    task_number: Optional[str] = None,
    session_date: Optional[str] = None,
    session_duration: Optional[str] = None,
    session_notes: Optional[str] = None,
    root: Optional[str] = None,
) -> str:
    """Mark a task complete, recalculate the progress tracker, and log a work session."""

    return _run(
        root,
        "update_progress",
        cycle_number,
        task_number=task_number,
        session_date=session_date,
        session_duration=session_duration,
        session_notes=session_notes,
    )


@mcp.tool()
def cycle_status(cycle_number: str, root: Optional[str] = None) -> str:
    """Report progress, dependency groups and ready tasks for a cycle without modifying it."""

    return _run(root, "cycle_status", cycle_number)


@mcp.resource("template://workflow")
def resource_workflow_template() -> str:
    """Workflow guide written to WORKFLOW.md."""
    return load_template(TemplateType.WORKFLOW)


@mcp.resource("template://cycles")
def resource_cycles_template() -> str:
    """Cycles tracker written to docs/cycles.md."""
    return load_template(TemplateType.CYCLES)


@mcp.resource("template://cycle-readme")
def resource_cycle_readme_template() -> str:
    """README template for a new cycle."""
    return load_template(TemplateType.CYCLE_README)


@mcp.resource("template://task")
def resource_task_template() -> str:
    """Template for an individual task document."""
    return load_template(TemplateType.TASK)


@mcp.resource("template://pr")
def resource_pr_template() -> str:
    """Pull request template."""
    return load_template(TemplateType.PR)


@mcp.resource("cycles://cycles")
def resource_cycles() -> str:
    """Resource view listing the cycles in the detected workspace."""

    try:
        workspace = Workspace(_resolve_root(None))
    except ValueError:
        return f"No project root detected. Launch tools with a 'root' argument or set {ROOT_ENV}."

    cycles = workspace.list_cycles()
    if not cycles:
        return "No cycles have been created yet."

    lines = ["Cycles"]
    for cycle in cycles:
        lines.append("")
        lines.append(f"- {cycle['directory']}: {len(cycle['task_files'])} task(s)")
        progress = cycle.get("progress")
        if progress:
            lines.append(
                f"  Progress: {progress['completed']}/{progress['total']} tasks ({progress['percentage']}%)"
            )
    return "\n".join(lines)


def main() -> None:
    setup_logging()
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
