"""Workflow orchestration for the cycles MCP server.

Each public method of :class:`CycleWorkflow` implements one tool. Methods
return a descriptive text result: success messages start with ✅, recoverable
failures with ❌ (or ⚠️ when a manual fallback is offered). Lower layers
raise; the exceptions are logged and turned into text here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .config import load_config, save_config, validate_workflow_initialized
from .cycles_logging import (
    log_cycle_created,
    log_error_with_context,
    log_operation,
    log_performance,
    log_progress_updated,
    log_task_added,
)
from .extractor import parse_dependencies, scan_cycle
from .git import PROTECTED_BRANCHES, GitClient, GitCommandError
from .grouping import group_label, group_tasks, render_dependency_section, unresolved_numbers
from .models import (
    DETAIL_LEVELS,
    NO_CONFLICTS,
    NO_DEPENDENCIES,
    TASK_DURATIONS,
    TIERS,
    CycleConfig,
    CycleDuration,
    DependencyGroup,
    ScanResult,
    TaskSizing,
)
from .numbering import next_number, slugify
from .readme import CycleReadme, Section
from .templates import (
    NO_CYCLES_PLACEHOLDER,
    NO_DEPENDENCIES_PLACEHOLDER,
    NO_TASKS_PLACEHOLDER,
    PR_CHANGES_PLACEHOLDER,
    PR_NOTES_PLACEHOLDER,
    TemplateType,
    close_fences,
    current_date,
    format_hours,
    load_template,
    pad_number,
    render_template,
    unfilled_placeholders,
)
from .workspace import Workspace

logger = logging.getLogger("cycles.workflow")


def parallelization_status(has_dependencies: bool, has_conflicts: bool) -> str:
    if not has_dependencies and not has_conflicts:
        return "✅ Safe to run in parallel with other tasks"
    if has_dependencies and not has_conflicts:
        return "⏳ Must wait for dependencies, but can run in parallel with tasks in same group"
    if not has_dependencies and has_conflicts:
        return "⚠️ Can start immediately but may conflict during merge"
    return "⚠️ Must wait for dependencies and may conflict during merge"


def detailed_content(provided: Optional[str], default: str, detail_level: str) -> str:
    """Shape default step text by detail level; explicit content always wins."""
    if provided:
        return provided
    if detail_level == "high":
        return default + "\n\n_Detailed step-by-step instructions will guide you through this task._"
    if detail_level == "medium":
        return default
    return "_High-level objective defined. Implementation details left to your expertise._"


def _normalize_dependencies(text: Optional[str]) -> str:
    if not text or text.strip().lower() in {"none", NO_DEPENDENCIES.lower()}:
        return NO_DEPENDENCIES
    return text.strip()


def _normalize_conflicts(text: Optional[str]) -> str:
    if not text or text.strip().lower() == "none":
        return NO_CONFLICTS
    return text.strip()


def format_groups(groups: Sequence[DependencyGroup]) -> List[str]:
    """One summary line per group for tool results."""
    count = len(groups)
    return [
        f"- Group {group.index + 1} ({group_label(group.index, count)}): {', '.join(group.numbers)}"
        for group in groups
    ]


class CycleWorkflow:
    """Implements the cycle workflow tools against one workspace root."""

    def __init__(self, root: Path | str, git: Optional[GitClient] = None):
        self.workspace = Workspace(root)
        self.git = git or GitClient(self.workspace.root)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _initialization_error(self) -> Optional[str]:
        validation = validate_workflow_initialized(self.workspace)
        if validation.valid:
            return None
        return validation.describe()

    def _load_readme(self, cycle_dir: Path) -> CycleReadme:
        return CycleReadme.parse(self.workspace.read_text(self.workspace.readme_path(cycle_dir)))

    def _save_readme(self, cycle_dir: Path, readme: CycleReadme) -> Path:
        return self.workspace.write_text(self.workspace.readme_path(cycle_dir), readme.render())

    def _regroup(self, cycle_dir: Path, readme: CycleReadme) -> Tuple[ScanResult, List[DependencyGroup]]:
        """Rebuild the dependency section from the task documents on disk."""
        scan = scan_cycle(self.workspace, cycle_dir)
        groups = group_tasks(scan.records)
        readme.set_dependency_section(render_dependency_section(groups, readme.completed_task_numbers()))
        return scan, groups

    # ------------------------------------------------------------------
    # init-workflow
    # ------------------------------------------------------------------

    @log_performance("init_workflow")
    def init_workflow(
        self,
        project_name: Optional[str] = None,
        sizing_mode: Optional[str] = None,
        simple_tier: Optional[str] = None,
        difficulty: Optional[str] = None,
        task_duration: Optional[str] = None,
        detail_level: Optional[str] = None,
        cycle_duration_unit: Optional[str] = None,
        cycle_duration_value: Optional[int] = None,
        hours_per_cycle: Optional[float] = None,
    ) -> str:
        """Create the configuration and the workflow documents."""
        if load_config(self.workspace):
            return "Workflow already initialized. Edit .cycles-config.json to modify settings."

        if not sizing_mode:
            return "❌ Error: sizing_mode is required. Please specify 'simple' or 'granular'."
        if sizing_mode == "simple" and not simple_tier:
            return (
                "❌ Error: simple_tier is required when sizing_mode is 'simple'. "
                "Please specify 'junior', 'mid', or 'senior'."
            )
        if sizing_mode == "granular":
            for name, value in (
                ("difficulty", difficulty),
                ("task_duration", task_duration),
                ("detail_level", detail_level),
            ):
                if not value:
                    return f"❌ Error: {name} is required when sizing_mode is 'granular'."
        if not cycle_duration_unit:
            return "❌ Error: cycle_duration_unit is required. Please specify 'weeks', 'months', or 'quarters'."
        if not cycle_duration_value:
            return (
                "❌ Error: cycle_duration_value is required. "
                "Please specify how many weeks/months/quarters per cycle."
            )
        if not hours_per_cycle:
            return (
                "❌ Error: hours_per_cycle is required. "
                "Please specify how many hours are available per cycle."
            )

        config = CycleConfig(
            sizing_mode=sizing_mode,
            simple_tier=simple_tier,
            difficulty=difficulty,
            task_duration=task_duration,
            detail_level=detail_level,
            cycle_duration=CycleDuration(unit=cycle_duration_unit, value=cycle_duration_value),
            hours_per_cycle=hours_per_cycle,
        )
        issues = config.validate()
        if issues:
            return "❌ Invalid configuration:\n" + "\n".join(f"  - {issue}" for issue in issues)

        try:
            with log_operation("init_workflow", root=str(self.workspace.root), sizing_mode=sizing_mode):
                self.workspace.ensure_docs_structure()
                save_config(self.workspace, config)
                self.workspace.write_text(self.workspace.workflow_path, load_template(TemplateType.WORKFLOW))
                self.workspace.write_text(
                    self.workspace.cycles_md_path,
                    render_template(
                        load_template(TemplateType.CYCLES),
                        {
                            "PROJECT_NAME": project_name or "Project",
                            "CURRENT_CYCLE": "01",
                            "TOTAL_CYCLES": "0",
                            "DATE": current_date(),
                        },
                    ),
                )
                self.workspace.write_text(self.workspace.pr_template_path, load_template(TemplateType.PR))
        except Exception as e:
            log_error_with_context(e, {"operation": "init_workflow", "root": str(self.workspace.root)})
            return f"❌ Failed to initialize workflow: {e}"

        if config.sizing_mode == "simple":
            sizing_lines = [f"- Tier: {config.simple_tier}"]
        else:
            sizing_lines = [
                f"- Difficulty: {config.difficulty}",
                f"- Task Duration: {config.task_duration}",
                f"- Detail Level: {config.detail_level}",
            ]

        return "\n".join(
            [
                "✅ Workflow initialized successfully!",
                "",
                "Created:",
                "- .cycles-config.json (configuration)",
                "- WORKFLOW.md (workflow guide)",
                "- docs/cycles.md (cycles tracker)",
                "- docs/cycles/ (cycles directory)",
                "- .github/pull_request_template.md (PR template)",
                "",
                "Configuration:",
                f"- Sizing Mode: {config.sizing_mode}",
                *sizing_lines,
                f"- Cycle Duration: {config.cycle_duration.describe()}",
                f"- Hours Per Cycle: {format_hours(config.hours_per_cycle)}",
                "",
                "Next steps:",
                "1. Review WORKFLOW.md to understand the development process",
                "2. Use create-cycle to create your first cycle",
                "3. Use add-task to add tasks to your cycle",
            ]
        )

    # ------------------------------------------------------------------
    # create-cycle
    # ------------------------------------------------------------------

    def _register_cycle(self, number: str, name: str, dir_name: str, config: CycleConfig) -> None:
        """List a new cycle in docs/cycles.md and bump the planned total."""
        path = self.workspace.cycles_md_path
        if not path.exists():
            logger.warning(f"{self.workspace.relative(path)} missing; cycle {number} not indexed")
            return

        document = CycleReadme.parse(self.workspace.read_text(path))
        entry = (
            f"- **[Cycle {number}: {name}](./cycles/{dir_name}/README.md)** - "
            f"{config.cycle_duration.describe()}, {format_hours(config.hours_per_cycle)} hours"
        )
        section = document.find_section("## Cycles")
        if section is None:
            section = Section(heading="## Cycles", lines=[""])
            document.sections.insert(0, section)
        placeholder = [i for i, line in enumerate(section.lines) if line.strip() == NO_CYCLES_PLACEHOLDER]
        if placeholder:
            section.lines[placeholder[0]] = entry
        else:
            content_end = len(section.lines)
            while content_end > 0 and not section.lines[content_end - 1].strip():
                content_end -= 1
            section.lines.insert(content_end, entry)

        total = sum(1 for line in section.lines if line.startswith("- **[Cycle "))
        overview = document.find_section("## Overview")
        if overview is not None:
            overview.lines = [
                f"**Total Cycles Planned**: {total}" if line.startswith("**Total Cycles Planned**:") else line
                for line in overview.lines
            ]
        self.workspace.write_text(path, document.render())

    @log_performance("create_cycle")
    def create_cycle(
        self,
        cycle_name: str,
        cycle_description: Optional[str] = None,
        cycle_goal: Optional[str] = None,
        success_criteria: Optional[str] = None,
        deliverables: Optional[str] = None,
    ) -> str:
        """Allocate the next cycle number and write its README."""
        config = load_config(self.workspace)
        if not config:
            return "❌ Workflow not initialized. Run init-workflow first."
        if not cycle_name or not cycle_name.strip():
            return "❌ Error: cycle_name is required."
        cycle_name = cycle_name.strip()

        number = next_number(self.workspace.list_names(self.workspace.cycles_dir), 2)
        dir_name = f"{number}-{slugify(cycle_name)}"
        cycle_dir = self.workspace.cycles_dir / dir_name

        try:
            with log_operation("create_cycle", cycle_number=number, cycle_name=cycle_name):
                content = render_template(
                    load_template(TemplateType.CYCLE_README),
                    {
                        "CYCLE_NUMBER": number,
                        "CYCLE_NAME": cycle_name,
                        "CYCLE_DURATION": config.cycle_duration.describe(),
                        "ESTIMATED_HOURS": "0",
                        "HOURS_AVAILABLE": format_hours(config.hours_per_cycle),
                        "CYCLE_DESCRIPTION": close_fences(
                            cycle_description or f"This cycle focuses on {cycle_name.lower()}."
                        ),
                        "CYCLE_GOAL": close_fences(cycle_goal or "Complete all tasks in this cycle successfully."),
                        "TASK_COUNT": "0",
                        "TASK_LIST": NO_TASKS_PLACEHOLDER,
                        "TASK_DEPENDENCIES": NO_DEPENDENCIES_PLACEHOLDER,
                        "SUCCESS_CRITERIA": close_fences(
                            success_criteria
                            or "- ✅ All tasks completed\n- ✅ All acceptance criteria met\n- ✅ Code is tested and working"
                        ),
                        "DELIVERABLES": close_fences(
                            deliverables or "- ✅ Working implementation\n- ✅ Tests passing\n- ✅ Documentation updated"
                        ),
                        "NEXT_CYCLE": pad_number(int(number) + 1, 2),
                    },
                )
                cycle_dir.mkdir(parents=True, exist_ok=True)
                self.workspace.write_text(self.workspace.readme_path(cycle_dir), content)
                self._register_cycle(number, cycle_name, dir_name, config)
        except Exception as e:
            log_error_with_context(e, {"operation": "create_cycle", "cycle_name": cycle_name})
            return f"❌ Failed to create cycle: {e}"

        log_cycle_created(number, cycle_name, directory=dir_name)

        return "\n".join(
            [
                f"✅ Cycle {number} created successfully!",
                "",
                "Created:",
                f"- {dir_name}/",
                f"- {dir_name}/README.md",
                "",
                "Configuration:",
                f"- Duration: {config.cycle_duration.describe()}",
                f"- Hours Available: {format_hours(config.hours_per_cycle)}",
                "",
                "Next steps:",
                f"1. Review the cycle README: docs/cycles/{dir_name}/README.md",
                "2. Use add-task to create tasks for this cycle",
                f"3. Ensure total task hours ≤ {format_hours(config.hours_per_cycle)} hours",
            ]
        )

    # ------------------------------------------------------------------
    # add-task
    # ------------------------------------------------------------------

    def _resolve_sizing(
        self,
        config: CycleConfig,
        difficulty: Optional[str],
        duration: Optional[str],
        detail_level: Optional[str],
    ) -> Optional[TaskSizing]:
        if difficulty and duration and detail_level:
            if difficulty not in TIERS or duration not in TASK_DURATIONS or detail_level not in DETAIL_LEVELS:
                raise ValueError(
                    f"Invalid task override: difficulty={difficulty}, duration={duration}, detail_level={detail_level}"
                )
            return TaskSizing(difficulty, duration, detail_level)
        return config.resolve_sizing()

    @log_performance("add_task")
    def add_task(
        self,
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
    ) -> str:
        """Write a task document and refresh the cycle README around it."""
        error = self._initialization_error()
        if error:
            return error

        config = load_config(self.workspace)
        if not config:
            return "❌ Configuration file is invalid or corrupt. Please run init-workflow again."
        if not task_title or not task_title.strip():
            return "❌ Error: task_title is required."
        task_title = task_title.strip()

        cycle_dir = self.workspace.find_cycle_dir(cycle_number)
        if cycle_dir is None:
            return f"❌ Cycle {cycle_number} not found. Create it first with create-cycle."

        try:
            sizing = self._resolve_sizing(config, difficulty, duration, detail_level)
        except ValueError as e:
            return f"❌ {e}"
        if sizing is None:
            return "❌ Invalid configuration. Please run init-workflow again."

        try:
            readme = self._load_readme(cycle_dir)
        except FileNotFoundError:
            return f"❌ Cycle {cycle_number} has no README.md. Recreate it with create-cycle."
        if not readme.has_task_list:
            return f"❌ Cycle {cycle_number} README has no '## Tasks (N total)' section."

        task_number = next_number(self.workspace.task_files(cycle_dir), 3)
        dependency_text = _normalize_dependencies(dependencies)
        conflict_text = _normalize_conflicts(conflicts)
        declared = parse_dependencies(dependency_text)

        content = render_template(
            load_template(TemplateType.TASK),
            {
                "TASK_NUMBER": task_number,
                "TASK_TITLE": task_title,
                "TASK_DURATION": sizing.duration,
                "DIFFICULTY": sizing.difficulty.capitalize(),
                "PREREQUISITES": prerequisites or "None",
                "DEPENDENCIES": dependency_text,
                "CONFLICTS": conflict_text,
                "PARALLELIZATION_STATUS": parallelization_status(
                    dependency_text != NO_DEPENDENCIES, conflict_text != NO_CONFLICTS
                ),
                "MODIFIED_AREAS": modified_areas
                or "_To be determined during implementation. Update this section as you work._",
                "TASK_OVERVIEW": task_overview or f"This task focuses on {task_title.lower()}.",
                "TASK_STEPS": detailed_content(
                    task_steps,
                    "1. Review the requirements\n2. Implement the solution\n3. Test your implementation",
                    sizing.detail_level,
                ),
                "ACCEPTANCE_CRITERIA": acceptance_criteria
                or f"- [ ] {task_title} is implemented\n- [ ] Tests pass\n- [ ] Code is documented",
                "TESTING_INSTRUCTIONS": testing_instructions
                or "1. Run the application\n2. Verify functionality\n3. Check for errors",
                "TIPS": tips
                or "- Break down complex problems into smaller steps\n- Test incrementally\n- Commit your work frequently",
                "TROUBLESHOOTING": troubleshooting
                or "_Common issues and solutions will be documented here as they arise._",
                "NEXT_STEPS": next_steps or "continue building on this foundation",
            },
        )
        leftover = unfilled_placeholders(content)
        if leftover:
            logger.warning(f"Task {task_number} rendered with unfilled placeholders: {', '.join(leftover)}")
        file_name = f"{task_number}-{slugify(task_title)}.md"
        task_path = cycle_dir / file_name

        try:
            with log_operation("add_task", cycle_number=cycle_number, task_number=task_number):
                self.workspace.write_text(task_path, content)

                readme.add_task_entry(task_number, file_name, task_title, sizing.hours)
                if readme.estimated_hours is not None:
                    readme.estimated_hours = readme.estimated_hours + sizing.hours
                scan, groups = self._regroup(cycle_dir, readme)
                readme.recalculate_progress()
                self._save_readme(cycle_dir, readme)
        except Exception as e:
            # Roll back the document so its number stays free.
            task_path.unlink(missing_ok=True)
            log_error_with_context(e, {
                "operation": "add_task",
                "cycle_number": cycle_number,
                "task_number": task_number,
            })
            return f"❌ Failed to add task: {e}"

        log_task_added(cycle_number, task_number, dependencies=declared, groups=len(groups))

        known = {record.number for record in scan.records}
        lines = [
            f"✅ Task {task_number} created successfully!",
            "",
            "Created:",
            f"- {cycle_dir.name}/{file_name}",
            "",
            "Configuration:",
            f"- Difficulty: {sizing.difficulty}",
            f"- Duration: {sizing.duration}",
            f"- Detail Level: {sizing.detail_level}",
            f"- Dependencies: {', '.join(declared) if declared else 'none'}",
            "",
            "Updated cycle README with task entry and dependency groups:",
            *format_groups(groups),
        ]

        missing = [number for number in declared if number not in known]
        if missing:
            lines.append(f"⚠️ Referenced tasks not found in this cycle: {', '.join(missing)}")
        stuck = unresolved_numbers(groups)
        if stuck:
            lines.append(f"⚠️ Unresolved dependencies (circular or missing): {', '.join(stuck)}")
        if scan.skipped:
            lines.append(f"⚠️ Skipped {scan.skipped_count} unparseable task document(s): {', '.join(scan.skipped)}")
        estimated = readme.estimated_hours
        if estimated is not None and estimated > config.hours_per_cycle:
            lines.append(
                f"⚠️ Estimated hours ({format_hours(estimated)}) exceed the "
                f"{format_hours(config.hours_per_cycle)} hours available per cycle."
            )

        lines.extend(
            [
                "",
                "Next steps:",
                f"1. Review the task file: docs/cycles/{cycle_dir.name}/{file_name}",
                f"2. Create a feature branch: feat/cycle-{cycle_number}-task-{task_number}-description",
                "3. Follow the workflow in WORKFLOW.md",
            ]
        )
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Git workflow
    # ------------------------------------------------------------------

    @log_performance("commit_task")
    def commit_task(self, cycle_number: str, message: str, body: Optional[str] = None) -> str:
        """Stage everything and commit with a conventional commit message."""
        error = self._initialization_error()
        if error:
            return error

        subject = f"feat(cycle-{cycle_number}): {message}"
        try:
            self.git.stage_all()
            self.git.commit(f"{subject}\n\n{body}" if body else subject)
        except GitCommandError as e:
            log_error_with_context(e, {"operation": "commit_task", "cycle_number": cycle_number})
            return f"❌ Commit failed: {e}"

        return "\n".join(
            [
                "✅ Changes committed successfully!",
                "",
                f"Commit: {subject}",
                "",
                "Next steps:",
                "- Continue working and commit incrementally, or",
                "- Use push-branch to push your changes",
            ]
        )

    @log_performance("push_branch")
    def push_branch(self) -> str:
        """Push the current branch to origin, refusing protected branches."""
        try:
            branch = self.git.current_branch()
            if branch in PROTECTED_BRANCHES:
                return "❌ Cannot push directly to main/master branch. Create a feature branch first."
            self.git.push(branch)
        except GitCommandError as e:
            log_error_with_context(e, {"operation": "push_branch"})
            return f"❌ Push failed: {e}"

        return "\n".join(
            [
                "✅ Branch pushed successfully!",
                "",
                f"Branch: {branch}",
                "",
                "Next steps:",
                "- Use create-pr to create a pull request",
            ]
        )

    def render_pr_body(
        self,
        cycle_number: str,
        task_number: str,
        task_title: str,
        changes: Sequence[str],
        acceptance_criteria: Sequence[str],
        notes: Optional[str] = None,
    ) -> str:
        body = render_template(
            load_template(TemplateType.PR),
            {
                "TASK_NUMBER": task_number,
                "CYCLE_NUMBER": cycle_number,
                "TASK_TITLE": task_title,
                "ACCEPTANCE_CRITERIA_CHECKLIST": "\n".join(f"- [ ] {item}" for item in acceptance_criteria),
            },
        )
        if changes:
            body = body.replace(PR_CHANGES_PLACEHOLDER, "\n".join(f"- {change}" for change in changes), 1)
        if notes:
            body = body.replace(PR_NOTES_PLACEHOLDER, notes, 1)
        return body

    @log_performance("create_pr")
    def create_pr(
        self,
        cycle_number: str,
        task_number: str,
        task_title: str,
        changes: Sequence[str],
        acceptance_criteria: Sequence[str],
        notes: Optional[str] = None,
    ) -> str:
        """Open a pull request for a task and check the task off on success."""
        error = self._initialization_error()
        if error:
            return error

        title = f"feat(cycle-{cycle_number}): {task_title}"
        try:
            branch = self.git.current_branch()
        except GitCommandError as e:
            log_error_with_context(e, {"operation": "create_pr", "cycle_number": cycle_number})
            return f"❌ PR creation failed: {e}"

        body = self.render_pr_body(cycle_number, task_number, task_title, changes, acceptance_criteria, notes)

        try:
            self.git.create_pull_request(title, body)
        except GitCommandError as e:
            logger.warning(f"GitHub CLI failed, returning manual instructions: {e}")
            return "\n".join(
                [
                    "⚠️ GitHub CLI not available. Please create the PR manually:",
                    "",
                    f"Title: {title}",
                    f"Branch: {branch}",
                    "Base: main",
                    "",
                    "PR Body:",
                    body,
                    "",
                    f"After creating the PR, run update-progress with task_number {task_number} "
                    "to mark the task complete.",
                ]
            )

        completion = self._complete_after_pr(cycle_number, task_number)
        return "\n".join(
            [
                "✅ Pull Request created successfully!",
                "",
                f"Title: {title}",
                f"Branch: {branch}",
                "",
                completion,
                "",
                "Next steps:",
                "1. Review the PR on GitHub",
                "2. Wait for CI/CD checks to pass",
                "3. Merge the PR when ready",
                "4. Start the next task",
            ]
        )

    def _complete_after_pr(self, cycle_number: str, task_number: str) -> str:
        """Mark the task complete once its PR exists; failures are reported, not raised."""
        cycle_dir = self.workspace.find_cycle_dir(cycle_number)
        if cycle_dir is None:
            return f"⚠️ Cycle {cycle_number} not found; task {task_number} was not marked complete."
        try:
            readme = self._load_readme(cycle_dir)
            if not readme.mark_task_complete(task_number):
                return f"⚠️ Task {task_number} not found or already completed in the cycle README."
            state = readme.recalculate_progress()
            self._save_readme(cycle_dir, readme)
        except OSError as e:
            log_error_with_context(e, {"operation": "mark_task_complete", "task_number": task_number})
            return f"⚠️ Failed to mark task {task_number} complete: {e}"

        log_progress_updated(cycle_number, state.completed, state.total, task_number=task_number)
        return f"Task {task_number} has been marked as complete in the cycle README ({state.bar_line()})."

    # ------------------------------------------------------------------
    # update-progress
    # ------------------------------------------------------------------

    @log_performance("update_progress")
    def update_progress(
        self,
        cycle_number: str,
        task_number: Optional[str] = None,
        session_date: Optional[str] = None,
        session_duration: Optional[str] = None,
        session_notes: Optional[str] = None,
    ) -> str:
        """Mark a task complete, recalculate progress, and log a session."""
        error = self._initialization_error()
        if error:
            return error

        cycle_dir = self.workspace.find_cycle_dir(cycle_number)
        if cycle_dir is None:
            return f"❌ Cycle {cycle_number} not found."

        try:
            readme = self._load_readme(cycle_dir)
            if task_number and not readme.mark_task_complete(task_number):
                return f"❌ Task {task_number} not found or already completed."

            state = readme.recalculate_progress()
            session_logged = False
            if session_date and session_duration:
                session_logged = readme.log_session(session_date, session_duration, task_number, session_notes)
            readme_path = self._save_readme(cycle_dir, readme)
        except Exception as e:
            log_error_with_context(e, {
                "operation": "update_progress",
                "cycle_number": cycle_number,
                "task_number": task_number,
            })
            return f"❌ Failed to update progress: {e}"

        log_progress_updated(cycle_number, state.completed, state.total, task_number=task_number)

        lines = ["✅ Progress updated successfully!", ""]
        if task_number:
            lines.append(f"Task {task_number} marked as complete.")
        lines.append(state.summary_line())
        lines.append(state.bar_line())
        if session_date and session_duration:
            if session_logged:
                lines.append(f"Session logged: {session_date} ({session_duration})")
            else:
                lines.append("⚠️ No session log table found; session not logged.")
        lines.extend(["", f"Updated cycle README: {self.workspace.relative(readme_path)}"])
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Read-only status
    # ------------------------------------------------------------------

    def cycle_status(self, cycle_number: str) -> str:
        """Summarize progress and dependency groups for one cycle without writing."""
        cycle_dir = self.workspace.find_cycle_dir(cycle_number)
        if cycle_dir is None:
            return f"❌ Cycle {cycle_number} not found."

        try:
            readme = self._load_readme(cycle_dir)
            scan = scan_cycle(self.workspace, cycle_dir)
        except Exception as e:
            log_error_with_context(e, {"operation": "cycle_status", "cycle_number": cycle_number})
            return f"❌ Failed to read cycle {cycle_number}: {e}"

        state = readme.current_progress()
        groups = group_tasks(scan.records)
        completed = readme.completed_task_numbers()
        pending = [number for number, done in readme.task_entries() if not done]

        lines = [
            f"Cycle {cycle_number} ({cycle_dir.name})",
            "",
            state.summary_line(),
            state.bar_line(),
            "",
            "Dependency groups:",
        ]
        lines.extend(format_groups(groups) or ["- (no tasks yet)"])
        ready = [
            record.number
            for record in scan.records
            if record.number not in completed and all(dep in completed for dep in record.dependencies)
        ]
        if pending:
            lines.append("")
            lines.append(f"Ready to start: {', '.join(ready) if ready else 'none'}")
        stuck = unresolved_numbers(groups)
        if stuck:
            lines.append(f"⚠️ Unresolved dependencies (circular or missing): {', '.join(stuck)}")
        if scan.skipped:
            lines.append(f"⚠️ Skipped {scan.skipped_count} unparseable task document(s): {', '.join(scan.skipped)}")
        return "\n".join(lines)
