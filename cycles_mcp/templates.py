"""Markdown templates for workflow documents.

Templates are embedded so the server needs no data files at runtime. They
are rendered by substituting ``{{KEY}}`` placeholders; placeholders without
a supplied value are left in the output verbatim.
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import Mapping


class TemplateType(str, Enum):
    WORKFLOW = "workflow.md"
    CYCLES = "cycles.md"
    CYCLE_README = "cycle-readme.md"
    TASK = "task-template.md"
    PR = "pr-template.md"


NO_TASKS_PLACEHOLDER = "_No tasks yet. Use add-task to create tasks._"
NO_DEPENDENCIES_PLACEHOLDER = (
    "_Task dependencies will be shown here as tasks are added. "
    "Tasks will be grouped by parallel execution possibilities._"
)
NO_CYCLES_PLACEHOLDER = "_Cycles will be listed here as they are created_"
PR_CHANGES_PLACEHOLDER = "-\n-\n-"
PR_NOTES_PLACEHOLDER = "_Any deviations, challenges encountered, or future improvements_"


_WORKFLOW = """# Development Workflow

This document outlines the development workflow for this project: how to work with cycles, tasks, branches, and pull requests.

## Table of Contents

- [Overview](#overview)
- [Cycle-Based Development](#cycle-based-development)
- [Git Workflow](#git-workflow)
- [Task Workflow](#task-workflow)
- [Pull Request Process](#pull-request-process)
- [Commit Guidelines](#commit-guidelines)
- [Progress Tracking](#progress-tracking)

## Overview

This project uses a **cycle-based development approach**. Work is organized into cycles, each cycle contains several tasks, and each task is delivered on its own feature branch through a pull request.

## Cycle-Based Development

### What is a Cycle?

A **cycle** is a collection of related tasks that deliver a feature or milestone. Each cycle:

- Has a defined duration (1-3 weeks, 1-2 months, or 1 quarter)
- Contains tasks that fit within the allocated hours
- Has clear deliverables and success criteria
- Can be completed independently

See [cycles.md](./docs/cycles.md) for the roadmap.

### Parallel Work

Every cycle README has a **Task Dependencies** section. Tasks are grouped so that every task in a group only depends on tasks from earlier groups; tasks in the same group can be worked on at the same time.

## Git Workflow

### Branch Naming Convention

```
feat/cycle-XX-task-YYY-short-description
```

- `feat/` - Feature branch prefix
- `cycle-XX` - Cycle number (zero-padded)
- `task-YYY` - Task number (zero-padded)
- `short-description` - Brief kebab-case description

Other prefixes: `fix/`, `docs/`, `refactor/`, `chore/`.

## Task Workflow

1. **Start**: `git checkout main && git pull origin main`, then `git checkout -b feat/cycle-01-task-001-description`
2. **Read**: open the task file in `docs/cycles/01-cycle-name/` and read it fully, including its dependencies
3. **Work**: follow the steps, test as you go, commit incrementally
4. **Verify**: check every acceptance criterion and run the "Testing Your Work" section
5. **Submit**: push the branch and open a pull request
6. **Merge**: after review, merge and delete the branch

## Pull Request Process

**Title Format**: `<type>(cycle-XX): <description>`

Include in the description:

1. **Task reference** - which task this completes
2. **Changes** - what was done
3. **Testing** - checklist of tests performed
4. **Acceptance criteria** - checklist from the task file
5. **Notes** - deviations, challenges, or future improvements

Before merging:

- [ ] All acceptance criteria met
- [ ] Tests pass
- [ ] No linter errors
- [ ] Documentation updated (if needed)
- [ ] Commit messages follow conventions

## Commit Guidelines

Follow [Conventional Commits](https://www.conventionalcommits.org/):

```
<type>(cycle-XX): <description>

[optional body]
```

Types: `feat`, `fix`, `docs`, `style`, `refactor`, `test`, `chore`, `perf`.

Always include `cycle-XX` in the scope.

## Progress Tracking

- Completing a task through a pull request marks it complete in the cycle README
- The progress summary and bar are recalculated on every update
- Log each work session in the cycle README's session log

### Progress Bar Format

```
0/4:   [░░░░░░░░░░░░░░░░░░░░] 0%
1/4:   [█████░░░░░░░░░░░░░░░] 25%
2/4:   [██████████░░░░░░░░░░] 50%
4/4:   [████████████████████] 100%
```

---

**Remember**: the workflow keeps work organized and progress visible. Follow it consistently.
"""

_CYCLES = """# Development Cycles

This document tracks all development cycles for this project.

> **📖 New to the workflow?** Read the **[Workflow Guide](../WORKFLOW.md)** to learn how to work with cycles, tasks, branches, and pull requests.

## Overview

**Project**: {{PROJECT_NAME}}
**Current Cycle**: {{CURRENT_CYCLE}}
**Total Cycles Planned**: {{TOTAL_CYCLES}}
**Completed**: 0 hours (0%)

## Cycles

_Cycles will be listed here as they are created_

## Working on a Cycle

1. Navigate to the cycle directory: `cd docs/cycles/0X-cycle-name/`
2. Read the cycle README, including its task dependency groups
3. Create a feature branch: `git checkout -b feat/cycle-0X-task-001-description`
4. Follow the task instructions and open a PR when complete

### Completing a Cycle

1. Verify all success criteria are met
2. Update the cycle status to "Complete"
3. Plan the next cycle

## Notes

_Use this space for overall project notes and learnings_

---

**Last Updated**: {{DATE}}
"""

_CYCLE_README = """# Cycle {{CYCLE_NUMBER}}: {{CYCLE_NAME}}

**Duration**: {{CYCLE_DURATION}}
**Estimated Hours**: {{ESTIMATED_HOURS}} hours
**Hours Available**: {{HOURS_AVAILABLE}} hours
**Status**: Not Started

## Overview

{{CYCLE_DESCRIPTION}}

## Goal

{{CYCLE_GOAL}}

## Tasks ({{TASK_COUNT}} total)

{{TASK_LIST}}

## Task Dependencies

{{TASK_DEPENDENCIES}}

## Progress Tracker

**Completed**: 0/{{TASK_COUNT}} tasks (0%)

```
[░░░░░░░░░░░░░░░░░░░░] 0%
```

### Session Log

| Date | Duration | Tasks Completed | Notes       |
| ---- | -------- | --------------- | ----------- |
| -    | -        | -               | Not started |

## Success Criteria

By the end of this cycle, you should be able to:

{{SUCCESS_CRITERIA}}

## Deliverables

{{DELIVERABLES}}

## Next Cycle

**Cycle {{NEXT_CYCLE}}** will build on this foundation.

_To be defined_

## Development Workflow

> **📖 Read First**: See **[WORKFLOW.md](../../WORKFLOW.md)** for the complete development workflow.

**For each task:**

1. **Start**: `git checkout -b feat/cycle-{{CYCLE_NUMBER}}-task-XXX-description`
2. **Work**: follow the task instructions, commit incrementally
3. **Test**: verify all acceptance criteria
4. **PR**: push the branch and open a pull request
5. **Next**: pick a task from the earliest group that still has open tasks

## Notes

_Use this space for cycle-specific notes, learnings, or adjustments_
"""

_TASK = """# Task {{TASK_NUMBER}}: {{TASK_TITLE}}

**Estimated Time**: {{TASK_DURATION}}
**Difficulty**: {{DIFFICULTY}}
**Prerequisites**: {{PREREQUISITES}}

## Dependencies & Parallelization

**Must complete first:** {{DEPENDENCIES}}
**Potential conflicts:** {{CONFLICTS}}
**Status:** {{PARALLELIZATION_STATUS}}

**Areas modified:** {{MODIFIED_AREAS}}

## Overview

{{TASK_OVERVIEW}}

## Steps

{{TASK_STEPS}}

## Acceptance Criteria

Before submitting your work, verify:

{{ACCEPTANCE_CRITERIA}}

## Testing Your Work

{{TESTING_INSTRUCTIONS}}

## Tips

{{TIPS}}

## Troubleshooting

{{TROUBLESHOOTING}}

## Next Steps

Once this task is complete, the next task will {{NEXT_STEPS}}
"""

_PR = """## Task

Completes Task {{TASK_NUMBER}} from Cycle {{CYCLE_NUMBER}}: {{TASK_TITLE}}

Closes #XXX (if applicable)

## Changes

-
-
-

## Testing

- [ ] Ran all tests from "Testing Your Work" section
- [ ] Verified all acceptance criteria
- [ ] Tested edge cases and error conditions
- [ ] Linter passes without errors

## Acceptance Criteria

{{ACCEPTANCE_CRITERIA_CHECKLIST}}

## Notes

_Any deviations, challenges encountered, or future improvements_
"""

TEMPLATES: Mapping[TemplateType, str] = {
    TemplateType.WORKFLOW: _WORKFLOW,
    TemplateType.CYCLES: _CYCLES,
    TemplateType.CYCLE_README: _CYCLE_README,
    TemplateType.TASK: _TASK,
    TemplateType.PR: _PR,
}


def load_template(template_type: TemplateType) -> str:
    """Return the raw template text."""
    return TEMPLATES[TemplateType(template_type)]


def render_template(template: str, variables: Mapping[str, object]) -> str:
    """Substitute every ``{{KEY}}`` occurrence for the supplied keys."""
    result = template
    for key, value in variables.items():
        result = result.replace("{{" + key + "}}", str(value))
    return result


def unfilled_placeholders(text: str) -> list[str]:
    """List the placeholder names still present in rendered text."""
    return sorted(set(re.findall(r"\{\{([A-Z_]+)\}\}", text)))


def close_fences(text: str) -> str:
    """Close a dangling ``` fence so inserted text cannot swallow later headings."""
    fences = sum(1 for line in text.split("\n") if line.startswith("```"))
    if fences % 2:
        return text.rstrip("\n") + "\n```"
    return text


def pad_number(number: int, width: int) -> str:
    return str(number).zfill(width)


def current_date() -> str:
    return date.today().isoformat()


def format_hours(hours: float) -> str:
    """Render hours without a trailing ``.0`` (2.0 -> "2", 0.5 -> "0.5")."""
    if float(hours).is_integer():
        return str(int(hours))
    return f"{hours:g}"

