"""Workflow configuration persistence.

The configuration lives in ``.cycles-config.json`` at the workspace root.
Loading is forgiving: a missing, unreadable or invalid file yields ``None``
so callers can report "not initialized" instead of failing.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from .models import CycleConfig, CycleDuration, ValidationResult
from .workspace import Workspace

logger = logging.getLogger("cycles.config")


def load_config(workspace: Workspace) -> Optional[CycleConfig]:
    """Load and validate the configuration, returning None when unusable."""
    path = workspace.config_path
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        config = CycleConfig.from_dict(data)
    except FileNotFoundError:
        return None
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
        logger.warning(f"Ignoring unreadable config at {path}: {e}")
        return None

    issues = config.validate()
    if issues:
        logger.warning(f"Ignoring invalid config at {path}: {'; '.join(issues)}")
        return None
    return config


def save_config(workspace: Workspace, config: CycleConfig) -> None:
    workspace.write_text(workspace.config_path, json.dumps(config.to_dict(), indent=2))


def default_config() -> CycleConfig:
    return CycleConfig(
        sizing_mode="simple",
        simple_tier="mid",
        cycle_duration=CycleDuration(unit="weeks", value=1),
        hours_per_cycle=8,
    )


def validate_workflow_initialized(workspace: Workspace) -> ValidationResult:
    """Check for every artifact init-workflow creates."""
    result = ValidationResult()
    if not workspace.config_path.exists():
        result.missing.append(".cycles-config.json")
    if not workspace.workflow_path.exists():
        result.missing.append("WORKFLOW.md")
    if not workspace.cycles_md_path.exists():
        result.missing.append("docs/cycles.md")
    if not workspace.cycles_dir.is_dir():
        result.missing.append("docs/cycles/ directory")
    return result
