"""Data models for the cycles workflow.

This module contains the core data structures used throughout the cycles
system, representing task records, dependency groups, progress state and
the persisted workflow configuration.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


NO_DEPENDENCIES = "None (can start immediately)"
NO_CONFLICTS = "None"

BAR_WIDTH = 20
FILLED_GLYPH = "█"
EMPTY_GLYPH = "░"

SIZING_MODES = ("simple", "granular")
TIERS = ("junior", "mid", "senior")
TASK_DURATIONS = ("0.5h", "1h", "2h", "4h", "8h")
DETAIL_LEVELS = ("high", "medium", "low")
DURATION_UNITS = ("weeks", "months", "quarters")

# Maximum cycle length per unit, inclusive
_DURATION_LIMITS = {"weeks": 3, "months": 2, "quarters": 1}


def round_half_up(value: float) -> int:
    """Round .5 away from zero for the positive values we deal with."""
    return int(math.floor(value + 0.5))


@dataclass(slots=True)
class TaskRecord:
    """A task recovered from its markdown document."""

    number: str
    title: str
    dependencies: List[str] = field(default_factory=list)
    file_name: str = ""

    @property
    def has_dependencies(self) -> bool:
        return bool(self.dependencies)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "number": self.number,
            "title": self.title,
            "dependencies": list(self.dependencies),
            "file_name": self.file_name,
        }


@dataclass(slots=True)
class DependencyGroup:
    """One parallel-execution tier of tasks."""

    index: int
    tasks: List[TaskRecord] = field(default_factory=list)
    unresolved: bool = False

    @property
    def numbers(self) -> List[str]:
        return [task.number for task in self.tasks]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "index": self.index,
            "tasks": [task.to_dict() for task in self.tasks],
            "unresolved": self.unresolved,
        }


@dataclass(slots=True)
class ProgressState:
    """Completion counts derived from checklist markers."""

    completed: int
    total: int
    percentage: int
    bar: str

    @classmethod
    def from_counts(cls, completed: int, total: int) -> "ProgressState":
        """Compute percentage and bar for the given counts."""
        if total <= 0:
            return cls(completed=0, total=0, percentage=0, bar=EMPTY_GLYPH * BAR_WIDTH)
        ratio = completed / total
        filled = min(BAR_WIDTH, round_half_up(ratio * BAR_WIDTH))
        return cls(
            completed=completed,
            total=total,
            percentage=round_half_up(ratio * 100),
            bar=FILLED_GLYPH * filled + EMPTY_GLYPH * (BAR_WIDTH - filled),
        )

    def summary_line(self) -> str:
        return f"**Completed**: {self.completed}/{self.total} tasks ({self.percentage}%)"

    def bar_line(self) -> str:
        return f"[{self.bar}] {self.percentage}%"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "completed": self.completed,
            "total": self.total,
            "percentage": self.percentage,
            "bar": self.bar,
        }


@dataclass(slots=True)
class ScanResult:
    """Task records found in a cycle plus the documents that were skipped."""

    records: List[TaskRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


@dataclass(slots=True)
class ValidationResult:
    """Outcome of checking that the workflow artifacts exist."""

    missing: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.missing

    def describe(self) -> str:
        """Render the not-initialized message listing missing artifacts."""
        lines = ["❌ Workflow not properly initialized. Missing files:"]
        lines.extend(f"  - {item}" for item in self.missing)
        lines.append("")
        lines.append("Please run init-workflow first to set up the complete workflow structure.")
        return "\n".join(lines)


@dataclass(slots=True)
class CycleDuration:
    """How long a single cycle lasts."""

    unit: str = "weeks"
    value: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"unit": self.unit, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CycleDuration":
        return cls(unit=data.get("unit", "weeks"), value=data.get("value", 1))

    def validate(self) -> List[str]:
        """Validate the duration and return any issues."""
        if self.unit not in _DURATION_LIMITS:
            return [f"Invalid cycle duration unit: {self.unit}"]
        limit = _DURATION_LIMITS[self.unit]
        if self.unit == "quarters" and self.value != 1:
            return ["Cycle duration in quarters must be exactly 1"]
        if not isinstance(self.value, int) or not 1 <= self.value <= limit:
            return [f"Cycle duration in {self.unit} must be 1-{limit}, got: {self.value}"]
        return []

    def describe(self) -> str:
        if self.unit == "quarters":
            return "1 quarter (3 months)"
        singular = self.unit[:-1]
        return f"{self.value} {singular}{'s' if self.value > 1 else ''}"


@dataclass(slots=True)
class TaskSizing:
    """Difficulty, duration and detail level applied to a new task."""

    difficulty: str
    duration: str
    detail_level: str

    @property
    def hours(self) -> float:
        return float(self.duration.rstrip("h"))

    @classmethod
    def for_tier(cls, tier: str) -> "TaskSizing":
        """Map a simple-mode tier onto granular settings."""
        mapping = {
            "junior": cls("junior", "1h", "high"),
            "mid": cls("mid", "2h", "medium"),
            "senior": cls("senior", "4h", "low"),
        }
        if tier not in mapping:
            raise ValueError(f"Unknown tier: {tier}")
        return mapping[tier]


@dataclass(slots=True)
class CycleConfig:
    """Workflow configuration persisted in .cycles-config.json."""

    sizing_mode: str
    hours_per_cycle: float
    simple_tier: Optional[str] = None
    difficulty: Optional[str] = None
    task_duration: Optional[str] = None
    detail_level: Optional[str] = None
    cycle_duration: CycleDuration = field(default_factory=CycleDuration)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation, omitting unset options."""
        data: Dict[str, Any] = {"sizing_mode": self.sizing_mode}
        for key in ("simple_tier", "difficulty", "task_duration", "detail_level"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        data["cycle_duration"] = self.cycle_duration.to_dict()
        data["hours_per_cycle"] = self.hours_per_cycle
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CycleConfig":
        """Create from dictionary representation."""
        duration = data.get("cycle_duration")
        return cls(
            sizing_mode=data["sizing_mode"],
            hours_per_cycle=data["hours_per_cycle"],
            simple_tier=data.get("simple_tier"),
            difficulty=data.get("difficulty"),
            task_duration=data.get("task_duration"),
            detail_level=data.get("detail_level"),
            cycle_duration=CycleDuration.from_dict(duration) if duration else CycleDuration(),
        )

    def validate(self) -> List[str]:
        """Validate the configuration and return any issues."""
        issues = []

        if self.sizing_mode not in SIZING_MODES:
            issues.append(f"Invalid sizing mode: {self.sizing_mode}")
        if self.simple_tier is not None and self.simple_tier not in TIERS:
            issues.append(f"Invalid simple tier: {self.simple_tier}")
        if self.difficulty is not None and self.difficulty not in TIERS:
            issues.append(f"Invalid difficulty: {self.difficulty}")
        if self.task_duration is not None and self.task_duration not in TASK_DURATIONS:
            issues.append(f"Invalid task duration: {self.task_duration}")
        if self.detail_level is not None and self.detail_level not in DETAIL_LEVELS:
            issues.append(f"Invalid detail level: {self.detail_level}")
        if isinstance(self.hours_per_cycle, bool) or not isinstance(self.hours_per_cycle, (int, float)):
            issues.append("Hours per cycle must be a number")
        elif not 1 <= self.hours_per_cycle <= 500:
            issues.append(f"Hours per cycle must be 1-500, got: {self.hours_per_cycle}")
        issues.extend(self.cycle_duration.validate())

        return issues

    def resolve_sizing(self) -> Optional[TaskSizing]:
        """Return the default task sizing, or None when the config is incomplete."""
        if self.sizing_mode == "simple" and self.simple_tier in TIERS:
            return TaskSizing.for_tier(self.simple_tier)
        if (
            self.sizing_mode == "granular"
            and self.difficulty
            and self.task_duration
            and self.detail_level
        ):
            return TaskSizing(self.difficulty, self.task_duration, self.detail_level)
        return None
