"""Cycles MCP Server - Core functionality package."""

# No imports at package level to avoid circular import issues
# Import modules directly where needed

__all__ = [
    "CycleWorkflow",
    "CycleReadme",
    "CycleConfig",
    "TaskRecord",
    "DependencyGroup",
    "ProgressState",
    "Workspace",
]
