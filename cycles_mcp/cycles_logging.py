"""Logging and observability utilities for the cycles workflow.

Structured logging for tool handlers, timing of operations, and a small
hook registry so callers can react to workflow events (cycle created, task
added, progress updated).
"""

from __future__ import annotations

import json
import logging as std_logging
import os
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

LOG_LEVEL_ENV = "CYCLES_LOG_LEVEL"
LOG_FILE_ENV = "CYCLES_LOG_FILE"


def setup_logging(log_level: Union[str, int, None] = None, log_file: Optional[Path] = None) -> None:
    """Setup structured logging for the cycles logger hierarchy.

    Console output goes to stderr because stdout carries the MCP stdio
    transport. When no arguments are given the level and log file are read
    from CYCLES_LOG_LEVEL and CYCLES_LOG_FILE.
    """
    if log_level is None:
        log_level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    if log_file is None and os.getenv(LOG_FILE_ENV):
        log_file = Path(os.environ[LOG_FILE_ENV]).expanduser()

    logger = std_logging.getLogger("cycles")
    logger.setLevel(log_level)
    logger.handlers.clear()

    detailed_formatter = std_logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = std_logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(detailed_formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = std_logging.FileHandler(log_file)
        file_handler.setLevel(std_logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    logger.info("Cycles logging initialized")


class JsonFormatter(std_logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: std_logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@contextmanager
def _timed(logger: std_logging.Logger, operation_name: str, announce: bool, **extra_fields):
    """Time the enclosed block and log its outcome; exceptions are re-raised."""
    fields = {"operation": operation_name, **extra_fields}
    log_start = logger.info if announce else logger.debug
    log_start(f"Starting operation: {operation_name}", extra={"extra_fields": {**fields, "status": "started"}})
    start_time = time.perf_counter()

    try:
        yield
    except Exception as e:
        duration = time.perf_counter() - start_time
        logger.error(f"Failed operation: {operation_name} after {duration:.3f}s - {e}", extra={"extra_fields": {
            **fields,
            "status": "failed",
            "duration": duration,
            "error_type": type(e).__name__,
            "error_message": str(e),
        }})
        raise

    duration = time.perf_counter() - start_time
    logger.info(f"Completed operation: {operation_name} in {duration:.3f}s", extra={"extra_fields": {
        **fields,
        "status": "completed",
        "duration": duration,
    }})


def log_performance(operation_name: str):
    """Decorator that logs how long a tool handler took and whether it raised."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with _timed(std_logging.getLogger("cycles.performance"), operation_name, announce=False):
                return func(*args, **kwargs)

        return wrapper
    return decorator


def log_operation(operation_name: str, **extra_fields):
    """Context manager to log a block of work with custom fields."""
    return _timed(std_logging.getLogger("cycles.operations"), operation_name, announce=True, **extra_fields)


class ObservabilityHooks:
    """Callback registry for workflow events."""

    def __init__(self):
        self.hooks: Dict[str, List[Callable[..., Any]]] = {}
        self.logger = std_logging.getLogger("cycles.observability")

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        self.hooks.setdefault(event_type, []).append(callback)
        self.logger.debug(f"Registered hook for event: {event_type}")

    def clear(self) -> None:
        self.hooks.clear()

    def trigger_hooks(self, event_type: str, **data) -> None:
        """Run every callback for the event; a failing hook is logged and skipped."""
        for hook in self.hooks.get(event_type, []):
            try:
                hook(**data)
            except Exception as e:
                self.logger.error(f"Hook failed for event {event_type}: {e}")

    def log_workflow_event(self, event_type: str, cycle_number: Optional[str] = None, **data) -> None:
        """Log a workflow event and trigger hooks."""
        event_data = {
            "timestamp": _utcnow(),
            "cycle_number": cycle_number,
            **data,
        }
        self.logger.info(f"Workflow event: {event_type}", extra={"extra_fields": {"event_type": event_type, **event_data}})
        self.trigger_hooks(event_type, **event_data)


observability_hooks = ObservabilityHooks()


def log_error_with_context(error: Exception, context: Dict[str, Any], **extra_fields) -> None:
    """Log an error with the operation context that produced it."""
    logger = std_logging.getLogger("cycles.errors")

    error_data = {
        "timestamp": _utcnow(),
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context,
        **extra_fields,
    }

    logger.error(
        f"Error in {context.get('operation', 'unknown operation')}: {error}",
        extra={"extra_fields": error_data},
        exc_info=error,
    )


def log_cycle_created(cycle_number: str, cycle_name: str, **extra_fields) -> None:
    observability_hooks.log_workflow_event("cycle_created", cycle_number, cycle_name=cycle_name, **extra_fields)


def log_task_added(cycle_number: str, task_number: str, **extra_fields) -> None:
    observability_hooks.log_workflow_event("task_added", cycle_number, task_number=task_number, **extra_fields)


def log_progress_updated(cycle_number: str, completed: int, total: int, **extra_fields) -> None:
    observability_hooks.log_workflow_event(
        "progress_updated", cycle_number, completed=completed, total=total, **extra_fields
    )
