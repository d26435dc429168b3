"""File organization collaborator used to drain queued rule actions."""

from .executor import OperationExecutor
from .models import (
    ArchiveOperation,
    DeleteOperation,
    ExecutionResult,
    MoveOperation,
    OperationEvent,
    OperationPlan,
)
from .planner import DATE_FORMATS, OrganizerPlanner, format_date_path

__all__ = [
    "ArchiveOperation",
    "DATE_FORMATS",
    "DeleteOperation",
    "ExecutionResult",
    "MoveOperation",
    "OperationEvent",
    "OperationExecutor",
    "OperationPlan",
    "OrganizerPlanner",
    "format_date_path",
]
