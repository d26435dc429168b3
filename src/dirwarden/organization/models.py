"""Operation plan data models."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class MoveOperation(BaseModel):
    """Represents moving a file to a new location.

    Attributes:
        source: Starting file path before the move.
        destination: Destination file path after the move.
        reasoning: Optional explanation for the move.
        conflict_applied: Indicates whether a name collision was resolved.
    """

    source: Path
    destination: Path
    reasoning: Optional[str] = None
    conflict_applied: bool = False


class ArchiveOperation(BaseModel):
    """Represents copying a file into an archive location.

    Attributes:
        source: File being archived; it is left in place.
        destination: Path of the archived copy (``.gz`` suffixed when compressed).
        compress: Whether the copy is gzip-compressed.
        reasoning: Optional explanation for the archive.
    """

    source: Path
    destination: Path
    compress: bool = False
    reasoning: Optional[str] = None


class DeleteOperation(BaseModel):
    """Represents removing a file."""

    path: Path
    reasoning: Optional[str] = None


class OperationPlan(BaseModel):
    """Aggregated plan executed in order: archives, moves, deletes."""

    archives: List[ArchiveOperation] = Field(default_factory=list)
    moves: List[MoveOperation] = Field(default_factory=list)
    deletes: List[DeleteOperation] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.archives or self.moves or self.deletes)


class OperationEvent(BaseModel):
    """History entry describing one applied operation."""

    timestamp: datetime
    operation: Literal["archive", "move", "delete"]
    source: str
    destination: Optional[str] = None
    notes: List[str] = Field(default_factory=list)


class ExecutionResult(BaseModel):
    """Outcome of applying a plan.

    Attributes:
        events: Operations that were applied (or would be, in dry-run mode).
        errors: One message per operation that failed.
    """

    events: List[OperationEvent] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


__all__ = [
    "ArchiveOperation",
    "DeleteOperation",
    "ExecutionResult",
    "MoveOperation",
    "OperationEvent",
    "OperationPlan",
]
