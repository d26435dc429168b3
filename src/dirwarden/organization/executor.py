"""Executor for operation plans."""

from __future__ import annotations

import gzip
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Literal, Optional

from .models import (
    ArchiveOperation,
    DeleteOperation,
    ExecutionResult,
    MoveOperation,
    OperationEvent,
    OperationPlan,
)

LOGGER = logging.getLogger(__name__)


class OperationExecutor:
    """Apply operation plans, recording failures instead of stopping."""

    def __init__(self, *, dry_run: bool = False) -> None:
        self._dry_run = dry_run

    def apply(self, plan: OperationPlan) -> ExecutionResult:
        """Apply the given plan by executing archive, move and delete operations.

        Args:
            plan: Operation plan computed by the planner.

        Returns:
            ExecutionResult: Events for applied operations and one error message
            per operation that failed.
        """

        result = ExecutionResult()

        for archive_op in plan.archives:
            self._run(result, "archive", archive_op.source, archive_op.destination, archive_op)
        for move_op in plan.moves:
            self._run(result, "move", move_op.source, move_op.destination, move_op)
        for delete_op in plan.deletes:
            self._run(result, "delete", delete_op.path, None, delete_op)

        return result

    def _run(
        self,
        result: ExecutionResult,
        operation: Literal["archive", "move", "delete"],
        source: Path,
        destination: Optional[Path],
        payload: ArchiveOperation | MoveOperation | DeleteOperation,
    ) -> None:
        try:
            if not source.exists():
                raise FileNotFoundError(f"Source path is missing: {source}")
            if not self._dry_run:
                if isinstance(payload, ArchiveOperation):
                    self._archive(payload)
                elif isinstance(payload, MoveOperation):
                    self._move(payload)
                else:
                    source.unlink()
        except OSError as exc:
            LOGGER.debug("%s of %s failed: %s", operation, source, exc)
            result.errors.append(f"{operation} {source}: {exc}")
            return

        result.events.append(
            self._create_event(
                operation=operation,
                source=source,
                destination=destination,
                notes=[payload.reasoning] if payload.reasoning else None,
            )
        )

    def _archive(self, operation: ArchiveOperation) -> None:
        operation.destination.parent.mkdir(parents=True, exist_ok=True)
        if operation.destination.exists():
            raise FileExistsError(f"Destination already exists: {operation.destination}")
        if operation.compress:
            with operation.source.open("rb") as src, gzip.open(operation.destination, "wb") as dst:
                shutil.copyfileobj(src, dst)
        else:
            shutil.copy2(operation.source, operation.destination)

    def _move(self, operation: MoveOperation) -> None:
        operation.destination.parent.mkdir(parents=True, exist_ok=True)
        if operation.destination.exists() and operation.destination != operation.source:
            raise FileExistsError(f"Destination already exists: {operation.destination}")
        shutil.move(str(operation.source), str(operation.destination))

    def _create_event(
        self,
        *,
        operation: Literal["archive", "move", "delete"],
        source: Path,
        destination: Optional[Path],
        notes: Iterable[str] | None,
    ) -> OperationEvent:
        return OperationEvent(
            timestamp=datetime.now(timezone.utc),
            operation=operation,
            source=str(source),
            destination=str(destination) if destination is not None else None,
            notes=list(notes or []),
        )


__all__ = ["OperationExecutor"]
