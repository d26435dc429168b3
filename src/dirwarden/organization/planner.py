"""Planner turning queued rule actions into an operation plan."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from dirwarden.fileinfo import category_directory
from dirwarden.rules.engine import ActionContext, ArchiveRequest, MoveRequest, OrganizeRequest

from .models import ArchiveOperation, DeleteOperation, MoveOperation, OperationPlan

DATE_FORMATS = ("year", "year-month", "year-month-day")
LARGE_FILES_DIRNAME = "large"
UNDATED_DIRNAME = "undated"


def format_date_path(timestamp: float, date_format: str) -> str:
    """Return the date folder (``2024``, ``2024/03`` or ``2024/03/15``) for a timestamp."""
    if timestamp <= 0:
        return UNDATED_DIRNAME
    moment = datetime.fromtimestamp(timestamp)
    if date_format == "year":
        return f"{moment.year:04d}"
    if date_format == "year-month":
        return f"{moment.year:04d}/{moment.month:02d}"
    if date_format == "year-month-day":
        return f"{moment.year:04d}/{moment.month:02d}/{moment.day:02d}"
    raise ValueError(f"Unknown date format: {date_format!r}")


class OrganizerPlanner:
    """Derive operation plans from organize requests and action queues."""

    def __init__(self, *, date_format: str = "year-month", size_threshold_mb: int = 100) -> None:
        if date_format not in DATE_FORMATS:
            raise ValueError(f"Unknown date format: {date_format!r}")
        self._date_format = date_format
        self._size_threshold_bytes = size_threshold_mb * 1024 * 1024

    def build_plan(self, requests: Iterable[OrganizeRequest], root: Path) -> OperationPlan:
        """Produce a plan filing each requested path under ``root``.

        Args:
            requests: Files to organize with their layout flags.
            root: Directory the category/date/size folders are created in.

        Returns:
            OperationPlan: Plan containing one move per file that needs one.
        """
        plan = OperationPlan()
        self._add_organize(plan, requests, root, set(), set())
        return plan

    def plan_context(self, context: ActionContext, root: Path) -> OperationPlan:
        """Produce a single plan for everything queued in ``context``.

        Archives are planned first because they leave the source in place.
        A file claimed by a move is not moved or deleted again afterwards.

        Args:
            context: Drained action context.
            root: Watched directory; relative destinations resolve against it.

        Returns:
            OperationPlan: Plan covering every queued action.
        """
        plan = OperationPlan()
        claimed: set[Path] = set()
        occupied: set[Path] = set()

        for archive in context.archives:
            operation = self._build_archive(archive, root, occupied)
            if operation is not None:
                plan.archives.append(operation)
                occupied.add(operation.destination)

        self._add_organize(plan, context.organize, root, claimed, occupied)

        for move in context.moves:
            source = Path(move.source)
            if source in claimed:
                plan.notes.append(f"Skipped move of {source}: already handled this cycle")
                continue
            operation = self._build_move(move, root, occupied)
            if operation is not None:
                plan.moves.append(operation)
                claimed.add(source)
                occupied.add(operation.destination)

        for raw_path in dict.fromkeys(context.deletes):
            path = Path(raw_path)
            if path in claimed:
                plan.notes.append(f"Skipped delete of {path}: file was moved this cycle")
                continue
            plan.deletes.append(DeleteOperation(path=path, reasoning="Rule delete action"))
            claimed.add(path)

        return plan

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _add_organize(
        self,
        plan: OperationPlan,
        requests: Iterable[OrganizeRequest],
        root: Path,
        claimed: set[Path],
        occupied: set[Path],
    ) -> None:
        for request in requests:
            source = Path(request.path)
            if source in claimed:
                continue
            try:
                stat = source.stat()
            except OSError as exc:
                plan.notes.append(f"Skipped organize of {source}: {exc.strerror or exc}")
                continue

            parts: list[str] = []
            if request.by_size and stat.st_size > self._size_threshold_bytes:
                parts.append(LARGE_FILES_DIRNAME)
            elif request.by_category:
                parts.append(category_directory(source))
            if request.by_date:
                parts.extend(format_date_path(stat.st_mtime, self._date_format).split("/"))
            if not parts:
                plan.notes.append(f"Skipped organize of {source}: no layout selected")
                continue

            target_dir = root.joinpath(*parts)
            if source.parent == target_dir:
                continue
            destination, conflict = self._resolve_conflict(target_dir / source.name, occupied)
            plan.moves.append(
                MoveOperation(
                    source=source,
                    destination=destination,
                    reasoning=f"Organize into '{'/'.join(parts)}'",
                    conflict_applied=conflict,
                )
            )
            claimed.add(source)
            occupied.add(destination)

    def _build_move(self, request: MoveRequest, root: Path, occupied: set[Path]) -> Optional[MoveOperation]:
        source = Path(request.source)
        target_dir = self._resolve_directory(request.destination, root)
        if source.parent == target_dir:
            return None
        destination, conflict = self._resolve_conflict(target_dir / source.name, occupied)
        return MoveOperation(
            source=source,
            destination=destination,
            reasoning=f"Rule move to '{request.destination}'",
            conflict_applied=conflict,
        )

    def _build_archive(
        self, request: ArchiveRequest, root: Path, occupied: set[Path]
    ) -> Optional[ArchiveOperation]:
        source = Path(request.source)
        target_dir = self._resolve_directory(request.destination, root)
        name = f"{source.name}.gz" if request.compress else source.name
        destination, _ = self._resolve_conflict(target_dir / name, occupied)
        return ArchiveOperation(
            source=source,
            destination=destination,
            compress=request.compress,
            reasoning=f"Rule archive to '{request.destination}'",
        )

    def _resolve_directory(self, destination: str, root: Path) -> Path:
        target = Path(os.path.expandvars(destination)).expanduser()
        if not target.is_absolute():
            target = root / target
        return target

    def _resolve_conflict(self, candidate: Path, occupied: set[Path]) -> tuple[Path, bool]:
        counter = 1
        final_candidate = candidate
        while final_candidate.exists() or final_candidate in occupied:
            final_candidate = candidate.with_name(f"{candidate.stem}-{counter}{candidate.suffix}")
            counter += 1
        return final_candidate, final_candidate != candidate


__all__ = ["DATE_FORMATS", "OrganizerPlanner", "format_date_path"]
