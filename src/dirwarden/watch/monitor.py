"""Poll-based change detection for a single directory.

The monitor keeps a snapshot of ``path -> (size, mtime)`` for the direct
children of one directory and diffs it against the directory on every scan.
Only size and modification time are compared, so a file that is deleted and
recreated between two scans with identical size and mtime goes unnoticed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ObservedFile:
    """Last observed state of a tracked file.

    Attributes:
        path: Absolute path of the file.
        size: Size in bytes.
        mtime_ns: Modification time in nanoseconds since the epoch.
    """

    path: Path
    size: int
    mtime_ns: int


@dataclass(slots=True)
class ScanResult:
    """Paths classified by one scan, in directory listing order."""

    new: list[Path] = field(default_factory=list)
    modified: list[Path] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.new or self.modified)


class DirectoryMonitor:
    """Track the regular files directly inside ``directory``."""

    def __init__(self, directory: Path, *, ignore: Iterable[Path] = ()) -> None:
        """Initialize the monitor.

        Args:
            directory: Directory to watch (not recursed into).
            ignore: Paths never reported, such as the daemon's own log file.
        """
        self._directory = directory.expanduser().resolve()
        self._ignore = {path.expanduser().resolve() for path in ignore}
        self._snapshot: dict[Path, ObservedFile] = {}

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def snapshot(self) -> dict[Path, ObservedFile]:
        """Return the live snapshot mapping."""
        return self._snapshot

    def get(self, path: Path) -> ObservedFile | None:
        return self._snapshot.get(path)

    def scan(self) -> ScanResult:
        """Compare the directory against the snapshot and update it.

        Returns:
            ScanResult: New and modified paths.

        Raises:
            OSError: If the directory itself cannot be listed.
        """
        result = ScanResult()
        for path in list(self._directory.iterdir()):
            if path in self._ignore:
                continue
            try:
                if not path.is_file():
                    continue
                stat = path.stat()
            except OSError as exc:
                LOGGER.debug("Skipping %s: %s", path, exc)
                continue

            observed = ObservedFile(path=path, size=stat.st_size, mtime_ns=stat.st_mtime_ns)
            existing = self._snapshot.get(path)
            if existing is None:
                result.new.append(path)
            elif existing.size != observed.size or existing.mtime_ns != observed.mtime_ns:
                result.modified.append(path)
            else:
                continue
            self._snapshot[path] = observed
        return result

    def forget(self, path: Path) -> None:
        """Stop tracking ``path`` without reporting it as deleted."""
        self._snapshot.pop(path, None)

    def track(self, path: Path) -> None:
        """Record the current state of ``path`` without reporting it as new.

        Only direct children of the watched directory are tracked; other
        paths are ignored.
        """
        path = path.expanduser().resolve()
        if path.parent != self._directory or path in self._ignore:
            return
        try:
            stat = path.stat()
        except OSError as exc:
            LOGGER.debug("Unable to track %s: %s", path, exc)
            return
        self._snapshot[path] = ObservedFile(path=path, size=stat.st_size, mtime_ns=stat.st_mtime_ns)

    def detect_deletions(self) -> list[ObservedFile]:
        """Drop and return snapshot entries whose files no longer exist.

        Entries whose existence cannot be checked (for example on a
        permission error) are kept and checked again on the next call.
        """
        deleted: list[ObservedFile] = []
        for path, record in self._snapshot.items():
            try:
                path.stat()
            except (FileNotFoundError, NotADirectoryError):
                deleted.append(record)
            except OSError as exc:
                LOGGER.debug("Unable to check %s: %s", path, exc)
        for record in deleted:
            del self._snapshot[record.path]
        return deleted


__all__ = ["DirectoryMonitor", "ObservedFile", "ScanResult"]
