"""Tests for the polling directory monitor."""

import os
from pathlib import Path

import pytest

from dirwarden.watch import DirectoryMonitor


@pytest.fixture()
def watched(tmp_path: Path) -> Path:
    root = tmp_path / "watched"
    root.mkdir()
    return root


def test_unchanged_directory_scans_are_idempotent(watched: Path) -> None:
    (watched / "a.txt").write_bytes(b"0123456789")
    monitor = DirectoryMonitor(watched)
    monitor.scan()
    before = dict(monitor.snapshot)

    result = monitor.scan()

    assert not result
    assert monitor.snapshot == before


def test_new_file_is_reported_exactly_once(watched: Path) -> None:
    monitor = DirectoryMonitor(watched)
    assert not monitor.scan()

    (watched / "a.txt").write_bytes(b"0123456789")
    first = monitor.scan()
    second = monitor.scan()

    assert first.new == [watched.resolve() / "a.txt"]
    assert first.modified == []
    assert not second
    record = monitor.get(watched.resolve() / "a.txt")
    assert record is not None and record.size == 10


def test_size_or_mtime_change_is_reported_as_modified(watched: Path) -> None:
    target = watched / "a.txt"
    target.write_bytes(b"0123456789")
    monitor = DirectoryMonitor(watched)
    monitor.scan()

    target.write_bytes(b"0123456789abcdefghij")
    resized = monitor.scan()
    stat = target.stat()
    os.utime(target, ns=(stat.st_atime_ns, stat.st_mtime_ns + 5_000_000_000))
    touched = monitor.scan()

    assert resized.modified == [target.resolve()]
    assert touched.modified == [target.resolve()]
    assert resized.new == touched.new == []


def test_deletion_is_reported_once_and_dropped(watched: Path) -> None:
    target = watched / "a.txt"
    target.write_bytes(b"0123456789")
    monitor = DirectoryMonitor(watched)
    monitor.scan()

    target.unlink()
    first = monitor.detect_deletions()
    second = monitor.detect_deletions()

    assert [record.path for record in first] == [target.resolve()]
    assert first[0].size == 10
    assert second == []
    assert monitor.get(target.resolve()) is None


def test_subdirectories_and_ignored_paths_are_skipped(watched: Path) -> None:
    (watched / "nested").mkdir()
    (watched / "nested" / "inner.txt").write_text("inner", encoding="utf-8")
    (watched / "watch.log").write_text("log", encoding="utf-8")
    (watched / "keep.txt").write_text("keep", encoding="utf-8")
    monitor = DirectoryMonitor(watched, ignore=[watched / "watch.log"])

    result = monitor.scan()

    assert result.new == [watched.resolve() / "keep.txt"]


def test_forget_drops_entry_without_reporting_deletion(watched: Path) -> None:
    target = watched / "a.txt"
    target.write_bytes(b"x")
    monitor = DirectoryMonitor(watched)
    monitor.scan()

    monitor.forget(target.resolve())
    target.unlink()

    assert monitor.detect_deletions() == []


def test_missing_directory_raises(tmp_path: Path) -> None:
    monitor = DirectoryMonitor(tmp_path / "missing")

    with pytest.raises(OSError):
        monitor.scan()


def test_unreadable_entry_is_kept_by_deletion_check(
    watched: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = (watched / "a.txt").resolve()
    target.write_bytes(b"x")
    monitor = DirectoryMonitor(watched)
    monitor.scan()
    original_stat = Path.stat

    def denied_stat(self: Path, *args, **kwargs):
        if self == target:
            raise PermissionError(13, "Permission denied", str(self))
        return original_stat(self, *args, **kwargs)

    monkeypatch.setattr(Path, "stat", denied_stat)

    assert monitor.detect_deletions() == []
    assert monitor.get(target) is not None


def test_track_records_file_without_reporting_it_as_new(watched: Path, tmp_path: Path) -> None:
    monitor = DirectoryMonitor(watched)
    monitor.scan()
    copy = watched / "copy.txt"
    copy.write_text("copy", encoding="utf-8")
    outside = tmp_path / "outside.txt"
    outside.write_text("elsewhere", encoding="utf-8")

    monitor.track(copy)
    monitor.track(outside)

    assert not monitor.scan()
    assert monitor.get(copy.resolve()) is not None
    assert monitor.get(outside.resolve()) is None
