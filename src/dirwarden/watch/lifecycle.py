"""Process lifecycle helpers: shutdown token, signals, watch log and pid file."""

from __future__ import annotations

import os
import signal
import time
from pathlib import Path
from types import FrameType
from typing import Any, Callable, Iterable, Optional, TextIO

from .errors import WatchStartupError

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownToken:
    """Cooperative cancellation flag shared by a signal handler and the watch loop.

    The signal handler is the only writer and the watch loop the only reader;
    the loop checks the token once per cycle, before sleeping. Setting a plain
    attribute takes no lock, so it is safe inside a signal handler.
    """

    def __init__(self) -> None:
        self._requested = False

    def request(self) -> None:
        """Ask the watch loop to stop after its current cycle."""
        self._requested = True

    @property
    def requested(self) -> bool:
        return self._requested


def install_signal_handlers(
    token: ShutdownToken,
    signals: Iterable[signal.Signals] = SHUTDOWN_SIGNALS,
) -> Callable[[], None]:
    """Route ``signals`` to ``token.request``.

    Must be called from the main thread.

    Returns:
        Callable[[], None]: Function restoring the previous handlers.
    """

    def _handler(signum: int, frame: Optional[FrameType]) -> None:
        token.request()

    previous: dict[signal.Signals, Any] = {}
    for signum in signals:
        previous[signum] = signal.signal(signum, _handler)

    def _restore() -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    return _restore


class WatchLog:
    """Append-only operational log with ``[<unix-seconds>] <message>`` lines."""

    def __init__(self, path: Path, *, echo: Optional[Callable[[str], None]] = None) -> None:
        """Initialize the log.

        Args:
            path: Log file location; parent directories are created on open.
            echo: Optional callable receiving every line, used for verbose output.
        """
        self._path = path.expanduser()
        self._echo = echo
        self._handle: Optional[TextIO] = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> None:
        """Open the log for appending.

        Raises:
            WatchStartupError: If the file or its parent cannot be created.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self._path.open("a", encoding="utf-8")
        except OSError as exc:
            raise WatchStartupError(f"Unable to open watch log {self._path}: {exc}") from exc

    def write(self, message: str) -> None:
        """Append one line; echo it when an echo callable is configured."""
        line = f"[{int(time.time())}] {message}"
        if self._handle is not None:
            self._handle.write(line + "\n")
            self._handle.flush()
        if self._echo is not None:
            self._echo(line)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


def write_pid_file(path: Path) -> Path:
    """Write the current process id to ``path``, replacing any previous content.

    Raises:
        WatchStartupError: If the file cannot be written.
    """
    path = path.expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{os.getpid()}\n", encoding="utf-8")
    except OSError as exc:
        raise WatchStartupError(f"Unable to write pid file {path}: {exc}") from exc
    return path


def remove_pid_file(path: Path) -> None:
    """Remove the pid file if it is still present."""
    path.expanduser().unlink(missing_ok=True)


__all__ = [
    "SHUTDOWN_SIGNALS",
    "ShutdownToken",
    "WatchLog",
    "install_signal_handlers",
    "remove_pid_file",
    "write_pid_file",
]
