"""Watch daemon errors."""


class WatchError(Exception):
    """Base exception for the watch daemon."""


class WatchStartupError(WatchError):
    """Raised when the daemon cannot reach its running state."""
