"""Rule subsystem errors."""


class RuleError(Exception):
    """Base exception for rule parsing and evaluation."""


class RuleLoadError(RuleError):
    """Raised when a rule document cannot be loaded at all."""
