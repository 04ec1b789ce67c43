"""Service-level errors shared by the suppression and statistics services."""


class EmberwatchError(Exception):
    """Base class for errors reported to callers of the service layer."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(EmberwatchError):
    """Input rejected before any mutation took place."""


class RuleValidationError(ValidationError):
    """Filter rule has no concrete field, or a field fails its shape checks."""

    def __init__(self, message: str, errors: list | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class InvalidCounterError(ValidationError):
    """A requested history counter does not exist."""


class NotFoundError(EmberwatchError):
    """Unknown rule, project or scope."""


class HistoryRangeError(EmberwatchError):
    """History range is unusable (end before start, non-positive resolution)."""


class NoHistoryError(HistoryRangeError):
    """Scope has no recorded history and no explicit range was given."""
