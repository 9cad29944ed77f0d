"""
Errors raised by the schedule generation and persistence services.
Routes translate these into HTTP responses.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for schedule generation/persistence failures."""


class NotConfiguredError(SchedulingError):
    """The AI backend has no credentials. Raised before any network call."""


class GenerationError(SchedulingError):
    """The AI backend failed (network, rate limit, bad response). Message is safe to show users."""


class ParseError(SchedulingError):
    """Model output did not match the expected schedule shape."""


class ConflictError(SchedulingError):
    """Hard conflicts found before saving."""

    def __init__(self, conflicts: list):
        self.conflicts = conflicts
        super().__init__(
            f"Schedule has {self.conflict_count} conflict(s). "
            "Use skip_conflict_check to save anyway."
        )

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)


class PersistenceError(SchedulingError):
    """Transactional write failed and was rolled back."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)
