"""
Bounded in-memory record of failed schedule generation attempts, for debugging.

One recorder is owned by the application and injected into request handlers.
It keeps only a truncated preview of each model response and is cleared on restart.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

PREVIEW_HEAD_CHARS = 1000
PREVIEW_TAIL_CHARS = 500
DEFAULT_CAPACITY = 20


@dataclass(frozen=True)
class FailureRecord:
    attempt_id: str
    error: str
    response_length: int
    response_head: str
    response_tail: str
    request_config: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_response(
        cls,
        attempt_id: str,
        error: str,
        raw_response: Optional[str],
        request_config: Optional[dict[str, Any]] = None,
    ) -> "FailureRecord":
        """Build a record keeping only the head and tail of the raw response."""
        raw = raw_response or ""
        return cls(
            attempt_id=attempt_id,
            error=error,
            response_length=len(raw),
            response_head=raw[:PREVIEW_HEAD_CHARS],
            response_tail=raw[-PREVIEW_TAIL_CHARS:] if raw else "",
            request_config=dict(request_config or {}),
        )

    def to_debug_dict(self) -> dict[str, Any]:
        config = self.request_config
        return {
            "timestamp": self.timestamp.isoformat(),
            "responseLength": self.response_length,
            "error": self.error,
            "requestConfig": {
                "period": config.get("period"),
                "bureau": config.get("bureau"),
                "employeeCount": config.get("employee_count"),
                "existingShiftCount": config.get("existing_shift_count"),
            },
            "responsePreview": {
                "first1000": self.response_head,
                "last500": self.response_tail,
            },
        }


class FailureRecorder:
    """Thread-safe ring buffer of the most recent generation failures."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque[FailureRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def record(self, entry: FailureRecord) -> bool:
        """
        Append a failure, evicting the oldest beyond capacity.
        Returns False if this attempt was already recorded.
        """
        with self._lock:
            if any(e.attempt_id == entry.attempt_id for e in self._entries):
                return False
            self._entries.append(entry)
        logger.warning(
            f"Recorded generation failure {entry.attempt_id}: {entry.error} "
            f"(response length {entry.response_length})"
        )
        return True

    def last_failures(self) -> list[FailureRecord]:
        """Snapshot, most recent first."""
        with self._lock:
            return list(reversed(self._entries))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
