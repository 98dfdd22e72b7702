"""
Structured Diagnostics

Read paths degrade to empty or partial results instead of failing the
render. Each degradation is recorded here as a structured event so data
problems stay observable in aggregate. These events are for operators;
user-facing toasts live in core.notifications.

Every recorded event is also written to the module logger.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4
import json
import logging

logger = logging.getLogger(__name__)


class DiagnosticCategory(Enum):
    """What went wrong."""
    FETCH_FAILURE = "fetch_failure"
    WRITE_FAILURE = "write_failure"
    MALFORMED_RECORD = "malformed_record"
    HIERARCHY_INCONSISTENCY = "hierarchy_inconsistency"
    CYCLE_DETECTED = "cycle_detected"
    DEPTH_LIMIT = "depth_limit"


class DiagnosticSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    DiagnosticSeverity.INFO: logging.INFO,
    DiagnosticSeverity.WARNING: logging.WARNING,
    DiagnosticSeverity.ERROR: logging.ERROR,
}


@dataclass
class DiagnosticEvent:
    """A single degradation, with enough context to trace it back."""
    id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=datetime.now)

    category: DiagnosticCategory = DiagnosticCategory.FETCH_FAILURE
    severity: DiagnosticSeverity = DiagnosticSeverity.WARNING
    source: str = ""  # component or table that degraded
    message: str = ""
    payload: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "timestamp": self.timestamp.isoformat(),
            "category": self.category.value,
            "severity": self.severity.value,
            "source": self.source,
            "message": self.message,
            "payload": self.payload
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DiagnosticEvent":
        return cls(
            id=UUID(data["id"]) if data.get("id") else uuid4(),
            timestamp=datetime.fromisoformat(data["timestamp"]) if data.get("timestamp") else datetime.now(),
            category=DiagnosticCategory(data.get("category", "fetch_failure")),
            severity=DiagnosticSeverity(data.get("severity", "warning")),
            source=data.get("source", ""),
            message=data.get("message", ""),
            payload=data.get("payload", {})
        )


class DiagnosticLog:
    """
    Append-only collection of diagnostic events.

    Indexed by category so callers can ask "were there any cycles?"
    without scanning.
    """

    def __init__(self):
        self._events: list[DiagnosticEvent] = []
        self._index_by_category: dict[DiagnosticCategory, list[int]] = {}

    def record(
        self,
        category: DiagnosticCategory,
        message: str,
        source: str = "",
        severity: DiagnosticSeverity = DiagnosticSeverity.WARNING,
        **payload
    ) -> DiagnosticEvent:
        """Create, log and append an event."""
        event = DiagnosticEvent(
            category=category,
            severity=severity,
            source=source,
            message=message,
            payload=payload
        )
        self.append(event)
        logger.log(
            _LOG_LEVELS[severity],
            "[%s] %s: %s %s",
            category.value, source or "-", message, payload or ""
        )
        return event

    def append(self, event: DiagnosticEvent) -> None:
        idx = len(self._events)
        self._events.append(event)
        self._index_by_category.setdefault(event.category, []).append(idx)

    def get_by_category(self, category: DiagnosticCategory) -> list[DiagnosticEvent]:
        indices = self._index_by_category.get(category, [])
        return [self._events[i] for i in indices]

    def query(
        self,
        category: Optional[DiagnosticCategory] = None,
        source: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: int = 100
    ) -> list[DiagnosticEvent]:
        """Most recent events first, filtered."""
        results = []
        for event in reversed(self._events):
            if len(results) >= limit:
                break
            if category and event.category != category:
                continue
            if source and event.source != source:
                continue
            if since and event.timestamp < since:
                continue
            results.append(event)
        return results

    def counts(self, start: int = 0) -> dict[str, int]:
        """Events per category, counting from position `start` onwards."""
        counts = {}
        for cat, indices in self._index_by_category.items():
            n = sum(1 for i in indices if i >= start)
            if n:
                counts[cat.value] = n
        return counts

    def export_jsonl(self, filepath: str) -> int:
        """Export events to JSON Lines format."""
        count = 0
        with open(filepath, 'w') as f:
            for event in self._events:
                f.write(json.dumps(event.to_dict()) + '\n')
                count += 1
        return count

    def __iter__(self):
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)
