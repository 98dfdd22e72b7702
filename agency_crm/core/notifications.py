"""
User-facing notifications.

These are the non-blocking toasts shown to the agent. They are kept apart
from diagnostics, which are meant for operators.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class NotificationVariant(Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    title: str = ""
    description: str = ""
    variant: NotificationVariant = NotificationVariant.DEFAULT
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_error(self) -> bool:
        return self.variant is NotificationVariant.DESTRUCTIVE


class NotificationCenter:
    """Collects notifications raised while serving one request."""

    def __init__(self):
        self._items: list[Notification] = []

    def notify(self, title: str, description: str = "") -> Notification:
        item = Notification(title=title, description=description)
        self._items.append(item)
        return item

    def error(self, description: str, title: str = "Error") -> Notification:
        item = Notification(
            title=title,
            description=description,
            variant=NotificationVariant.DESTRUCTIVE
        )
        self._items.append(item)
        return item

    def drain(self) -> list[Notification]:
        """Return and clear pending notifications."""
        items, self._items = self._items, []
        return items

    @property
    def pending(self) -> list[Notification]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
