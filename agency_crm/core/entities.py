"""
Core CRM Entities - Agent Performance Records

This module defines the records the rest of the package computes over.
The hosted backend remains the system of record; these are the in-memory
representations assembled from its rows on every fetch.

Entities:
- MetricRecord: counters (leads, calls, contacts, scheduled, sits, sales, ap)
- DailyMetric: a MetricRecord attributed to one user for one calendar day
- Profile: an agent or manager identity with roles and manager linkage
- Team / TeamMembership: team records and membership rows
- MemberNode / TeamNode: the assembled team hierarchy
"""

from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Optional

from .roles import Role


class MetricType(Enum):
    """
    Counters tracked per agent.

    Order matters: it is the order of the metric entry grid and of every
    serialized record.
    """
    LEADS = "leads"
    CALLS = "calls"
    CONTACTS = "contacts"
    SCHEDULED = "scheduled"
    SITS = "sits"
    SALES = "sales"
    AP = "ap"

    @classmethod
    def parse(cls, value) -> "MetricType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown metric: {value!r}") from None


METRIC_FIELDS = tuple(m.value for m in MetricType)


@dataclass
class MetricRecord:
    """
    Flat tuple of activity counters for one user over one period.

    `ap` (annual premium) is held in cents. Dollars only appear when a
    value is formatted for display.
    """
    leads: int = 0
    calls: int = 0
    contacts: int = 0
    scheduled: int = 0
    sits: int = 0
    sales: int = 0
    ap: int = 0  # cents

    def __post_init__(self):
        for f in fields(self):
            _check_count(f.name, getattr(self, f.name))

    def get(self, metric) -> int:
        return getattr(self, MetricType.parse(metric).value)

    def set(self, metric, value: int) -> None:
        """Direct edit of one counter."""
        name = MetricType.parse(metric).value
        _check_count(name, value)
        setattr(self, name, value)

    def increment(self, metric, ap_step: int = 100) -> int:
        """Add one unit (or `ap_step` cents for AP). Returns the new value."""
        metric = MetricType.parse(metric)
        step = ap_step if metric is MetricType.AP else 1
        value = self.get(metric) + step
        setattr(self, metric.value, value)
        return value

    def decrement(self, metric, ap_step: int = 100) -> int:
        """Remove one unit, never going below zero. Returns the new value."""
        metric = MetricType.parse(metric)
        step = ap_step if metric is MetricType.AP else 1
        value = max(0, self.get(metric) - step)
        setattr(self, metric.value, value)
        return value

    def reset(self) -> None:
        for name in METRIC_FIELDS:
            setattr(self, name, 0)

    def is_empty(self) -> bool:
        return all(getattr(self, name) == 0 for name in METRIC_FIELDS)

    def copy(self) -> "MetricRecord":
        return MetricRecord(**self.to_dict())

    def __add__(self, other: "MetricRecord") -> "MetricRecord":
        if not isinstance(other, MetricRecord):
            return NotImplemented
        return MetricRecord(**{
            name: getattr(self, name) + getattr(other, name)
            for name in METRIC_FIELDS
        })

    def __radd__(self, other):
        # Allows sum(records) with the default int start value
        if other == 0:
            return self.copy()
        return self.__add__(other)

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in METRIC_FIELDS}

    @classmethod
    def from_dict(cls, data: dict) -> "MetricRecord":
        return cls(**{name: data.get(name) or 0 for name in METRIC_FIELDS})


def _check_count(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")


@dataclass
class DailyMetric:
    """
    One row of the daily metrics table.

    The backend keeps a unique (user_id, date) key; writes are upserts.
    """
    user_id: str = ""
    day: date = field(default_factory=date.today)
    record: MetricRecord = field(default_factory=MetricRecord)
    id: Optional[str] = None

    def to_row(self) -> dict:
        row = {"user_id": self.user_id, "date": self.day.isoformat()}
        row.update(self.record.to_dict())
        return row


@dataclass
class Profile:
    """
    An agent, manager or admin.

    `manager_id` is the manager linkage: the id of the profile this one
    reports to.
    """
    id: str = ""
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    roles: frozenset = field(default_factory=frozenset)  # of Role
    manager_id: Optional[str] = None

    @property
    def full_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or (self.email or self.id)

    def matches(self, identifier: Optional[str]) -> bool:
        """True when `identifier` is this profile's id or email."""
        if not identifier:
            return False
        if identifier == self.id:
            return True
        return bool(self.email) and identifier.strip().lower() == self.email.lower()

    def has_role(self, role: Role) -> bool:
        return Role(role) in self.roles


@dataclass
class Team:
    """A team record. `manager` is an identifier: email or profile id."""
    id: str = ""
    name: str = ""
    manager: Optional[str] = None


@dataclass
class TeamMembership:
    """Membership row linking a user to a team."""
    team_id: str = ""
    user_id: str = ""
    role: str = "agent"


@dataclass
class MemberNode:
    """
    A profile placed in the hierarchy.

    `record` is the member's own metrics for the loaded period;
    subordinate records are only combined by the aggregator.
    """
    profile: Profile = field(default_factory=Profile)
    record: MetricRecord = field(default_factory=MetricRecord)
    subordinates: list = field(default_factory=list)  # of MemberNode
    level: int = 0

    @property
    def id(self) -> str:
        return self.profile.id

    def walk(self):
        """Yield this node and every subordinate, depth first."""
        yield self
        for child in self.subordinates:
            yield from child.walk()


@dataclass
class TeamNode:
    """
    One team in the assembled forest.

    The manager is excluded from `members`; it is kept apart so the
    aggregator can count it exactly once.
    """
    id: str = ""
    name: str = ""
    manager_ref: Optional[str] = None
    manager: Optional[MemberNode] = None
    members: list = field(default_factory=list)  # of MemberNode
    level: int = 0

    def walk(self):
        """Yield every member node in the team, manager first."""
        if self.manager is not None:
            yield self.manager
        for member in self.members:
            yield from member.walk()

    def profile_ids(self) -> set:
        return {node.id for node in self.walk()}
