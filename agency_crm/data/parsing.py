"""
Row Schemas for Backend Payloads

Pydantic models for the rows the backend returns. Rows are validated at
the fetch boundary and converted to core entities; a malformed row is
rejected there instead of letting nulls or negative counts flow into
aggregation.

Missing counters (null in the table) are read as 0.
"""

from datetime import date
from typing import Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.entities import DailyMetric, MetricRecord, Profile, Team, TeamMembership
from ..core.roles import parse_roles
from .diagnostics import DiagnosticCategory, DiagnosticLog


class RecordValidationError(ValueError):
    """A backend row failed validation."""

    def __init__(self, source: str, row: dict, errors: list):
        self.source = source
        self.row = row
        self.errors = errors
        super().__init__(f"Malformed {source} row {row.get('id', '?')}: {errors}")


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, populate_by_name=True)


class ProfileRow(_Row):
    """Row of the `profiles` table."""
    id: str = Field(min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    manager_id: Optional[str] = None

    def to_entity(self, extra_roles: Iterable[str] = ()) -> Profile:
        roles = [self.role] if self.role else []
        roles.extend(extra_roles)
        return Profile(
            id=self.id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            roles=parse_roles(roles),
            manager_id=self.manager_id or None
        )


class TeamRow(_Row):
    """Row of the `teams` table. `manager` holds an email or profile id."""
    id: str = Field(min_length=1)
    name: str = ""
    manager: Optional[str] = None

    def to_entity(self) -> Team:
        return Team(id=self.id, name=self.name, manager=self.manager or None)


class MembershipRow(_Row):
    """Row of the `team_members` table."""
    team_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    role: str = "agent"

    def to_entity(self) -> TeamMembership:
        return TeamMembership(team_id=self.team_id, user_id=self.user_id, role=self.role)


class UserRoleRow(_Row):
    """Row of the `user_roles` table."""
    user_id: str = Field(min_length=1)
    role: str = Field(min_length=1)


class DailyMetricRow(_Row):
    """Row of the `daily_metrics` table. `ap` is in cents."""
    id: Optional[str] = None
    user_id: str = Field(min_length=1)
    day: date = Field(alias="date")
    leads: int = Field(default=0, ge=0)
    calls: int = Field(default=0, ge=0)
    contacts: int = Field(default=0, ge=0)
    scheduled: int = Field(default=0, ge=0)
    sits: int = Field(default=0, ge=0)
    sales: int = Field(default=0, ge=0)
    ap: int = Field(default=0, ge=0)

    @field_validator("leads", "calls", "contacts", "scheduled", "sits", "sales", "ap", mode="before")
    @classmethod
    def _null_is_zero(cls, value):
        return 0 if value is None else value

    def to_entity(self) -> DailyMetric:
        return DailyMetric(
            id=self.id,
            user_id=self.user_id,
            day=self.day,
            record=MetricRecord(
                leads=self.leads,
                calls=self.calls,
                contacts=self.contacts,
                scheduled=self.scheduled,
                sits=self.sits,
                sales=self.sales,
                ap=self.ap
            )
        )


RowT = TypeVar("RowT", bound=_Row)


def parse_row(model: Type[RowT], row: dict, source: str = "") -> RowT:
    """Validate one row or raise RecordValidationError."""
    try:
        return model.model_validate(row)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise RecordValidationError(source or model.__name__, dict(row or {}), errors) from e


def parse_rows(
    model: Type[RowT],
    rows: Iterable[dict],
    source: str = "",
    diagnostics: Optional[DiagnosticLog] = None
) -> list[RowT]:
    """
    Validate many rows, dropping malformed ones.

    Each rejected row is recorded as a malformed-record diagnostic; the
    remaining rows are returned in order.
    """
    parsed = []
    for row in rows or ():
        try:
            parsed.append(parse_row(model, row, source))
        except RecordValidationError as e:
            if diagnostics is not None:
                diagnostics.record(
                    DiagnosticCategory.MALFORMED_RECORD,
                    "Rejected malformed row",
                    source=e.source,
                    row_id=e.row.get("id"),
                    errors=e.errors
                )
    return parsed
