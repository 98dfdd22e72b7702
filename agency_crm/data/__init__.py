"""
Data Access Layer

Gateway contract over the backend tables (profiles, teams, team_members,
user_roles, daily_metrics), row validation at the fetch boundary, and
structured diagnostics for degraded reads and writes.
"""

from .diagnostics import DiagnosticCategory, DiagnosticEvent, DiagnosticLog, DiagnosticSeverity
from .gateway import DataGateway, GatewayError, InMemoryGateway
from .parsing import RecordValidationError, parse_row, parse_rows

__all__ = [
    "DiagnosticCategory",
    "DiagnosticEvent",
    "DiagnosticLog",
    "DiagnosticSeverity",
    "DataGateway",
    "GatewayError",
    "InMemoryGateway",
    "RecordValidationError",
    "parse_row",
    "parse_rows"
]
