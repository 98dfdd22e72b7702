"""
Team hierarchy: manager → report trees assembled client-side from
profiles, teams and memberships.
"""

from .builder import HierarchySnapshot, ReportingStructure, TeamHierarchyBuilder

__all__ = [
    "HierarchySnapshot",
    "ReportingStructure",
    "TeamHierarchyBuilder"
]
