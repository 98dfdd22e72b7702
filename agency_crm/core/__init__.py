"""
Core domain records for the agency CRM.

Metric records, profiles, teams, hierarchy nodes, roles and
user-facing notifications.
"""
