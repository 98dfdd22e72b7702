"""
Agency CRM

Metrics and team hierarchy for insurance agencies: per-agent daily
activity counters, conversion ratios, manager → report team trees
assembled client-side from a hosted backend, bottom-up aggregation and a
what-if Success Calculator.
"""

__version__ = "0.1.0"
