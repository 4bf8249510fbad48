"""
Registry Guardian

Policy and consistency enforcement for the agent registry: progressive
schema validation, role-based write gates, scheduled consistency audits,
and launch/performance scoring.
"""

__version__ = "0.1.0"
