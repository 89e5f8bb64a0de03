"""
Core components for compliance engine.

Contains:
- Data models (CheckResult, Policy, Report, etc.)
- Error taxonomy
- Typed resource snapshots
- Base class for checkers
"""
