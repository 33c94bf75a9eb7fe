"""
IncomeGuard Services
====================

HTTP services for the IncomeGuard platform.

Services:
- registry: Confidential income verification registry API
"""

__all__ = [
    "registry",
]
