"""
Shared Models
=============

Response envelopes used across services.
"""

from incomeguard.models.common import ErrorResponse, HealthResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
]
