"""
Confidential Value Module
=========================

Opaque encrypted handles and the service that computes on them.

Usage:
    from incomeguard.fhe import FHEType, get_confidential_service

    fhe = get_confidential_service()
    income = fhe.encrypt(42, FHEType.EUINT8)
    fhe.allow_this(income, contract_address)

    meets = fhe.ge(income, 28, operator=contract_address)
    fhe.decrypt(meets, contract_address)  # True
"""

from incomeguard.fhe.mock import MockConfidentialValueService
from incomeguard.fhe.models import EncryptedHandle, FHEType
from incomeguard.fhe.service import (
    AccessDeniedError,
    ConfidentialValueService,
    UnknownHandleError,
    get_confidential_service,
    reset_confidential_service,
    set_confidential_service,
)


__all__ = [
    # Service
    "ConfidentialValueService",
    "get_confidential_service",
    "set_confidential_service",
    "reset_confidential_service",
    # Models
    "EncryptedHandle",
    "FHEType",
    # Errors
    "AccessDeniedError",
    "UnknownHandleError",
    # Implementations
    "MockConfidentialValueService",
]
