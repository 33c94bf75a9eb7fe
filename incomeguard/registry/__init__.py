"""
Verification Registry Module
============================

Confidential income verification: request, approval, expiry and
role-gated access over encrypted claims.

Usage:
    from incomeguard.registry import get_registry

    registry = get_registry()
    request_id = registry.submit_request("0xb0b", 42, 48, "QmEvidence")
    verification_id = registry.process_request(
        registry.authority, request_id, "employer-hash", approve=True
    )
    registry.check_threshold("0xb0b", verification_id, 28)
"""

from incomeguard.config import settings
from incomeguard.fhe import get_confidential_service
from incomeguard.ledger import get_ledger_host
from incomeguard.logging import get_logger
from incomeguard.registry.errors import (
    ExpiredError,
    InvalidInputError,
    NotActiveError,
    NotFoundError,
    NotPendingError,
    RegistryError,
    UnauthorizedError,
)
from incomeguard.registry.models import (
    RegistryEvent,
    RegistryStats,
    RequestInfo,
    VerificationInfo,
    VerificationRecord,
    VerificationRequest,
)
from incomeguard.registry.registry import VerificationRegistry, normalize_account

logger = get_logger(__name__)

# Global registry instance
_registry: VerificationRegistry | None = None


def get_registry() -> VerificationRegistry:
    """
    Get the registry deployed on the configured ledger host.

    Returns:
        VerificationRegistry instance based on settings
    """
    global _registry

    if _registry is None:
        _registry = VerificationRegistry(
            authority=settings.registry.authority_address,
            ledger=get_ledger_host(),
            fhe=get_confidential_service(),
            validity_days=settings.registry.validity_days,
        )

    return _registry


def set_registry(registry: VerificationRegistry) -> None:
    """Set a custom registry instance."""
    global _registry
    _registry = registry
    logger.info("registry_set", address=registry.address)


def reset_registry() -> None:
    """Reset the registry to be re-deployed on next access."""
    global _registry
    _registry = None


__all__ = [
    # Registry
    "VerificationRegistry",
    "normalize_account",
    "get_registry",
    "set_registry",
    "reset_registry",
    # Models
    "RegistryEvent",
    "RegistryStats",
    "RequestInfo",
    "VerificationInfo",
    "VerificationRecord",
    "VerificationRequest",
    # Errors
    "RegistryError",
    "InvalidInputError",
    "NotFoundError",
    "UnauthorizedError",
    "NotPendingError",
    "NotActiveError",
    "ExpiredError",
]
