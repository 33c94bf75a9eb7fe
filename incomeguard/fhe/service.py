"""
Confidential Value Service Interface
====================================

Abstract base class for the FHE subsystem: ciphertext creation, encrypted
comparison, capability grants and capability-checked decryption.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from typing import Any

from incomeguard.config import FHEMode, settings
from incomeguard.fhe.models import EncryptedHandle, FHEType
from incomeguard.logging import get_logger

logger = get_logger(__name__)


class AccessDeniedError(PermissionError):
    """Account holds no capability on the ciphertext."""

    def __init__(self, handle: EncryptedHandle, account: str) -> None:
        super().__init__(f"Account {account} is not allowed to use {handle}")
        self.handle = handle
        self.account = account


class UnknownHandleError(LookupError):
    """Handle was never issued by this service."""


class ConfidentialValueService(ABC):
    """
    Abstract base class for confidential-value backends.

    Callers only ever see EncryptedHandle objects. Comparisons produce
    encrypted booleans; a boolean leaves the encrypted domain only through
    `decrypt`, which requires a capability grant.
    """

    @property
    @abstractmethod
    def mode(self) -> FHEMode:
        """Get the backend mode."""
        ...

    @abstractmethod
    def encrypt(self, value: int | bool, fhe_type: FHEType) -> EncryptedHandle:
        """
        Encrypt a plaintext into a fresh handle.

        Args:
            value: Plaintext value
            fhe_type: Target encrypted type

        Returns:
            EncryptedHandle for the new ciphertext

        Raises:
            ValueError: If value does not fit the type
        """
        ...

    @abstractmethod
    def ge(
        self,
        lhs: EncryptedHandle,
        rhs: EncryptedHandle | int,
        operator: str,
    ) -> EncryptedHandle:
        """
        Encrypted `lhs >= rhs`.

        Args:
            lhs: Encrypted left operand
            rhs: Encrypted or plaintext scalar right operand
            operator: Account performing the computation; it must hold a
                capability on every encrypted operand and receives one on
                the result

        Returns:
            Encrypted boolean handle

        Raises:
            AccessDeniedError: If operator may not use an operand
        """
        ...

    @abstractmethod
    def allow(self, handle: EncryptedHandle, account: str) -> None:
        """Grant an account the capability to use and decrypt a handle."""
        ...

    def allow_this(self, handle: EncryptedHandle, contract: str) -> None:
        """Grant the calling contract the capability to operate on a handle."""
        self.allow(handle, contract)

    @abstractmethod
    def revoke(self, handle: EncryptedHandle, account: str) -> None:
        """Withdraw an account's capability on a handle (no-op if absent)."""
        ...

    @abstractmethod
    def is_allowed(self, handle: EncryptedHandle, account: str) -> bool:
        """Check whether an account holds a capability on a handle."""
        ...

    @abstractmethod
    def decrypt(self, handle: EncryptedHandle, account: str) -> int | bool:
        """
        Decrypt a handle on behalf of an account.

        Raises:
            AccessDeniedError: If account holds no capability
            UnknownHandleError: If the handle is unknown
        """
        ...

    @abstractmethod
    def release(self, handle: EncryptedHandle) -> None:
        """
        Discard a ciphertext and every capability on it.

        Used for transient results such as comparison outcomes that have
        already been decrypted.

        Raises:
            UnknownHandleError: If the handle is unknown
        """
        ...

    @abstractmethod
    def health_check(self) -> dict[str, Any]:
        """Check backend health."""
        ...


# Global service instance
_service: ConfidentialValueService | None = None


def get_confidential_service() -> ConfidentialValueService:
    """
    Get the configured confidential-value service.

    Returns:
        ConfidentialValueService instance based on settings
    """
    global _service

    if _service is None:
        mode = settings.fhe.mode

        if mode == FHEMode.MOCK:
            from incomeguard.fhe.mock import MockConfidentialValueService

            _service = MockConfidentialValueService()
        elif mode == FHEMode.TESTNET:
            raise NotImplementedError(
                f"FHE mode '{mode.value}' not yet implemented. "
                "Use FHE_MODE=mock for development."
            )
        else:
            raise ValueError(f"Unknown FHE mode: {mode}")

        logger.info("confidential_service_initialized", mode=mode.value)

    return _service


def set_confidential_service(service: ConfidentialValueService) -> None:
    """Set a custom confidential-value service."""
    global _service
    _service = service
    logger.info("confidential_service_set", mode=service.mode.value)


def reset_confidential_service() -> None:
    """Reset the service to be re-initialized."""
    global _service
    _service = None
