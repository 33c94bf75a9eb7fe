"""
Mock Confidential Value Service
===============================

In-memory stand-in for an FHE coprocessor. Plaintexts live in a private
vault keyed by random handles; the access-control list is enforced exactly
as a real backend would enforce it.

Version: 0.1.0
"""

import secrets
from typing import Any

from incomeguard.config import FHEMode
from incomeguard.fhe.models import EncryptedHandle, FHEType
from incomeguard.fhe.service import (
    AccessDeniedError,
    ConfidentialValueService,
    UnknownHandleError,
)
from incomeguard.logging import get_logger

logger = get_logger(__name__)


class MockConfidentialValueService(ConfidentialValueService):
    """
    In-memory mock confidential-value service.

    Data is stored in memory and lost on restart.
    """

    def __init__(self) -> None:
        self._vault: dict[str, int | bool] = {}
        self._acl: dict[str, set[str]] = {}
        self._operations = 0

        logger.debug("mock_fhe_initialized")

    @property
    def mode(self) -> FHEMode:
        return FHEMode.MOCK

    def health_check(self) -> dict[str, Any]:
        """Check mock backend health."""
        return {
            "status": "healthy",
            "mode": self.mode.value,
            "ciphertexts": len(self._vault),
            "operations": self._operations,
        }

    def _new_handle(self, value: int | bool, fhe_type: FHEType) -> EncryptedHandle:
        handle = EncryptedHandle(handle="0x" + secrets.token_bytes(32).hex(), fhe_type=fhe_type)
        self._vault[handle.handle] = value
        self._acl[handle.handle] = set()
        return handle

    def _load(self, handle: EncryptedHandle) -> int | bool:
        if handle.handle not in self._vault:
            raise UnknownHandleError(f"Unknown ciphertext handle: {handle.handle}")
        return self._vault[handle.handle]

    def _require_access(self, handle: EncryptedHandle, account: str) -> None:
        self._load(handle)
        if account not in self._acl[handle.handle]:
            logger.warning("mock_fhe_access_denied", handle=str(handle), account=account)
            raise AccessDeniedError(handle, account)

    # =========================================================================
    # Encryption
    # =========================================================================

    def encrypt(self, value: int | bool, fhe_type: FHEType) -> EncryptedHandle:
        """Encrypt a plaintext after range-checking it against the type."""
        if fhe_type == FHEType.EBOOL:
            if not isinstance(value, bool):
                raise ValueError(f"ebool expects a bool, got {type(value).__name__}")
        else:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{fhe_type.value} expects an int, got {type(value).__name__}")
            if value < 0 or value > fhe_type.max_value:
                raise ValueError(
                    f"Value out of range for {fhe_type.value} [0, {fhe_type.max_value}]"
                )

        handle = self._new_handle(value, fhe_type)
        logger.debug("mock_fhe_encrypted", handle=str(handle))
        return handle

    # =========================================================================
    # Computation
    # =========================================================================

    def ge(
        self,
        lhs: EncryptedHandle,
        rhs: EncryptedHandle | int,
        operator: str,
    ) -> EncryptedHandle:
        """Compare in the vault and hand back an encrypted boolean."""
        if lhs.fhe_type == FHEType.EBOOL:
            raise ValueError("Ordering comparison is not defined for ebool")
        self._require_access(lhs, operator)
        left = self._load(lhs)

        if isinstance(rhs, EncryptedHandle):
            if rhs.fhe_type == FHEType.EBOOL:
                raise ValueError("Ordering comparison is not defined for ebool")
            self._require_access(rhs, operator)
            right = self._load(rhs)
        else:
            if isinstance(rhs, bool) or rhs < 0:
                raise ValueError("Scalar operand must be a non-negative int")
            right = rhs

        self._operations += 1
        result = self._new_handle(left >= right, FHEType.EBOOL)
        self._acl[result.handle].add(operator)
        return result

    # =========================================================================
    # Access Control
    # =========================================================================

    def allow(self, handle: EncryptedHandle, account: str) -> None:
        self._load(handle)
        self._acl[handle.handle].add(account)
        logger.debug("mock_fhe_access_granted", handle=str(handle), account=account)

    def revoke(self, handle: EncryptedHandle, account: str) -> None:
        self._load(handle)
        self._acl[handle.handle].discard(account)
        logger.debug("mock_fhe_access_revoked", handle=str(handle), account=account)

    def is_allowed(self, handle: EncryptedHandle, account: str) -> bool:
        return account in self._acl.get(handle.handle, set())

    def decrypt(self, handle: EncryptedHandle, account: str) -> int | bool:
        self._require_access(handle, account)
        return self._vault[handle.handle]

    def release(self, handle: EncryptedHandle) -> None:
        self._load(handle)
        del self._vault[handle.handle]
        del self._acl[handle.handle]

    # =========================================================================
    # Test Utilities
    # =========================================================================

    def clear_all(self) -> None:
        """Clear all mock data (for testing)."""
        self._vault.clear()
        self._acl.clear()
        self._operations = 0
        logger.debug("mock_fhe_cleared")

    def get_stats(self) -> dict[str, int]:
        """Get storage statistics."""
        return {
            "ciphertexts": len(self._vault),
            "grants": sum(len(accounts) for accounts in self._acl.values()),
            "operations": self._operations,
        }
