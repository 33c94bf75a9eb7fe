"""
Confidential Value Models
=========================

Pydantic models for opaque encrypted handles.

Version: 0.1.0
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FHEType(str, Enum):
    """Encrypted value types supported by the confidential-value service."""

    EBOOL = "ebool"
    EUINT8 = "euint8"
    EUINT32 = "euint32"
    EUINT64 = "euint64"

    @property
    def bits(self) -> int:
        """Bit width of the plaintext domain."""
        return {
            FHEType.EBOOL: 1,
            FHEType.EUINT8: 8,
            FHEType.EUINT32: 32,
            FHEType.EUINT64: 64,
        }[self]

    @property
    def max_value(self) -> int:
        """Largest plaintext representable by this type."""
        return (1 << self.bits) - 1


class EncryptedHandle(BaseModel):
    """
    Opaque reference to a ciphertext held by the confidential-value service.

    The handle carries no information about the plaintext; only accounts
    granted a capability on it can ask the service to decrypt.
    """

    model_config = ConfigDict(frozen=True)

    handle: str = Field(..., pattern=r"^0x[0-9a-f]{64}$", description="Ciphertext handle")
    fhe_type: FHEType = Field(..., description="Encrypted type of the value")

    def __str__(self) -> str:
        return f"{self.fhe_type.value}:{self.handle[:10]}..."
