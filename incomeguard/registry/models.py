"""
Registry Models
===============

Stored requests and verification records, plus the read-only views the
registry hands out.

Version: 0.1.0
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from incomeguard.fhe import EncryptedHandle


class RegistryEvent(str, Enum):
    """Events emitted by the registry contract."""

    VERIFICATION_REQUESTED = "VerificationRequested"
    INCOME_VERIFIED = "IncomeVerified"
    VERIFICATION_REJECTED = "VerificationRejected"
    VERIFICATION_EXPIRED = "VerificationExpired"
    AUTHORITY_TRANSFERRED = "AuthorityTransferred"


class VerificationRequest(BaseModel):
    """Income claim awaiting a decision from the authority."""

    id: int = Field(..., ge=0)
    requester: str
    claimed_income_level: EncryptedHandle
    employment_months: EncryptedHandle
    document_hash: str = Field(..., min_length=1, description="Reference to supporting evidence")
    is_pending: bool = True
    request_time: datetime


class VerificationRecord(BaseModel):
    """Approved income claim with a fixed validity window."""

    id: int = Field(..., ge=0)
    request_id: int = Field(..., ge=0, description="Originating request")
    verified_user: str
    encrypted_income_level: EncryptedHandle
    encrypted_employment_months: EncryptedHandle
    is_verified: bool = True
    is_active: bool = True
    verification_time: datetime
    expiry_time: datetime
    employer_hash: str = Field(..., min_length=1)


class RequestInfo(BaseModel):
    """Public view of a verification request."""

    request_id: int
    requester: str
    is_pending: bool
    request_time: datetime
    document_hash: str


class VerificationInfo(BaseModel):
    """
    Metadata of a verification record.

    The income and employment fields are ciphertext handles; holders of a
    capability decrypt them through the confidential-value service.
    """

    verification_id: int
    verified_user: str
    is_verified: bool
    is_active: bool
    verification_time: datetime
    expiry_time: datetime
    employer_hash: str
    encrypted_income_level: EncryptedHandle
    encrypted_employment_months: EncryptedHandle


class RegistryStats(BaseModel):
    """Aggregate counters."""

    authority: str
    request_count: int
    record_count: int
    pending_count: int
    active_count: int
