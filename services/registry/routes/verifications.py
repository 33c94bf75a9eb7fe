"""
Verification Record Routes
==========================

API endpoints for querying, comparing and deactivating verification records.
Only boolean outcomes of encrypted comparisons are ever returned.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from incomeguard.auth import Caller, get_current_caller
from incomeguard.logging import get_logger
from incomeguard.registry import VerificationInfo, VerificationRegistry, normalize_account
from services.registry.dependencies import get_registry_dependency, registry_lock


logger = get_logger(__name__)
router = APIRouter()

CallerDep = Annotated[Caller, Depends(get_current_caller)]
RegistryDep = Annotated[VerificationRegistry, Depends(get_registry_dependency)]


# ============================================================================
# Request/Response Models
# ============================================================================


class ThresholdBody(BaseModel):
    """Threshold to test the encrypted income level against."""

    required_level: int = Field(..., description="Minimum income level")


class ThresholdResponse(BaseModel):
    """Outcome of a threshold check."""

    verification_id: int
    required_level: int
    meets_threshold: bool


class CompareBody(BaseModel):
    """Pair of records to compare."""

    verification_id_a: int
    verification_id_b: int


class CompareResponse(BaseModel):
    """Outcome of an encrypted comparison."""

    verification_id_a: int
    verification_id_b: int
    a_at_least_b: bool


class ValidityResponse(BaseModel):
    """Validity of a record at the current ledger time."""

    verification_id: int
    valid: bool


class UserVerificationsResponse(BaseModel):
    """Verification IDs owned by a user."""

    user: str
    verification_ids: list[int]


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/compare", response_model=CompareResponse)
async def compare_records(
    body: CompareBody,
    caller: CallerDep,
    registry: RegistryDep,
) -> CompareResponse:
    """Whether record A's income level is at least record B's."""
    result = registry.compare_records(
        caller.address,
        body.verification_id_a,
        body.verification_id_b,
    )
    return CompareResponse(
        verification_id_a=body.verification_id_a,
        verification_id_b=body.verification_id_b,
        a_at_least_b=result,
    )


@router.get("/users/{user}", response_model=UserVerificationsResponse)
async def list_user_verifications(
    user: str,
    caller: CallerDep,
    registry: RegistryDep,
) -> UserVerificationsResponse:
    """List a user's verification IDs in approval order."""
    return UserVerificationsResponse(
        user=normalize_account(user),
        verification_ids=registry.list_records(caller.address, user),
    )


@router.get("/{verification_id}", response_model=VerificationInfo)
async def get_verification(
    verification_id: int,
    caller: CallerDep,
    registry: RegistryDep,
) -> VerificationInfo:
    """Metadata and ciphertext handles of a valid record."""
    return registry.get_record_info(caller.address, verification_id)


@router.get("/{verification_id}/valid", response_model=ValidityResponse)
async def get_validity(verification_id: int, registry: RegistryDep) -> ValidityResponse:
    """Whether a record is active and unexpired."""
    return ValidityResponse(
        verification_id=verification_id,
        valid=registry.is_valid(verification_id),
    )


@router.post("/{verification_id}/threshold", response_model=ThresholdResponse)
async def check_threshold(
    verification_id: int,
    body: ThresholdBody,
    caller: CallerDep,
    registry: RegistryDep,
) -> ThresholdResponse:
    """Whether the encrypted income level meets a threshold."""
    meets = registry.check_threshold(caller.address, verification_id, body.required_level)
    return ThresholdResponse(
        verification_id=verification_id,
        required_level=body.required_level,
        meets_threshold=meets,
    )


@router.post("/{verification_id}/deactivate", response_model=ValidityResponse)
async def deactivate_verification(
    verification_id: int,
    caller: CallerDep,
    registry: RegistryDep,
) -> ValidityResponse:
    """Deactivate a record (owner or authority)."""
    async with registry_lock:
        registry.deactivate(caller.address, verification_id)

    logger.info("deactivate_verification", verification_id=verification_id)

    return ValidityResponse(verification_id=verification_id, valid=False)
