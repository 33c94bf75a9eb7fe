"""
Verification Request Routes
===========================

API endpoints for submitting and processing income verification requests.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from incomeguard.auth import Caller, get_current_caller
from incomeguard.logging import get_logger
from incomeguard.registry import RequestInfo, VerificationRegistry, normalize_account
from services.registry.dependencies import get_registry_dependency, registry_lock


logger = get_logger(__name__)
router = APIRouter()

CallerDep = Annotated[Caller, Depends(get_current_caller)]
RegistryDep = Annotated[VerificationRegistry, Depends(get_registry_dependency)]


# ============================================================================
# Request/Response Models
# ============================================================================


class SubmitRequestBody(BaseModel):
    """Income claim to be encrypted and submitted."""

    income_level: int = Field(..., description="Claimed income level (1-255)")
    employment_months: int = Field(..., description="Months of employment (1-255)")
    document_hash: str = Field(..., description="Reference to supporting documents (e.g. IPFS CID)")


class SubmitRequestResponse(BaseModel):
    """Result of a submission."""

    request_id: int
    requester: str


class ProcessRequestBody(BaseModel):
    """Authority decision on a pending request."""

    employer_hash: str = Field(..., description="Hash identifying the confirming employer")
    approve: bool


class ProcessRequestResponse(BaseModel):
    """Result of processing a request."""

    request_id: int
    approved: bool
    verification_id: int | None = None


class UserRequestsResponse(BaseModel):
    """Request IDs owned by a user."""

    user: str
    request_ids: list[int]


# ============================================================================
# Endpoints
# ============================================================================


@router.post("", response_model=SubmitRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    body: SubmitRequestBody,
    caller: CallerDep,
    registry: RegistryDep,
) -> SubmitRequestResponse:
    """
    Submit an income verification request.

    The claimed values are encrypted on arrival; only the requester and the
    authority can decrypt them afterwards.
    """
    async with registry_lock:
        request_id = registry.submit_request(
            requester=caller.address,
            income_level=body.income_level,
            employment_months=body.employment_months,
            document_hash=body.document_hash,
        )

    requester = normalize_account(caller.address)
    logger.info("submit_request", request_id=request_id, requester=requester)

    return SubmitRequestResponse(request_id=request_id, requester=requester)


@router.post("/{request_id}/process", response_model=ProcessRequestResponse)
async def process_request(
    request_id: int,
    body: ProcessRequestBody,
    caller: CallerDep,
    registry: RegistryDep,
) -> ProcessRequestResponse:
    """Approve or reject a pending request (authority only)."""
    async with registry_lock:
        verification_id = registry.process_request(
            caller=caller.address,
            request_id=request_id,
            employer_hash=body.employer_hash,
            approve=body.approve,
        )

    logger.info(
        "process_request",
        request_id=request_id,
        approved=body.approve,
        verification_id=verification_id,
    )

    return ProcessRequestResponse(
        request_id=request_id,
        approved=body.approve,
        verification_id=verification_id,
    )


@router.get("/users/{user}", response_model=UserRequestsResponse)
async def list_user_requests(
    user: str,
    caller: CallerDep,
    registry: RegistryDep,
) -> UserRequestsResponse:
    """List a user's request IDs in submission order."""
    return UserRequestsResponse(
        user=normalize_account(user),
        request_ids=registry.list_requests(caller.address, user),
    )


@router.get("/{request_id}", response_model=RequestInfo)
async def get_request(
    request_id: int,
    caller: CallerDep,
    registry: RegistryDep,
) -> RequestInfo:
    """Get the status of a request."""
    return registry.get_request_info(caller.address, request_id)
