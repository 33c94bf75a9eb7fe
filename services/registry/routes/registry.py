"""
Registry Administration Routes
==============================

Public counters, the event log and authority management.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from incomeguard.auth import Caller, get_current_caller
from incomeguard.ledger import LedgerEvent
from incomeguard.logging import get_logger
from incomeguard.registry import RegistryEvent, RegistryStats, VerificationRegistry
from services.registry.dependencies import get_registry_dependency, registry_lock


logger = get_logger(__name__)
router = APIRouter()

RegistryDep = Annotated[VerificationRegistry, Depends(get_registry_dependency)]


class TransferAuthorityBody(BaseModel):
    """New holder of the authority role."""

    new_authority: str = Field(..., description="Account address")


@router.get("/stats", response_model=RegistryStats)
async def get_stats(registry: RegistryDep) -> RegistryStats:
    """Authority address and aggregate counters."""
    return registry.stats()


@router.get("/events", response_model=list[LedgerEvent])
async def get_events(
    registry: RegistryDep,
    name: Annotated[RegistryEvent | None, Query(description="Filter by event name")] = None,
) -> list[LedgerEvent]:
    """Events emitted by the registry, oldest first."""
    return registry.events(name)


@router.post("/authority", response_model=RegistryStats)
async def transfer_authority(
    body: TransferAuthorityBody,
    caller: Annotated[Caller, Depends(get_current_caller)],
    registry: RegistryDep,
) -> RegistryStats:
    """Hand the authority role to another account (authority only)."""
    async with registry_lock:
        registry.transfer_authority(caller.address, body.new_authority)

    logger.info("transfer_authority", new_authority=registry.authority)

    return registry.stats()
