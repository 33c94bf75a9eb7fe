"""
Test Configuration
==================

Pytest fixtures for IncomeGuard tests.
"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["LEDGER_MODE"] = "mock"
os.environ["FHE_MODE"] = "mock"

from incomeguard.fhe import MockConfidentialValueService  # noqa: E402
from incomeguard.ledger import MockLedgerHost  # noqa: E402
from incomeguard.registry import VerificationRegistry  # noqa: E402


AUTHORITY = "0x00000000000000000000000000000000000a0711"
ALICE = "0x00000000000000000000000000000000000a1ce0"
BOB = "0x000000000000000000000000000000000000b0b0"
MALLORY = "0x0000000000000000000000000000000000000bad"

GENESIS = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def ledger() -> MockLedgerHost:
    """Mock ledger with the clock frozen at GENESIS."""
    host = MockLedgerHost()
    host.set_time(GENESIS)
    return host


@pytest.fixture
def fhe() -> MockConfidentialValueService:
    """Fresh mock confidential-value service."""
    return MockConfidentialValueService()


@pytest.fixture
def registry(ledger: MockLedgerHost, fhe: MockConfidentialValueService) -> VerificationRegistry:
    """Registry deployed with AUTHORITY as verification authority."""
    return VerificationRegistry(authority=AUTHORITY, ledger=ledger, fhe=fhe)


@pytest.fixture
def approved(registry: VerificationRegistry) -> int:
    """Verification ID of an approved claim owned by ALICE (income 42, 48 months)."""
    request_id = registry.submit_request(ALICE, 42, 48, "QmAliceEvidence")
    verification_id = registry.process_request(AUTHORITY, request_id, "employerHashX", True)
    assert verification_id is not None
    return verification_id


@pytest_asyncio.fixture
async def registry_client(
    ledger: MockLedgerHost,
    fhe: MockConfidentialValueService,
    registry: VerificationRegistry,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Registry Service bound to the fixture registry."""
    from incomeguard.fhe import reset_confidential_service, set_confidential_service
    from incomeguard.ledger import reset_ledger_host, set_ledger_host
    from incomeguard.registry import reset_registry, set_registry
    from services.registry.main import app

    set_ledger_host(ledger)
    set_confidential_service(fhe)
    set_registry(registry)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    reset_registry()
    reset_confidential_service()
    reset_ledger_host()


def auth_headers_for(address: str) -> dict[str, str]:
    """Bearer headers for an account."""
    from incomeguard.auth import create_access_token

    token = create_access_token({"sub": address})
    return {"Authorization": f"Bearer {token}"}
