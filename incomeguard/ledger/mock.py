"""
Mock Ledger Host
================

In-memory ledger for development and testing.

Version: 0.1.0
"""

import hashlib
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from incomeguard.config import LedgerMode
from incomeguard.ledger.host import LedgerEvent, LedgerHost
from incomeguard.logging import get_logger

logger = get_logger(__name__)


class MockLedgerHost(LedgerHost):
    """
    In-memory mock ledger host.

    Every emitted event lands in its own block. The clock follows wall time
    unless frozen with `set_time`; `advance_time` shifts it either way.

    Data is stored in memory and lost on restart.
    """

    def __init__(self, start_block: int = 1000) -> None:
        self._start_block = start_block
        self._block_number = start_block
        self._events: list[LedgerEvent] = []
        self._contracts: dict[str, str] = {}
        self._nonces: dict[str, int] = {}

        # Clock control
        self._frozen_at: datetime | None = None
        self._offset = timedelta(0)

        logger.debug("mock_ledger_initialized", start_block=start_block)

    @property
    def mode(self) -> LedgerMode:
        return LedgerMode.MOCK

    @property
    def block_number(self) -> int:
        return self._block_number

    def now(self) -> datetime:
        base = self._frozen_at if self._frozen_at is not None else datetime.now(UTC)
        return base + self._offset

    def health_check(self) -> dict[str, Any]:
        """Check mock ledger health."""
        return {
            "status": "healthy",
            "mode": self.mode.value,
            "block_number": self._block_number,
            "contracts": len(self._contracts),
            "events": len(self._events),
        }

    def _generate_tx_hash(self) -> str:
        """Generate a mock transaction hash."""
        return "0x" + hashlib.sha256(uuid.uuid4().bytes).hexdigest()

    def _next_block(self) -> int:
        """Get next block number."""
        self._block_number += 1
        return self._block_number

    # =========================================================================
    # Contracts
    # =========================================================================

    def deploy_contract(self, name: str, deployer: str) -> str:
        """Derive a contract address from deployer and nonce."""
        nonce = self._nonces.get(deployer, 0)
        self._nonces[deployer] = nonce + 1

        digest = hashlib.sha256(f"{deployer}:{nonce}:{name}".encode()).hexdigest()
        address = "0x" + digest[:40]
        self._contracts[address] = name
        self._next_block()

        logger.info(
            "mock_contract_deployed",
            contract=name,
            address=address,
            deployer=deployer,
            block_number=self._block_number,
        )

        return address

    # =========================================================================
    # Events
    # =========================================================================

    def emit_event(
        self,
        contract: str,
        name: str,
        args: dict[str, Any] | None = None,
    ) -> LedgerEvent:
        """Record an event in a new block."""
        event = LedgerEvent(
            contract=contract,
            name=name,
            args=args or {},
            timestamp=self.now(),
            block_number=self._next_block(),
            log_index=len(self._events),
            tx_hash=self._generate_tx_hash(),
        )
        self._events.append(event)

        logger.debug(
            "mock_event_emitted",
            contract=contract,
            event_name=name,
            block_number=event.block_number,
            tx_hash=event.tx_hash,
        )

        return event

    def get_events(
        self,
        contract: str | None = None,
        name: str | None = None,
    ) -> list[LedgerEvent]:
        return [
            e
            for e in self._events
            if (contract is None or e.contract == contract) and (name is None or e.name == name)
        ]

    # =========================================================================
    # Test Utilities
    # =========================================================================

    def set_time(self, at: datetime) -> None:
        """Freeze the clock at a fixed instant."""
        if at.tzinfo is None:
            raise ValueError("Ledger time must be timezone-aware")
        self._frozen_at = at
        self._offset = timedelta(0)

    def advance_time(self, delta: timedelta) -> datetime:
        """Move the clock forward (or backward) and return the new time."""
        self._offset += delta
        logger.debug("mock_ledger_time_advanced", seconds=delta.total_seconds())
        return self.now()

    def clear_all(self) -> None:
        """Clear all mock data (for testing)."""
        self._events.clear()
        self._contracts.clear()
        self._nonces.clear()
        self._block_number = self._start_block
        self._frozen_at = None
        self._offset = timedelta(0)
        logger.debug("mock_ledger_cleared")

    def get_stats(self) -> dict[str, int]:
        """Get storage statistics."""
        return {
            "contracts": len(self._contracts),
            "events": len(self._events),
            "block_number": self._block_number,
        }
