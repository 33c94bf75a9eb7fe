"""
Ledger Host Interface
=====================

Abstract base class and models for the execution host that registry
contracts run on: clock, contract addresses and event emission.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from incomeguard.config import LedgerMode, settings
from incomeguard.logging import get_logger

logger = get_logger(__name__)


class LedgerEvent(BaseModel):
    """Event log entry emitted by a contract."""

    contract: str = Field(..., description="Address of the emitting contract")
    name: str = Field(..., description="Event name (e.g. IncomeVerified)")
    args: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    block_number: int = Field(..., ge=0)
    log_index: int = Field(..., ge=0)
    tx_hash: str = Field(..., description="Transaction hash")


class LedgerHost(ABC):
    """
    Abstract base class for ledger execution hosts.

    Implements the Strategy pattern for different ledger modes.
    """

    @property
    @abstractmethod
    def mode(self) -> LedgerMode:
        """Get the ledger mode."""
        ...

    @abstractmethod
    def now(self) -> datetime:
        """Current block timestamp (timezone-aware, UTC)."""
        ...

    @property
    @abstractmethod
    def block_number(self) -> int:
        """Latest block number."""
        ...

    @abstractmethod
    def deploy_contract(self, name: str, deployer: str) -> str:
        """
        Allocate an address for a new contract instance.

        Args:
            name: Contract name
            deployer: Account deploying the contract

        Returns:
            Contract address
        """
        ...

    @abstractmethod
    def emit_event(
        self,
        contract: str,
        name: str,
        args: dict[str, Any] | None = None,
    ) -> LedgerEvent:
        """
        Append an event to the ledger log.

        Args:
            contract: Emitting contract address
            name: Event name
            args: Event arguments

        Returns:
            The stored LedgerEvent
        """
        ...

    @abstractmethod
    def get_events(
        self,
        contract: str | None = None,
        name: str | None = None,
    ) -> list[LedgerEvent]:
        """
        Query the event log, oldest first.

        Args:
            contract: Only events emitted by this address
            name: Only events with this name

        Returns:
            Matching events
        """
        ...

    @abstractmethod
    def health_check(self) -> dict[str, Any]:
        """Check ledger health."""
        ...


# Global host instance
_host: LedgerHost | None = None


def get_ledger_host() -> LedgerHost:
    """
    Get the configured ledger host instance.

    Returns:
        LedgerHost instance based on settings
    """
    global _host

    if _host is None:
        mode = settings.ledger.mode

        if mode == LedgerMode.MOCK:
            from incomeguard.ledger.mock import MockLedgerHost

            _host = MockLedgerHost(start_block=settings.ledger.start_block)
        elif mode == LedgerMode.TESTNET:
            raise NotImplementedError(
                f"Ledger mode '{mode.value}' not yet implemented. "
                "Use LEDGER_MODE=mock for development."
            )
        else:
            raise ValueError(f"Unknown ledger mode: {mode}")

        logger.info("ledger_host_initialized", mode=mode.value)

    return _host


def set_ledger_host(host: LedgerHost) -> None:
    """
    Set a custom ledger host.

    Args:
        host: LedgerHost instance
    """
    global _host
    _host = host
    logger.info("ledger_host_set", mode=host.mode.value)


def reset_ledger_host() -> None:
    """Reset the host to be re-initialized."""
    global _host
    _host = None
