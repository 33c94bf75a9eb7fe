"""
Ledger Module
=============

Abstraction layer over the execution host that registry contracts run on.

Supports:
- Mock (development/testing)
- Testnet (FHE-enabled devnet, not yet implemented)

Usage:
    from incomeguard.ledger import get_ledger_host

    host = get_ledger_host()
    address = host.deploy_contract("VerificationRegistry", deployer="0xabc")
    host.emit_event(address, "VerificationRequested", {"request_id": 0})
"""

from incomeguard.ledger.host import (
    LedgerEvent,
    LedgerHost,
    get_ledger_host,
    reset_ledger_host,
    set_ledger_host,
)
from incomeguard.ledger.mock import MockLedgerHost

__all__ = [
    # Host
    "LedgerHost",
    "get_ledger_host",
    "set_ledger_host",
    "reset_ledger_host",
    # Models
    "LedgerEvent",
    # Implementations
    "MockLedgerHost",
]
