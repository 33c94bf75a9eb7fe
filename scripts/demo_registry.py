#!/usr/bin/env python3
"""
Registry Walkthrough Script
===========================

Deploys a VerificationRegistry on the mock ledger and walks one income
claim through submission, approval, threshold checks and deactivation.

Usage:
    python scripts/demo_registry.py [--income N] [--months N] [--threshold N]
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from incomeguard.fhe import MockConfidentialValueService
from incomeguard.ledger import MockLedgerHost
from incomeguard.logging import setup_logging
from incomeguard.registry import RegistryError, VerificationRegistry


AUTHORITY = "0x00000000000000000000000000000000000a0711"
USER = "0x000000000000000000000000000000000000b0b0"
OTHER_USER = "0x000000000000000000000000000000000000ca70"


def banner(title: str) -> None:
    print(f"\n{'='*60}")
    print(title)
    print(f"{'='*60}")


def run(income: int, months: int, threshold: int, document_hash: str) -> int:
    ledger = MockLedgerHost()
    fhe = MockConfidentialValueService()

    banner("Deploying VerificationRegistry")
    registry = VerificationRegistry(authority=AUTHORITY, ledger=ledger, fhe=fhe)
    print(f"Registry address:       {registry.address}")
    print(f"Verification authority: {registry.authority}")

    banner("Submitting request")
    request_id = registry.submit_request(USER, income, months, document_hash)
    info = registry.get_request_info(USER, request_id)
    print(f"Request ID:   {request_id}")
    print(f"Pending:      {info.is_pending}")
    print(f"Pending count {registry.pending_count()}")

    banner("Authority approves")
    verification_id = registry.process_request(AUTHORITY, request_id, "employer-hash-x", True)
    record = registry.get_record_info(USER, verification_id)
    print(f"Verification ID: {verification_id}")
    print(f"Verified:        {record.is_verified}")
    print(f"Expires:         {record.expiry_time.isoformat()}")
    print(f"Income handle:   {record.encrypted_income_level}")
    print(f"Decrypted by owner: {fhe.decrypt(record.encrypted_income_level, USER)}")

    banner("Threshold check")
    meets = registry.check_threshold(USER, verification_id, threshold)
    print(f"Income level >= {threshold}: {meets}")

    banner("Unauthorized access")
    try:
        registry.get_record_info(OTHER_USER, verification_id)
    except RegistryError as e:
        print(f"{e.code}: {e.message}")

    banner("Deactivation")
    registry.deactivate(USER, verification_id)
    print(f"Valid after deactivation: {registry.is_valid(verification_id)}")
    try:
        registry.check_threshold(USER, verification_id, threshold)
    except RegistryError as e:
        print(f"{e.code}: {e.message}")

    banner("Expiry")
    second = registry.process_request(
        AUTHORITY,
        registry.submit_request(USER, income, months, document_hash),
        "employer-hash-x",
        True,
    )
    ledger.advance_time(timedelta(days=366))
    print(f"Valid one year later: {registry.is_valid(second)}")

    banner("Events")
    for event in registry.events():
        print(f"#{event.block_number} {event.name} {event.args}")

    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Walk a claim through the registry")
    parser.add_argument("--income", type=int, default=42, help="Claimed income level")
    parser.add_argument("--months", type=int, default=48, help="Employment months")
    parser.add_argument("--threshold", type=int, default=28, help="Required income level")
    parser.add_argument("--document-hash", default="QmDemoEvidence", help="Evidence reference")
    args = parser.parse_args()

    setup_logging(log_level="WARNING")

    try:
        return run(args.income, args.months, args.threshold, args.document_hash)
    except RegistryError as e:
        print(f"Registry error ({e.code}): {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
