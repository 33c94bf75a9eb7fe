"""
Unit tests for the verification registry.
"""

from datetime import timedelta

import pytest

from incomeguard.fhe import FHEType, MockConfidentialValueService
from incomeguard.ledger import MockLedgerHost
from incomeguard.registry import (
    ExpiredError,
    InvalidInputError,
    NotActiveError,
    NotFoundError,
    NotPendingError,
    RegistryEvent,
    UnauthorizedError,
    VerificationRegistry,
)
from tests.conftest import ALICE, AUTHORITY, BOB, GENESIS, MALLORY


class TestSubmitRequest:
    """Tests for request submission."""

    def test_submit_creates_pending_request(self, registry: VerificationRegistry) -> None:
        """Test that a new request is pending and listed for its owner."""
        request_id = registry.submit_request(ALICE, 42, 48, "Qm123")

        assert request_id == 0
        assert registry.request_count == 1
        assert registry.list_requests(ALICE, ALICE) == [0]

        info = registry.get_request_info(ALICE, request_id)
        assert info.is_pending is True
        assert info.requester == ALICE
        assert info.document_hash == "Qm123"
        assert info.request_time == GENESIS

    def test_ids_are_sequential(self, registry: VerificationRegistry) -> None:
        """Test that request IDs count up from zero across users."""
        ids = [
            registry.submit_request(ALICE, 10, 12, "Qm1"),
            registry.submit_request(BOB, 20, 24, "Qm2"),
            registry.submit_request(ALICE, 30, 36, "Qm3"),
        ]

        assert ids == [0, 1, 2]
        assert registry.list_requests(ALICE, ALICE) == [0, 2]
        assert registry.list_requests(BOB, BOB) == [1]

    @pytest.mark.parametrize(
        ("income", "months", "document_hash"),
        [
            (0, 48, "Qm"),
            (42, 0, "Qm"),
            (-1, 48, "Qm"),
            (42, 48, ""),
            (42, 48, "   "),
            (256, 48, "Qm"),
            (42, 300, "Qm"),
        ],
    )
    def test_invalid_input_rejected(
        self,
        registry: VerificationRegistry,
        income: int,
        months: int,
        document_hash: str,
    ) -> None:
        """Test that bad submissions fail without allocating an ID."""
        with pytest.raises(InvalidInputError):
            registry.submit_request(ALICE, income, months, document_hash)

        assert registry.request_count == 0
        assert registry.list_requests(ALICE, ALICE) == []

    def test_values_are_encrypted_with_grants(
        self,
        registry: VerificationRegistry,
        fhe: MockConfidentialValueService,
    ) -> None:
        """Test that requester, authority and registry hold capabilities."""
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")
        verification_id = registry.process_request(AUTHORITY, request_id, "emp", True)
        info = registry.get_record_info(ALICE, verification_id)
        income = info.encrypted_income_level

        assert income.fhe_type == FHEType.EUINT8
        assert fhe.is_allowed(income, ALICE)
        assert fhe.is_allowed(income, AUTHORITY)
        assert fhe.is_allowed(income, registry.address)
        assert not fhe.is_allowed(income, BOB)
        assert fhe.decrypt(income, ALICE) == 42
        assert fhe.decrypt(info.encrypted_employment_months, ALICE) == 48

    def test_submission_emits_event(self, registry: VerificationRegistry) -> None:
        """Test that VerificationRequested is emitted."""
        registry.submit_request(ALICE, 42, 48, "Qm")

        events = registry.events(RegistryEvent.VERIFICATION_REQUESTED)
        assert len(events) == 1
        assert events[0].args["request_id"] == 0
        assert events[0].args["requester"] == ALICE

    def test_addresses_are_case_insensitive(self, registry: VerificationRegistry) -> None:
        """Test that mixed-case addresses map to the same identity."""
        registry.submit_request(ALICE.upper().replace("0X", "0x"), 42, 48, "Qm")

        assert registry.list_requests(ALICE, ALICE) == [0]


class TestProcessRequest:
    """Tests for request processing."""

    def test_approve_creates_record(self, registry: VerificationRegistry) -> None:
        """Test that approval yields a verified, active record valid for 365 days."""
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")

        verification_id = registry.process_request(AUTHORITY, request_id, "employerHashX", True)

        assert verification_id == 0
        assert registry.record_count == 1
        assert registry.get_request_info(ALICE, request_id).is_pending is False

        info = registry.get_record_info(ALICE, verification_id)
        assert info.is_verified is True
        assert info.is_active is True
        assert info.verified_user == ALICE
        assert info.employer_hash == "employerHashX"
        assert info.verification_time == GENESIS
        assert info.expiry_time == info.verification_time + timedelta(days=365)
        assert registry.list_records(ALICE, ALICE) == [0]

    def test_reject_creates_no_record(self, registry: VerificationRegistry) -> None:
        """Test that rejection leaves the record count unchanged."""
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")

        result = registry.process_request(AUTHORITY, request_id, "employerHashX", False)

        assert result is None
        assert registry.record_count == 0
        assert registry.list_records(ALICE, ALICE) == []
        assert registry.get_request_info(ALICE, request_id).is_pending is False
        assert len(registry.events(RegistryEvent.VERIFICATION_REJECTED)) == 1

    def test_second_processing_fails(self, registry: VerificationRegistry) -> None:
        """Test that a request can only be processed once."""
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")
        registry.process_request(AUTHORITY, request_id, "emp", True)

        with pytest.raises(NotPendingError):
            registry.process_request(AUTHORITY, request_id, "emp", True)
        with pytest.raises(NotPendingError):
            registry.process_request(AUTHORITY, request_id, "emp", False)

        assert registry.record_count == 1

    def test_non_authority_cannot_process(self, registry: VerificationRegistry) -> None:
        """Test that only the authority may process and nothing changes on failure."""
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")
        events_before = len(registry.events())

        with pytest.raises(UnauthorizedError):
            registry.process_request(ALICE, request_id, "emp", True)

        assert registry.get_request_info(ALICE, request_id).is_pending is True
        assert registry.record_count == 0
        assert len(registry.events()) == events_before

    def test_unknown_request(self, registry: VerificationRegistry) -> None:
        """Test that an unallocated ID is reported as not found (an invalid input)."""
        with pytest.raises(NotFoundError):
            registry.process_request(AUTHORITY, 0, "emp", True)
        with pytest.raises(InvalidInputError):
            registry.process_request(AUTHORITY, 5, "emp", True)

    def test_empty_employer_hash(self, registry: VerificationRegistry) -> None:
        """Test that an empty employer hash leaves the request pending."""
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")

        with pytest.raises(InvalidInputError):
            registry.process_request(AUTHORITY, request_id, "", True)

        assert registry.pending_count() == 1

    def test_approval_emits_income_verified(self, registry: VerificationRegistry) -> None:
        """Test the approval event payload."""
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")
        registry.process_request(AUTHORITY, request_id, "emp", True)

        (event,) = registry.events(RegistryEvent.INCOME_VERIFIED)
        assert event.args["verification_id"] == 0
        assert event.args["user"] == ALICE
        assert event.contract == registry.address

    def test_custom_validity_period(
        self,
        ledger: MockLedgerHost,
        fhe: MockConfidentialValueService,
    ) -> None:
        """Test that the validity window follows configuration."""
        registry = VerificationRegistry(AUTHORITY, ledger, fhe, validity_days=30)
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")
        verification_id = registry.process_request(AUTHORITY, request_id, "emp", True)

        info = registry.get_record_info(ALICE, verification_id)
        assert info.expiry_time - info.verification_time == timedelta(days=30)


class TestValidity:
    """Tests for the validity predicate and expiry."""

    def test_valid_after_approval(self, registry: VerificationRegistry, approved: int) -> None:
        assert registry.is_valid(approved) is True

    def test_valid_at_exact_expiry(
        self,
        registry: VerificationRegistry,
        ledger: MockLedgerHost,
        approved: int,
    ) -> None:
        """Test that the record is still valid at expiry_time itself."""
        ledger.advance_time(timedelta(days=365))

        assert registry.is_valid(approved) is True

    def test_invalid_after_expiry(
        self,
        registry: VerificationRegistry,
        ledger: MockLedgerHost,
        approved: int,
    ) -> None:
        """Test that validity lapses once now > expiry_time, even while active."""
        ledger.advance_time(timedelta(days=365, seconds=1))

        assert registry.is_valid(approved) is False
        with pytest.raises(ExpiredError):
            registry.check_threshold(ALICE, approved, 10)
        with pytest.raises(ExpiredError):
            registry.get_record_info(ALICE, approved)
        with pytest.raises(ExpiredError):
            registry.deactivate(ALICE, approved)

    def test_unknown_verification(self, registry: VerificationRegistry) -> None:
        with pytest.raises(NotFoundError):
            registry.is_valid(0)
        with pytest.raises(NotFoundError):
            registry.check_threshold(ALICE, 3, 10)


class TestCheckThreshold:
    """Tests for encrypted threshold checks."""

    @pytest.mark.parametrize(
        ("required_level", "expected"),
        [(28, True), (42, True), (43, False), (0, True), (255, False)],
    )
    def test_threshold_outcome(
        self,
        registry: VerificationRegistry,
        approved: int,
        required_level: int,
        expected: bool,
    ) -> None:
        """Test that the comparison result reflects the encrypted income of 42."""
        assert registry.check_threshold(ALICE, approved, required_level) is expected

    def test_authority_may_check(self, registry: VerificationRegistry, approved: int) -> None:
        assert registry.check_threshold(AUTHORITY, approved, 28) is True

    def test_stranger_is_refused(self, registry: VerificationRegistry, approved: int) -> None:
        with pytest.raises(UnauthorizedError):
            registry.check_threshold(MALLORY, approved, 28)

    @pytest.mark.parametrize("required_level", [-1, 256])
    def test_out_of_range_level(
        self,
        registry: VerificationRegistry,
        approved: int,
        required_level: int,
    ) -> None:
        with pytest.raises(InvalidInputError):
            registry.check_threshold(ALICE, approved, required_level)

    def test_check_has_no_side_effects(
        self,
        registry: VerificationRegistry,
        approved: int,
    ) -> None:
        """Test that threshold checks do not emit events or change state."""
        events_before = len(registry.events())

        registry.check_threshold(ALICE, approved, 28)

        assert len(registry.events()) == events_before
        assert registry.is_valid(approved) is True

    def test_checks_leave_vault_unchanged(
        self,
        registry: VerificationRegistry,
        fhe: MockConfidentialValueService,
        approved: int,
    ) -> None:
        """Test that comparison results are released after being revealed."""
        before = fhe.get_stats()

        for _ in range(100):
            registry.check_threshold(ALICE, approved, 28)

        after = fhe.get_stats()
        assert after["ciphertexts"] == before["ciphertexts"]
        assert after["grants"] == before["grants"]


class TestCompareRecords:
    """Tests for encrypted record comparison."""

    @pytest.fixture
    def pair(self, registry: VerificationRegistry) -> tuple[int, int]:
        """ALICE earns 42, BOB earns 60."""
        alice_req = registry.submit_request(ALICE, 42, 48, "QmA")
        bob_req = registry.submit_request(BOB, 60, 12, "QmB")
        alice = registry.process_request(AUTHORITY, alice_req, "empA", True)
        bob = registry.process_request(AUTHORITY, bob_req, "empB", True)
        return alice, bob

    def test_compare(self, registry: VerificationRegistry, pair: tuple[int, int]) -> None:
        alice, bob = pair

        assert registry.compare_records(ALICE, alice, bob) is False
        assert registry.compare_records(BOB, bob, alice) is True
        assert registry.compare_records(AUTHORITY, alice, alice) is True

    def test_owner_of_either_record_may_compare(
        self,
        registry: VerificationRegistry,
        pair: tuple[int, int],
    ) -> None:
        alice, bob = pair

        assert registry.compare_records(ALICE, bob, alice) is True

    def test_stranger_is_refused(self, registry: VerificationRegistry, pair: tuple[int, int]) -> None:
        alice, bob = pair

        with pytest.raises(UnauthorizedError):
            registry.compare_records(MALLORY, alice, bob)

    def test_inactive_record_blocks_comparison(
        self,
        registry: VerificationRegistry,
        pair: tuple[int, int],
    ) -> None:
        alice, bob = pair
        registry.deactivate(BOB, bob)

        with pytest.raises(NotActiveError):
            registry.compare_records(ALICE, alice, bob)

    def test_comparisons_leave_vault_unchanged(
        self,
        registry: VerificationRegistry,
        fhe: MockConfidentialValueService,
        pair: tuple[int, int],
    ) -> None:
        alice, bob = pair
        before = fhe.get_stats()["ciphertexts"]

        for _ in range(50):
            registry.compare_records(ALICE, alice, bob)

        assert fhe.get_stats()["ciphertexts"] == before


class TestRecordInfo:
    """Tests for record metadata access."""

    def test_stranger_is_refused(self, registry: VerificationRegistry, approved: int) -> None:
        with pytest.raises(UnauthorizedError):
            registry.get_record_info(MALLORY, approved)

    def test_handles_not_plaintext(self, registry: VerificationRegistry, approved: int) -> None:
        """Test that sensitive fields are only exposed as ciphertext handles."""
        info = registry.get_record_info(AUTHORITY, approved)
        dumped = info.model_dump()

        assert dumped["encrypted_income_level"]["handle"].startswith("0x")
        assert 42 not in dumped.values()

    def test_request_info_access(self, registry: VerificationRegistry) -> None:
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")

        assert registry.get_request_info(AUTHORITY, request_id).requester == ALICE
        with pytest.raises(UnauthorizedError):
            registry.get_request_info(BOB, request_id)


class TestDeactivate:
    """Tests for record deactivation."""

    def test_owner_deactivates(self, registry: VerificationRegistry, approved: int) -> None:
        """Test that deactivation invalidates the record immediately."""
        registry.deactivate(ALICE, approved)

        assert registry.is_valid(approved) is False
        with pytest.raises(NotActiveError):
            registry.check_threshold(ALICE, approved, 28)
        with pytest.raises(NotActiveError):
            registry.get_record_info(ALICE, approved)

    def test_authority_deactivates(self, registry: VerificationRegistry, approved: int) -> None:
        registry.deactivate(AUTHORITY, approved)

        assert registry.is_valid(approved) is False

    def test_second_deactivation_fails(self, registry: VerificationRegistry, approved: int) -> None:
        registry.deactivate(ALICE, approved)

        with pytest.raises(NotActiveError):
            registry.deactivate(ALICE, approved)
        assert len(registry.events(RegistryEvent.VERIFICATION_EXPIRED)) == 1

    def test_stranger_is_refused(self, registry: VerificationRegistry, approved: int) -> None:
        with pytest.raises(UnauthorizedError):
            registry.deactivate(MALLORY, approved)

        assert registry.is_valid(approved) is True

    def test_unknown_record(self, registry: VerificationRegistry) -> None:
        with pytest.raises(NotFoundError):
            registry.deactivate(ALICE, 0)


class TestCheckOrder:
    """Tests that authorization is decided before record validity."""

    @pytest.fixture(params=["deactivated", "expired"])
    def invalid_record(
        self,
        request: pytest.FixtureRequest,
        registry: VerificationRegistry,
        ledger: MockLedgerHost,
        approved: int,
    ) -> int:
        """ALICE's record, either deactivated or past its expiry."""
        if request.param == "deactivated":
            registry.deactivate(ALICE, approved)
        else:
            ledger.advance_time(timedelta(days=366))
        assert registry.is_valid(approved) is False
        return approved

    def test_record_info(self, registry: VerificationRegistry, invalid_record: int) -> None:
        with pytest.raises(UnauthorizedError):
            registry.get_record_info(MALLORY, invalid_record)

    def test_threshold(self, registry: VerificationRegistry, invalid_record: int) -> None:
        with pytest.raises(UnauthorizedError):
            registry.check_threshold(MALLORY, invalid_record, 28)

    def test_deactivate(self, registry: VerificationRegistry, invalid_record: int) -> None:
        with pytest.raises(UnauthorizedError):
            registry.deactivate(MALLORY, invalid_record)

    def test_compare(self, registry: VerificationRegistry, invalid_record: int) -> None:
        with pytest.raises(UnauthorizedError):
            registry.compare_records(MALLORY, invalid_record, invalid_record)

    def test_owner_sees_validity_error(
        self,
        registry: VerificationRegistry,
        invalid_record: int,
    ) -> None:
        with pytest.raises((NotActiveError, ExpiredError)):
            registry.get_record_info(ALICE, invalid_record)


class TestListingsAndCounts:
    """Tests for per-user indexes and aggregate counters."""

    def test_listing_requires_owner_or_authority(
        self,
        registry: VerificationRegistry,
        approved: int,
    ) -> None:
        assert registry.list_records(AUTHORITY, ALICE) == [approved]
        assert registry.list_requests(AUTHORITY, ALICE) == [0]

        with pytest.raises(UnauthorizedError):
            registry.list_requests(BOB, ALICE)
        with pytest.raises(UnauthorizedError):
            registry.list_records(BOB, ALICE)

    def test_listing_unknown_user_is_empty(self, registry: VerificationRegistry) -> None:
        assert registry.list_requests(BOB, BOB) == []
        assert registry.list_records(BOB, BOB) == []

    def test_counts(
        self,
        registry: VerificationRegistry,
        ledger: MockLedgerHost,
    ) -> None:
        """Test pending and active counts across the lifecycle."""
        first = registry.submit_request(ALICE, 42, 48, "Qm1")
        second = registry.submit_request(BOB, 50, 12, "Qm2")
        third = registry.submit_request(BOB, 51, 13, "Qm3")
        assert registry.pending_count() == 3

        v1 = registry.process_request(AUTHORITY, first, "emp", True)
        registry.process_request(AUTHORITY, second, "emp", True)
        registry.process_request(AUTHORITY, third, "emp", False)
        assert registry.pending_count() == 0
        assert registry.active_count() == 2

        registry.deactivate(ALICE, v1)
        assert registry.active_count() == 1

        ledger.advance_time(timedelta(days=400))
        assert registry.active_count() == 0

        stats = registry.stats()
        assert stats.request_count == 3
        assert stats.record_count == 2
        assert stats.authority == AUTHORITY


class TestAuthority:
    """Tests for authority management."""

    def test_transfer(self, registry: VerificationRegistry) -> None:
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")

        registry.transfer_authority(AUTHORITY, BOB)

        assert registry.authority == BOB
        with pytest.raises(UnauthorizedError):
            registry.process_request(AUTHORITY, request_id, "emp", True)
        assert registry.process_request(BOB, request_id, "emp", True) == 0
        assert len(registry.events(RegistryEvent.AUTHORITY_TRANSFERRED)) == 1

    def test_transfer_moves_decrypt_capability(
        self,
        registry: VerificationRegistry,
        fhe: MockConfidentialValueService,
    ) -> None:
        """Test that the new authority can read pending claims and the old one cannot."""
        request_id = registry.submit_request(ALICE, 42, 48, "Qm")

        registry.transfer_authority(AUTHORITY, BOB)
        verification_id = registry.process_request(BOB, request_id, "emp", True)
        info = registry.get_record_info(BOB, verification_id)

        for handle in (info.encrypted_income_level, info.encrypted_employment_months):
            assert fhe.is_allowed(handle, BOB)
            assert fhe.is_allowed(handle, ALICE)
            assert not fhe.is_allowed(handle, AUTHORITY)
        assert fhe.decrypt(info.encrypted_income_level, BOB) == 42

    def test_previous_authority_keeps_own_claims(
        self,
        registry: VerificationRegistry,
        fhe: MockConfidentialValueService,
    ) -> None:
        request_id = registry.submit_request(AUTHORITY, 10, 12, "Qm")
        registry.transfer_authority(AUTHORITY, BOB)
        verification_id = registry.process_request(BOB, request_id, "emp", True)

        info = registry.get_record_info(AUTHORITY, verification_id)

        assert fhe.decrypt(info.encrypted_income_level, AUTHORITY) == 10
        assert fhe.is_allowed(info.encrypted_income_level, BOB)

    def test_only_authority_may_transfer(self, registry: VerificationRegistry) -> None:
        with pytest.raises(UnauthorizedError):
            registry.transfer_authority(ALICE, ALICE)

        assert registry.authority == AUTHORITY

    @pytest.mark.parametrize("new_authority", ["", "0x" + "0" * 40])
    def test_invalid_new_authority(
        self,
        registry: VerificationRegistry,
        new_authority: str,
    ) -> None:
        with pytest.raises(InvalidInputError):
            registry.transfer_authority(AUTHORITY, new_authority)

    def test_independent_instances(
        self,
        ledger: MockLedgerHost,
        fhe: MockConfidentialValueService,
    ) -> None:
        """Test that two registries keep separate authorities and state."""
        first = VerificationRegistry(AUTHORITY, ledger, fhe)
        second = VerificationRegistry(BOB, ledger, fhe)

        first.submit_request(ALICE, 42, 48, "Qm")

        assert first.address != second.address
        assert second.request_count == 0
        assert second.authority == BOB


class TestScenario:
    """End-to-end lifecycle from submission to deactivation."""

    def test_full_lifecycle(self, registry: VerificationRegistry) -> None:
        request_id = registry.submit_request(ALICE, 42, 48, "Qm...")
        assert request_id == 0
        assert registry.get_request_info(ALICE, 0).is_pending is True

        verification_id = registry.process_request(AUTHORITY, 0, "employerHashX", True)
        assert verification_id == 0

        info = registry.get_record_info(ALICE, 0)
        assert info.is_verified is True
        assert info.is_active is True
        assert info.expiry_time == GENESIS + timedelta(days=365)

        assert isinstance(registry.check_threshold(ALICE, 0, 28), bool)

        registry.deactivate(ALICE, 0)
        with pytest.raises(NotActiveError):
            registry.check_threshold(ALICE, 0, 28)

        names = [e.name for e in registry.events()]
        assert names == [
            RegistryEvent.VERIFICATION_REQUESTED.value,
            RegistryEvent.INCOME_VERIFIED.value,
            RegistryEvent.VERIFICATION_EXPIRED.value,
        ]
