"""
Verification Registry
=====================

Request / approve / deactivate lifecycle for confidential income claims.

Requests move Pending -> {Approved, Rejected} exactly once. Approved
requests become records that move Active -> Inactive exactly once; expiry
is evaluated against the ledger clock and never stored.

Version: 0.1.0
"""

from datetime import timedelta

from incomeguard.fhe import ConfidentialValueService, EncryptedHandle, FHEType
from incomeguard.ledger import LedgerEvent, LedgerHost
from incomeguard.logging import get_logger
from incomeguard.registry.errors import (
    ExpiredError,
    InvalidInputError,
    NotActiveError,
    NotFoundError,
    NotPendingError,
    UnauthorizedError,
)
from incomeguard.registry.models import (
    RegistryEvent,
    RegistryStats,
    RequestInfo,
    VerificationInfo,
    VerificationRecord,
    VerificationRequest,
)

logger = get_logger(__name__)

CONTRACT_NAME = "VerificationRegistry"
DEFAULT_VALIDITY_DAYS = 365
ZERO_ADDRESS = "0x" + "0" * 40


def normalize_account(account: str) -> str:
    """Canonical form of an account identity (stripped, lowercase)."""
    if not isinstance(account, str) or not account.strip():
        raise InvalidInputError("Account identity must be a non-empty string")
    return account.strip().lower()


class VerificationRegistry:
    """
    Role-gated registry of income verification requests and records.

    A single authority processes requests. Record owners and the authority
    may read, compare and deactivate records; everyone else is refused.
    Encrypted fields are only ever handled as opaque handles and every
    comparison is delegated to the confidential-value service.

    Usage:
        registry = VerificationRegistry(authority="0xa11ce", ledger=host, fhe=fhe)

        request_id = registry.submit_request("0xb0b", 42, 48, "Qm...")
        verification_id = registry.process_request("0xa11ce", request_id, "employer", True)
        registry.check_threshold("0xb0b", verification_id, 28)
    """

    def __init__(
        self,
        authority: str,
        ledger: LedgerHost,
        fhe: ConfidentialValueService,
        validity_days: int = DEFAULT_VALIDITY_DAYS,
        value_type: FHEType = FHEType.EUINT8,
    ) -> None:
        if validity_days < 1:
            raise InvalidInputError("validity_days must be positive")
        if value_type == FHEType.EBOOL:
            raise InvalidInputError("Claims must use an encrypted integer type")

        self._authority = normalize_account(authority)
        self._ledger = ledger
        self._fhe = fhe
        self.validity_period = timedelta(days=validity_days)
        self.value_type = value_type

        self._requests: list[VerificationRequest] = []
        self._records: list[VerificationRecord] = []
        self._user_requests: dict[str, list[int]] = {}
        self._user_records: dict[str, list[int]] = {}

        self.address = ledger.deploy_contract(CONTRACT_NAME, deployer=self._authority)

        logger.info(
            "registry_deployed",
            address=self.address,
            authority=self._authority,
            validity_days=validity_days,
        )

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def authority(self) -> str:
        return self._authority

    @property
    def request_count(self) -> int:
        return len(self._requests)

    @property
    def record_count(self) -> int:
        return len(self._records)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _emit(self, event: RegistryEvent, **args: object) -> LedgerEvent:
        return self._ledger.emit_event(self.address, event.value, dict(args))

    def _check_value(self, name: str, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInputError(f"{name} must be an integer")
        if value <= 0:
            raise InvalidInputError(f"{name} must be greater than zero")
        if value > self.value_type.max_value:
            raise InvalidInputError(
                f"{name} exceeds {self.value_type.value} range (max {self.value_type.max_value})"
            )

    def _load_request(self, request_id: int) -> VerificationRequest:
        if isinstance(request_id, bool) or not isinstance(request_id, int):
            raise InvalidInputError("Request ID must be an integer")
        if request_id < 0 or request_id >= len(self._requests):
            raise NotFoundError(f"Invalid request ID: {request_id}")
        return self._requests[request_id]

    def _load_record(self, verification_id: int) -> VerificationRecord:
        if isinstance(verification_id, bool) or not isinstance(verification_id, int):
            raise InvalidInputError("Verification ID must be an integer")
        if verification_id < 0 or verification_id >= len(self._records):
            raise NotFoundError(f"Invalid verification ID: {verification_id}")
        return self._records[verification_id]

    def _require_authority(self, caller: str, action: str) -> None:
        if caller != self._authority:
            logger.warning("authority_required", caller=caller, action=action)
            raise UnauthorizedError("Only the verification authority can perform this action")

    def _require_party(self, caller: str, owners: set[str], action: str) -> None:
        if caller != self._authority and caller not in owners:
            logger.warning("unauthorized_access", caller=caller, action=action)
            raise UnauthorizedError("Caller is neither the record owner nor the authority")

    def _record_is_valid(self, record: VerificationRecord) -> bool:
        return (
            record.is_active
            and record.is_verified
            and self._ledger.now() <= record.expiry_time
        )

    def _require_valid(self, record: VerificationRecord) -> None:
        if not record.is_active or not record.is_verified:
            raise NotActiveError(f"Verification {record.id} is not active")
        if self._ledger.now() > record.expiry_time:
            raise ExpiredError(f"Verification {record.id} has expired")

    def _reveal(self, encrypted_bool: EncryptedHandle) -> bool:
        # Comparison results are transient; only the boolean survives the call
        try:
            return bool(self._fhe.decrypt(encrypted_bool, self.address))
        finally:
            self._fhe.release(encrypted_bool)

    # =========================================================================
    # Requests
    # =========================================================================

    def submit_request(
        self,
        requester: str,
        income_level: int,
        employment_months: int,
        document_hash: str,
    ) -> int:
        """
        Submit an income claim for review.

        Both values are encrypted immediately. The requester and the
        authority may decrypt them; the registry may operate on them.

        Returns:
            The new request ID

        Raises:
            InvalidInputError: On a non-positive or out-of-range value, or an
                empty document hash
        """
        requester = normalize_account(requester)
        self._check_value("Income level", income_level)
        self._check_value("Employment months", employment_months)
        if not isinstance(document_hash, str) or not document_hash.strip():
            raise InvalidInputError("Document hash is required")

        income = self._fhe.encrypt(income_level, self.value_type)
        months = self._fhe.encrypt(employment_months, self.value_type)
        for handle in (income, months):
            self._fhe.allow_this(handle, self.address)
            self._fhe.allow(handle, requester)
            self._fhe.allow(handle, self._authority)

        now = self._ledger.now()
        request = VerificationRequest(
            id=len(self._requests),
            requester=requester,
            claimed_income_level=income,
            employment_months=months,
            document_hash=document_hash,
            request_time=now,
        )
        self._requests.append(request)
        self._user_requests.setdefault(requester, []).append(request.id)

        self._emit(
            RegistryEvent.VERIFICATION_REQUESTED,
            request_id=request.id,
            requester=requester,
            timestamp=now.isoformat(),
        )
        logger.info("request_submitted", request_id=request.id, requester=requester)

        return request.id

    def process_request(
        self,
        caller: str,
        request_id: int,
        employer_hash: str,
        approve: bool,
    ) -> int | None:
        """
        Approve or reject a pending request.

        Returns:
            The new verification ID on approval, None on rejection

        Raises:
            UnauthorizedError: If caller is not the authority
            NotFoundError: If the request ID was never allocated
            NotPendingError: If the request was already processed
            InvalidInputError: If employer_hash is empty
        """
        caller = normalize_account(caller)
        self._require_authority(caller, "process_request")
        request = self._load_request(request_id)
        if not request.is_pending:
            raise NotPendingError(f"Request {request_id} already processed")
        if not isinstance(employer_hash, str) or not employer_hash.strip():
            raise InvalidInputError("Employer hash is required")

        request.is_pending = False

        if not approve:
            self._emit(
                RegistryEvent.VERIFICATION_REJECTED,
                request_id=request.id,
                requester=request.requester,
            )
            logger.info("request_rejected", request_id=request.id, requester=request.requester)
            return None

        now = self._ledger.now()
        record = VerificationRecord(
            id=len(self._records),
            request_id=request.id,
            verified_user=request.requester,
            encrypted_income_level=request.claimed_income_level,
            encrypted_employment_months=request.employment_months,
            verification_time=now,
            expiry_time=now + self.validity_period,
            employer_hash=employer_hash,
        )
        self._records.append(record)
        self._user_records.setdefault(record.verified_user, []).append(record.id)

        self._emit(
            RegistryEvent.INCOME_VERIFIED,
            verification_id=record.id,
            user=record.verified_user,
            timestamp=now.isoformat(),
            meets_threshold=True,
        )
        logger.info(
            "request_approved",
            request_id=request.id,
            verification_id=record.id,
            user=record.verified_user,
            expiry_time=record.expiry_time.isoformat(),
        )

        return record.id

    def get_request_info(self, caller: str, request_id: int) -> RequestInfo:
        """Status of a request, visible to its requester and the authority."""
        caller = normalize_account(caller)
        request = self._load_request(request_id)
        self._require_party(caller, {request.requester}, "get_request_info")

        return RequestInfo(
            request_id=request.id,
            requester=request.requester,
            is_pending=request.is_pending,
            request_time=request.request_time,
            document_hash=request.document_hash,
        )

    # =========================================================================
    # Verification records
    # =========================================================================

    def is_valid(self, verification_id: int) -> bool:
        """Active, verified and not past expiry at the current ledger time."""
        return self._record_is_valid(self._load_record(verification_id))

    def check_threshold(self, caller: str, verification_id: int, required_level: int) -> bool:
        """
        Whether the encrypted income level is at least `required_level`.

        Only the boolean outcome leaves the encrypted domain.
        """
        caller = normalize_account(caller)
        if isinstance(required_level, bool) or not isinstance(required_level, int):
            raise InvalidInputError("Required level must be an integer")
        if required_level < 0 or required_level > self.value_type.max_value:
            raise InvalidInputError(
                f"Required level must be within [0, {self.value_type.max_value}]"
            )

        record = self._load_record(verification_id)
        self._require_party(caller, {record.verified_user}, "check_threshold")
        self._require_valid(record)

        meets = self._reveal(
            self._fhe.ge(record.encrypted_income_level, required_level, operator=self.address)
        )
        logger.debug("threshold_checked", verification_id=verification_id, caller=caller)
        return meets

    def compare_records(
        self,
        caller: str,
        verification_id_a: int,
        verification_id_b: int,
    ) -> bool:
        """Whether record A's income level is at least record B's."""
        caller = normalize_account(caller)
        record_a = self._load_record(verification_id_a)
        record_b = self._load_record(verification_id_b)
        self._require_party(
            caller,
            {record_a.verified_user, record_b.verified_user},
            "compare_records",
        )
        self._require_valid(record_a)
        self._require_valid(record_b)

        result = self._reveal(
            self._fhe.ge(
                record_a.encrypted_income_level,
                record_b.encrypted_income_level,
                operator=self.address,
            )
        )
        logger.debug(
            "records_compared",
            verification_id_a=verification_id_a,
            verification_id_b=verification_id_b,
            caller=caller,
        )
        return result

    def get_record_info(self, caller: str, verification_id: int) -> VerificationInfo:
        """Metadata and ciphertext handles of a valid record."""
        caller = normalize_account(caller)
        record = self._load_record(verification_id)
        self._require_party(caller, {record.verified_user}, "get_record_info")
        self._require_valid(record)

        return VerificationInfo(
            verification_id=record.id,
            verified_user=record.verified_user,
            is_verified=record.is_verified,
            is_active=record.is_active,
            verification_time=record.verification_time,
            expiry_time=record.expiry_time,
            employer_hash=record.employer_hash,
            encrypted_income_level=record.encrypted_income_level,
            encrypted_employment_months=record.encrypted_employment_months,
        )

    def deactivate(self, caller: str, verification_id: int) -> None:
        """Irreversibly deactivate a valid record."""
        caller = normalize_account(caller)
        record = self._load_record(verification_id)
        self._require_party(caller, {record.verified_user}, "deactivate")
        self._require_valid(record)

        record.is_active = False

        self._emit(
            RegistryEvent.VERIFICATION_EXPIRED,
            verification_id=record.id,
            user=record.verified_user,
        )
        logger.info(
            "verification_deactivated",
            verification_id=record.id,
            user=record.verified_user,
            caller=caller,
        )

    # =========================================================================
    # Indexes and aggregates
    # =========================================================================

    def list_requests(self, caller: str, user: str) -> list[int]:
        """Request IDs of `user` in submission order."""
        caller, user = normalize_account(caller), normalize_account(user)
        self._require_party(caller, {user}, "list_requests")
        return list(self._user_requests.get(user, []))

    def list_records(self, caller: str, user: str) -> list[int]:
        """Verification IDs of `user` in approval order."""
        caller, user = normalize_account(caller), normalize_account(user)
        self._require_party(caller, {user}, "list_records")
        return list(self._user_records.get(user, []))

    def active_count(self) -> int:
        return sum(1 for record in self._records if self._record_is_valid(record))

    def pending_count(self) -> int:
        return sum(1 for request in self._requests if request.is_pending)

    def stats(self) -> RegistryStats:
        return RegistryStats(
            authority=self._authority,
            request_count=self.request_count,
            record_count=self.record_count,
            pending_count=self.pending_count(),
            active_count=self.active_count(),
        )

    def events(self, name: RegistryEvent | None = None) -> list[LedgerEvent]:
        """Events emitted by this registry, oldest first."""
        return self._ledger.get_events(
            contract=self.address,
            name=name.value if name else None,
        )

    # =========================================================================
    # Authority
    # =========================================================================

    def transfer_authority(self, caller: str, new_authority: str) -> None:
        """
        Hand the authority role to another account.

        Decrypt capability on every stored claim moves with the role: the
        new authority is granted it and the previous authority loses it,
        except on claims the previous authority submitted itself.
        """
        caller = normalize_account(caller)
        self._require_authority(caller, "transfer_authority")
        new_authority = normalize_account(new_authority)
        if new_authority == ZERO_ADDRESS:
            raise InvalidInputError("Invalid address")

        previous = self._authority
        self._authority = new_authority

        for request in self._requests:
            for handle in (request.claimed_income_level, request.employment_months):
                self._fhe.allow(handle, new_authority)
                if previous != request.requester:
                    self._fhe.revoke(handle, previous)

        self._emit(
            RegistryEvent.AUTHORITY_TRANSFERRED,
            previous_authority=previous,
            new_authority=new_authority,
        )
        logger.info(
            "authority_transferred",
            previous_authority=previous,
            new_authority=new_authority,
        )
