"""
Registry Errors
===============

Typed failures raised by the verification registry. Every error is raised
before any state is touched, so a failed call leaves the registry unchanged.
"""


class RegistryError(Exception):
    """Base class for registry failures."""

    code = "registry_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(RegistryError):
    """Malformed or out-of-range argument."""

    code = "invalid_input"


class NotFoundError(InvalidInputError):
    """Request or verification ID outside the allocated range."""

    code = "not_found"


class UnauthorizedError(RegistryError):
    """Caller is neither the authority nor the owner."""

    code = "unauthorized"


class NotPendingError(RegistryError):
    """Request was already processed."""

    code = "not_pending"


class NotActiveError(RegistryError):
    """Verification has been deactivated."""

    code = "not_active"


class ExpiredError(RegistryError):
    """Verification is past its expiry time."""

    code = "expired"
