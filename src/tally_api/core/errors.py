"""Domain error taxonomy.

Services raise these; the API layer renders them through a single
exception handler registered by ``tally_api.api.errors``.
"""

from typing import Any


class TallyError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def extra(self) -> dict[str, Any]:
        """Structured fields added to the error response body."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.extra()}


class InvalidPayloadError(TallyError):
    """Raised when a submission is missing required figures or is malformed."""

    status_code = 400
    code = "invalid_payload"


class ConsistencyViolationError(TallyError):
    """Raised when a tally fails the coherence checks and no override was given."""

    status_code = 422
    code = "consistency_violation"

    def __init__(self, errors: list[str]) -> None:
        super().__init__("Inconsistent participation figures detected")
        self.errors = errors

    def extra(self) -> dict[str, Any]:
        return {"validation_errors": self.errors, "requires_confirmation": True}


class AlreadyLockedError(TallyError):
    """Raised when a unit already holds a participation record."""

    status_code = 409
    code = "already_locked"

    def __init__(self, unit_type: str, unit_code: int) -> None:
        super().__init__(f"{unit_type.capitalize()} {unit_code} has already been submitted and can no longer be modified")
        self.unit_type = unit_type
        self.unit_code = unit_code

    def extra(self) -> dict[str, Any]:
        return {"is_locked": True}


class NotFoundError(TallyError):
    """Raised when a referenced unit or candidate does not exist."""

    status_code = 404
    code = "not_found"


class UnauthorizedError(TallyError):
    """Raised when a write is attempted without a valid credential."""

    status_code = 401
    code = "unauthorized"


class ForbiddenError(TallyError):
    """Raised when an identity's role or scope does not cover the target unit."""

    status_code = 403
    code = "forbidden"


class PersistenceError(TallyError):
    """Raised when the store fails; nothing was committed."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "The submission could not be recorded. Nothing was saved.") -> None:
        super().__init__(message)
