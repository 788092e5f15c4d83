from __future__ import annotations

from typing import Optional

from .enums import PunchType


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a request carries no worker/organization scope."""


class NotFoundError(DomainError):
    """Raised when a scoped lookup finds nothing."""


class PunchRejected(DomainError):
    """Base for every reason a submitted punch cannot be appended to its day."""

    code = "PUNCH_REJECTED"
    retryable = False


class LimitExceeded(PunchRejected):
    code = "LIMIT_EXCEEDED"

    def __init__(self, limit: int):
        super().__init__(f"Daily limit of {limit} punches reached")
        self.limit = limit


class SequenceComplete(PunchRejected):
    code = "SEQUENCE_COMPLETE"

    def __init__(self):
        super().__init__("The work day is already closed")


class UnexpectedType(PunchRejected):
    code = "UNEXPECTED_TYPE"
    retryable = True

    def __init__(self, expected: Optional[PunchType], submitted: PunchType, message: Optional[str] = None):
        if message is None:
            message = f"Invalid punch. Expected: {expected.value if expected else 'none'}"
        super().__init__(message)
        self.expected = expected
        self.submitted = submitted


class StateChanged(UnexpectedType):
    """Another punch for the same day was stored first; re-read and retry."""

    code = "STATE_CHANGED"

    def __init__(self, expected: Optional[PunchType], submitted: PunchType):
        super().__init__(expected, submitted, "The day changed while the punch was being saved, please retry")


class MalformedDayData(PunchRejected):
    code = "MALFORMED_DAY_DATA"

    def __init__(self, reason: str):
        super().__init__(f"Stored punches for this day are inconsistent: {reason}")
        self.reason = reason
