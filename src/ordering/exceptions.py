"""Error taxonomy for the ordering domain.

User-correctable problems are ``ValidationError`` subclasses so that they
surface verbatim (HTTP 400) through Protean's FastAPI exception handlers.
Missing carts, orders and products use Protean's ``ObjectNotFoundError``.
"""

from enum import Enum

from protean.exceptions import ProteanExceptionWithMessage, ValidationError


class LimitExceeded(ValidationError):
    """A cart operation would break the quantity or distinct-line limits."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__({field: [message]})


class InvalidTransition(ValidationError):
    """The requested order status is not a successor of the current one."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition from {current} to {target}"]})


class RejectionReason(Enum):
    EMPTY_CART = "EmptyCart"
    MISSING_ADDRESS = "MissingAddress"
    POSTAL_CODE_NOT_SERVED = "PostalCodeNotServed"
    MISSING_SCHEDULE = "MissingSchedule"
    SCHEDULE_IN_PAST = "ScheduleInPast"
    SCHEDULE_TOO_FAR = "ScheduleTooFar"
    CLOSED_DAY = "ClosedDay"
    OUT_OF_HOURS = "OutOfHours"
    INVALID_PHONE = "InvalidPhone"
    NOTE_TOO_LONG = "NoteTooLong"
    ORDER_TOO_LARGE = "OrderTooLarge"
    TOO_MANY_UNITS = "TooManyUnits"


class CheckoutRejected(ValidationError):
    """A checkout draft failed one of the validation rules."""

    def __init__(self, reason: RejectionReason, message: str) -> None:
        self.reason = reason
        super().__init__({"checkout": [message], "reason": [reason.value]})


class AuthorizationError(ProteanExceptionWithMessage):
    """The acting user lacks the capability required for the operation."""


class ConflictError(ProteanExceptionWithMessage):
    """A write raced with another writer on the same aggregate."""


class TransientNetworkError(ProteanExceptionWithMessage):
    """The external catalogue could not be reached."""
