"""Checkout validator — a pure, short-circuiting rule pipeline.

Evaluates a checkout draft against the customer's cart and the shop's
standing policy. The first failing rule decides the verdict; nothing is read
from or written to storage, so the validator can run anywhere (including the
storefront, before submitting).

Rules, in evaluation order:
    1. The cart holds at least one line.
    2. Delivery orders carry a complete address in the served postal range.
    3. A schedule is given and lies in the future.
    4. The schedule is within the booking horizon.
    5. The shop is open at the scheduled time (closed on Sundays).
    6. The contact phone has enough digits.
    7. The note fits.
    8. The order value is within the cap.
    9. The number of units is within the cap.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import datetime

from ordering.cart.cart import ShoppingCart
from ordering.config import StorefrontPolicy, get_policy
from ordering.exceptions import CheckoutRejected, RejectionReason
from ordering.order.order import Modality

_SUNDAY = 6


@dataclass(frozen=True)
class AddressDraft:
    street: str | None = None
    number: str | None = None
    neighborhood: str | None = None
    city: str | None = None
    postal_code: str | None = None
    complement: str | None = None

    @property
    def is_complete(self) -> bool:
        return all(
            value and value.strip()
            for value in (self.street, self.number, self.neighborhood, self.city)
        )

    def to_dict(self) -> dict:
        return {
            "street": self.street,
            "number": self.number,
            "neighborhood": self.neighborhood,
            "city": self.city,
            "postal_code": self.postal_code,
            "complement": self.complement,
        }


@dataclass(frozen=True)
class CheckoutDraft:
    """What the customer filled in at checkout."""

    customer_id: str
    modality: Modality
    scheduled_for: datetime | None = None
    phone: str | None = None
    address: AddressDraft | None = None
    note: str | None = None


@dataclass(frozen=True)
class CheckoutVerdict:
    accepted: bool
    reason: RejectionReason | None = None
    message: str | None = None

    @classmethod
    def accept(cls) -> "CheckoutVerdict":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: RejectionReason, message: str) -> "CheckoutVerdict":
        return cls(accepted=False, reason=reason, message=message)

    def raise_if_rejected(self) -> None:
        if not self.accepted:
            raise CheckoutRejected(self.reason, self.message)


def add_months(moment: datetime, months: int) -> datetime:
    """Same wall-clock time ``months`` calendar months later, clamped to month end."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def digits_of(value: str | None) -> str:
    return re.sub(r"\D", "", value or "")


class CheckoutValidator:
    def __init__(self, policy: StorefrontPolicy | None = None) -> None:
        self.policy = policy or get_policy()

    def localize(self, moment: datetime) -> datetime:
        """Naive datetimes are shop-local wall-clock times."""
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self.policy.tz)
        return moment.astimezone(self.policy.tz)

    # -------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------
    def _check_cart(self, draft, cart):
        if not cart.items:
            return CheckoutVerdict.reject(RejectionReason.EMPTY_CART, "Your cart is empty")

    def _check_address(self, draft, cart):
        if Modality(draft.modality) != Modality.DELIVERY:
            return None

        address = draft.address
        if address is None or not address.is_complete:
            return CheckoutVerdict.reject(
                RejectionReason.MISSING_ADDRESS,
                "Delivery needs street, number, neighborhood and city",
            )

        if address.postal_code:
            low, high = self.policy.served_postal_codes
            digits = digits_of(address.postal_code)
            if len(digits) != 8 or not low <= int(digits) <= high:
                return CheckoutVerdict.reject(
                    RejectionReason.POSTAL_CODE_NOT_SERVED,
                    f"We do not deliver to postal code {address.postal_code}",
                )

    def _check_schedule(self, draft, cart, now):
        if draft.scheduled_for is None:
            return CheckoutVerdict.reject(RejectionReason.MISSING_SCHEDULE, "Choose a date and time for your order")

        scheduled = self.localize(draft.scheduled_for)
        if scheduled <= now:
            return CheckoutVerdict.reject(RejectionReason.SCHEDULE_IN_PAST, "The chosen time has already passed")

        horizon = add_months(now, self.policy.booking_horizon_months)
        if scheduled > horizon:
            return CheckoutVerdict.reject(
                RejectionReason.SCHEDULE_TOO_FAR,
                f"Orders can be booked at most {self.policy.booking_horizon_months} month(s) ahead",
            )

    def _check_opening_hours(self, draft, cart):
        scheduled = self.localize(draft.scheduled_for)
        if scheduled.weekday() == _SUNDAY:
            return CheckoutVerdict.reject(RejectionReason.CLOSED_DAY, "We are closed on Sundays")

        wall_clock = scheduled.time().replace(tzinfo=None)
        if not self.policy.opens_at <= wall_clock <= self.policy.closes_at:
            return CheckoutVerdict.reject(
                RejectionReason.OUT_OF_HOURS,
                f"We are open from {self.policy.opens_at:%H:%M} to {self.policy.closes_at:%H:%M}",
            )

    def _check_phone(self, draft, cart):
        if len(digits_of(draft.phone)) < self.policy.min_phone_digits:
            return CheckoutVerdict.reject(RejectionReason.INVALID_PHONE, "Enter a phone number with area code")

    def _check_note(self, draft, cart):
        if draft.note and len(draft.note) > self.policy.max_note_length:
            return CheckoutVerdict.reject(
                RejectionReason.NOTE_TOO_LONG,
                f"Notes are limited to {self.policy.max_note_length} characters",
            )

    def _check_order_size(self, draft, cart):
        if cart.total > self.policy.max_order_value:
            return CheckoutVerdict.reject(
                RejectionReason.ORDER_TOO_LARGE,
                f"Orders are limited to R$ {self.policy.max_order_value:.2f}",
            )
        if cart.unit_count > self.policy.max_order_units:
            return CheckoutVerdict.reject(
                RejectionReason.TOO_MANY_UNITS,
                f"Orders are limited to {self.policy.max_order_units} units",
            )

    # -------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------
    def evaluate(self, draft: CheckoutDraft, cart: ShoppingCart, now: datetime | None = None) -> CheckoutVerdict:
        now = self.localize(now) if now is not None else datetime.now(self.policy.tz)

        verdict = (
            self._check_cart(draft, cart)
            or self._check_address(draft, cart)
            or self._check_schedule(draft, cart, now)
            or self._check_opening_hours(draft, cart)
            or self._check_phone(draft, cart)
            or self._check_note(draft, cart)
            or self._check_order_size(draft, cart)
        )
        return verdict or CheckoutVerdict.accept()

    def check(self, draft: CheckoutDraft, cart: ShoppingCart, now: datetime | None = None) -> None:
        """Raise CheckoutRejected with the first failing rule, if any."""
        self.evaluate(draft, cart, now).raise_if_rejected()
