"""Checkout orchestration — turns a customer's cart into a placed order.

Steps, each processed as its own command:
    1. ReconcileCart: a blocking reconciliation pass so the order is built
       from current catalogue prices and availability.
    2. Validation of the draft against the reconciled cart. A rejection stops
       here; nothing has been created.
    3. PlaceOrder: the commit point. Once it returns the purchase stands.
    4. ClearCart: an idempotent follow-up. A failure is logged and neither
       undoes nor fails the order; the stale lines are cleaned up by the
       customer's next clear or checkout.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime

import structlog
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.cart.management import ClearCart
from ordering.checkout.validator import CheckoutDraft, CheckoutValidator
from ordering.exceptions import CheckoutRejected
from ordering.order.creation import PlaceOrder
from ordering.order.order import Modality
from ordering.reconciliation.reconcile import ReconcileCart

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlacedOrder:
    order_id: str
    number: str
    total: float
    notices: list[str] = field(default_factory=list)


class CheckoutService:
    def __init__(self, validator: CheckoutValidator | None = None) -> None:
        self.validator = validator or CheckoutValidator()

    def place_order(self, draft: CheckoutDraft, now: datetime | None = None) -> PlacedOrder:
        customer_id = str(draft.customer_id)

        report = current_domain.process(ReconcileCart(customer_id=customer_id), asynchronous=False)
        if report["catalogue_unavailable"]:
            logger.warning("Checking out against last known cart; catalogue unreachable", customer_id=customer_id)

        cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
        try:
            self.validator.check(draft, cart, now)
        except CheckoutRejected as exc:
            logger.info("Checkout rejected", customer_id=customer_id, reason=exc.reason.value)
            raise

        modality = Modality(draft.modality)
        address = draft.address.to_dict() if modality == Modality.DELIVERY and draft.address else None
        placed = current_domain.process(
            PlaceOrder(
                customer_id=customer_id,
                lines=json.dumps(cart.snapshot()),
                modality=modality.value,
                scheduled_for=self.validator.localize(draft.scheduled_for),
                phone=draft.phone,
                address=json.dumps(address) if address else None,
                note=draft.note,
            ),
            asynchronous=False,
        )

        try:
            current_domain.process(ClearCart(customer_id=customer_id), asynchronous=False)
        except Exception:
            logger.exception(
                "Could not clear cart after placing order",
                customer_id=customer_id,
                order_id=placed["order_id"],
            )

        return PlacedOrder(
            order_id=placed["order_id"],
            number=placed["number"],
            total=placed["total"],
            notices=list(report["notices"]),
        )
