"""Repository for the ShoppingCart aggregate.

Adds the read-through lookup by customer and the compare-and-set write that
guards against lost updates between concurrent writers.
"""

import structlog
from protean.exceptions import ObjectNotFoundError

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.exceptions import ConflictError
from ordering.utils.paging import every_page

logger = structlog.get_logger(__name__)


@ordering.repository(part_of=ShoppingCart)
class CartRepository:
    def for_customer(self, customer_id) -> ShoppingCart:
        """Return the customer's cart, or a fresh unsaved one if none exists yet."""
        try:
            return self.get(customer_id)
        except ObjectNotFoundError:
            return ShoppingCart.open(customer_id)

    def stored_revision(self, customer_id) -> int:
        try:
            return self._dao.get(customer_id).revision or 0
        except ObjectNotFoundError:
            return 0

    def save(self, cart: ShoppingCart, expected_revision: int) -> ShoppingCart:
        """Persist the cart only if nobody else wrote it since it was loaded.

        ``expected_revision`` is the revision the caller saw before mutating.
        """
        current = self.stored_revision(cart.customer_id)
        if current != expected_revision:
            logger.warning(
                "Cart write conflict",
                customer_id=str(cart.customer_id),
                expected_revision=expected_revision,
                stored_revision=current,
            )
            raise ConflictError(
                f"Cart for {cart.customer_id} changed concurrently "
                f"(expected revision {expected_revision}, found {current}); slow down and retry"
            )
        return self.add(cart)

    def holding(self, product_id) -> list[ShoppingCart]:
        """Every stored cart that currently contains the given product."""
        carts = every_page(self._dao.query.order_by("customer_id"))
        return [cart for cart in carts if cart.line_for(product_id) is not None]
