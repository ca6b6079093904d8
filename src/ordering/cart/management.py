"""Cart management — emptying a cart."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer

from ordering.cart.cart import ShoppingCart
from ordering.cart.items import load_cart
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    """Remove every line from a customer's cart. Clearing an empty cart is a no-op."""

    customer_id = Identifier(required=True)
    expected_revision = Integer()


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(ClearCart)
    def clear_cart(self, command):
        repo, cart, loaded_revision = load_cart(command)
        removed = cart.clear()
        if removed:
            repo.save(cart, expected_revision=loaded_revision)
            logger.info("Cart cleared", customer_id=str(command.customer_id), removed_count=removed)
        return removed
