"""Cart line management — commands and handler.

Each command optionally carries the ``expected_revision`` the client last
saw; a stale revision is rejected with ConflictError before anything changes.
"""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.exceptions import ConflictError


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(default=1)
    image = String(max_length=500)
    expected_revision = Integer()


@ordering.command(part_of="ShoppingCart")
class SetCartQuantity:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    expected_revision = Integer()


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    units = Integer()  # Optional: remove only this many units
    expected_revision = Integer()


def load_cart(command):
    """Load the command's cart and check the client's revision stamp.

    Returns the repository, the cart and the revision it was loaded at.
    """
    repo = current_domain.repository_for(ShoppingCart)
    cart = repo.for_customer(command.customer_id)
    loaded_revision = cart.revision or 0
    if command.expected_revision is not None and command.expected_revision != loaded_revision:
        raise ConflictError(
            f"Cart for {command.customer_id} is at revision {loaded_revision}, "
            f"not {command.expected_revision}; refresh and retry"
        )
    return repo, cart, loaded_revision


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo, cart, loaded_revision = load_cart(command)
        cart.add_item(
            product_id=command.product_id,
            name=command.name,
            unit_price=command.unit_price,
            quantity=command.quantity,
            image=command.image,
        )
        repo.save(cart, expected_revision=loaded_revision)
        return cart.revision

    @handle(SetCartQuantity)
    def set_cart_quantity(self, command):
        repo, cart, loaded_revision = load_cart(command)
        cart.set_quantity(product_id=command.product_id, quantity=command.quantity)
        repo.save(cart, expected_revision=loaded_revision)
        return cart.revision

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo, cart, loaded_revision = load_cart(command)
        if cart.remove_item(product_id=command.product_id, units=command.units):
            repo.save(cart, expected_revision=loaded_revision)
        return cart.revision
