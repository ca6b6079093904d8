"""Domain events for the ShoppingCart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was put in the cart, or its quantity replaced by a re-add."""

    __version__ = 1

    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    name = String(required=True)
    unit_price = Float(required=True)
    quantity = Integer(required=True)
    revision = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart line was changed."""

    __version__ = 1

    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    revision = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    """A cart line was dropped entirely."""

    __version__ = 1

    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    revision = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """Every line was removed from the cart."""

    __version__ = 1

    customer_id = Identifier(required=True)
    removed_count = Integer(required=True)
    revision = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartReconciled:
    """The cart was realigned with the catalogue."""

    __version__ = 1

    customer_id = Identifier(required=True)
    removed = Text(required=True)  # JSON: list of {product_id, name}
    price_changes = Text(required=True)  # JSON: list of {product_id, name, old_price, new_price}
    revision = Integer(required=True)
    reconciled_at = DateTime(required=True)
