"""Cross-domain event contracts for Catalogue Authority product events.

The catalogue is administered outside this system; these classes define the
shape of the product events it publishes, for consumption by the Ordering
domain (to keep held carts consistent with the catalogue). They are
registered as external events via domain.register_external_event() with
matching __type__ strings so Protean's stream deserialization works
correctly.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Float, Identifier, String


class ProductEdited(BaseEvent):
    """A product's name, price or image changed."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(max_length=255)
    price = Float()
    edited_at = DateTime(required=True)


class ProductPaused(BaseEvent):
    """A product was taken off sale temporarily."""

    __version__ = 1

    product_id = Identifier(required=True)
    paused_at = DateTime(required=True)


class ProductReactivated(BaseEvent):
    """A paused product is on sale again."""

    __version__ = 1

    product_id = Identifier(required=True)
    reactivated_at = DateTime(required=True)


class ProductRemoved(BaseEvent):
    """A product was deleted from the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    removed_at = DateTime(required=True)
