"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes.
Events are persisted to the event store and used for:
- Rebuilding aggregate state via @apply (event sourcing)
- Updating the order summary projection via its projector
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A new order was placed from a shopping cart at checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    number = String(required=True, max_length=20)
    lines = Text(required=True)  # JSON: list of line dicts, with ids
    total = Float(required=True)
    item_count = Integer(required=True)
    modality = String(required=True)
    scheduled_for = DateTime(required=True)
    phone = String(required=True)
    address = Text()  # JSON: address dict, delivery only
    note = Text()
    history_entry_id = Identifier(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """Staff moved an order to the next status of its workflow."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    changed_by = Identifier(required=True)
    history_entry_id = Identifier(required=True)
    changed_at = DateTime(required=True)
