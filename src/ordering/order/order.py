"""Order aggregate (Event Sourced) — a placed order and its fulfilment workflow.

The Order aggregate uses event sourcing: all state changes are captured as
domain events, and the current state is rebuilt by replaying events via
@apply decorators. This gives the append-only status history for free.

An order is a snapshot: its lines and total are frozen when it is placed and
later catalogue changes never touch them. After placement only the status
moves, and only staff can move it.

State Machine (6 states):
    PENDENTE → CONFIRMADO → PREPARANDO → PRONTO → ENTREGUE
    CANCELADO (from PENDENTE, CONFIRMADO, PREPARANDO, PRONTO)
    ENTREGUE and CANCELADO are terminal.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import apply
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.exceptions import AuthorizationError, InvalidTransition
from ordering.order.events import OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pendente"
    CONFIRMED = "confirmado"
    PREPARING = "preparando"
    READY = "pronto"
    DELIVERED = "entregue"
    CANCELLED = "cancelado"


class Modality(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


@dataclass(frozen=True)
class Actor:
    """Who is asking for a transition, as vouched for by the identity provider."""

    actor_id: str
    is_staff: bool = False


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class DeliveryAddress:
    """Where a delivery order goes, captured at checkout time."""

    street = String(required=True, max_length=255)
    number = String(required=True, max_length=20)
    neighborhood = String(required=True, max_length=100)
    city = String(required=True, max_length=100)
    postal_code = String(max_length=9)
    complement = String(max_length=255)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    """A cart line as it was at checkout: name and unit price are frozen copies."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image = String(max_length=500)

    @property
    def subtotal(self) -> float:
        return round(self.unit_price * self.quantity, 2)


@ordering.entity(part_of="Order")
class StatusChange:
    status = String(required=True, choices=OrderStatus)
    changed_at = DateTime(required=True)
    changed_by = Identifier()


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@ordering.aggregate(is_event_sourced=True)
class Order:
    customer_id = Identifier(required=True)
    number = String(max_length=20)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    lines = HasMany(OrderLine)
    total = Float(default=0.0)
    modality = String(choices=Modality)
    scheduled_for = DateTime()
    phone = String(max_length=30)
    address = ValueObject(DeliveryAddress)
    note = Text()
    history = HasMany(StatusChange)
    placed_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        number,
        lines_data,
        modality,
        scheduled_for,
        phone,
        address=None,
        note=None,
    ):
        """Place a new order from a cart snapshot and validated checkout fields.

        Uses _create_new() to get a blank aggregate with auto-generated
        identity. All state is established by the OrderPlaced event's
        @apply handler.

        Args:
            customer_id: The customer placing the order.
            number: Human-facing sequential order number.
            lines_data: List of dicts with product_id, name, unit_price,
                        quantity and image.
            modality: Modality or its value.
            scheduled_for: Aware datetime the customer booked.
            phone: Contact phone.
            address: Dict with street, number, neighborhood, city,
                     postal_code, complement. Delivery only.
            note: Optional free-text note.
        """
        now = datetime.now(UTC)
        modality = Modality(modality)

        # Pre-generate line IDs for deterministic replay
        lines_with_ids = [{**line, "id": str(uuid4())} for line in lines_data]
        total = round(sum(line["unit_price"] * line["quantity"] for line in lines_data), 2)

        order = cls._create_new()
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                number=number,
                lines=json.dumps(lines_with_ids),
                total=total,
                item_count=sum(line["quantity"] for line in lines_data),
                modality=modality.value,
                scheduled_for=scheduled_for,
                phone=phone,
                address=json.dumps(address) if address and modality == Modality.DELIVERY else None,
                note=note,
                history_entry_id=str(uuid4()),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Status workflow
    # -------------------------------------------------------------------
    def can_transition_to(self, target_status) -> bool:
        return OrderStatus(target_status) in _VALID_TRANSITIONS.get(OrderStatus(self.status), set())

    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current.value, target_status.value)

    def transition_to(self, target, actor: Actor):
        """Move the order to ``target`` on behalf of ``actor``.

        Only staff may move orders. All-or-nothing: a rejected transition
        leaves status and history untouched.
        """
        try:
            target_status = OrderStatus(target)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {target}"]}) from None

        if not actor.is_staff:
            raise AuthorizationError(f"User {actor.actor_id} may not change order status")

        self._assert_can_transition(target_status)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=self.status,
                status=target_status.value,
                changed_by=str(actor.actor_id),
                history_entry_id=str(uuid4()),
                changed_at=datetime.now(UTC),
            )
        )

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[OrderStatus(self.status)]

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    # -------------------------------------------------------------------
    # @apply methods — rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_placed(self, event: OrderPlaced):
        self.id = event.order_id
        self.customer_id = event.customer_id
        self.number = event.number
        self.status = OrderStatus.PENDING.value
        self.total = event.total
        self.modality = event.modality
        self.scheduled_for = event.scheduled_for
        self.phone = event.phone
        self.note = event.note
        self.placed_at = event.placed_at
        self.updated_at = event.placed_at

        # Reconstruct lines from JSON (includes IDs for deterministic replay)
        lines_data = json.loads(event.lines) if isinstance(event.lines, str) else []
        self.lines = [OrderLine(**line_data) for line_data in lines_data]

        address_data = json.loads(event.address) if isinstance(event.address, str) else {}
        if address_data:
            self.address = DeliveryAddress(**address_data)

        self.history = [
            StatusChange(
                id=event.history_entry_id,
                status=OrderStatus.PENDING.value,
                changed_at=event.placed_at,
                changed_by=event.customer_id,
            )
        ]

    @apply
    def _on_status_changed(self, event: OrderStatusChanged):
        self.status = event.status
        self.updated_at = event.changed_at
        # Idempotent: skip if the entry is already recorded
        existing = next((h for h in (self.history or []) if str(h.id) == str(event.history_entry_id)), None)
        if not existing:
            self.add_history(
                StatusChange(
                    id=event.history_entry_id,
                    status=event.status,
                    changed_at=event.changed_at,
                    changed_by=event.changed_by,
                )
            )
