"""Order summary — listing view for customers' order history and the staff board."""

from protean.core.projector import on
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.order.order import Order, OrderStatus
from ordering.utils.paging import every_page

RECENT_ORDERS_LIMIT = 10


@ordering.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    number = String(required=True, max_length=20)
    customer_id = Identifier(required=True)
    status = String(required=True)
    total = Float()
    modality = String()
    scheduled_for = DateTime()
    item_count = Integer(default=0)
    placed_at = DateTime()
    updated_at = DateTime()


@ordering.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                number=event.number,
                customer_id=event.customer_id,
                status=OrderStatus.PENDING.value,
                total=event.total,
                modality=event.modality,
                scheduled_for=event.scheduled_for,
                item_count=event.item_count,
                placed_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.status = event.status
        summary.updated_at = event.changed_at
        repo.add(summary)


def recent_orders_for(customer_id, limit: int = RECENT_ORDERS_LIMIT) -> list[OrderSummary]:
    """A customer's most recent orders, newest first."""
    return (
        current_domain.repository_for(OrderSummary)
        ._dao.query.filter(customer_id=str(customer_id))
        .order_by("-placed_at")
        .limit(limit)
        .all()
        .items
    )


def orders_with_status(status) -> list[OrderSummary]:
    """Staff board: every order currently in ``status``, oldest booking first."""
    try:
        status = OrderStatus(status)
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status {status}"]}) from None
    return every_page(
        current_domain.repository_for(OrderSummary)
        ._dao.query.filter(status=status.value)
        .order_by(["scheduled_for", "order_id"])
    )
