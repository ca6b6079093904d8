"""Order placement — command and handler.

Placing the order is the commit point of checkout: the order, its number and
its OrderPlaced event are persisted together or not at all.
"""

import json

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.numbering import next_order_number
from ordering.order.order import Modality, Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of line dicts
    modality = String(required=True, choices=Modality)
    scheduled_for = DateTime(required=True)
    phone = String(required=True, max_length=30)
    address = Text()  # JSON: address dict, delivery only
    note = Text()


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines_data = json.loads(command.lines) if isinstance(command.lines, str) else command.lines
        address = json.loads(command.address) if isinstance(command.address, str) else command.address

        order = Order.place(
            customer_id=command.customer_id,
            number=next_order_number(),
            lines_data=lines_data,
            modality=command.modality,
            scheduled_for=command.scheduled_for,
            phone=command.phone,
            address=address,
            note=command.note,
        )
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order placed",
            order_id=str(order.id),
            number=order.number,
            customer_id=str(order.customer_id),
            total=order.total,
        )
        return {"order_id": str(order.id), "number": order.number, "total": order.total}
