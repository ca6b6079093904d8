"""FastAPI routes for the Ordering domain — carts and orders."""

from fastapi import APIRouter, Header, HTTPException
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddToCartRequest,
    CartLineSchema,
    CartResponse,
    CheckoutRequest,
    OrderLineSchema,
    OrderResponse,
    OrderSummaryResponse,
    PlacedOrderResponse,
    ReconciliationResponse,
    RevisionResponse,
    SetCartQuantityRequest,
    StatusChangeSchema,
    StatusResponse,
    UpdateOrderStatusRequest,
)
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, RemoveFromCart, SetCartQuantity
from ordering.cart.management import ClearCart
from ordering.checkout.service import CheckoutService
from ordering.checkout.validator import AddressDraft, CheckoutDraft
from ordering.order.order import Order
from ordering.order.status import UpdateOrderStatus
from ordering.projections.order_summary import orders_with_status, recent_orders_for
from ordering.reconciliation.reconcile import ReconcileCart

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


def _cart_response(cart: ShoppingCart) -> CartResponse:
    return CartResponse(
        customer_id=str(cart.customer_id),
        items=[
            CartLineSchema(
                product_id=str(item.product_id),
                name=item.name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                image=item.image,
                subtotal=item.subtotal,
            )
            for item in cart.items
        ],
        total=cart.total,
        unit_count=cart.unit_count,
        revision=cart.revision or 0,
    )


@cart_router.get("/{customer_id}", response_model=CartResponse)
async def get_cart(customer_id: str) -> CartResponse:
    """A customer without a cart gets an empty one; never a 404."""
    cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
    return _cart_response(cart)


@cart_router.post("/{customer_id}/items", response_model=RevisionResponse)
async def add_cart_item(customer_id: str, body: AddToCartRequest) -> RevisionResponse:
    command = AddToCart(
        customer_id=customer_id,
        product_id=body.product_id,
        name=body.name,
        unit_price=body.unit_price,
        quantity=body.quantity,
        image=body.image,
        expected_revision=body.expected_revision,
    )
    revision = current_domain.process(command, asynchronous=False)
    return RevisionResponse(revision=revision)


@cart_router.put("/{customer_id}/items/{product_id}", response_model=RevisionResponse)
async def set_cart_item_quantity(customer_id: str, product_id: str, body: SetCartQuantityRequest) -> RevisionResponse:
    command = SetCartQuantity(
        customer_id=customer_id,
        product_id=product_id,
        quantity=body.quantity,
        expected_revision=body.expected_revision,
    )
    revision = current_domain.process(command, asynchronous=False)
    return RevisionResponse(revision=revision)


@cart_router.delete("/{customer_id}/items/{product_id}", response_model=RevisionResponse)
async def remove_cart_item(
    customer_id: str,
    product_id: str,
    units: int | None = None,
    expected_revision: int | None = None,
) -> RevisionResponse:
    command = RemoveFromCart(
        customer_id=customer_id,
        product_id=product_id,
        units=units,
        expected_revision=expected_revision,
    )
    revision = current_domain.process(command, asynchronous=False)
    return RevisionResponse(revision=revision)


@cart_router.delete("/{customer_id}", response_model=StatusResponse)
async def clear_cart(customer_id: str, expected_revision: int | None = None) -> StatusResponse:
    current_domain.process(
        ClearCart(customer_id=customer_id, expected_revision=expected_revision),
        asynchronous=False,
    )
    return StatusResponse()


@cart_router.post("/{customer_id}/reconcile", response_model=ReconciliationResponse)
async def reconcile_cart(customer_id: str) -> ReconciliationResponse:
    report = current_domain.process(ReconcileCart(customer_id=customer_id), asynchronous=False)
    return ReconciliationResponse(**report)


@cart_router.post("/{customer_id}/checkout", status_code=201, response_model=PlacedOrderResponse)
async def checkout_cart(customer_id: str, body: CheckoutRequest) -> PlacedOrderResponse:
    """Reconcile, validate and place the order.

    A rejected draft answers 400 with the rejection reason; nothing is created.
    """
    draft = CheckoutDraft(
        customer_id=customer_id,
        modality=body.modality,
        scheduled_for=body.scheduled_for,
        phone=body.phone,
        address=AddressDraft(**body.address.model_dump()) if body.address else None,
        note=body.note,
    )
    placed = CheckoutService().place_order(draft)
    return PlacedOrderResponse(
        order_id=placed.order_id,
        number=placed.number,
        total=placed.total,
        notices=placed.notices,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _summary_response(summary) -> OrderSummaryResponse:
    return OrderSummaryResponse(
        order_id=str(summary.order_id),
        number=summary.number,
        customer_id=str(summary.customer_id),
        status=summary.status,
        total=summary.total,
        modality=summary.modality,
        scheduled_for=summary.scheduled_for,
        item_count=summary.item_count or 0,
        placed_at=summary.placed_at,
        updated_at=summary.updated_at,
    )


@order_router.get("", response_model=list[OrderSummaryResponse])
async def list_orders(customer_id: str | None = None, status: str | None = None) -> list[OrderSummaryResponse]:
    """A customer's recent orders (``customer_id``) or the staff board (``status``)."""
    if customer_id:
        summaries = recent_orders_for(customer_id)
    elif status:
        summaries = orders_with_status(status)
    else:
        raise HTTPException(status_code=400, detail="Filter by customer_id or status")
    return [_summary_response(summary) for summary in summaries]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse(
        order_id=str(order.id),
        number=order.number,
        customer_id=str(order.customer_id),
        status=order.status,
        total=order.total,
        modality=order.modality,
        scheduled_for=order.scheduled_for,
        phone=order.phone,
        address=order.address.to_dict() if order.address else None,
        note=order.note,
        lines=[
            OrderLineSchema(
                product_id=str(line.product_id),
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                image=line.image,
            )
            for line in order.lines
        ],
        history=[
            StatusChangeSchema(
                status=entry.status,
                changed_at=entry.changed_at,
                changed_by=str(entry.changed_by) if entry.changed_by else None,
            )
            for entry in order.history
        ],
        placed_at=order.placed_at,
        updated_at=order.updated_at,
    )


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    x_user_id: str = Header(default=""),
    x_staff: bool = Header(default=False),
) -> StatusResponse:
    """Advance an order's status. Identity headers come from the identity provider."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        actor_id=x_user_id,
        actor_is_staff=x_staff,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
