"""Shared BDD fixtures and step definitions for the Ordering domain."""

import json
from datetime import UTC, datetime

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartReconciled,
)
from ordering.exceptions import AuthorizationError
from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.order.order import Order
from protean.exceptions import ValidationError
from protean.testing import given as given_
from pytest_bdd import given, parsers, then

# Map event name strings to classes for dynamic lookup in Then steps
_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderStatusChanged": OrderStatusChanged,
}

_CART_EVENT_CLASSES = {
    "CartItemAdded": CartItemAdded,
    "CartQuantityUpdated": CartQuantityUpdated,
    "CartItemRemoved": CartItemRemoved,
    "CartCleared": CartCleared,
    "CartReconciled": CartReconciled,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_id():
    return "ord-001"


@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def error():
    """Container for captured validation errors (used by cart tests)."""
    return {"exc": None}


def _status_changed(order_id, customer_id, previous_status, status):
    return OrderStatusChanged(
        order_id=order_id,
        customer_id=customer_id,
        previous_status=previous_status,
        status=status,
        changed_by="staff-001",
        history_entry_id=f"hist-{status}",
        changed_at=datetime.now(UTC),
    )


# ---------------------------------------------------------------------------
# Event fixtures (past tense — what happened)
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_placed(order_id, customer_id):
    return OrderPlaced(
        order_id=order_id,
        customer_id=customer_id,
        number="00001",
        lines=json.dumps(
            [
                {
                    "id": "line-1",
                    "product_id": "prod-001",
                    "name": "Bolo de cenoura",
                    "unit_price": 45.0,
                    "quantity": 1,
                },
                {
                    "id": "line-2",
                    "product_id": "prod-002",
                    "name": "Pão de mel",
                    "unit_price": 6.5,
                    "quantity": 4,
                },
            ]
        ),
        total=71.0,
        item_count=5,
        modality="pickup",
        scheduled_for=datetime(2026, 10, 20, 13, 0, tzinfo=UTC),
        phone="16991234567",
        history_entry_id="hist-pendente",
        placed_at=datetime.now(UTC),
    )


@pytest.fixture()
def order_confirmed(order_id, customer_id):
    return _status_changed(order_id, customer_id, "pendente", "confirmado")


@pytest.fixture()
def order_preparing(order_id, customer_id):
    return _status_changed(order_id, customer_id, "confirmado", "preparando")


@pytest.fixture()
def order_ready(order_id, customer_id):
    return _status_changed(order_id, customer_id, "preparando", "pronto")


@pytest.fixture()
def order_delivered(order_id, customer_id):
    return _status_changed(order_id, customer_id, "pronto", "entregue")


@pytest.fixture()
def order_cancelled(order_id, customer_id):
    return _status_changed(order_id, customer_id, "pendente", "cancelado")


# ---------------------------------------------------------------------------
# Given steps — Order (event sourcing via protean.testing)
# ---------------------------------------------------------------------------
@given("an order was placed", target_fixture="order")
def _(order_placed):
    return given_(Order, order_placed)


@given("the order was confirmed", target_fixture="order")
def _(order, order_confirmed):
    return order.after(order_confirmed)


@given("the order is being prepared", target_fixture="order")
def _(order, order_preparing):
    return order.after(order_preparing)


@given("the order is ready", target_fixture="order")
def _(order, order_ready):
    return order.after(order_ready)


@given("the order was delivered", target_fixture="order")
def _(order, order_delivered):
    return order.after(order_delivered)


@given("the order was cancelled", target_fixture="order")
def _(order, order_cancelled):
    return order.after(order_cancelled)


# ---------------------------------------------------------------------------
# Given steps — Shopping Cart
# ---------------------------------------------------------------------------
@given("an empty cart", target_fixture="cart")
def empty_cart(customer_id):
    return ShoppingCart.open(customer_id)


@given(parsers.cfparse('the cart holds {qty:d} of "{name}" at {price:f}'), target_fixture="cart")
def cart_holding(cart, qty, name, price):
    product_id = "prod-" + name.lower().replace(" ", "-")
    cart.add_item(product_id=product_id, name=name, unit_price=price, quantity=qty)
    cart._events.clear()
    return cart


# ---------------------------------------------------------------------------
# Then steps — Order (shared, plain assertions)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert order.status == status


@then(parsers.cfparse('the order history reads "{statuses}"'))
def _(order, statuses):
    assert [entry.status for entry in order.history] == statuses.split(", ")


@then("the order action fails with a validation error")
def _(order):
    assert order.rejected
    assert isinstance(order.rejection, ValidationError)


@then("the order action is refused for lack of permission")
def _(order):
    assert order.rejected
    assert isinstance(order.rejection, AuthorizationError)


@then(parsers.cfparse("an {event_type} order event is raised"))
def _(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert event_cls in order.events


@then("no status change is recorded")
def _(order):
    assert OrderStatusChanged not in order.events


# ---------------------------------------------------------------------------
# Then steps — Cart
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the cart has {count:d} line"))
def cart_has_n_lines_singular(cart, count):
    assert len(cart.items) == count


@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_n_lines(cart, count):
    assert len(cart.items) == count


@then(parsers.cfparse('the cart line "{name}" has quantity {qty:d}'))
def cart_line_quantity(cart, name, qty):
    line = next(item for item in cart.items if item.name == name)
    assert line.quantity == qty


@then(parsers.cfparse("the cart total is {total:f}"))
def cart_total_is(cart, total):
    assert cart.total == pytest.approx(total)


@then("the cart action fails with a validation error")
def cart_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("a {event_type} cart event is raised"))
def cart_event_raised(cart, event_type):
    event_cls = _CART_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in cart._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in cart._events]}"
