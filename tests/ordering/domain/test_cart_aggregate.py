"""Tests for the ShoppingCart aggregate — line management, limits and revisions."""

import random

import pytest
from ordering.cart.cart import CartItem, ShoppingCart
from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartReconciled,
)
from ordering.exceptions import LimitExceeded
from protean.exceptions import ValidationError


def _cart(customer_id="cust-001"):
    return ShoppingCart.open(customer_id)


def _fill(cart, count, quantity=1):
    for index in range(count):
        cart.add_item(product_id=f"prod-{index:03d}", name=f"Product {index}", unit_price=10.0, quantity=quantity)
    cart._events.clear()
    return cart


class TestOpenCart:
    def test_new_cart_is_empty(self):
        cart = _cart()
        assert cart.items == []
        assert cart.total == 0.0
        assert cart.revision == 0

    def test_cart_is_keyed_by_customer(self):
        cart = _cart("cust-042")
        assert cart.customer_id == "cust-042"


class TestAddItem:
    def test_add_item_caches_product_fields(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Pão de mel", unit_price=6.5, quantity=2, image="/img/pao.jpg")

        item = cart.line_for("prod-001")
        assert isinstance(item, CartItem)
        assert item.name == "Pão de mel"
        assert item.unit_price == 6.5
        assert item.quantity == 2
        assert item.image == "/img/pao.jpg"

    def test_re_adding_replaces_quantity(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=3)
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=5)

        assert len(cart.items) == 1
        assert cart.line_for("prod-001").quantity == 5

    def test_re_adding_refreshes_cached_fields(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0)
        cart.add_item(product_id="prod-001", name="Sonho de creme", unit_price=5.5)

        item = cart.line_for("prod-001")
        assert item.name == "Sonho de creme"
        assert item.unit_price == 5.5

    @pytest.mark.parametrize("quantity", [0, -3, None])
    def test_non_positive_quantity_is_coerced_to_one(self, quantity):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=quantity)
        assert cart.line_for("prod-001").quantity == 1

    def test_quantity_above_limit_is_rejected(self):
        cart = _cart()
        with pytest.raises(LimitExceeded) as exc:
            cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=21)
        assert "quantity" in exc.value.messages
        assert cart.items == []

    def test_quantity_at_limit_is_accepted(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=20)
        assert cart.line_for("prod-001").quantity == 20

    def test_twenty_first_distinct_product_is_rejected(self):
        cart = _fill(_cart(), 20)
        with pytest.raises(LimitExceeded) as exc:
            cart.add_item(product_id="prod-new", name="One too many", unit_price=1.0)
        assert "items" in exc.value.messages
        assert len(cart.items) == 20

    def test_re_adding_existing_product_in_full_cart_is_allowed(self):
        cart = _fill(_cart(), 20)
        cart.add_item(product_id="prod-000", name="Product 0", unit_price=10.0, quantity=4)
        assert cart.line_for("prod-000").quantity == 4

    def test_add_raises_event_with_revision(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=2)

        event = cart._events[-1]
        assert isinstance(event, CartItemAdded)
        assert event.product_id == "prod-001"
        assert event.quantity == 2
        assert event.revision == 1


class TestSetQuantity:
    def test_set_quantity(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=1)
        cart.set_quantity("prod-001", 7)

        assert cart.line_for("prod-001").quantity == 7
        event = cart._events[-1]
        assert isinstance(event, CartQuantityUpdated)
        assert event.previous_quantity == 1
        assert event.new_quantity == 7

    def test_set_quantity_of_absent_product_fails(self):
        cart = _cart()
        with pytest.raises(ValidationError):
            cart.set_quantity("prod-missing", 2)

    def test_set_quantity_above_limit_fails(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0)
        with pytest.raises(LimitExceeded):
            cart.set_quantity("prod-001", 25)
        assert cart.line_for("prod-001").quantity == 1


class TestRemoveItem:
    def test_remove_drops_whole_line(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=4)
        assert cart.remove_item("prod-001") is True

        assert cart.line_for("prod-001") is None
        assert isinstance(cart._events[-1], CartItemRemoved)

    def test_remove_units_decrements(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=4)
        cart.remove_item("prod-001", units=3)

        assert cart.line_for("prod-001").quantity == 1

    def test_removing_last_unit_drops_line(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=2)
        cart.remove_item("prod-001", units=2)

        assert cart.line_for("prod-001") is None

    def test_removing_absent_product_is_a_no_op(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0)
        revision = cart.revision
        cart._events.clear()

        assert cart.remove_item("prod-missing") is False
        assert cart.revision == revision
        assert cart._events == []

    def test_removing_zero_units_fails(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0)
        with pytest.raises(ValidationError):
            cart.remove_item("prod-001", units=0)

    def test_add_then_remove_restores_previous_lines(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=2)
        before = cart.snapshot()

        cart.add_item(product_id="prod-002", name="Rosca", unit_price=18.0)
        cart.remove_item("prod-002")

        assert cart.snapshot() == before


class TestClear:
    def test_clear_empties_cart(self):
        cart = _fill(_cart(), 3)
        assert cart.clear() == 3
        assert cart.items == []
        event = cart._events[-1]
        assert isinstance(event, CartCleared)
        assert event.removed_count == 3

    def test_clearing_empty_cart_changes_nothing(self):
        cart = _cart()
        assert cart.clear() == 0
        assert cart.revision == 0
        assert cart._events == []


class TestTotalsAndRevision:
    def test_total_is_rounded_sum(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=4.99, quantity=3)
        cart.add_item(product_id="prod-002", name="Rosca", unit_price=0.1, quantity=2)

        assert cart.total == 15.17
        assert cart.unit_count == 5

    def test_every_mutation_bumps_revision_by_one(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0)
        assert cart.revision == 1
        cart.set_quantity("prod-001", 3)
        assert cart.revision == 2
        cart.remove_item("prod-001", units=1)
        assert cart.revision == 3
        cart.clear()
        assert cart.revision == 4


class TestApplyReconciliation:
    def test_prunes_and_reprices_in_one_step(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0, quantity=2)
        cart.add_item(product_id="prod-002", name="Rosca", unit_price=18.0)
        cart._events.clear()
        revision = cart.revision

        cart.apply_reconciliation(
            removed=[{"product_id": "prod-002", "name": "Rosca"}],
            price_changes=[{"product_id": "prod-001", "name": "Sonho", "old_price": 5.0, "new_price": 5.5}],
        )

        assert cart.product_ids() == ["prod-001"]
        assert cart.line_for("prod-001").unit_price == 5.5
        assert cart.revision == revision + 1
        assert len(cart._events) == 1
        assert isinstance(cart._events[0], CartReconciled)

    def test_nothing_to_apply_is_a_no_op(self):
        cart = _cart()
        cart.add_item(product_id="prod-001", name="Sonho", unit_price=5.0)
        cart._events.clear()

        cart.apply_reconciliation(removed=[], price_changes=[])
        assert cart.revision == 1
        assert cart._events == []


class TestLimitsHoldUnderAnySequence:
    def test_random_operation_sequences_respect_limits(self):
        rng = random.Random(20261019)
        cart = _cart()
        products = [f"prod-{index:03d}" for index in range(30)]

        for _ in range(500):
            product_id = rng.choice(products)
            operation = rng.choice(["add", "set", "remove", "remove_units", "clear"])
            try:
                if operation == "add":
                    cart.add_item(product_id=product_id, name=product_id, unit_price=1.0, quantity=rng.randint(-2, 25))
                elif operation == "set":
                    cart.set_quantity(product_id, rng.randint(-2, 25))
                elif operation == "remove":
                    cart.remove_item(product_id)
                elif operation == "remove_units":
                    cart.remove_item(product_id, units=rng.randint(1, 5))
                elif operation == "clear" and rng.random() < 0.2:
                    cart.clear()
            except ValidationError:
                pass

            assert len(cart.items) <= 20
            assert all(1 <= item.quantity <= 20 for item in cart.items)
            assert len(set(cart.product_ids())) == len(cart.items)
