"""Application tests for ReconcileCart — a reconciliation pass persisted through the domain."""

import asyncio

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart
from ordering.exceptions import ConflictError
from ordering.reconciliation.channel import ProductChangeChannel
from ordering.reconciliation.reconcile import ReconcileCart
from ordering.reconciliation.watcher import CartWatcher
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _stock(catalogue):
    catalogue.put("prod-001", "Bolo de cenoura", 45.0)
    catalogue.put("prod-002", "Sonho", 5.0)


def _add(product_id, name, unit_price, customer_id="cust-001"):
    current_domain.process(
        AddToCart(customer_id=customer_id, product_id=product_id, name=name, unit_price=unit_price),
        asynchronous=False,
    )


def _reconcile(customer_id="cust-001", **kwargs):
    return current_domain.process(ReconcileCart(customer_id=customer_id, **kwargs), asynchronous=False)


def _cart(customer_id="cust-001"):
    return current_domain.repository_for(ShoppingCart).get(customer_id)


class TestReconcileCart:
    def test_unchanged_cart_is_not_written(self, catalogue):
        _stock(catalogue)
        _add("prod-001", "Bolo de cenoura", 45.0)

        report = _reconcile()

        assert report["changed"] is False
        assert report["notices"] == []
        assert report["revision"] == 1
        assert _cart().revision == 1

    def test_price_drift_is_persisted(self, catalogue):
        _stock(catalogue)
        _add("prod-001", "Bolo de cenoura", 45.0)
        catalogue.change_price("prod-001", 48.0)

        report = _reconcile()

        assert report["notices"] == ["Bolo de cenoura: price changed from 45.00 to 48.00"]
        assert report["total"] == 48.0
        cart = _cart()
        assert cart.line_for("prod-001").unit_price == 48.0
        assert cart.revision == 2

    def test_paused_product_is_pruned_and_persisted(self, catalogue):
        _stock(catalogue)
        _add("prod-001", "Bolo de cenoura", 45.0)
        _add("prod-002", "Sonho", 5.0)
        catalogue.pause("prod-002")

        report = _reconcile()

        assert report["removed"] == [{"product_id": "prod-002", "name": "Sonho", "reason": "paused"}]
        assert report["product_ids"] == ["prod-001"]
        assert _cart().product_ids() == ["prod-001"]

    def test_second_pass_is_a_no_op(self, catalogue):
        _stock(catalogue)
        _add("prod-001", "Bolo de cenoura", 45.0)
        catalogue.change_price("prod-001", 50.0)

        _reconcile()
        report = _reconcile()

        assert report["changed"] is False
        assert _cart().revision == 2

    def test_unreachable_catalogue_leaves_cart_alone(self, catalogue):
        _stock(catalogue)
        _add("prod-001", "Bolo de cenoura", 45.0)
        catalogue.change_price("prod-001", 50.0)
        catalogue.configure(unavailable=True)

        report = _reconcile()

        assert report["catalogue_unavailable"] is True
        assert report["changed"] is False
        assert _cart().line_for("prod-001").unit_price == 45.0
        assert _cart().revision == 1

    def test_unknown_customer_gets_empty_report_and_no_cart(self, catalogue):
        report = _reconcile(customer_id="cust-none")

        assert report["product_ids"] == []
        assert report["total"] == 0.0
        assert catalogue.calls == []
        with pytest.raises(ObjectNotFoundError):
            _cart("cust-none")

    def test_stale_revision_is_rejected(self, catalogue):
        _stock(catalogue)
        _add("prod-001", "Bolo de cenoura", 45.0)
        _add("prod-002", "Sonho", 5.0)

        with pytest.raises(ConflictError):
            _reconcile(expected_revision=1)


class TestWatcherDefaultPass:
    def test_watcher_pass_runs_through_the_domain(self, catalogue):
        _stock(catalogue)
        _add("prod-001", "Bolo de cenoura", 45.0)
        catalogue.change_price("prod-001", 48.0)
        watcher = CartWatcher("cust-001", channel=ProductChangeChannel(), interval=60)

        report = asyncio.run(watcher.refresh_now())

        assert report["notices"] == ["Bolo de cenoura: price changed from 45.00 to 48.00"]
        assert watcher.holding == {"prod-001"}
        assert _cart().revision == 2
