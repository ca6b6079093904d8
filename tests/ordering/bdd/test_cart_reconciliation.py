"""BDD tests for aligning a cart with the catalogue."""

import pytest
from ordering.reconciliation.engine import CartReconciler
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/cart_reconciliation.feature")


def _product_id(name):
    return "prod-" + name.lower().replace(" ", "-")


@pytest.fixture()
def report():
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalogue sells "{name}" at {price:f}'))
def catalogue_sells(catalogue, name, price):
    catalogue.put(_product_id(name), name, price)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the catalogue price of "{name}" changes to {price:f}'))
def price_changes(catalogue, name, price):
    catalogue.change_price(_product_id(name), price)


@when(parsers.cfparse('"{name}" is paused in the catalogue'))
def product_paused(catalogue, name):
    catalogue.pause(_product_id(name))


@when("the catalogue cannot be reached")
def catalogue_down(catalogue):
    catalogue.configure(unavailable=True)


@when("the cart is reconciled")
def reconcile(cart, catalogue, report):
    report["result"] = CartReconciler(catalogue).reconcile(cart)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the customer is told "{notice}"'))
def customer_told(report, notice):
    assert report["result"].notices == [notice]


@then("the customer is told nothing")
def customer_told_nothing(report):
    assert report["result"].notices == []
