"""Reconciliation command: align a stored cart with the catalogue and persist it."""

from protean import handle
from protean.fields import Identifier, Integer

from ordering.cart.cart import ShoppingCart
from ordering.cart.items import load_cart
from ordering.catalogue import get_catalogue
from ordering.domain import ordering
from ordering.reconciliation.engine import CartReconciler


@ordering.command(part_of="ShoppingCart")
class ReconcileCart:
    customer_id = Identifier(required=True)
    expected_revision = Integer()


@ordering.command_handler(part_of=ShoppingCart)
class ReconcileCartHandler:
    @handle(ReconcileCart)
    def reconcile_cart(self, command):
        """Returns the reconciliation report as a dict, including the cart's resulting state."""
        repo, cart, loaded_revision = load_cart(command)
        report = CartReconciler(get_catalogue()).reconcile(cart)
        if report.changed:
            repo.save(cart, expected_revision=loaded_revision)
        return report.to_dict(cart)
