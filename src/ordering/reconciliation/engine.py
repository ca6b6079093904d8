"""Reconciliation engine — diffs a cart against the Catalogue Authority.

A pass indexes the active products of every category partition, then walks
the cart's lines:

- a line whose product is missing from the index is looked up directly to
  tell a paused product from a deleted one; either way the line is pruned;
- a line whose cached price differs (to the cent) from the catalogue's gets
  the catalogue price.

All changes are collected first and applied in one step, so a catalogue
failure half-way through leaves the cart exactly as it was. Running a pass
twice against an unchanged catalogue changes nothing the second time.
"""

from dataclasses import dataclass, field

import structlog

from ordering.cart.cart import ShoppingCart
from ordering.catalogue.port import CatalogueAuthority, Category, ProductSnapshot
from ordering.exceptions import TransientNetworkError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RemovedLine:
    product_id: str
    name: str
    reason: str  # "paused" or "deleted"

    def notice(self) -> str:
        return f"{self.name} is no longer available and was removed from your cart"


@dataclass(frozen=True)
class PriceChange:
    product_id: str
    name: str
    old_price: float
    new_price: float

    def notice(self) -> str:
        return f"{self.name}: price changed from {self.old_price:.2f} to {self.new_price:.2f}"


@dataclass
class ReconciliationReport:
    """Outcome of a pass, carrying the notices to show the customer."""

    customer_id: str
    removed: list[RemovedLine] = field(default_factory=list)
    price_changes: list[PriceChange] = field(default_factory=list)
    catalogue_unavailable: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.price_changes)

    @property
    def removed_notices(self) -> list[str]:
        return [line.notice() for line in self.removed]

    @property
    def price_notices(self) -> list[str]:
        return [change.notice() for change in self.price_changes]

    @property
    def notices(self) -> list[str]:
        return self.removed_notices + self.price_notices

    def to_dict(self, cart: ShoppingCart | None = None) -> dict:
        data = {
            "customer_id": self.customer_id,
            "changed": self.changed,
            "catalogue_unavailable": self.catalogue_unavailable,
            "removed": [
                {"product_id": line.product_id, "name": line.name, "reason": line.reason} for line in self.removed
            ],
            "price_changes": [
                {
                    "product_id": change.product_id,
                    "name": change.name,
                    "old_price": change.old_price,
                    "new_price": change.new_price,
                }
                for change in self.price_changes
            ],
            "notices": self.notices,
        }
        if cart is not None:
            data.update(
                product_ids=cart.product_ids(),
                total=cart.total,
                revision=cart.revision or 0,
            )
        return data


def _same_price(left: float, right: float) -> bool:
    return round(left, 2) == round(right, 2)


class CartReconciler:
    """Aligns carts with the catalogue. Stateless apart from the catalogue it reads."""

    def __init__(self, catalogue: CatalogueAuthority) -> None:
        self.catalogue = catalogue

    def _active_index(self) -> dict[str, ProductSnapshot]:
        index = {}
        for category in Category:
            for product in self.catalogue.list_active_products(category):
                index[product.product_id] = product
        return index

    def _diff(self, cart: ShoppingCart) -> tuple[list[RemovedLine], list[PriceChange]]:
        index = self._active_index()
        removed, price_changes = [], []

        for item in cart.items:
            product_id = str(item.product_id)
            product = index.get(product_id)
            if product is None:
                # Not listed: paused, deleted, or listed a moment too late
                product = self.catalogue.find_product(product_id)
                if product is None or not product.is_active:
                    reason = "deleted" if product is None else "paused"
                    removed.append(RemovedLine(product_id=product_id, name=item.name, reason=reason))
                    continue

            if not _same_price(product.price, item.unit_price):
                price_changes.append(
                    PriceChange(
                        product_id=product_id,
                        name=item.name,
                        old_price=item.unit_price,
                        new_price=product.price,
                    )
                )

        return removed, price_changes

    def reconcile(self, cart: ShoppingCart) -> ReconciliationReport:
        """Run one pass over ``cart``, mutating it in place when anything drifted."""
        report = ReconciliationReport(customer_id=str(cart.customer_id))
        if not cart.items:
            return report

        try:
            removed, price_changes = self._diff(cart)
        except TransientNetworkError as exc:
            logger.warning(
                "Catalogue unreachable, keeping last known cart",
                customer_id=str(cart.customer_id),
                error=exc.messages,
            )
            report.catalogue_unavailable = True
            return report

        report.removed = removed
        report.price_changes = price_changes

        if report.changed:
            cart.apply_reconciliation(
                removed=[{"product_id": line.product_id, "name": line.name} for line in removed],
                price_changes=[
                    {
                        "product_id": change.product_id,
                        "name": change.name,
                        "old_price": change.old_price,
                        "new_price": change.new_price,
                    }
                    for change in price_changes
                ],
            )
            logger.info(
                "Cart reconciled",
                customer_id=str(cart.customer_id),
                removed_count=len(removed),
                repriced_count=len(price_changes),
            )

        return report
