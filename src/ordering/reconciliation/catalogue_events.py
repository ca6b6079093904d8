"""Inbound cross-domain event handler — Ordering reacts to Catalogue events.

Listens for product edits, pauses, reactivations and removals published by
the Catalogue Authority. Each event is relayed on the product change channel
(so open cart views reconcile at once) and every stored cart holding the
product is reconciled and persisted.

Cross-domain events are imported from shared.events.catalogue and registered
as external events via ordering.register_external_event().
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.catalogue import (
    ProductEdited,
    ProductPaused,
    ProductReactivated,
    ProductRemoved,
)

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.exceptions import ConflictError
from ordering.reconciliation.channel import ProductChange, ProductSignal, get_channel
from ordering.reconciliation.reconcile import ReconcileCart

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
ordering.register_external_event(ProductEdited, "Catalogue.ProductEdited.v1")
ordering.register_external_event(ProductPaused, "Catalogue.ProductPaused.v1")
ordering.register_external_event(ProductReactivated, "Catalogue.ProductReactivated.v1")
ordering.register_external_event(ProductRemoved, "Catalogue.ProductRemoved.v1")


@ordering.event_handler(part_of=ShoppingCart, stream_category="catalogue::product")
class CatalogueSignalHandler:
    """Reacts to Catalogue product events affecting held carts."""

    def _propagate(self, product_id, change: ProductChange) -> int:
        product_id = str(product_id)
        get_channel().publish(ProductSignal(product_id=product_id, change=change))

        carts = current_domain.repository_for(ShoppingCart).holding(product_id)
        reconciled = 0
        for cart in carts:
            try:
                current_domain.process(
                    ReconcileCart(customer_id=str(cart.customer_id)),
                    asynchronous=False,
                )
                reconciled += 1
            except ConflictError:
                # The customer wrote the cart meanwhile; their next pass catches up
                logger.info(
                    "Skipped reconciling cart changed concurrently",
                    customer_id=str(cart.customer_id),
                    product_id=product_id,
                )

        logger.info(
            "Propagated catalogue change to carts",
            product_id=product_id,
            change=change.value,
            cart_count=len(carts),
            reconciled_count=reconciled,
        )
        return reconciled

    @handle(ProductEdited)
    def on_product_edited(self, event: ProductEdited) -> None:
        """Reprice carts holding the edited product."""
        self._propagate(event.product_id, ProductChange.EDITED)

    @handle(ProductPaused)
    def on_product_paused(self, event: ProductPaused) -> None:
        """Prune the paused product from carts holding it."""
        self._propagate(event.product_id, ProductChange.PAUSED)

    @handle(ProductReactivated)
    def on_product_reactivated(self, event: ProductReactivated) -> None:
        # Pruned lines are not restored; only open views need to hear about it
        logger.info("Product reactivated", product_id=str(event.product_id))
        get_channel().publish(ProductSignal(product_id=str(event.product_id), change=ProductChange.REACTIVATED))

    @handle(ProductRemoved)
    def on_product_removed(self, event: ProductRemoved) -> None:
        """Prune the deleted product from carts holding it."""
        self._propagate(event.product_id, ProductChange.REMOVED)
