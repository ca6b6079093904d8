"""Ordering bounded context — Shopping Cart, Catalogue Reconciliation and Orders.

Keeps customer carts consistent with the external catalogue, gates checkout
through the validation pipeline, and drives placed orders through the staff
fulfilment workflow (event-sourced).
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
