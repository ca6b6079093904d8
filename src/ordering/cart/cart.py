"""Shopping Cart aggregate (CQRS) — a customer's lines awaiting checkout.

The cart is a standard CQRS aggregate (not event sourced) keyed by the
customer's identity. It is created lazily on the first mutation and never
deleted, only emptied. Each line caches the product's name, unit price and
image as they were when added; the reconciliation engine keeps those caches
honest against the catalogue.

Every persisted mutation bumps ``revision``. Writers compare the revision
they loaded against the stored one (see ``CartRepository.save``) so that two
tabs or devices editing the same cart cannot silently overwrite each other.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartReconciled,
)
from ordering.config import get_policy
from ordering.domain import ordering
from ordering.exceptions import LimitExceeded


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image = String(max_length=500)
    added_at = DateTime()

    @property
    def subtotal(self) -> float:
        return round(self.unit_price * self.quantity, 2)


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(identifier=True)
    items = HasMany(CartItem)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_respect_line_limits(self):
        policy = get_policy()
        if len(self.items) > policy.max_cart_lines:
            raise LimitExceeded("items", f"A cart holds at most {policy.max_cart_lines} different products")
        for item in self.items:
            if item.quantity > policy.max_line_quantity:
                raise LimitExceeded("quantity", f"At most {policy.max_line_quantity} units per product")

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, customer_id):
        """Start an empty cart for a customer that has none yet."""
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            revision=0,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def total(self) -> float:
        return round(sum(item.unit_price * item.quantity for item in self.items), 2)

    @property
    def unit_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def product_ids(self) -> list[str]:
        return [str(item.product_id) for item in self.items]

    def line_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def snapshot(self) -> list[dict]:
        """Plain copy of the lines, in cart order."""
        return [
            {
                "product_id": str(item.product_id),
                "name": item.name,
                "unit_price": item.unit_price,
                "quantity": item.quantity,
                "image": item.image,
            }
            for item in self.items
        ]

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _normalize_quantity(quantity) -> int:
        """Coerce non-positive quantities to 1 and reject anything above the limit."""
        max_quantity = get_policy().max_line_quantity
        if quantity is None or quantity <= 0:
            return 1
        if quantity > max_quantity:
            raise LimitExceeded("quantity", f"At most {max_quantity} units per product")
        return quantity

    def _touch(self, now):
        self.revision = (self.revision or 0) + 1
        self.updated_at = now

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, product_id, name, unit_price, quantity=1, image=None):
        """Put a product in the cart.

        Re-adding a product already in the cart replaces its quantity (and
        refreshes the cached display fields) instead of summing quantities.
        """
        quantity = self._normalize_quantity(quantity)
        existing = self.line_for(product_id)
        now = datetime.now(UTC)

        if existing:
            existing.quantity = quantity
            existing.name = name
            existing.unit_price = unit_price
            existing.image = image
        else:
            max_lines = get_policy().max_cart_lines
            if len(self.items) >= max_lines:
                raise LimitExceeded("items", f"A cart holds at most {max_lines} different products")
            self.add_items(
                CartItem(
                    product_id=product_id,
                    name=name,
                    unit_price=unit_price,
                    quantity=quantity,
                    image=image,
                    added_at=now,
                )
            )

        self._touch(now)
        self.raise_(
            CartItemAdded(
                customer_id=str(self.customer_id),
                product_id=str(product_id),
                name=name,
                unit_price=unit_price,
                quantity=quantity,
                revision=self.revision,
            )
        )

    def set_quantity(self, product_id, quantity):
        """Change the quantity of a line already in the cart."""
        quantity = self._normalize_quantity(quantity)
        item = self.line_for(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        previous_quantity = item.quantity
        item.quantity = quantity
        self._touch(datetime.now(UTC))

        self.raise_(
            CartQuantityUpdated(
                customer_id=str(self.customer_id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                revision=self.revision,
            )
        )

    def remove_item(self, product_id, units=None) -> bool:
        """Drop a line, or take ``units`` off it.

        Taking off the last unit drops the line. Returns False, without
        touching the cart, when the product is not in it.
        """
        if units is not None and units < 1:
            raise ValidationError({"units": ["Units to remove must be at least 1"]})

        item = self.line_for(product_id)
        if item is None:
            return False

        if units is not None and units < item.quantity:
            self.set_quantity(product_id, item.quantity - units)
            return True

        self.remove_items(item)
        self._touch(datetime.now(UTC))
        self.raise_(
            CartItemRemoved(
                customer_id=str(self.customer_id),
                product_id=str(product_id),
                revision=self.revision,
            )
        )
        return True

    def clear(self) -> int:
        """Empty the cart. Returns how many lines were removed."""
        lines = list(self.items)
        if not lines:
            return 0

        for item in lines:
            self.remove_items(item)
        self._touch(datetime.now(UTC))
        self.raise_(
            CartCleared(
                customer_id=str(self.customer_id),
                removed_count=len(lines),
                revision=self.revision,
            )
        )
        return len(lines)

    # -------------------------------------------------------------------
    # Catalogue reconciliation
    # -------------------------------------------------------------------
    def apply_reconciliation(self, removed, price_changes):
        """Prune vanished or paused products and rewrite drifted prices in one step.

        Args:
            removed: List of dicts with product_id and name.
            price_changes: List of dicts with product_id, name, old_price, new_price.
        """
        if not removed and not price_changes:
            return

        for entry in removed:
            item = self.line_for(entry["product_id"])
            if item is not None:
                self.remove_items(item)

        for change in price_changes:
            item = self.line_for(change["product_id"])
            if item is not None:
                item.unit_price = change["new_price"]

        now = datetime.now(UTC)
        self._touch(now)
        self.raise_(
            CartReconciled(
                customer_id=str(self.customer_id),
                removed=json.dumps(removed),
                price_changes=json.dumps(price_changes),
                revision=self.revision,
                reconciled_at=now,
            )
        )
