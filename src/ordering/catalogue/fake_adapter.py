"""In-memory catalogue for development and testing.

Mirrors the admin operations of the real catalogue (edit, pause, reactivate,
delete) so tests can drift products out from under a cart. It can also be
told to fail, simulating an unreachable catalogue service.
"""

from dataclasses import replace

from ordering.catalogue.port import (
    CatalogueAuthority,
    Category,
    ProductSnapshot,
    ProductStatus,
)
from ordering.exceptions import TransientNetworkError


class FakeCatalogue(CatalogueAuthority):
    """Configurable fake catalogue keyed by category partition."""

    def __init__(self) -> None:
        self.partitions: dict[Category, dict[str, ProductSnapshot]] = {category: {} for category in Category}
        self.unavailable: bool = False
        self.calls: list[dict] = []

    # -------------------------------------------------------------------
    # Admin-side mutations
    # -------------------------------------------------------------------
    def put(
        self,
        product_id: str,
        name: str,
        price: float,
        category: Category = Category.SWEET_BREADS,
        status: ProductStatus = ProductStatus.ACTIVE,
        image: str | None = None,
    ) -> ProductSnapshot:
        self.delete(product_id)
        product = ProductSnapshot(
            product_id=product_id,
            name=name,
            price=price,
            status=status,
            category=category,
            image=image,
        )
        self.partitions[category][product_id] = product
        return product

    def change_price(self, product_id: str, price: float) -> None:
        self._update(product_id, price=price)

    def pause(self, product_id: str) -> None:
        self._update(product_id, status=ProductStatus.PAUSED)

    def reactivate(self, product_id: str) -> None:
        self._update(product_id, status=ProductStatus.ACTIVE)

    def delete(self, product_id: str) -> None:
        for partition in self.partitions.values():
            partition.pop(product_id, None)

    def configure(self, unavailable: bool) -> None:
        """Make every read fail with TransientNetworkError (or stop doing so)."""
        self.unavailable = unavailable

    def _update(self, product_id: str, **changes) -> None:
        product = self._locate(product_id)
        if product is None:
            raise KeyError(product_id)
        self.partitions[product.category][product_id] = replace(product, **changes)

    def _locate(self, product_id: str) -> ProductSnapshot | None:
        for partition in self.partitions.values():
            if product_id in partition:
                return partition[product_id]
        return None

    # -------------------------------------------------------------------
    # CatalogueAuthority
    # -------------------------------------------------------------------
    def list_active_products(self, category: Category) -> list[ProductSnapshot]:
        self._record("list_active_products", category=category.value)
        return [product for product in self.partitions[category].values() if product.is_active]

    def find_product(self, product_id: str) -> ProductSnapshot | None:
        self._record("find_product", product_id=product_id)
        return self._locate(product_id)

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if self.unavailable:
            raise TransientNetworkError(f"Catalogue unavailable during {method}")
