"""Catalogue Authority port (abstract interface).

The catalogue is owned by the shop's admin surface; ordering only reads it.
Adapters translate whatever the catalogue service speaks into immutable
``ProductSnapshot`` values partitioned by a closed ``Category`` enum.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Category(Enum):
    SPECIAL_CAKES = "bolos-doces-especiais"
    INDIVIDUAL_SWEETS = "doces-individuais"
    SWEET_BREADS = "paes-doces"
    SPECIAL_SAVOURY_BREADS = "paes-salgados-especiais"
    SPECIAL_RING_BREADS = "roscas-paes-especiais"
    BAKED_SNACKS = "salgados-assados-lanches"
    DESSERTS_AND_PIES = "sobremesas-tortas"


class ProductStatus(Enum):
    ACTIVE = "active"
    PAUSED = "pause"


@dataclass(frozen=True)
class ProductSnapshot:
    """Price and availability of a product as the catalogue reports it."""

    product_id: str
    name: str
    price: float
    status: ProductStatus
    category: Category
    image: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE


class CatalogueAuthority(ABC):
    """Read surface of the external catalogue consumed by reconciliation."""

    @abstractmethod
    def list_active_products(self, category: Category) -> list[ProductSnapshot]:
        """Return the active products of one category partition."""
        ...

    @abstractmethod
    def find_product(self, product_id: str) -> ProductSnapshot | None:
        """Look a product up across every partition, active or paused.

        Returns None when the product no longer exists.
        """
        ...
