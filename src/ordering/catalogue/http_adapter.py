"""HTTP adapter for the storefront catalogue service.

Speaks the catalogue's JSON API:
- ``GET {base}/produtos/categoria/{slug}`` → ``{"produtos": [...]}``
- ``GET {base}/produtos/{id}`` → ``{"produto": {...}}`` or 404

Every request carries a timeout; connection problems, timeouts and 5xx
answers surface as ``TransientNetworkError`` so reconciliation can keep the
cart at its last-known-good state.
"""

import requests
import structlog

from ordering.catalogue.port import (
    CatalogueAuthority,
    Category,
    ProductSnapshot,
    ProductStatus,
)
from ordering.exceptions import TransientNetworkError

logger = structlog.get_logger(__name__)


def _to_snapshot(payload: dict, category: Category | None = None) -> ProductSnapshot | None:
    """Translate a catalogue product document; None for unknown categories."""
    slug = (payload.get("categoria") or {}).get("slug")
    try:
        resolved = Category(slug) if slug else category
    except ValueError:
        logger.warning("Unknown catalogue category", product_id=payload.get("_id"), category=slug)
        return None
    if resolved is None:
        return None

    price = payload.get("preco") or {}
    image = payload.get("imagem") or {}
    status = ProductStatus.PAUSED if payload.get("status") in ("pause", "inativo") else ProductStatus.ACTIVE
    return ProductSnapshot(
        product_id=str(payload["_id"]),
        name=payload.get("nome", ""),
        price=float(price.get("valor", payload.get("valor", 0.0))),
        status=status,
        category=resolved,
        image=image.get("href") or payload.get("img"),
    )


class HttpCatalogue(CatalogueAuthority):
    """Catalogue adapter backed by the storefront's JSON API."""

    def __init__(self, base_url: str, timeout: float = 10.0, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransientNetworkError(f"Catalogue request failed: {exc}") from exc
        if response.status_code >= 500:
            raise TransientNetworkError(f"Catalogue answered {response.status_code} for {path}")
        return response

    def list_active_products(self, category: Category) -> list[ProductSnapshot]:
        response = self._get(f"/produtos/categoria/{category.value}")
        response.raise_for_status()
        snapshots = (_to_snapshot(item, category) for item in response.json().get("produtos", []))
        return [snapshot for snapshot in snapshots if snapshot is not None and snapshot.is_active]

    def find_product(self, product_id: str) -> ProductSnapshot | None:
        response = self._get(f"/produtos/{product_id}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return _to_snapshot(response.json().get("produto") or {})
