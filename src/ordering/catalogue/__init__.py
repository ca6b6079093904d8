"""Catalogue Authority factory.

Provides get_catalogue() / set_catalogue() to swap implementations:
- FakeCatalogue for development and testing
- HttpCatalogue for production (the storefront catalogue service)
"""

from ordering.catalogue.port import CatalogueAuthority
from ordering.config import get_policy

_current_catalogue: CatalogueAuthority | None = None


def get_catalogue() -> CatalogueAuthority:
    """Return the configured catalogue adapter (singleton)."""
    global _current_catalogue
    if _current_catalogue is None:
        policy = get_policy()
        if policy.catalogue_adapter == "fake":
            from ordering.catalogue.fake_adapter import FakeCatalogue

            _current_catalogue = FakeCatalogue()
        elif policy.catalogue_adapter == "http":
            from ordering.catalogue.http_adapter import HttpCatalogue

            _current_catalogue = HttpCatalogue(policy.catalogue_url, timeout=policy.catalogue_timeout_seconds)
        else:
            raise ValueError(f"Unknown catalogue adapter: {policy.catalogue_adapter}")
    return _current_catalogue


def set_catalogue(catalogue: CatalogueAuthority) -> None:
    """Override the active catalogue adapter (useful for tests)."""
    global _current_catalogue
    _current_catalogue = catalogue


def reset_catalogue() -> None:
    """Reset to the configured default adapter."""
    global _current_catalogue
    _current_catalogue = None
