"""Storefront policy — business limits and adapter settings for the ordering domain.

Values come from environment variables so that deployments can tune them
without code changes; the defaults are the shop's standing policy.
"""

import os
from dataclasses import dataclass
from datetime import time
from zoneinfo import ZoneInfo


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, default))


def _env_time(name: str, default: str) -> time:
    return time.fromisoformat(os.environ.get(name, default))


@dataclass(frozen=True)
class StorefrontPolicy:
    max_cart_lines: int = 20
    max_line_quantity: int = 20
    reconcile_interval_seconds: float = 5.0
    timezone: str = "America/Sao_Paulo"
    opens_at: time = time(7, 0)
    closes_at: time = time(18, 30)
    booking_horizon_months: int = 1
    served_postal_codes: tuple[int, int] = (14000000, 14109999)
    max_order_value: float = 500.0
    max_order_units: int = 50
    max_note_length: int = 250
    min_phone_digits: int = 10
    catalogue_adapter: str = "fake"
    catalogue_url: str = "http://localhost:3000/api"
    catalogue_timeout_seconds: float = 10.0

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls) -> "StorefrontPolicy":
        return cls(
            max_cart_lines=_env_int("CART_MAX_LINES", 20),
            max_line_quantity=_env_int("CART_MAX_QUANTITY", 20),
            reconcile_interval_seconds=_env_float("CART_RECONCILE_INTERVAL", 5.0),
            timezone=os.environ.get("SHOP_TIMEZONE", "America/Sao_Paulo"),
            opens_at=_env_time("SHOP_OPENS_AT", "07:00"),
            closes_at=_env_time("SHOP_CLOSES_AT", "18:30"),
            booking_horizon_months=_env_int("SHOP_BOOKING_HORIZON_MONTHS", 1),
            served_postal_codes=(
                _env_int("SHOP_POSTAL_CODE_FROM", 14000000),
                _env_int("SHOP_POSTAL_CODE_TO", 14109999),
            ),
            max_order_value=_env_float("ORDER_MAX_VALUE", 500.0),
            max_order_units=_env_int("ORDER_MAX_UNITS", 50),
            max_note_length=_env_int("ORDER_MAX_NOTE_LENGTH", 250),
            min_phone_digits=_env_int("ORDER_MIN_PHONE_DIGITS", 10),
            catalogue_adapter=os.environ.get("CATALOGUE_ADAPTER", "fake"),
            catalogue_url=os.environ.get("CATALOGUE_URL", "http://localhost:3000/api"),
            catalogue_timeout_seconds=_env_float("CATALOGUE_TIMEOUT", 10.0),
        )


_policy: StorefrontPolicy | None = None


def get_policy() -> StorefrontPolicy:
    """Return the active storefront policy, loading it from the environment once."""
    global _policy
    if _policy is None:
        _policy = StorefrontPolicy.from_env()
    return _policy


def set_policy(policy: StorefrontPolicy) -> None:
    """Override the active policy (useful for tests)."""
    global _policy
    _policy = policy


def reset_policy() -> None:
    global _policy
    _policy = None
