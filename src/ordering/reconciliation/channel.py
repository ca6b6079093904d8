"""Product-change channel: typed publish/subscribe keyed by product id.

The catalogue signal handler publishes here whenever the Catalogue Authority
reports a product change; cart watchers subscribe for the products their cart
holds so that they reconcile immediately instead of waiting for the next
timer tick.

A listener that raises is logged and skipped; it never prevents delivery to
the remaining listeners nor propagates into the publisher.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class ProductChange(Enum):
    EDITED = "edited"
    PAUSED = "paused"
    REACTIVATED = "reactivated"
    REMOVED = "removed"


@dataclass(frozen=True)
class ProductSignal:
    product_id: str
    change: ProductChange
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


Listener = Callable[[ProductSignal], None]


class ProductChangeChannel:
    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def subscribe(self, product_id: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for one product. Returns the matching unsubscribe."""
        product_id = str(product_id)
        self._listeners.setdefault(product_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(product_id, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(product_id, None)

        return unsubscribe

    def subscriber_count(self, product_id: str) -> int:
        return len(self._listeners.get(str(product_id), []))

    def publish(self, signal: ProductSignal) -> int:
        """Deliver ``signal`` to every listener of its product. Returns deliveries made."""
        delivered = 0
        for listener in list(self._listeners.get(str(signal.product_id), [])):
            try:
                listener(signal)
                delivered += 1
            except Exception:
                logger.exception(
                    "Product change listener failed",
                    product_id=signal.product_id,
                    change=signal.change.value,
                )
        return delivered


_current_channel: ProductChangeChannel | None = None


def get_channel() -> ProductChangeChannel:
    """Return the process-wide product change channel."""
    global _current_channel
    if _current_channel is None:
        _current_channel = ProductChangeChannel()
    return _current_channel


def set_channel(channel: ProductChangeChannel) -> None:
    """Override the active channel (useful for tests)."""
    global _current_channel
    _current_channel = channel


def reset_channel() -> None:
    global _current_channel
    _current_channel = None
