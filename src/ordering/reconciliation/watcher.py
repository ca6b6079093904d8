"""Cart watcher — the client-side reconciliation loop for one cart view.

A single asyncio task per open view. While the cart holds anything it wakes
every ``interval`` seconds; it also wakes when the view regains focus and when
the product change channel reports a change to a product in the cart. Passes
never overlap: triggers that arrive during a pass collapse into one follow-up
pass.

Synchronous reconcile callables run on a worker thread, so catalogue requests
never stall the event loop.

``stop()`` removes the timer and every channel subscription. A pass already
running is left to finish.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.config import get_policy
from ordering.exceptions import ConflictError, TransientNetworkError
from ordering.reconciliation.channel import ProductChangeChannel, ProductSignal, get_channel
from ordering.reconciliation.reconcile import ReconcileCart

logger = structlog.get_logger(__name__)

Reconcile = Callable[[str], dict | Awaitable[dict]]


def reconcile_through_domain(customer_id: str) -> dict:
    """Default pass: process ReconcileCart in a domain context of its own.

    Called on a worker thread. The thread sees the caller's domain through the
    copied context, but pushes a fresh context so it never shares a unit of work.
    """
    domain = current_domain._get_current_object()
    with domain.domain_context():
        return domain.process(ReconcileCart(customer_id=customer_id), asynchronous=False)


class CartWatcher:
    def __init__(
        self,
        customer_id: str,
        reconcile: Reconcile = reconcile_through_domain,
        channel: ProductChangeChannel | None = None,
        interval: float | None = None,
        on_notices: Callable[[list[str]], None] | None = None,
    ) -> None:
        self.customer_id = str(customer_id)
        self._reconcile = reconcile
        self.channel = channel or get_channel()
        self.interval = interval if interval is not None else get_policy().reconcile_interval_seconds
        self.on_notices = on_notices

        self.holding: set[str] = set()
        self.last_report: dict | None = None
        self.pass_count = 0
        self._subscriptions: dict[str, Callable[[], None]] = {}
        self._wake = asyncio.Event()
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    # -------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------
    def notify_focus(self) -> None:
        """The view became visible again."""
        self._request()

    def _on_signal(self, signal: ProductSignal) -> None:
        if signal.product_id in self.holding:
            logger.debug(
                "Product change woke cart watcher",
                customer_id=self.customer_id,
                product_id=signal.product_id,
                change=signal.change.value,
            )
            self._request()

    def _request(self) -> None:
        if self._stopped:
            return
        if self._loop is not None and self._loop.is_running():
            # Signals may be published from another thread
            self._loop.call_soon_threadsafe(self._wake.set)
        else:
            self._wake.set()

    # -------------------------------------------------------------------
    # Passes
    # -------------------------------------------------------------------
    async def refresh_now(self) -> dict:
        """Run a pass immediately and return its report. Used before checkout."""
        async with self._lock:
            if inspect.iscoroutinefunction(self._reconcile):
                report = await self._reconcile(self.customer_id)
            else:
                report = await asyncio.to_thread(self._reconcile, self.customer_id)
                if inspect.isawaitable(report):
                    report = await report

            self.pass_count += 1
            self.last_report = report
            if not self._stopped:
                self._track(report.get("product_ids", []))
            if report.get("notices") and self.on_notices is not None:
                self._show(list(report["notices"]))
            return report

    def _show(self, notices: list[str]) -> None:
        try:
            self.on_notices(notices)
        except Exception:
            logger.exception("Cart view failed to show notices", customer_id=self.customer_id)

    def _track(self, product_ids) -> None:
        """Subscribe to the products now in the cart and drop the rest."""
        current = {str(product_id) for product_id in product_ids}
        for product_id in set(self._subscriptions) - current:
            self._subscriptions.pop(product_id)()
        for product_id in current - set(self._subscriptions):
            self._subscriptions[product_id] = self.channel.subscribe(product_id, self._on_signal)
        self.holding = current

    async def _tick(self) -> None:
        try:
            await self.refresh_now()
        except ConflictError as exc:
            # Someone wrote the cart during the pass; the next trigger retries
            logger.info("Reconciliation pass lost a write race", customer_id=self.customer_id, error=exc.messages)
        except (ValidationError, ObjectNotFoundError, TransientNetworkError) as exc:
            logger.warning("Reconciliation pass failed", customer_id=self.customer_id, error=str(exc))

    async def run(self) -> None:
        """Watch the cart until ``stop()`` is called."""
        self._loop = asyncio.get_running_loop()
        logger.info("Cart watcher started", customer_id=self.customer_id, interval=self.interval)

        await self._tick()
        while not self._stopped:
            # Keep ticking until a pass has succeeded and shown an empty cart
            timeout = self.interval if self.holding or self.last_report is None else None
            try:
                await asyncio.wait_for(self._wake.wait(), timeout)
            except TimeoutError:
                pass
            if self._stopped:
                break
            self._wake.clear()
            await self._tick()

        logger.info("Cart watcher stopped", customer_id=self.customer_id, passes=self.pass_count)

    def stop(self) -> None:
        """Tear down the timer and subscriptions. An in-flight pass still completes."""
        if self._stopped:
            return
        self._stopped = True
        for unsubscribe in self._subscriptions.values():
            unsubscribe()
        self._subscriptions.clear()
        if self._loop is not None and self._loop.is_running():
            self._loop.call_soon_threadsafe(self._wake.set)
        else:
            self._wake.set()
