"""Expiration sweeper: cancels orders left unpaid past the payment window.

Each run selects orders still in PENDING_PAYMENT that were placed before
``now - window`` and cancels them through the lifecycle, which returns their
stock. An order that gets paid while the sweep is running wins the race on
the order's critical section, and the sweep's cancellation then fails on the
state machine and is skipped.

The sweeper is owned by the process: the API lifespan and ``server.py``
start it on a background thread, and tests call ``run_once()`` with a
controlled clock.
"""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import IllegalTransition
from ordering.order.lifecycle import EXPIRED_REASON, OrderLifecycle
from ordering.order.order import CancellationActor, Order
from ordering.utils.clock import utc_now
from ordering.utils.logging import get_logger, order_context
from ordering.utils.settings import get_settings

logger = get_logger(__name__)


class ExpirationSweeper:
    def __init__(
        self,
        domain=None,
        lifecycle: OrderLifecycle | None = None,
        interval: float | None = None,
        window: timedelta | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        settings = get_settings()
        self.domain = domain if domain is not None else ordering
        self.lifecycle = lifecycle or OrderLifecycle(clock=clock)
        self.interval = settings.sweep_interval_seconds if interval is None else interval
        self.window = timedelta(minutes=settings.expiration_window_minutes) if window is None else window
        self.clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # -------------------------------------------------------------------
    # One sweep
    # -------------------------------------------------------------------
    def run_once(self) -> int:
        """Cancel every expired unpaid order. Returns how many were cancelled."""
        cutoff = self.clock() - self.window
        candidates = current_domain.repository_for(Order).find_pending_created_before(cutoff)
        if not candidates:
            return 0

        cancelled = 0
        for order in candidates:
            with order_context(order.id, cancelled_by=CancellationActor.SWEEPER.value):
                try:
                    self.lifecycle.cancel_automatically(
                        str(order.id),
                        reason=EXPIRED_REASON,
                        cancelled_by=CancellationActor.SWEEPER.value,
                    )
                    cancelled += 1
                except (IllegalTransition, ObjectNotFoundError) as exc:
                    logger.info("expired_order_skipped", reason=str(exc))
                except Exception:
                    logger.exception("expired_order_cancellation_failed")

        logger.info(
            "expired_orders_swept",
            cutoff=cutoff.isoformat(),
            candidates=len(candidates),
            cancelled=cancelled,
        )
        return cancelled

    # -------------------------------------------------------------------
    # Background loop
    # -------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="order-expiration-sweeper", daemon=True)
        self._thread.start()
        logger.info("sweeper_started", interval=self.interval, window_seconds=self.window.total_seconds())

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("sweeper_stopped")

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                with self.domain.domain_context():
                    self.run_once()
            except Exception:
                logger.exception("sweep_failed")
            self._stop.wait(self.interval)
