"""Standalone runner for the order expiration sweeper.

Use it when the API runs with the in-process sweeper disabled
(``ORDERING_SWEEPER_ENABLED=false``), so exactly one process sweeps.

Usage:
    python src/server.py                     # Sweep every 60s, 5 minute window
    python src/server.py --interval 30       # Sweep every 30s
    python src/server.py --once              # Single sweep, then exit
"""

import argparse
import signal
import threading
from datetime import timedelta

from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Order expiration sweeper")
    parser.add_argument("--interval", type=float, help="Seconds between sweeps (default: settings)")
    parser.add_argument("--window", type=int, help="Minutes an order may stay unpaid (default: settings)")
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
    args = parser.parse_args()

    from ordering.domain import ordering
    from ordering.order.sweeper import ExpirationSweeper

    ordering.init()

    sweeper = ExpirationSweeper(
        domain=ordering,
        interval=args.interval,
        window=timedelta(minutes=args.window) if args.window else None,
    )

    if args.once:
        with ordering.domain_context():
            cancelled = sweeper.run_once()
        logger.info("single_sweep_finished", cancelled=cancelled)
        return

    stopped = threading.Event()

    def _shutdown(signum, frame):  # noqa: ARG001
        stopped.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    sweeper.start()
    stopped.wait()
    sweeper.stop()


if __name__ == "__main__":
    main()
