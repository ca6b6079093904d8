"""Protean Engine runner for the ordering domain.

Starts the Engine workers that process events asynchronously when the
production overlay is active:
- OutboxProcessor: polls the outbox table, publishes events to Redis Streams
- StreamSubscriptions: reads Redis Streams, invokes the order summary
  projector and the catalogue signal handler

Usage:
    python src/server.py
    python src/server.py --test-mode   # Process pending messages and exit
"""

import argparse
import asyncio

import structlog
from protean.server.engine import Engine

logger = structlog.get_logger(__name__)


def _get_domain():
    """Import and initialize the ordering domain."""
    from ordering.domain import ordering
    from ordering.utils.logging import configure_logging

    configure_logging()
    ordering.init()
    return ordering


async def run(test_mode=False):
    domain = _get_domain()
    engine = Engine(domain, test_mode=test_mode)
    logger.info("Starting engine", domain=domain.name, test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="Storefront ordering Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    asyncio.run(run(test_mode=args.test_mode))


if __name__ == "__main__":
    main()
