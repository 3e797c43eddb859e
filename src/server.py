"""Protean Engine runner for the tracking domain.

Starts the Engine that processes events asynchronously in production
(``event_processing = "async"``), feeding the unmapped-status projection
from recorded tracking events.

Usage:
    python src/server.py
    python src/server.py --test-mode   # Drain pending work and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine


def _get_domain():
    from tracking.domain import tracking

    tracking.init()
    return tracking


async def run(test_mode: bool = False):
    engine = Engine(_get_domain(), test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="ShipTrack Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    asyncio.run(run(args.test_mode))


if __name__ == "__main__":
    main()
