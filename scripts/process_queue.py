#!/usr/bin/env python3
"""
Queue Runner Script
Processes queued video jobs outside the API process.

Usage:
    python scripts/process_queue.py              # Drain the queue once and exit
    python scripts/process_queue.py --watch      # Keep processing as jobs arrive
    python scripts/process_queue.py --check      # Check state storage and exit

Only one runner (or one API process with PROCESSOR_AUTOSTART) should work a
given state backend at a time.
"""

import argparse
import asyncio
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from aiprime.api.deps import build_services
from aiprime.core.config import settings
from aiprime.core.database import init_db
from aiprime.core.logging import setup_logging

logger = logging.getLogger("aiprime.queue")


async def drain_once(services) -> int:
    services.processor.recover_interrupted()
    return await services.processor.drain()


async def watch(services, interval: float):
    """Poll the state backend, since other processes write to it directly."""
    services.processor.recover_interrupted()
    while True:
        await services.processor.drain()
        await asyncio.sleep(interval)


def main():
    parser = argparse.ArgumentParser(description="Process queued AI Prime video jobs")
    parser.add_argument(
        "--watch", "-w",
        action="store_true",
        help="Keep running and pick up new jobs (default: exit when the queue is empty)"
    )
    parser.add_argument(
        "--interval", "-i",
        type=float,
        default=5.0,
        help="Seconds between queue checks in watch mode (default: 5)"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Check the state backend and exit"
    )

    args = parser.parse_args()
    setup_logging()

    if settings.STATE_BACKEND == "sql":
        init_db()
    services = build_services()

    # Health check only
    health = services.state_storage.health_check()
    if args.check:
        print(f"State Storage Status: {health}")
        sys.exit(0 if health["status"] == "ok" else 1)

    if health["status"] != "ok":
        logger.error(f"Cannot reach state storage ({health['backend']}): {health['status']}")
        sys.exit(1)

    logger.info(f"State storage: {health['backend']}; {len(services.job_store)} job(s) on record")

    try:
        if args.watch:
            asyncio.run(watch(services, args.interval))
        else:
            processed = asyncio.run(drain_once(services))
            logger.info(f"Processed {processed} job(s)")
    except KeyboardInterrupt:
        logger.info("Queue runner stopped")
    finally:
        services.state_storage.close()


if __name__ == "__main__":
    main()
