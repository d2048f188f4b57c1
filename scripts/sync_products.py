#!/usr/bin/env python3
"""CLI script to run one product sync pass against the configured feed."""

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import structlog

from catalog_service.logging_config import configure_logging
from sync_worker.tasks.sync_products import run_sync_pass

logger = structlog.get_logger()


async def main() -> int:
    """Run a single pass and report its summary."""
    configure_logging()
    logger.info("Starting product sync")

    report = await run_sync_pass()
    logger.info("Product sync completed", **report.summary(include_failures=False))

    for failure in report.failures:
        logger.warning(
            "Item failed", kind=failure.kind, key=failure.key, reason=failure.reason
        )

    return 1 if report.status.value == "failed" else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
