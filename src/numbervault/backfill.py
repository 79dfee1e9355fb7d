"""Maintenance entry point: stamp serials on records saved before serials existed.

Run only while no API process is allocating serials.
"""

import asyncio

import structlog

from numbervault.config import Config
from numbervault.core.core import Core
from numbervault.logging import setup_logging

logger = structlog.get_logger(__name__)


async def run_backfill(core: Core) -> int:
    async with core.lifespan():
        stamped = await core.services.number.backfill_serials()
    logger.info("backfill_finished", stamped=stamped)
    return stamped


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    asyncio.run(run_backfill(Core(config)))


if __name__ == "__main__":
    main()
