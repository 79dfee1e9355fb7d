from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from numbervault.core.core import Service

logger = structlog.get_logger(__name__)


class CounterService(Service):
    """Hands out strictly increasing serials per named sequence.

    Every mutation goes through a single atomic server-side operation;
    the counter document is never read and written back separately.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("counters")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("name", 1)], unique=True)

    async def next_serial(self, name: str) -> int:
        """Atomically increment and return the next serial for a sequence.

        The counter is created at 0 on first use, so the first serial is 1.
        Store errors propagate: callers must not persist anything without a serial.
        """
        result = await self._collection.find_one_and_update(
            {"name": name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        serial = int(result["seq"])
        logger.debug("serial_allocated", sequence=name, serial=serial)
        return serial

    async def current_serial(self, name: str) -> int:
        """Get the last issued serial without incrementing (0 if none issued yet)."""
        doc = await self._collection.find_one({"name": name})
        if doc:
            return int(doc["seq"])
        return 0

    async def raise_to(self, name: str, value: int) -> int:
        """Move the counter up to at least `value` and return the resulting seq.

        Maintenance only (serial backfill). Uses $max, so the counter never goes backwards.
        """
        result = await self._collection.find_one_and_update(
            {"name": name},
            {"$max": {"seq": value}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        seq = int(result["seq"])
        logger.info("sequence_resynced", sequence=name, requested=value, seq=seq)
        return seq
