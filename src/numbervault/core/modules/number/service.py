from typing import Any

import structlog
from pymongo import ASCENDING, DESCENDING, UpdateOne
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from numbervault.core.core import Service
from numbervault.core.modules.counter.models import SequenceName
from numbervault.core.modules.number.models import MAX_VALUE, MIN_VALUE, Number
from numbervault.errors import ConflictError, ValidationError
from numbervault.utils import now

logger = structlog.get_logger(__name__)

# Newest first; equal timestamps fall back to the later allocation
NEWEST_FIRST = [("saved_at", DESCENDING), ("serial", DESCENDING)]

# Legacy records may lack the field or hold null or 0; only positive numbers count as assigned
HAS_SERIAL = {"serial": {"$gt": 0}}
LACKS_SERIAL = {"serial": {"$not": {"$gt": 0}}}


class NumberService(Service):
    """Creates serial-stamped numeric records and answers the read-side queries."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("numbers")

    async def on_start(self) -> None:
        """Create indexes for recency sorting and serial uniqueness."""
        await self._collection.create_index([("saved_at", -1)])
        await self._collection.create_index(
            [("serial", 1)],
            unique=True,
            partialFilterExpression=HAS_SERIAL,
        )

    async def create_number(self, value: int) -> Number:
        """Allocate a serial and persist a new record.

        Raises:
            ValidationError: If value is outside the 8-digit range
            ConflictError: If the store already holds a record with the allocated serial
        """
        if not MIN_VALUE <= value <= MAX_VALUE:
            raise ValidationError(f"Value must be between {MIN_VALUE} and {MAX_VALUE}")

        serial = await self.core.services.counter.next_serial(SequenceName.NUMBERS)
        number = Number(value=value, saved_at=now(), serial=serial)
        try:
            await self._collection.insert_one(number.to_mongo())
        except DuplicateKeyError as e:
            logger.warning("serial_conflict", serial=serial)
            raise ConflictError("Duplicate serial. Try again.") from e

        logger.debug("number_created", number_id=number.id, serial=serial)
        return number

    async def get_last_number(self) -> Number | None:
        """Get the most recently saved record."""
        return await self._get_nth_newest(0)

    async def get_second_last_number(self) -> Number | None:
        """Get the record saved just before the most recent one."""
        return await self._get_nth_newest(1)

    async def get_all_numbers(self) -> list[Number]:
        """Get all records, newest first."""
        return await Number.list_cursor(self._collection.find({}, sort=NEWEST_FIRST))

    async def backfill_serials(self) -> int:
        """Stamp records without a positive serial, oldest first, and resync the counter.

        Serials continue after the current maximum in the collection. Not safe to run
        while allocators are active: scanning and the batch update are not atomic.

        Returns:
            Number of records stamped
        """
        newest_serial = await self._collection.find_one(HAS_SERIAL, sort=[("serial", DESCENDING)])
        serial = int(newest_serial["serial"]) if newest_serial else 0

        cursor = self._collection.find(
            LACKS_SERIAL,
            sort=[("saved_at", ASCENDING), ("_id", ASCENDING)],
        )
        operations = []
        async for doc in cursor:
            serial += 1
            operations.append(UpdateOne({"_id": doc["_id"]}, {"$set": {"serial": serial}}))

        if operations:
            await self._collection.bulk_write(operations, ordered=True)

        seq = await self.core.services.counter.raise_to(SequenceName.NUMBERS, serial)
        logger.info("serials_backfilled", stamped=len(operations), max_serial=serial, seq=seq)
        return len(operations)

    async def _get_nth_newest(self, skip: int) -> Number | None:
        return Number.from_mongo(await self._collection.find_one({}, sort=NEWEST_FIRST, skip=skip))
