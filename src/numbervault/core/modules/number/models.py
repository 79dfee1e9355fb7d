from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from numbervault.core.db import MongoModel
from numbervault.utils import now

MIN_VALUE = 10_000_000
MAX_VALUE = 99_999_999


class Number(MongoModel):
    """Numeric record stamped with a serial at creation. Never updated.

    Indexed on saved_at, serial - unique among positive serials.
    """

    value: int
    saved_at: datetime = Field(default_factory=now)
    serial: int | None = None  # None only on legacy documents awaiting backfill


class NumberView(BaseModel):
    """Numeric record (API representation)."""

    id: UUID = Field(..., description="Record ID")
    value: int = Field(..., description="8-digit value")
    saved_at: datetime = Field(..., alias="savedAt", description="Creation timestamp")
    serial: int | None = Field(..., description="Unique, increasing serial number")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_domain(cls, number: Number) -> "NumberView":
        """Create view model from domain model."""
        return cls(id=number.id, value=number.value, saved_at=number.saved_at, serial=number.serial)
