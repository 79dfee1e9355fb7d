"""Named auto-incrementing sequences for serial numbering."""

from enum import StrEnum

from numbervault.core.db import MongoModel


class SequenceName(StrEnum):
    """Sequences handed out by the allocator."""

    NUMBERS = "numbers"


class Counter(MongoModel):
    """Atomic counter holding the last serial issued for a sequence.

    Uses MongoDB atomic operations to prevent duplicates.
    Indexed on name - unique.
    """

    name: str
    seq: int = 0  # Last value issued; next serial will be seq + 1
