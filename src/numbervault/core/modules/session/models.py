"""Bearer token models."""

from typing import NewType
from uuid import UUID

from pydantic import BaseModel

AuthToken = NewType("AuthToken", str)


class Identity(BaseModel):
    """Claims carried by a valid bearer token."""

    user_id: UUID
    email: str
