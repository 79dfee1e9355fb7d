from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from numbervault.core.db import MongoModel
from numbervault.utils import now


class User(MongoModel):
    """User domain model.

    Indexed on email - unique.
    """

    email: str  # Normalized: trimmed, lower-case
    full_name: str
    phone: str | None = None
    company: str | None = None
    verified: bool = False  # True once the email was confirmed with a code
    password_hash: str | None = None  # bcrypt hash, password mode only
    created_at: datetime = Field(default_factory=now)


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    full_name: str = Field(..., description="Display name")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, email=user.email, full_name=user.full_name)
