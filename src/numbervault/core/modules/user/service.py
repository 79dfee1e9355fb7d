from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from numbervault.core.core import Service
from numbervault.core.modules.user.models import User
from numbervault.core.modules.user.validators import MAX_PASSWORD_BYTES, normalize_email, validate_password
from numbervault.errors import ConflictError, NotFoundError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages user identities keyed by email."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def on_start(self) -> None:
        await self._collection.create_index([("email", 1)], unique=True)

    async def get_user(self, user_id: UUID) -> User:
        """Get user by ID."""
        doc = await self._collection.find_one({"_id": user_id})
        if doc is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return User.model_validate(doc)

    async def get_user_by_email(self, email: str) -> User:
        """Get user by email."""
        doc = await self._collection.find_one({"email": normalize_email(email)})
        if doc is None:
            raise NotFoundError("No account for that email")
        return User.model_validate(doc)

    async def has_email(self, email: str) -> bool:
        """Check if an account exists for the email."""
        return await self._collection.count_documents({"email": normalize_email(email)}, limit=1) > 0

    async def create_verified_user(
        self, email: str, full_name: str, phone: str | None = None, company: str | None = None
    ) -> User:
        """Create user whose email was confirmed with a verification code."""
        user = User(email=normalize_email(email), full_name=full_name, phone=phone, company=company, verified=True)
        return await self._insert(user)

    async def create_password_user(self, email: str, full_name: str, password: str) -> User:
        """Create user with hashed password."""
        validate_password(password)
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        user = User(email=normalize_email(email), full_name=full_name, password_hash=password_hash)
        return await self._insert(user)

    async def verify_password(self, email: str, password: str) -> bool:
        """Verify password against stored hash."""
        user = User.from_mongo(await self._collection.find_one({"email": normalize_email(email)}))
        if user is None or user.password_hash is None:
            return False
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(encoded, user.password_hash.encode("utf-8"))

    async def _insert(self, user: User) -> User:
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            raise ConflictError("Email already registered") from e
        logger.info("user_created", user_id=user.id, verified=user.verified)
        return user
