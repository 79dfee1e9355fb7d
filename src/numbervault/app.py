import random
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from pydantic import BaseModel, Field

from numbervault.config import Config
from numbervault.core.core import Core
from numbervault.core.modules.number.models import MAX_VALUE, MIN_VALUE, NumberView
from numbervault.core.modules.session.models import AuthToken, Identity
from numbervault.core.modules.user.models import User, UserView
from numbervault.core.modules.verification.models import CodePurpose
from numbervault.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class AuthResult(BaseModel):
    """Token issued after a successful login or registration."""

    ok: bool = True
    token: AuthToken = Field(..., description="Bearer token for subsequent requests")
    user: UserView


class App:
    """Facade for all application operations, resolves identities before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    def decode_token(self, token: str) -> Identity | None:
        """Decode a bearer token into an identity, or None if it is not valid."""
        return self._core.services.session.decode_token(token)

    # === Code-based registration and login ===
    async def start_registration(self, email: str) -> None:
        """Send a registration code unless the email is already registered."""
        if await self._core.services.user.has_email(email):
            raise ConflictError("Email already registered")
        await self._core.services.verification.issue(email, CodePurpose.REGISTER)

    async def complete_registration(
        self, email: str, code: str, full_name: str, phone: str | None = None, company: str | None = None
    ) -> AuthResult:
        """Consume a registration code and create the verified user."""
        await self._consume_code(email, code, CodePurpose.REGISTER)
        user = await self._core.services.user.create_verified_user(email, full_name, phone, company)
        return self._issue_token(user)

    async def start_login(self, email: str) -> None:
        """Send a login code to an existing user."""
        if not await self._core.services.user.has_email(email):
            raise NotFoundError("No account for that email")
        await self._core.services.verification.issue(email, CodePurpose.LOGIN)

    async def complete_login(self, email: str, code: str) -> AuthResult:
        """Consume a login code and issue a token."""
        await self._consume_code(email, code, CodePurpose.LOGIN)
        user = await self._core.services.user.get_user_by_email(email)
        return self._issue_token(user)

    # === Password-based registration and login ===
    async def register_with_password(self, email: str, full_name: str, password: str) -> AuthResult:
        """Create a user with a hashed password and issue a token."""
        user = await self._core.services.user.create_password_user(email, full_name, password)
        return self._issue_token(user)

    async def login_with_password(self, email: str, password: str) -> AuthResult:
        """Authenticate by password and issue a token."""
        if not await self._core.services.user.verify_password(email, password):
            raise AuthenticationError("Invalid credentials")
        user = await self._core.services.user.get_user_by_email(email)
        return self._issue_token(user)

    async def get_current_user(self, identity: Identity | None) -> UserView:
        """Get current authenticated user profile."""
        user = await self._core.services.access.ensure_authenticated(identity)
        return UserView.from_domain(user)

    # === Numbers ===
    async def create_number(self) -> NumberView:
        """Save a random 8-digit value stamped with the next serial."""
        value = random.randint(MIN_VALUE, MAX_VALUE)  # noqa: S311
        number = await self._core.services.number.create_number(value)
        return NumberView.from_domain(number)

    async def get_last_number(self) -> NumberView | None:
        number = await self._core.services.number.get_last_number()
        return NumberView.from_domain(number) if number else None

    async def get_second_last_number(self) -> NumberView | None:
        number = await self._core.services.number.get_second_last_number()
        return NumberView.from_domain(number) if number else None

    async def get_all_numbers(self) -> list[NumberView]:
        numbers = await self._core.services.number.get_all_numbers()
        return [NumberView.from_domain(number) for number in numbers]

    # === Private helpers ===
    async def _consume_code(self, email: str, code: str, purpose: CodePurpose) -> None:
        """Validate a code for the purpose. Raises ValidationError carrying the failure reason."""
        result = await self._core.services.verification.validate(email, code, purpose)
        if not result.ok:
            raise ValidationError(str(result.reason) if result.reason else "Verification failed")

    def _issue_token(self, user: User) -> AuthResult:
        token = self._core.services.session.create_token(user)
        logger.debug("token_issued", user_id=user.id)
        return AuthResult(token=token, user=UserView.from_domain(user))
