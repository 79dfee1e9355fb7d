from numbervault.core.core import Service
from numbervault.core.modules.session.models import Identity
from numbervault.core.modules.user.models import User
from numbervault.errors import AuthenticationError, NotFoundError


class AccessService(Service):
    async def ensure_authenticated(self, identity: Identity | None) -> User:
        """Ensure a token identity is present and still maps to a user."""
        if identity is None:
            raise AuthenticationError("Unauthorized")
        try:
            return await self.core.services.user.get_user(identity.user_id)
        except NotFoundError as e:
            raise AuthenticationError("Unauthorized") from e
