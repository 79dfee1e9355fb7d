from datetime import timedelta
from uuid import UUID

import structlog
from jose import JWTError, jwt

from numbervault.core.core import Service
from numbervault.core.modules.session.models import AuthToken, Identity
from numbervault.core.modules.user.models import User
from numbervault.utils import now

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Issues and decodes stateless signed bearer tokens.

    Nothing is stored: expiry is the only lifecycle bound and there is no revocation.
    """

    def create_token(self, user: User) -> AuthToken:
        config = self.core.config
        issued_at = now()
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "iat": issued_at,
            "exp": issued_at + timedelta(days=config.token_ttl_days),
        }
        return AuthToken(jwt.encode(claims, config.jwt_secret, algorithm=config.jwt_algorithm))

    def decode_token(self, token: str) -> Identity | None:
        """Decode a bearer token. Invalid, expired or malformed tokens yield None."""
        config = self.core.config
        try:
            claims = jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
            return Identity(user_id=UUID(claims["sub"]), email=claims["email"])
        except (JWTError, KeyError, ValueError) as e:
            logger.debug("token_rejected", error=str(e))
            return None
