from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from numbervault.app import App
from numbervault.core.modules.session.models import Identity

bearer_scheme = HTTPBearer(auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_identity(
    app: Annotated[App, Depends(get_app)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> Identity | None:
    """Decode the Authorization Bearer header, if any.

    A missing or invalid token attaches no identity; it is up to the operation
    to require one.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return app.decode_token(credentials.credentials)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
IdentityDep = Annotated[Identity | None, Depends(get_identity)]
