from numbervault.web.routers.auth import router as code_auth_router
from numbervault.web.routers.numbers import router as numbers_router
from numbervault.web.routers.password_auth import router as password_auth_router
from numbervault.web.routers.profile import router as profile_router

__all__ = [
    "code_auth_router",
    "numbers_router",
    "password_auth_router",
    "profile_router",
]
