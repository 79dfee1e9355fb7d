from fastapi import APIRouter
from pydantic import BaseModel, Field

from numbervault.app import AuthResult
from numbervault.web.deps import AppDep
from numbervault.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class PasswordRegisterRequest(BaseModel):
    """Create an account protected by a password."""

    email: str = Field(..., min_length=1, description="Email address")
    full_name: str = Field(..., min_length=1, description="Display name")
    password: str = Field(..., min_length=1, description="Password")


class PasswordLoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., min_length=1, description="Email address")
    password: str = Field(..., min_length=1, description="Password")


@router.post(
    "/auth/register",
    summary="Register with password",
    description="Create an account with a bcrypt-hashed password and return a bearer token.",
    operation_id="registerWithPassword",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid request"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
async def register(request: PasswordRegisterRequest, app: AppDep) -> AuthResult:
    return await app.register_with_password(request.email, request.full_name, request.password)


@router.post(
    "/auth/login",
    summary="Login with password",
    description="Authenticate with email and password to receive a bearer token.",
    operation_id="loginWithPassword",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(request: PasswordLoginRequest, app: AppDep) -> AuthResult:
    return await app.login_with_password(request.email, request.password)
