from fastapi import APIRouter
from pydantic import BaseModel, Field

from numbervault.app import AuthResult
from numbervault.web.deps import AppDep
from numbervault.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class RegisterStartRequest(BaseModel):
    """Request a registration code.

    Profile details are sent again on verification.
    """

    email: str = Field(..., min_length=1, description="Email address to register")
    full_name: str = Field(..., min_length=1, description="Display name")
    phone: str | None = Field(None, description="Phone number")
    company: str | None = Field(None, description="Company name")


class RegisterVerifyRequest(RegisterStartRequest):
    """Complete registration with the emailed code."""

    code: str = Field(..., min_length=1, description="Verification code from the email")


class LoginStartRequest(BaseModel):
    """Request a login code."""

    email: str = Field(..., min_length=1, description="Email address of an existing account")


class LoginVerifyRequest(LoginStartRequest):
    """Complete login with the emailed code."""

    code: str = Field(..., min_length=1, description="Verification code from the email")


class StartResponse(BaseModel):
    """Acknowledgement that a code was sent."""

    ok: bool = True


DELIVERY_FAILED = {
    "model": ErrorResponse,
    "description": "Code stored but not delivered; request a new code",
}


@router.post(
    "/auth/register/start",
    summary="Start registration",
    description="Send a registration code to the email address.",
    operation_id="startRegistration",
    responses={
        200: {"description": "Code sent"},
        400: {"model": ErrorResponse, "description": "Missing fields"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
        500: DELIVERY_FAILED,
    },
)
async def register_start(request: RegisterStartRequest, app: AppDep) -> StartResponse:
    await app.start_registration(request.email)
    return StartResponse()


@router.post(
    "/auth/register/verify",
    summary="Complete registration",
    description="Consume the registration code, create the account and return a bearer token.",
    operation_id="verifyRegistration",
    responses={
        200: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Missing fields or code rejected"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
async def register_verify(request: RegisterVerifyRequest, app: AppDep) -> AuthResult:
    return await app.complete_registration(
        request.email, request.code, request.full_name, request.phone, request.company
    )


@router.post(
    "/auth/login/start",
    summary="Start login",
    description="Send a login code to the email address of an existing account.",
    operation_id="startLogin",
    responses={
        200: {"description": "Code sent"},
        400: {"model": ErrorResponse, "description": "Missing fields"},
        404: {"model": ErrorResponse, "description": "No account for that email"},
        500: DELIVERY_FAILED,
    },
)
async def login_start(request: LoginStartRequest, app: AppDep) -> StartResponse:
    await app.start_login(request.email)
    return StartResponse()


@router.post(
    "/auth/login/verify",
    summary="Complete login",
    description="Consume the login code and return a bearer token.",
    operation_id="verifyLogin",
    responses={
        200: {"description": "Successfully authenticated"},
        400: {"model": ErrorResponse, "description": "Missing fields or code rejected"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def login_verify(request: LoginVerifyRequest, app: AppDep) -> AuthResult:
    return await app.complete_login(request.email, request.code)
