from fastapi import APIRouter

from numbervault.core.modules.user.models import UserView
from numbervault.web.deps import AppDep, IdentityDep
from numbervault.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


@router.get(
    "/me",
    summary="Get current user profile",
    description="Get the profile of the user identified by the bearer token.",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_me(app: AppDep, identity: IdentityDep) -> UserView:
    return await app.get_current_user(identity)
