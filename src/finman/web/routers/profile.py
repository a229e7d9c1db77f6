from fastapi import APIRouter
from pydantic import BaseModel, Field

from finman.core.modules.user.models import UserView
from finman.web.deps import AppDep, AuthTokenDep
from finman.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


class UpdateProfileRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    name: str | None = Field(None, description="New display name")
    email: str | None = Field(None, description="New email address")


class ChangePasswordRequest(BaseModel):
    """Request to change user password."""

    old_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=1, description="New password")


@router.get(
    "/profile",
    summary="Get current user profile",
    description="Get the profile of the currently authenticated user.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.get_current_user(auth_token)


@router.patch(
    "/profile",
    summary="Update profile",
    description="Update name and/or email of the currently authenticated user.",
    operation_id="updateProfile",
    responses={
        200: {"description": "Updated profile"},
        400: {"model": ErrorResponse, "description": "Invalid data or email already in use"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def update_profile(req: UpdateProfileRequest, app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.update_profile(auth_token, req.name, req.email)


@router.post(
    "/profile/change-password",
    summary="Change password",
    description="Change the password for the currently authenticated user.",
    operation_id="changePassword",
    status_code=204,
    responses={
        204: {"description": "Password changed successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        400: {"model": ErrorResponse, "description": "Invalid current password or new password"},
    },
)
async def change_password(request: ChangePasswordRequest, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.change_password(auth_token, request.old_password, request.new_password)
