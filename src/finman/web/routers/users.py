from uuid import UUID

from fastapi import APIRouter

from finman.core.modules.user.models import UserView
from finman.web.deps import AppDep, AuthTokenDep
from finman.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


@router.get(
    "/users",
    summary="List all users",
    description="Get all users in the system. Only accessible by admin users.",
    operation_id="listUsers",
    responses={
        200: {"description": "List of all users"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def list_users(app: AppDep, auth_token: AuthTokenDep) -> list[UserView]:
    return await app.get_all_users(auth_token)


@router.delete(
    "/users/{user_id}",
    summary="Delete user",
    description="Delete a user account together with its categories, transactions and sessions. "
    "Only accessible by admin users.",
    operation_id="deleteUser",
    status_code=204,
    responses={
        204: {"description": "User deleted successfully"},
        400: {"model": ErrorResponse, "description": "Cannot delete yourself"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def delete_user(user_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_user(auth_token, user_id)
