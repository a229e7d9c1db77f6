from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from finman.core.modules.category.models import Category
from finman.core.modules.transaction.models import TransactionType
from finman.web.deps import AppDep, AuthTokenDep
from finman.web.openapi import ErrorResponse

router = APIRouter(tags=["categories"])


class CreateCategoryRequest(BaseModel):
    """Request to create a category."""

    name: str = Field(..., description="Category name, unique per user and type")
    type: TransactionType = Field(..., description="Transaction type this category applies to")
    icon: str | None = Field(None, description="Icon name")
    color: str | None = Field(None, description="Color as #RRGGBB")

    model_config = {
        "json_schema_extra": {"examples": [{"name": "Groceries", "type": "expense", "icon": "cart", "color": "#4CAF50"}]}
    }


class UpdateCategoryRequest(BaseModel):
    """Partial category update. The type cannot be changed."""

    name: str | None = Field(None, description="New name")
    icon: str | None = Field(None, description="New icon name")
    color: str | None = Field(None, description="New color as #RRGGBB")


@router.get(
    "/categories",
    summary="List categories",
    description="Get the authenticated user's categories, optionally filtered by type.",
    operation_id="listCategories",
    responses={
        200: {"description": "List of categories"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_categories(app: AppDep, auth_token: AuthTokenDep, type: TransactionType | None = None) -> list[Category]:
    return await app.get_categories(auth_token, type)


@router.get(
    "/categories/{category_id}",
    summary="Get category",
    description="Get a single category owned by the authenticated user.",
    operation_id="getCategory",
    responses={
        200: {"description": "Category details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this category"},
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
)
async def get_category(category_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> Category:
    return await app.get_category(auth_token, category_id)


@router.post(
    "/categories",
    summary="Create category",
    description="Create a new category for the authenticated user.",
    operation_id="createCategory",
    status_code=201,
    responses={
        201: {"description": "Category created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid data or duplicate name"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_category(req: CreateCategoryRequest, app: AppDep, auth_token: AuthTokenDep) -> Category:
    return await app.create_category(auth_token, req.name, req.type, req.icon, req.color)


@router.patch(
    "/categories/{category_id}",
    summary="Update category",
    description="Update name, icon or color of a category.",
    operation_id="updateCategory",
    responses={
        200: {"description": "Category updated successfully"},
        400: {"model": ErrorResponse, "description": "Invalid data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this category"},
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
)
async def update_category(
    category_id: UUID, req: UpdateCategoryRequest, app: AppDep, auth_token: AuthTokenDep
) -> Category:
    return await app.update_category(auth_token, category_id, req.name, req.icon, req.color)


@router.delete(
    "/categories/{category_id}",
    summary="Delete category",
    description="Delete a category. Categories used by transactions cannot be deleted.",
    operation_id="deleteCategory",
    status_code=204,
    responses={
        204: {"description": "Category deleted successfully"},
        400: {"model": ErrorResponse, "description": "Category is used by transactions"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this category"},
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
)
async def delete_category(category_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_category(auth_token, category_id)
