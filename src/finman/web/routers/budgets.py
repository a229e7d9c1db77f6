from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from finman.core.modules.budget.models import MAX_YEAR, MIN_YEAR, Budget
from finman.web.deps import AppDep, AuthTokenDep
from finman.web.openapi import ErrorResponse

router = APIRouter(tags=["budgets"])


class CreateBudgetRequest(BaseModel):
    """Request to set a monthly spending limit for an expense category."""

    category_id: UUID = Field(..., description="Expense category ID")
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Spending limit for the month")
    month: int = Field(..., ge=1, le=12, description="Calendar month, 1-12")
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR, description="Calendar year")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "category_id": "6f1c2b8e-3f5a-4d2e-9b1a-2c3d4e5f6a7b",
                    "amount": 400,
                    "month": 3,
                    "year": 2026,
                }
            ]
        }
    }


class UpdateBudgetRequest(BaseModel):
    """Change the limit of an existing budget."""

    amount: float = Field(..., gt=0, allow_inf_nan=False, description="New spending limit")


@router.get(
    "/budgets",
    summary="List budgets",
    description="Get the authenticated user's budgets, optionally limited to one month and year.",
    operation_id="listBudgets",
    responses={
        200: {"description": "List of budgets"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_budgets(
    app: AppDep,
    auth_token: AuthTokenDep,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    year: Annotated[int | None, Query(ge=MIN_YEAR, le=MAX_YEAR)] = None,
) -> list[Budget]:
    return await app.get_budgets(auth_token, month, year)


@router.post(
    "/budgets",
    summary="Create budget",
    description="Create a budget for an expense category. Each category has at most one budget per month.",
    operation_id="createBudget",
    status_code=201,
    responses={
        201: {"description": "Budget created successfully"},
        400: {"model": ErrorResponse, "description": "Not an expense category or budget already exists"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Category belongs to another user"},
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
)
async def create_budget(req: CreateBudgetRequest, app: AppDep, auth_token: AuthTokenDep) -> Budget:
    return await app.create_budget(auth_token, req.category_id, req.amount, req.month, req.year)


@router.patch(
    "/budgets/{budget_id}",
    summary="Update budget",
    description="Change the spending limit of a budget.",
    operation_id="updateBudget",
    responses={
        200: {"description": "Budget updated successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this budget"},
        404: {"model": ErrorResponse, "description": "Budget not found"},
    },
)
async def update_budget(budget_id: UUID, req: UpdateBudgetRequest, app: AppDep, auth_token: AuthTokenDep) -> Budget:
    return await app.update_budget(auth_token, budget_id, req.amount)


@router.delete(
    "/budgets/{budget_id}",
    summary="Delete budget",
    description="Delete a budget.",
    operation_id="deleteBudget",
    status_code=204,
    responses={
        204: {"description": "Budget deleted successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this budget"},
        404: {"model": ErrorResponse, "description": "Budget not found"},
    },
)
async def delete_budget(budget_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_budget(auth_token, budget_id)
