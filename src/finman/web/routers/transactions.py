from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from finman.core.modules.transaction.models import (
    MAX_DESCRIPTION_LENGTH,
    MAX_NOTES_LENGTH,
    PaymentMethod,
    Transaction,
    TransactionType,
)
from finman.web.deps import AppDep, AuthTokenDep
from finman.web.openapi import ErrorResponse

router = APIRouter(tags=["transactions"])


class CreateTransactionRequest(BaseModel):
    """Request to create a transaction. The stored amount is signed by type."""

    category_id: UUID = Field(..., description="Category ID, must match the transaction type")
    type: TransactionType = Field(..., description="Income or expense")
    amount: float = Field(..., allow_inf_nan=False, description="Amount; the sign is ignored")
    description: str = Field(..., max_length=MAX_DESCRIPTION_LENGTH, description="Short description")
    date: datetime | None = Field(None, description="Transaction date, defaults to now")
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, description="How it was paid")
    notes: str = Field("", max_length=MAX_NOTES_LENGTH, description="Free-form notes")
    tags: list[str] = Field(default_factory=list, description="Tags")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "category_id": "6f1c2b8e-3f5a-4d2e-9b1a-2c3d4e5f6a7b",
                    "type": "expense",
                    "amount": 42.5,
                    "description": "Weekly groceries",
                    "payment_method": "debit_card",
                    "tags": ["food"],
                }
            ]
        }
    }


class UpdateTransactionRequest(BaseModel):
    """Partial transaction update; omitted fields are left unchanged."""

    category_id: UUID | None = Field(None, description="New category ID")
    type: TransactionType | None = Field(None, description="New type; the amount is re-signed")
    amount: float | None = Field(None, allow_inf_nan=False, description="New amount; the sign is ignored")
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH, description="New description")
    date: datetime | None = Field(None, description="New date")
    payment_method: PaymentMethod | None = Field(None, description="New payment method")
    notes: str | None = Field(None, max_length=MAX_NOTES_LENGTH, description="New notes")
    tags: list[str] | None = Field(None, description="Replacement tag list")


@router.get(
    "/transactions",
    summary="List transactions",
    description="Get the authenticated user's transactions, newest first. "
    "Filter by type, category, an inclusive date range and an inclusive amount range. "
    "Amount bounds apply to the absolute amount, so they work for income and expenses alike.",
    operation_id="listTransactions",
    responses={
        200: {"description": "List of transactions"},
        400: {"model": ErrorResponse, "description": "min_amount is greater than max_amount"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_transactions(
    app: AppDep,
    auth_token: AuthTokenDep,
    type: TransactionType | None = None,
    category_id: UUID | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    min_amount: Annotated[float | None, Query(ge=0, allow_inf_nan=False)] = None,
    max_amount: Annotated[float | None, Query(ge=0, allow_inf_nan=False)] = None,
) -> list[Transaction]:
    return await app.get_transactions(auth_token, type, category_id, start_date, end_date, min_amount, max_amount)


@router.get(
    "/transactions/{transaction_id}",
    summary="Get transaction",
    description="Get a single transaction owned by the authenticated user.",
    operation_id="getTransaction",
    responses={
        200: {"description": "Transaction details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this transaction"},
        404: {"model": ErrorResponse, "description": "Transaction not found"},
    },
)
async def get_transaction(transaction_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> Transaction:
    return await app.get_transaction(auth_token, transaction_id)


@router.post(
    "/transactions",
    summary="Create transaction",
    description="Create a transaction. Connected clients of the owner receive a transaction_created event.",
    operation_id="createTransaction",
    status_code=201,
    responses={
        201: {"description": "Transaction created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid data or category type mismatch"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Category belongs to another user"},
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
)
async def create_transaction(req: CreateTransactionRequest, app: AppDep, auth_token: AuthTokenDep) -> Transaction:
    return await app.create_transaction(
        auth_token,
        req.category_id,
        req.type,
        req.amount,
        req.description,
        req.date,
        req.payment_method,
        req.notes,
        req.tags,
    )


@router.patch(
    "/transactions/{transaction_id}",
    summary="Update transaction",
    description="Partially update a transaction. Connected clients of the owner receive a transaction_updated event.",
    operation_id="updateTransaction",
    responses={
        200: {"description": "Transaction updated successfully"},
        400: {"model": ErrorResponse, "description": "Invalid data or category type mismatch"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this transaction"},
        404: {"model": ErrorResponse, "description": "Transaction or category not found"},
    },
)
async def update_transaction(
    transaction_id: UUID, req: UpdateTransactionRequest, app: AppDep, auth_token: AuthTokenDep
) -> Transaction:
    return await app.update_transaction(
        auth_token,
        transaction_id,
        req.category_id,
        req.type,
        req.amount,
        req.description,
        req.date,
        req.payment_method,
        req.notes,
        req.tags,
    )


@router.delete(
    "/transactions/{transaction_id}",
    summary="Delete transaction",
    description="Delete a transaction. Connected clients of the owner receive a transaction_deleted event.",
    operation_id="deleteTransaction",
    status_code=204,
    responses={
        204: {"description": "Transaction deleted successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this transaction"},
        404: {"model": ErrorResponse, "description": "Transaction not found"},
    },
)
async def delete_transaction(transaction_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_transaction(auth_token, transaction_id)
