import math
from typing import Any
from uuid import UUID

import structlog

from finman.core.core import Service
from finman.core.modules.budget.models import MAX_YEAR, MIN_YEAR, Budget
from finman.core.modules.category.models import Category
from finman.core.modules.transaction.models import TransactionType
from finman.core.storage import ASCENDING, DocumentStore
from finman.errors import NotFoundError, ValidationError
from finman.utils import now

logger = structlog.get_logger(__name__)


def validate_budget_amount(amount: float) -> None:
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Budget amount must be a positive number")


def validate_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")


class BudgetService(Service):
    """Manages monthly budgets for expense categories."""

    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store)
        self._collection = store.collection("budgets")

    async def on_start(self) -> None:
        await self._collection.create_index(["user_id", "category_id", "year", "month"], unique=True)
        await self._collection.create_index(["user_id"])

    async def list_budgets(self, user_id: UUID, month: int | None = None, year: int | None = None) -> list[Budget]:
        query: dict[str, Any] = {"user_id": user_id}
        if month is not None:
            query["month"] = month
        if year is not None:
            query["year"] = year
        docs = await self._collection.find(query, sort=[("year", ASCENDING), ("month", ASCENDING)])
        return Budget.from_documents(docs)

    async def get_budget(self, budget_id: UUID) -> Budget:
        doc = await self._collection.find_one({"_id": budget_id})
        if doc is None:
            raise NotFoundError(f"Budget not found with id of {budget_id}")
        return Budget.model_validate(doc)

    async def create_budget(self, user_id: UUID, category: Category, amount: float, month: int, year: int) -> Budget:
        """One budget per category and month; only expense categories can be budgeted."""
        if category.user_id != user_id:
            raise ValidationError("Category does not belong to the budget owner")
        if category.type != TransactionType.EXPENSE:
            raise ValidationError(f"Category '{category.name}' is not an expense category")
        validate_budget_amount(amount)
        validate_period(month, year)

        existing = await self._collection.find_one(
            {"user_id": user_id, "category_id": category.id, "month": month, "year": year}
        )
        if existing is not None:
            raise ValidationError("Budget already exists for this category and period")

        budget = Budget(user_id=user_id, category_id=category.id, amount=amount, month=month, year=year)
        await self._collection.insert_one(budget.to_document())
        logger.debug("budget_created", budget_id=budget.id, user_id=user_id, month=month, year=year)
        return budget

    async def update_budget(self, budget_id: UUID, amount: float) -> Budget:
        validate_budget_amount(amount)
        if not await self._collection.update_one({"_id": budget_id}, {"amount": amount, "updated_at": now()}):
            raise NotFoundError(f"Budget not found with id of {budget_id}")
        return await self.get_budget(budget_id)

    async def delete_budget(self, budget_id: UUID) -> None:
        if not await self._collection.delete_one({"_id": budget_id}):
            raise NotFoundError(f"Budget not found with id of {budget_id}")

    async def delete_budgets_by_category(self, category_id: UUID) -> int:
        return await self._collection.delete_many({"category_id": category_id})

    async def delete_budgets_by_user(self, user_id: UUID) -> int:
        """Delete all budgets of a user and return count of deleted budgets."""
        return await self._collection.delete_many({"user_id": user_id})
