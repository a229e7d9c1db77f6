"""Aggregated views over a user's transactions."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from finman.core.modules.transaction.models import TransactionType


class PeriodGrouping(StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


# strftime formats for period keys; weeks are ISO weeks
PERIOD_FORMATS: dict[PeriodGrouping, str] = {
    PeriodGrouping.DAY: "%Y-%m-%d",
    PeriodGrouping.WEEK: "%G-W%V",
    PeriodGrouping.MONTH: "%Y-%m",
    PeriodGrouping.YEAR: "%Y",
}


class TypeTotal(BaseModel):
    type: TransactionType
    total: float = Field(..., description="Sum of absolute amounts", ge=0)
    count: int = Field(..., ge=0)


class TransactionSummary(BaseModel):
    """Income, expense and balance for a date range."""

    income: float = Field(..., ge=0)
    expense: float = Field(..., ge=0, description="Absolute value of all expenses")
    balance: float
    count: int = Field(..., ge=0)
    by_type: list[TypeTotal]


class CategoryTotal(BaseModel):
    category_id: UUID
    name: str = Field(..., description="Category name, or 'Unknown' if the category was deleted")
    type: TransactionType
    total: float = Field(..., ge=0)
    count: int = Field(..., ge=0)


class PeriodTotal(BaseModel):
    period: str = Field(..., description="Period key, e.g. 2025-03 for month grouping")
    income: float = Field(..., ge=0)
    expense: float = Field(..., ge=0)
    balance: float
    count: int = Field(..., ge=0)


class BudgetStatus(StrEnum):
    ON_TRACK = "on_track"
    WARNING = "warning"  # more than 75% used
    CRITICAL = "critical"  # more than 90% used


class BudgetLine(BaseModel):
    budget_id: UUID
    category_id: UUID
    name: str = Field(..., description="Category name, or 'Unknown' if the category was deleted")
    budget: float = Field(..., gt=0)
    actual: float = Field(..., ge=0, description="Expenses in the category during the month")
    remaining: float = Field(..., description="Negative when overspent")
    percentage_used: float = Field(..., ge=0, le=100, description="Capped at 100")
    status: BudgetStatus


class BudgetReport(BaseModel):
    """Budgets of one calendar month against actual expenses."""

    month: int = Field(..., ge=1, le=12)
    year: int
    start_date: datetime
    end_date: datetime
    total_budget: float = Field(..., ge=0)
    total_actual: float = Field(..., ge=0, description="Expenses in budgeted categories")
    total_remaining: float
    total_percentage_used: float = Field(..., ge=0, le=100)
    status: BudgetStatus
    details: list[BudgetLine]
