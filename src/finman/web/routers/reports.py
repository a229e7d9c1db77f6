from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query

from finman.core.modules.budget.models import MAX_YEAR, MIN_YEAR
from finman.core.modules.report.models import (
    BudgetReport,
    CategoryTotal,
    PeriodGrouping,
    PeriodTotal,
    TransactionSummary,
)
from finman.utils import now
from finman.web.deps import AppDep, AuthTokenDep
from finman.web.openapi import ErrorResponse

router = APIRouter(tags=["reports"])


@router.get(
    "/reports/summary",
    summary="Income and expense summary",
    description="Totals of income, expense and the resulting balance, optionally within a date range.",
    operation_id="getSummaryReport",
    responses={
        200: {"description": "Summary"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_summary(
    app: AppDep, auth_token: AuthTokenDep, start_date: datetime | None = None, end_date: datetime | None = None
) -> TransactionSummary:
    return await app.get_summary_report(auth_token, start_date, end_date)


@router.get(
    "/reports/by-category",
    summary="Totals by category",
    description="Totals per category, largest first, optionally within a date range.",
    operation_id="getCategoryReport",
    responses={
        200: {"description": "Category totals"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_by_category(
    app: AppDep, auth_token: AuthTokenDep, start_date: datetime | None = None, end_date: datetime | None = None
) -> list[CategoryTotal]:
    return await app.get_category_report(auth_token, start_date, end_date)


@router.get(
    "/reports/by-period",
    summary="Totals by period",
    description="Income, expense and balance grouped by day, ISO week, month or year.",
    operation_id="getPeriodReport",
    responses={
        200: {"description": "Period totals, oldest first"},
        400: {"model": ErrorResponse, "description": "Start date is after end date"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_by_period(
    app: AppDep,
    auth_token: AuthTokenDep,
    start_date: datetime,
    end_date: datetime,
    grouping: PeriodGrouping = PeriodGrouping.MONTH,
) -> list[PeriodTotal]:
    return await app.get_period_report(auth_token, start_date, end_date, grouping)


@router.get(
    "/reports/budget",
    summary="Budget vs. actual",
    description="Compare each budget of a month with the expenses booked in its category. "
    "Status is on_track up to 75% used, warning above 75% and critical above 90%. "
    "Month and year default to the current UTC month.",
    operation_id="getBudgetReport",
    responses={
        200: {"description": "Budget report"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_budget(
    app: AppDep,
    auth_token: AuthTokenDep,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    year: Annotated[int | None, Query(ge=MIN_YEAR, le=MAX_YEAR)] = None,
) -> BudgetReport:
    today = now()
    return await app.get_budget_report(auth_token, month or today.month, year or today.year)
