import calendar
from collections import defaultdict
from datetime import UTC, datetime, timedelta
from uuid import UUID

from finman.core.core import Service
from finman.core.modules.budget.models import Budget
from finman.core.modules.budget.service import validate_period
from finman.core.modules.report.models import (
    PERIOD_FORMATS,
    BudgetLine,
    BudgetReport,
    BudgetStatus,
    CategoryTotal,
    PeriodGrouping,
    PeriodTotal,
    TransactionSummary,
    TypeTotal,
)
from finman.core.modules.transaction.models import Transaction, TransactionType
from finman.errors import ValidationError
from finman.utils import as_utc


def _money(value: float) -> float:
    return round(value, 2)


def summarize(transactions: list[Transaction]) -> TransactionSummary:
    totals: dict[TransactionType, list[float]] = {}
    for transaction in transactions:
        totals.setdefault(transaction.type, []).append(abs(transaction.amount))

    income = sum(totals.get(TransactionType.INCOME, []))
    expense = sum(totals.get(TransactionType.EXPENSE, []))
    return TransactionSummary(
        income=_money(income),
        expense=_money(expense),
        balance=_money(income - expense),
        count=len(transactions),
        by_type=[TypeTotal(type=t, total=_money(sum(v)), count=len(v)) for t, v in totals.items()],
    )


def group_by_period(transactions: list[Transaction], grouping: PeriodGrouping) -> list[PeriodTotal]:
    fmt = PERIOD_FORMATS[grouping]
    buckets: dict[str, list[Transaction]] = defaultdict(list)
    for transaction in transactions:
        buckets[as_utc(transaction.date).strftime(fmt)].append(transaction)

    result = []
    for period in sorted(buckets):
        summary = summarize(buckets[period])
        result.append(
            PeriodTotal(
                period=period,
                income=summary.income,
                expense=summary.expense,
                balance=summary.balance,
                count=summary.count,
            )
        )
    return result


def budget_status(percentage_used: float) -> BudgetStatus:
    if percentage_used > 90:
        return BudgetStatus.CRITICAL
    if percentage_used > 75:
        return BudgetStatus.WARNING
    return BudgetStatus.ON_TRACK


def month_bounds(month: int, year: int) -> tuple[datetime, datetime]:
    """First and last instant of a calendar month in UTC."""
    start = datetime(year, month, 1, tzinfo=UTC)
    last_day = calendar.monthrange(year, month)[1]
    end = datetime(year, month, last_day, tzinfo=UTC) + timedelta(days=1, microseconds=-1)
    return start, end


def _percentage(part: float, whole: float) -> float:
    return part / whole * 100 if whole else 0.0


def build_budget_report(
    month: int, year: int, budgets: list[Budget], expenses: list[Transaction], names: dict[UUID, str]
) -> BudgetReport:
    """Compare each budget with the expenses of its category.

    Status uses the uncapped percentage; the reported percentage is capped at 100.
    """
    spent: dict[UUID, float] = defaultdict(float)
    for transaction in expenses:
        spent[transaction.category_id] += abs(transaction.amount)

    details = []
    for budget in budgets:
        actual = _money(spent.get(budget.category_id, 0.0))
        used = _percentage(actual, budget.amount)
        details.append(
            BudgetLine(
                budget_id=budget.id,
                category_id=budget.category_id,
                name=names.get(budget.category_id, "Unknown"),
                budget=budget.amount,
                actual=actual,
                remaining=_money(budget.amount - actual),
                percentage_used=_money(min(used, 100)),
                status=budget_status(used),
            )
        )

    total_budget = _money(sum(line.budget for line in details))
    total_actual = _money(sum(line.actual for line in details))
    total_used = _percentage(total_actual, total_budget)
    start, end = month_bounds(month, year)
    return BudgetReport(
        month=month,
        year=year,
        start_date=start,
        end_date=end,
        total_budget=total_budget,
        total_actual=total_actual,
        total_remaining=_money(total_budget - total_actual),
        total_percentage_used=_money(min(total_used, 100)),
        status=budget_status(total_used),
        details=details,
    )


class ReportService(Service):
    """Read-only aggregations; no storage of its own."""

    async def get_summary(
        self, user_id: UUID, start_date: datetime | None = None, end_date: datetime | None = None
    ) -> TransactionSummary:
        transactions = await self.core.services.transaction.list_transactions(
            user_id, start_date=start_date, end_date=end_date
        )
        return summarize(transactions)

    async def get_by_category(
        self, user_id: UUID, start_date: datetime | None = None, end_date: datetime | None = None
    ) -> list[CategoryTotal]:
        """Totals per category, largest first."""
        transactions = await self.core.services.transaction.list_transactions(
            user_id, start_date=start_date, end_date=end_date
        )
        names = {c.id: c.name for c in await self.core.services.category.list_categories(user_id)}

        groups: dict[UUID, list[Transaction]] = defaultdict(list)
        for transaction in transactions:
            groups[transaction.category_id].append(transaction)

        result = [
            CategoryTotal(
                category_id=category_id,
                name=names.get(category_id, "Unknown"),
                type=items[0].type,
                total=_money(sum(abs(t.amount) for t in items)),
                count=len(items),
            )
            for category_id, items in groups.items()
        ]
        return sorted(result, key=lambda c: c.total, reverse=True)

    async def get_by_period(
        self, user_id: UUID, start_date: datetime, end_date: datetime, grouping: PeriodGrouping = PeriodGrouping.DAY
    ) -> list[PeriodTotal]:
        if as_utc(start_date) > as_utc(end_date):
            raise ValidationError("start_date must not be after end_date")
        transactions = await self.core.services.transaction.list_transactions(
            user_id, start_date=start_date, end_date=end_date
        )
        return group_by_period(transactions, grouping)

    async def get_budget_report(self, user_id: UUID, month: int, year: int) -> BudgetReport:
        """Budgets of the month against that month's expenses."""
        validate_period(month, year)
        start, end = month_bounds(month, year)
        budgets = await self.core.services.budget.list_budgets(user_id, month, year)
        expenses = await self.core.services.transaction.list_transactions(
            user_id, TransactionType.EXPENSE, start_date=start, end_date=end
        )
        names = {c.id: c.name for c in await self.core.services.category.list_categories(user_id)}
        return build_budget_report(month, year, budgets, expenses, names)
