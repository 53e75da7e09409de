import logging
from collections import defaultdict
from datetime import date
from typing import Iterable

from database.expense_dao import ExpenseDAO
from models.category_limit import CategoryTotal
from models.expense import DailyTotal, Expense, PeriodStats
from utils.date_helpers import date_span, format_date, to_date
from utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


def aggregate_by_category(expenses: Iterable[Expense]) -> list[CategoryTotal]:
    """Group expenses into one CategoryTotal per category that has any.

    percentage is each category's share of the grand total; all zero when
    the grand total is zero. Returned largest total first, but callers that
    need a particular order should sort themselves.
    """
    totals: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for expense in expenses:
        totals[expense.category] += expense.amount
        counts[expense.category] += 1

    grand_total = sum(totals.values())
    result = [
        CategoryTotal(
            category=category,
            total=total,
            count=counts[category],
            percentage=(100 * total / grand_total) if grand_total != 0 else 0.0,
        )
        for category, total in totals.items()
    ]
    result.sort(key=lambda ct: ct.total, reverse=True)
    return result


def filter_in_range(expenses: Iterable[Expense], start, end) -> list[Expense]:
    """Expenses dated within [start, end], compared as calendar dates."""
    start_d = to_date(start, "start_date")
    end_d = to_date(end, "end_date")
    return [e for e in expenses if start_d <= to_date(e.date) <= end_d]


def sum_in_range(expenses: Iterable[Expense], start, end) -> float:
    return sum((e.amount for e in filter_in_range(expenses, start, end)), 0.0)


def period_stats(current: list[Expense], previous: list[Expense]) -> PeriodStats:
    """Compare two already-scoped expense lists (e.g. this month vs last)."""
    total = sum((e.amount for e in current), 0.0)
    previous_total = sum((e.amount for e in previous), 0.0)
    change = ((total - previous_total) / previous_total * 100) if previous_total > 0 else 0.0
    return PeriodStats(
        total=total,
        previous_total=previous_total,
        percentage_change=change,
        expense_count=len(current),
    )


def daily_totals(expenses: Iterable[Expense], start, end) -> list[DailyTotal]:
    """One row per day in [start, end], including days with nothing spent."""
    start_d = to_date(start, "start_date")
    end_d = to_date(end, "end_date")
    by_day: dict[date, float] = defaultdict(float)
    for expense in filter_in_range(expenses, start_d, end_d):
        by_day[to_date(expense.date)] += expense.amount
    return [DailyTotal(format_date(d), by_day.get(d, 0.0)) for d in date_span(start_d, end_d)]


class ExpenseService:
    def __init__(self, expense_dao: ExpenseDAO):
        self._dao = expense_dao

    def get_all(self) -> list[Expense]:
        return self._dao.get_all()

    def get_in_range(self, start, end) -> list[Expense]:
        start_d = to_date(start, "start_date")
        end_d = to_date(end, "end_date")
        if end_d < start_d:
            raise InvalidInputError("End date cannot be before start date.", field="end_date")
        return self._dao.get_in_range(format_date(start_d), format_date(end_d))

    def get_category_totals(self, start, end) -> list[CategoryTotal]:
        return aggregate_by_category(self.get_in_range(start, end))

    def create(self, amount: float, category: str, date: str, description: str = "") -> Expense:
        self._validate(amount, category)
        expense = self._dao.create(
            amount=amount,
            category=category.strip(),
            date=format_date(to_date(date)),
            description=description.strip(),
        )
        logger.info("Recorded expense %s: %.2f in %s", expense.id, amount, expense.category)
        return expense

    def update(
        self, expense_id: int, amount: float, category: str, date: str, description: str = ""
    ) -> Expense:
        self._validate(amount, category)
        expense = self._dao.update(
            expense_id,
            amount=amount,
            category=category.strip(),
            date=format_date(to_date(date)),
            description=description.strip(),
        )
        if expense is None:
            raise InvalidInputError(f"Expense {expense_id} does not exist.", field="id")
        return expense

    def delete(self, expense_id: int):
        self._dao.delete(expense_id)

    def _validate(self, amount: float, category: str):
        if amount is None or amount <= 0:
            raise InvalidInputError("Amount must be positive.", field="amount")
        if not category or not category.strip():
            raise InvalidInputError("Category cannot be empty.", field="category")
