import logging
from datetime import date, timedelta

from database.budget_dao import BudgetDAO
from database.expense_dao import ExpenseDAO
from models.budget import Budget, BudgetStatus
from models.expense import Expense
from utils.constants import (
    BUDGET_PERIODS,
    EXCEEDED_THRESHOLD,
    OVER_LIMIT_PERCENTAGE,
    STATUS_EXCEEDED,
    STATUS_SAFE,
    STATUS_WARNING,
    WARNING_THRESHOLD,
)
from utils.date_helpers import add_months, format_date, inclusive_days, last_day_of_month, to_date, today
from utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


def classify_percentage(percentage: float) -> str:
    """Map a percentage of a limit to 'safe', 'warning' or 'exceeded'."""
    if percentage >= EXCEEDED_THRESHOLD:
        return STATUS_EXCEEDED
    if percentage >= WARNING_THRESHOLD:
        return STATUS_WARNING
    return STATUS_SAFE


def percentage_of(spent: float, limit: float) -> float:
    """spent as a percentage of limit, without dividing by a non-positive limit."""
    if limit <= 0:
        return 0.0 if spent <= 0 else OVER_LIMIT_PERCENTAGE
    return spent / limit * 100


def effective_end_date(budget: Budget) -> date:
    """The budget's end date, or the end of its period when none is stored.

    Monthly and custom budgets without an end date run to the last day of
    the start month.
    """
    if budget.end_date:
        return to_date(budget.end_date, "end_date")
    start = to_date(budget.start_date, "start_date")
    if budget.period == "weekly":
        return start + timedelta(days=6)
    if budget.period == "quarterly":
        return add_months(start, 3) - timedelta(days=1)
    return last_day_of_month(start)


def compute_status(budget: Budget, expenses_in_period: list[Expense], now=None) -> BudgetStatus:
    """Project spending against a budget as of now.

    expenses_in_period must already be scoped to the budget's dates; they are
    summed as given. A budget that starts after now reports zero elapsed days
    and a zero projection.
    """
    current = to_date(now, "now") if now is not None else today()
    start = to_date(budget.start_date, "start_date")
    end = effective_end_date(budget)

    spent = sum((e.amount for e in expenses_in_period), 0.0)
    remaining = budget.amount - spent
    percentage = percentage_of(spent, budget.amount)

    total_days = max(0, inclusive_days(start, end))
    days_elapsed = min(max(0, inclusive_days(start, current)), total_days)
    days_remaining = max(0, total_days - days_elapsed)

    average_daily = spent / days_elapsed if days_elapsed > 0 else 0.0
    recommended_daily = max(0.0, remaining) / days_remaining if days_remaining > 0 else 0.0

    return BudgetStatus(
        budget=budget,
        spent=spent,
        remaining=remaining,
        percentage=percentage,
        status=classify_percentage(percentage),
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        total_days=total_days,
        average_daily_spending=average_daily,
        recommended_daily_limit=recommended_daily,
        projected_total=average_daily * total_days,
    )


class BudgetService:
    def __init__(self, budget_dao: BudgetDAO, expense_dao: ExpenseDAO):
        self._budget_dao = budget_dao
        self._expense_dao = expense_dao

    def get_all(self) -> list[Budget]:
        return self._budget_dao.get_all()

    def get_active(self) -> Budget | None:
        return self._budget_dao.get_active()

    def get_status(self, now=None, budget: Budget | None = None) -> BudgetStatus | None:
        """Status of the given budget (default: the active one), or None if there is none."""
        budget = budget or self._budget_dao.get_active()
        if budget is None:
            return None
        expenses = self._expense_dao.get_in_range(
            budget.start_date, format_date(effective_end_date(budget))
        )
        return compute_status(budget, expenses, now)

    def create(
        self,
        amount: float,
        start_date: str,
        end_date: str | None = None,
        period: str = "monthly",
        is_active: bool = True,
    ) -> Budget:
        start, end = self._validate(amount, start_date, end_date, period)
        budget = self._budget_dao.create(
            amount=amount,
            start_date=start,
            end_date=end,
            period=period,
            is_active=is_active,
        )
        logger.info("Created budget %s: %.2f from %s", budget.id, amount, start)
        return budget

    def update(
        self,
        budget_id: int,
        amount: float,
        start_date: str,
        end_date: str | None = None,
        period: str = "monthly",
    ) -> Budget:
        start, end = self._validate(amount, start_date, end_date, period)
        budget = self._budget_dao.update(budget_id, amount, start, end, period)
        if budget is None:
            raise InvalidInputError(f"Budget {budget_id} does not exist.", field="id")
        return budget

    def activate(self, budget_id: int):
        if self._budget_dao.get_by_id(budget_id) is None:
            raise InvalidInputError(f"Budget {budget_id} does not exist.", field="id")
        self._budget_dao.activate(budget_id)
        logger.info("Activated budget %s", budget_id)

    def deactivate(self, budget_id: int):
        self._budget_dao.set_active(budget_id, False)

    def delete(self, budget_id: int):
        self._budget_dao.delete(budget_id)

    def _validate(self, amount, start_date, end_date, period) -> tuple[str, str | None]:
        if amount is None or amount <= 0:
            raise InvalidInputError("Budget amount must be positive.", field="amount")
        if period not in BUDGET_PERIODS:
            raise InvalidInputError(f"Invalid budget period: {period}", field="period")
        start = to_date(start_date, "start_date")
        end = to_date(end_date, "end_date") if end_date else None
        if end is not None and end < start:
            raise InvalidInputError("End date cannot be before start date.", field="end_date")
        return format_date(start), format_date(end) if end else None
