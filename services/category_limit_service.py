import logging
from typing import Iterable, Mapping

from database.db_manager import DatabaseManager
from database.expense_dao import ExpenseDAO
from models.budget_settings import BudgetSettings
from models.category_limit import CategoryLimitStatus, CategoryTotal
from services.budget_service import classify_percentage
from services.expense_service import aggregate_by_category
from utils.constants import BUDGET_SETTINGS_KEY, STATUS_EXCEEDED, STATUS_WARNING
from utils.date_helpers import current_month_str, month_range

logger = logging.getLogger(__name__)


def evaluate(limits: Mapping[str, float], totals: Iterable[CategoryTotal]) -> list[CategoryLimitStatus]:
    """Status of every category with a positive limit, most critical first.

    Categories with a limit but nothing spent report zero. remaining is left
    negative once a category is over its limit.
    """
    by_category = {t.category: t for t in totals}
    statuses = []
    for category, limit in limits.items():
        if limit <= 0:
            continue
        total = by_category.get(category)
        spent = total.total if total else 0.0
        percentage = spent / limit * 100
        statuses.append(CategoryLimitStatus(
            category=category,
            limit=limit,
            spent=spent,
            remaining=limit - spent,
            percentage=percentage,
            status=classify_percentage(percentage),
            count=total.count if total else 0,
        ))
    statuses.sort(key=lambda s: s.percentage, reverse=True)
    return statuses


def exceeded(statuses: list[CategoryLimitStatus]) -> list[CategoryLimitStatus]:
    return [s for s in statuses if s.status == STATUS_EXCEEDED]


def warnings(statuses: list[CategoryLimitStatus]) -> list[CategoryLimitStatus]:
    return [s for s in statuses if s.status == STATUS_WARNING]


def has_exceeded(statuses: list[CategoryLimitStatus]) -> bool:
    return any(s.status == STATUS_EXCEEDED for s in statuses)


def has_warnings(statuses: list[CategoryLimitStatus]) -> bool:
    return any(s.status == STATUS_WARNING for s in statuses)


class CategoryLimitService:
    def __init__(self, db: DatabaseManager, expense_dao: ExpenseDAO):
        self._db = db
        self._expense_dao = expense_dao

    def load_settings(self) -> BudgetSettings:
        return BudgetSettings.from_json(self._db.get_setting(BUDGET_SETTINGS_KEY))

    def save_settings(self, settings: BudgetSettings):
        self._db.set_setting(BUDGET_SETTINGS_KEY, settings.to_json())
        logger.info("Saved budget settings with %d category limits", len(settings.category_limits))

    def set_limit(self, category: str, limit: float) -> BudgetSettings:
        settings = self.load_settings().with_limit(category.strip(), limit)
        self.save_settings(settings)
        return settings

    def get_statuses(self, month: str | None = None) -> list[CategoryLimitStatus]:
        """Limit statuses for a YYYY-MM month (default: the current one)."""
        start, end = month_range(month or current_month_str())
        totals = aggregate_by_category(self._expense_dao.get_in_range(start, end))
        return evaluate(self.load_settings().category_limits, totals)
