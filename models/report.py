from dataclasses import dataclass, field
from datetime import datetime

from models.budget import BudgetStatus
from models.category_limit import CategoryTotal
from models.expense import DailyTotal, Expense


@dataclass
class BudgetReport:
    status: BudgetStatus
    start_date: str                 # 'YYYY-MM-DD'
    end_date: str                   # 'YYYY-MM-DD', derived from the period when not stored
    expenses: list[Expense] = field(default_factory=list)
    category_breakdown: list[CategoryTotal] = field(default_factory=list)   # largest first
    daily_spending: list[DailyTotal] = field(default_factory=list)         # every day of the period
    generated_at: datetime | None = None

    @property
    def budget(self):
        return self.status.budget


@dataclass
class BudgetComparison:
    reports: list[BudgetReport]
    total_budgeted: float
    total_spent: float
    compliance_percent: float       # share of budgets that stayed at or under 100%
    best: BudgetReport              # lowest percentage used
    worst: BudgetReport             # highest percentage used
