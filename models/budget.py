from dataclasses import dataclass
from typing import Optional


@dataclass
class Budget:
    id: int | None
    amount: float
    start_date: str                 # 'YYYY-MM-DD'
    end_date: Optional[str] = None  # None = derived from period
    is_active: bool = True
    period: str = "monthly"         # 'weekly' | 'monthly' | 'quarterly' | 'custom'
    created_at: str = ""
    updated_at: str = ""


@dataclass
class BudgetStatus:
    budget: Budget
    spent: float
    remaining: float
    percentage: float
    status: str             # 'safe' | 'warning' | 'exceeded'
    days_elapsed: int
    days_remaining: int
    total_days: int
    average_daily_spending: float
    recommended_daily_limit: float
    projected_total: float

    @property
    def projected_overrun(self) -> float:
        return self.projected_total - self.budget.amount
