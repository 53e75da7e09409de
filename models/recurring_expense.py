from dataclasses import dataclass, field
from typing import Optional


@dataclass
class RecurringExpense:
    id: int | None
    amount: float
    description: str
    category: str
    start_date: str                         # 'YYYY-MM-DD'
    next_due_date: str                      # 'YYYY-MM-DD'
    interval_days: Optional[int] = None     # 7 | 15 | 30
    execution_dates: list[int] = field(default_factory=list)  # days of month, 1-31
    end_date: Optional[str] = None
    is_active: bool = True
    requires_confirmation: bool = True
    last_executed: Optional[str] = None
    notify_days_before: int = 1
    created_at: str = ""
    updated_at: str = ""


@dataclass
class PendingRecurringExpense:
    id: int | None
    recurring_expense_id: int
    scheduled_date: str     # 'YYYY-MM-DD'
    amount: float
    description: str
    category: str
    status: str = "pending"  # 'pending' | 'confirmed' | 'skipped'; 'overdue' is read-time only
    created_at: str = ""


@dataclass
class OverdueExpense:
    pending: PendingRecurringExpense
    days_overdue: int
    priority: str           # 'low' | 'medium' | 'high' | 'urgent'
