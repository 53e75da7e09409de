from dataclasses import dataclass
from datetime import datetime


@dataclass
class BudgetAlert:
    id: str
    kind: str               # 'warning_75' | 'warning_90' | 'exceeded_100' | 'daily_limit' | 'monthly_prediction'
    title: str
    message: str
    priority: str           # 'normal' | 'high'
    budget_id: int
    created_at: datetime
    is_read: bool = False
