from dataclasses import dataclass


@dataclass
class Expense:
    id: int | None
    amount: float
    category: str
    date: str               # 'YYYY-MM-DD'
    description: str = ""
    created_at: str = ""


@dataclass
class PeriodStats:
    total: float
    previous_total: float
    percentage_change: float
    expense_count: int

    @property
    def difference(self) -> float:
        return self.total - self.previous_total


@dataclass
class DailyTotal:
    date: str               # 'YYYY-MM-DD'
    amount: float
