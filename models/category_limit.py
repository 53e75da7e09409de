from dataclasses import dataclass


@dataclass
class CategoryTotal:
    category: str
    total: float
    count: int
    percentage: float


@dataclass
class CategoryLimitStatus:
    category: str
    limit: float
    spent: float
    remaining: float        # not clamped; negative once over the limit
    percentage: float
    status: str             # 'safe' | 'warning' | 'exceeded'
    count: int = 0
