from dataclasses import dataclass
from typing import Optional


@dataclass
class SpendingPrediction:
    kind: str               # 'weekly' | 'monthly' | 'category' | 'budget' | 'weekday'
    title: str
    predicted_amount: float
    confidence: str         # 'high' | 'medium' | 'low'
    trend: str              # 'up' | 'down' | 'stable'
    detail: str = ""
    recommendation: Optional[str] = None
