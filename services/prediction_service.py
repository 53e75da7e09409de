"""Advisory spending predictions.

Every heuristic returns None when there is not enough data to say anything;
none of them feed into a status or a limit.
"""
from collections import defaultdict
from datetime import timedelta
from typing import Optional

from database.expense_dao import ExpenseDAO
from models.budget import BudgetStatus
from models.expense import Expense
from models.prediction import SpendingPrediction
from services.budget_service import BudgetService
from services.expense_service import aggregate_by_category, filter_in_range
from utils.constants import DAY_NAMES, PREDICTION_THRESHOLDS as T
from utils.date_helpers import add_months, days_in_month, format_date, month_bounds, to_date, today


def _trend(current: float, previous: float) -> str:
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return "stable"


def weekly_trend(expenses: list[Expense], now) -> Optional[SpendingPrediction]:
    """Next week's spend from the last 7 days against the 7 before them."""
    current = to_date(now, "now")
    last_week = filter_in_range(expenses, current - timedelta(days=6), current)
    if not last_week:
        return None
    previous_week = filter_in_range(expenses, current - timedelta(days=13), current - timedelta(days=7))

    last_total = sum(e.amount for e in last_week)
    previous_total = sum(e.amount for e in previous_week)
    change = (last_total - previous_total) / previous_total * 100 if previous_total > 0 else 0.0
    predicted = last_total + last_total * change / 100 * T["weekly_trend_damping"]

    if abs(change) < T["weekly_high_confidence_change"]:
        confidence = "high"
    elif abs(change) < T["weekly_medium_confidence_change"]:
        confidence = "medium"
    else:
        confidence = "low"

    trend = _trend(last_total, previous_total)
    recommendation = {
        "up": "Consider reviewing your recurring expenses",
        "down": "Keep up the good spending control",
        "stable": "Spending is steady",
    }[trend]
    return SpendingPrediction(
        kind="weekly",
        title="Next week",
        predicted_amount=predicted,
        confidence=confidence,
        trend=trend,
        detail=f"Expected spend: {predicted:,.0f}",
        recommendation=recommendation,
    )


def monthly_projection(expenses: list[Expense], now) -> Optional[SpendingPrediction]:
    """End-of-month total if the month keeps its current daily average."""
    current = to_date(now, "now")
    month_start, _ = month_bounds(current)
    this_month = filter_in_range(expenses, month_start, current)
    if not this_month:
        return None
    prev_start, prev_end = month_bounds(add_months(month_start, -1))
    previous_total = sum(e.amount for e in filter_in_range(expenses, prev_start, prev_end))

    total = sum(e.amount for e in this_month)
    day = current.day
    remaining_days = days_in_month(current.year, current.month) - day
    projected = total + total / day * remaining_days

    if day > T["monthly_high_confidence_day"]:
        confidence = "high"
    elif day > T["monthly_medium_confidence_day"]:
        confidence = "medium"
    else:
        confidence = "low"

    trend = _trend(projected, previous_total)
    if trend == "up" and previous_total > 0:
        recommendation = f"Spending up {(projected - previous_total) / previous_total * 100:.0f}% on last month"
    else:
        recommendation = "Projection within the normal range"
    return SpendingPrediction(
        kind="monthly",
        title="End of month",
        predicted_amount=projected,
        confidence=confidence,
        trend=trend,
        detail=f"Projected total: {projected:,.0f}",
        recommendation=recommendation,
    )


def dominant_category(expenses: list[Expense]) -> Optional[SpendingPrediction]:
    totals = aggregate_by_category(expenses)
    if not totals or sum(t.total for t in totals) <= 0:
        return None
    top = max(totals, key=lambda t: t.total)
    if top.percentage > T["category_concentration_percent"]:
        recommendation = "Consider spreading your spending across categories"
    else:
        recommendation = "Spending is well balanced across categories"
    return SpendingPrediction(
        kind="category",
        title="Top category",
        predicted_amount=top.total,
        confidence="high",
        trend="stable",
        detail=f"{top.category}: {top.percentage:.0f}% of spending",
        recommendation=recommendation,
    )


def budget_overrun_risk(status: BudgetStatus | None) -> Optional[SpendingPrediction]:
    """Warn when the projected total overshoots the budget by more than the margin."""
    if status is None:
        return None
    amount = status.budget.amount
    if status.projected_total <= amount * T["budget_overrun_factor"]:
        return None
    confidence = "medium" if status.days_remaining > T["budget_overrun_medium_days_remaining"] else "high"
    return SpendingPrediction(
        kind="budget",
        title="Budget at risk",
        predicted_amount=status.projected_total,
        confidence=confidence,
        trend="up",
        detail=f"On track to exceed the budget by {status.projected_total - amount:,.0f}",
        recommendation=f"Cut daily spending to {status.recommended_daily_limit:,.0f}",
    )


def weekday_concentration(expenses: list[Expense]) -> Optional[SpendingPrediction]:
    by_weekday: dict[int, float] = defaultdict(float)
    for expense in expenses:
        by_weekday[to_date(expense.date).weekday()] += expense.amount
    if not by_weekday:
        return None
    # Ties go to the earlier weekday
    weekday = max(sorted(by_weekday), key=lambda d: by_weekday[d])
    name = DAY_NAMES[weekday]
    return SpendingPrediction(
        kind="weekday",
        title="Highest spending day",
        predicted_amount=by_weekday[weekday],
        confidence="medium",
        trend="stable",
        detail=f"You spend the most on {name}s: {by_weekday[weekday]:,.0f}",
        recommendation=f"Plan {name} spending ahead",
    )


def predict_all(expenses: list[Expense], now, status: BudgetStatus | None = None) -> list[SpendingPrediction]:
    if not expenses:
        return []
    candidates = [
        weekly_trend(expenses, now),
        monthly_projection(expenses, now),
        dominant_category(expenses),
        budget_overrun_risk(status),
        weekday_concentration(expenses),
    ]
    return [p for p in candidates if p is not None]


class PredictionService:
    def __init__(self, expense_dao: ExpenseDAO, budget_service: BudgetService):
        self._expense_dao = expense_dao
        self._budget = budget_service

    def get_predictions(self, now=None) -> list[SpendingPrediction]:
        """Predictions over the lookback window ending at now (default: today)."""
        current = to_date(now, "now") if now is not None else today()
        start = add_months(current, -T["lookback_months"])
        expenses = self._expense_dao.get_in_range(format_date(start), format_date(current))
        return predict_all(expenses, current, self._budget.get_status(current))
