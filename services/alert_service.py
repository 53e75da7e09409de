import logging
import threading
from datetime import datetime, timedelta

from models.alert import BudgetAlert
from models.budget import BudgetStatus
from utils.constants import (
    ALERT_COOLDOWN_HOURS,
    CRITICAL_WARNING_THRESHOLD,
    DAILY_LIMIT_OVERSPEND_FACTOR,
    EXCEEDED_THRESHOLD,
    MAX_STORED_ALERTS,
    MONTHLY_PREDICTION_MIN_DAYS_REMAINING,
    MONTHLY_PREDICTION_OVERSPEND_FACTOR,
    WARNING_THRESHOLD,
)

logger = logging.getLogger(__name__)


class BudgetAlertService:
    """In-app budget alerts raised from a BudgetStatus.

    Each kind of alert is raised at most once per cooldown window for a
    given budget. Alerts are kept in memory, newest first, and only logged;
    nothing is pushed anywhere.
    """

    def __init__(self):
        self._alerts: list[BudgetAlert] = []
        self._last_raised: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def check(self, status: BudgetStatus, now: datetime | None = None) -> list[BudgetAlert]:
        """Raise any alerts the status calls for; returns the new ones."""
        now = now or datetime.now()
        budget_id = status.budget.id
        candidates = []

        pct = status.percentage
        if WARNING_THRESHOLD <= pct < CRITICAL_WARNING_THRESHOLD:
            candidates.append((
                "warning_75", "normal", "Budget at 75%",
                f"You have spent {pct:.1f}% of your budget. Consider slowing down.",
            ))
        elif CRITICAL_WARNING_THRESHOLD <= pct < EXCEEDED_THRESHOLD:
            candidates.append((
                "warning_90", "high", "Budget at 90%",
                f"You have spent {pct:.1f}% of your budget. Only {status.remaining:,.0f} left.",
            ))
        elif pct >= EXCEEDED_THRESHOLD:
            candidates.append((
                "exceeded_100", "high", "Budget exceeded",
                f"You are over budget by {-status.remaining:,.0f}. Review your recent expenses.",
            ))

        if (
            status.days_remaining > 0
            and status.average_daily_spending > status.recommended_daily_limit * DAILY_LIMIT_OVERSPEND_FACTOR
        ):
            candidates.append((
                "daily_limit", "normal", "Daily limit exceeded",
                f"Your average daily spend ({status.average_daily_spending:,.0f}) is above the "
                f"recommended {status.recommended_daily_limit:,.0f}.",
            ))

        if (
            status.projected_total > status.budget.amount * MONTHLY_PREDICTION_OVERSPEND_FACTOR
            and status.days_remaining > MONTHLY_PREDICTION_MIN_DAYS_REMAINING
        ):
            candidates.append((
                "monthly_prediction", "normal", "Projected overspend",
                f"At this pace you will exceed the budget by {status.projected_overrun:,.0f}.",
            ))

        new_alerts = []
        with self._lock:
            for kind, priority, title, message in candidates:
                key = f"{kind}_{budget_id}"
                last = self._last_raised.get(key)
                if last is not None and now - last < timedelta(hours=ALERT_COOLDOWN_HOURS[kind]):
                    continue
                alert = BudgetAlert(
                    id=f"{key}_{int(now.timestamp() * 1000)}",
                    kind=kind,
                    title=title,
                    message=message,
                    priority=priority,
                    budget_id=budget_id,
                    created_at=now,
                )
                self._last_raised[key] = now
                new_alerts.append(alert)
                logger.info("Budget alert: %s - %s", title, message)

            self._alerts[:0] = new_alerts
            del self._alerts[MAX_STORED_ALERTS:]
        return new_alerts

    def get_all(self) -> list[BudgetAlert]:
        with self._lock:
            return list(self._alerts)

    def get_unread(self) -> list[BudgetAlert]:
        with self._lock:
            return [a for a in self._alerts if not a.is_read]

    def mark_read(self, alert_id: str):
        with self._lock:
            for alert in self._alerts:
                if alert.id == alert_id:
                    alert.is_read = True

    def mark_all_read(self):
        with self._lock:
            for alert in self._alerts:
                alert.is_read = True

    def delete(self, alert_id: str):
        with self._lock:
            self._alerts = [a for a in self._alerts if a.id != alert_id]

    def clear(self):
        """Drop every alert and forget the cooldowns."""
        with self._lock:
            self._alerts.clear()
            self._last_raised.clear()
