from dataclasses import dataclass
from datetime import date, timedelta

from database.dismissed_reminder_dao import DismissedReminderDAO
from services.category_limit_service import CategoryLimitService
from services.recurring_service import RecurringService
from utils.constants import SEVERITY_ORDER, STATUS_EXCEEDED, STATUS_WARNING
from utils.date_helpers import format_date, format_month, last_day_of_month, to_date, today


@dataclass
class Reminder:
    type: str       # 'upcoming_recurring' | 'overdue_recurring' | 'over_limit' | 'near_limit'
    severity: str   # 'info' | 'warning' | 'error'
    title: str
    detail: str
    key: str = ""   # e.g. "limit:Food:2025-09" or "recurring:5"; empty = not dismissable


class ReminderService:
    def __init__(
        self,
        recurring_service: RecurringService,
        category_limit_service: CategoryLimitService,
        dismissed_dao: DismissedReminderDAO | None = None,
    ):
        self._recurring = recurring_service
        self._limits = category_limit_service
        self._dismissed = dismissed_dao

    def get_reminders(
        self,
        ref_date: date | None = None,
        dismissed_keys: set[str] | None = None,
    ) -> list[Reminder]:
        """Current reminders, errors first, without the dismissed ones.

        When dismissed_keys is not given they are read from the store.
        """
        ref = to_date(ref_date, "ref_date") if ref_date is not None else today()
        if dismissed_keys is None and self._dismissed is not None:
            dismissed_keys = self._dismissed.get_active_keys(format_date(ref))

        reminders: list[Reminder] = []
        reminders += self._check_upcoming(ref)
        reminders += self._check_overdue(ref)
        reminders += self._check_limits(ref)
        sorted_reminders = sorted(reminders, key=lambda r: SEVERITY_ORDER[r.severity])
        if dismissed_keys:
            sorted_reminders = [r for r in sorted_reminders if r.key not in dismissed_keys]
        return sorted_reminders

    def dismiss(self, reminder: Reminder, ref_date: date | None = None):
        if self._dismissed is None or not reminder.key:
            return
        self._dismissed.dismiss(reminder.key, self.compute_expiry(reminder, ref_date))

    def compute_expiry(self, reminder: Reminder, ref_date: date | None = None) -> str:
        """Return YYYY-MM-DD through which a dismissed reminder stays hidden.

        Limit reminders last until the end of their month. Upcoming
        recurring reminders last until the expense's due date.
        """
        ref = to_date(ref_date, "ref_date") if ref_date is not None else today()

        if reminder.type in ("over_limit", "near_limit"):
            return format_date(last_day_of_month(ref))

        if reminder.type == "upcoming_recurring" and reminder.key.startswith("recurring:"):
            recurring = self._recurring.get_by_id(int(reminder.key.split(":", 1)[1]))
            if recurring:
                return recurring.next_due_date

        # Fallback: 30 days from ref
        return format_date(ref + timedelta(days=30))

    def _check_upcoming(self, ref: date) -> list[Reminder]:
        reminders = []
        for recurring in self._recurring.get_active():
            due = to_date(recurring.next_due_date)
            if recurring.end_date and due > to_date(recurring.end_date):
                continue
            days_away = (due - ref).days
            if days_away < 0 or days_away > recurring.notify_days_before:
                continue
            day_label = "today" if days_away == 0 else (
                "tomorrow" if days_away == 1 else f"in {days_away} days"
            )
            reminders.append(Reminder(
                type="upcoming_recurring",
                severity="info",
                title=f"{recurring.description} due {day_label}",
                detail=(
                    f"Due on {due.strftime('%b %d')} · "
                    f"{recurring.amount:,.2f} · {recurring.category}"
                ),
                key=f"recurring:{recurring.id}",
            ))
        return reminders

    def _check_overdue(self, ref: date) -> list[Reminder]:
        reminders = []
        for overdue in self._recurring.get_overdue(ref):
            row = overdue.pending
            days = overdue.days_overdue
            reminders.append(Reminder(
                type="overdue_recurring",
                severity="error" if overdue.priority in ("high", "urgent") else "warning",
                title=f"{row.description} is overdue",
                detail=(
                    f"Was due on {to_date(row.scheduled_date).strftime('%b %d')} · "
                    f"{row.amount:,.2f} · {row.category} · "
                    f"{days} day{'s' if days != 1 else ''} overdue"
                ),
                key=f"pending:{row.id}",
            ))
        return reminders

    def _check_limits(self, ref: date) -> list[Reminder]:
        month = format_month(ref)
        reminders = []
        for status in self._limits.get_statuses(month):
            detail = (
                f"Spent {status.spent:,.2f} of "
                f"{status.limit:,.2f} limit "
                f"({status.percentage:.0f}%)"
            )
            if status.status == STATUS_EXCEEDED:
                reminders.append(Reminder(
                    type="over_limit",
                    severity="error",
                    title=f"{status.category} is over its limit",
                    detail=detail,
                    key=f"limit:{status.category}:{month}",
                ))
            elif status.status == STATUS_WARNING:
                reminders.append(Reminder(
                    type="near_limit",
                    severity="warning",
                    title=f"{status.category} is near its limit",
                    detail=detail,
                    key=f"limit:{status.category}:{month}",
                ))
        return reminders
