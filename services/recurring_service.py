import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Iterable

from database.db_manager import DatabaseManager
from database.expense_dao import ExpenseDAO
from database.pending_expense_dao import PendingExpenseDAO
from database.recurring_dao import RecurringDAO
from models.expense import Expense
from models.recurring_expense import OverdueExpense, PendingRecurringExpense, RecurringExpense
from utils.constants import (
    INTERVAL_OPTIONS,
    MAX_DAY_OF_MONTH,
    MIN_DAY_OF_MONTH,
    MONTHLY_EXECUTIONS,
    NOTIFICATION_OPTIONS,
    OVERDUE_PRIORITY_DAYS,
)
from utils.date_helpers import add_months, clamp_day_to_month, format_date, to_date, today
from utils.errors import InconsistentStateError, InvalidInputError

logger = logging.getLogger(__name__)


@dataclass
class Materialization:
    pending: list[PendingRecurringExpense] = field(default_factory=list)    # new rows, not yet stored
    advanced: list[RecurringExpense] = field(default_factory=list)          # definitions with a new next_due_date
    issues: list[InconsistentStateError] = field(default_factory=list)


def calculate_next_due_date(start, interval_days: int | None = None, execution_dates=None) -> date:
    """Next due date computed from start.

    With execution dates, the first configured day of month on or after
    start (each day clamped to the month's length), wrapping to the next
    month when none is left. Otherwise start + interval_days, as plain day
    arithmetic.
    """
    start = to_date(start, "start_date")
    if execution_dates:
        days = sorted(set(execution_dates))
        for day in days:
            if clamp_day_to_month(start.year, start.month, day) >= start.day:
                return start.replace(day=clamp_day_to_month(start.year, start.month, day))
        following = add_months(start.replace(day=1), 1)
        return following.replace(day=clamp_day_to_month(following.year, following.month, days[0]))
    if not interval_days:
        raise InvalidInputError("Either interval_days or execution_dates is required.", field="interval_days")
    return start + timedelta(days=interval_days)


def next_occurrence_after(due, interval_days: int | None = None, execution_dates=None) -> date:
    """The occurrence strictly after due."""
    due = to_date(due, "next_due_date")
    if execution_dates:
        return calculate_next_due_date(due + timedelta(days=1), execution_dates=execution_dates)
    return calculate_next_due_date(due, interval_days)


def initial_due_date(start, interval_days: int | None = None, execution_dates=None, today_=None) -> date:
    """First occurrence on or after the later of start and today.

    In interval mode start itself is the first occurrence, and later ones
    follow every interval_days from it.
    """
    start = to_date(start, "start_date")
    ref = to_date(today_, "today") if today_ is not None else today()
    anchor = max(start, ref)
    if execution_dates:
        return calculate_next_due_date(anchor, execution_dates=execution_dates)
    if not interval_days:
        raise InvalidInputError("Either interval_days or execution_dates is required.", field="interval_days")
    steps = -(-(anchor - start).days // interval_days)
    return start + timedelta(days=steps * interval_days)


def materialize_pending(
    definitions: Iterable[RecurringExpense],
    existing_pending: Iterable[PendingRecurringExpense],
    now,
) -> Materialization:
    """Create a pending row for every lapsed occurrence of each active definition.

    An occurrence already covered by a row with the same
    (recurring_expense_id, scheduled_date), in any status, is not created
    again. Each definition that had lapsed occurrences is advanced strictly
    past now. Nothing here touches the store.
    """
    current = to_date(now, "now")
    covered = {(p.recurring_expense_id, to_date(p.scheduled_date)) for p in existing_pending}
    result = Materialization()

    for definition in definitions:
        if not definition.is_active:
            continue
        if not definition.execution_dates and not definition.interval_days:
            result.issues.append(InconsistentStateError(
                f"Recurring expense {definition.id} has neither an interval nor execution dates.",
                record_id=definition.id,
            ))
            continue

        due = to_date(definition.next_due_date, "next_due_date")
        if due > current:
            continue
        end = to_date(definition.end_date, "end_date") if definition.end_date else None

        last_executed = definition.last_executed
        while due <= current:
            if end is None or due <= end:
                if (definition.id, due) not in covered:
                    result.pending.append(PendingRecurringExpense(
                        id=None,
                        recurring_expense_id=definition.id,
                        scheduled_date=format_date(due),
                        amount=definition.amount,
                        description=definition.description,
                        category=definition.category,
                    ))
                    covered.add((definition.id, due))
                last_executed = format_date(due)
            due = next_occurrence_after(due, definition.interval_days, definition.execution_dates)

        result.advanced.append(replace(
            definition, next_due_date=format_date(due), last_executed=last_executed
        ))
    return result


def overdue_priority(days_overdue: int) -> str:
    for limit, priority in OVERDUE_PRIORITY_DAYS:
        if days_overdue <= limit:
            return priority
    return "urgent"


def effective_status(row: PendingRecurringExpense, today_) -> str:
    """Stored status, or 'overdue' for a pending row scheduled before today."""
    if row.status == "pending" and to_date(row.scheduled_date) < to_date(today_, "today"):
        return "overdue"
    return row.status


def classify_overdue(
    pending_rows: Iterable[PendingRecurringExpense],
    today_,
    definitions: Iterable[RecurringExpense] | None = None,
) -> tuple[list[OverdueExpense], list[InconsistentStateError]]:
    """Overdue pending rows, most overdue first, plus any orphaned rows found.

    When definitions are given, a row whose definition no longer exists is
    left out and reported instead.
    """
    ref = to_date(today_, "today")
    known_ids = {d.id for d in definitions} if definitions is not None else None
    overdue: list[OverdueExpense] = []
    issues: list[InconsistentStateError] = []
    for row in pending_rows:
        if effective_status(row, ref) != "overdue":
            continue
        if known_ids is not None and row.recurring_expense_id not in known_ids:
            issues.append(InconsistentStateError(
                f"Pending expense {row.id} refers to missing recurring expense "
                f"{row.recurring_expense_id}.",
                record_id=row.id,
            ))
            continue
        days = (ref - to_date(row.scheduled_date)).days
        overdue.append(OverdueExpense(pending=row, days_overdue=days, priority=overdue_priority(days)))
    overdue.sort(key=lambda o: o.days_overdue, reverse=True)
    return overdue, issues


def confirm_pending(
    row: PendingRecurringExpense, amount: float | None = None, description: str | None = None
) -> tuple[PendingRecurringExpense, Expense]:
    """Confirmed copy of row and the expense it becomes, dated on the scheduled date."""
    if row.status != "pending":
        raise InvalidInputError(f"Pending expense {row.id} is already {row.status}.", field="status")
    final_amount = row.amount if amount is None else amount
    if final_amount <= 0:
        raise InvalidInputError("Amount must be positive.", field="amount")
    expense = Expense(
        id=None,
        amount=final_amount,
        category=row.category,
        date=row.scheduled_date,
        description=(description or row.description).strip(),
    )
    return replace(row, status="confirmed", amount=final_amount), expense


def skip_pending(row: PendingRecurringExpense) -> PendingRecurringExpense:
    if row.status != "pending":
        raise InvalidInputError(f"Pending expense {row.id} is already {row.status}.", field="status")
    return replace(row, status="skipped")


def monthly_projection(definitions: Iterable[RecurringExpense]) -> float:
    """Expected monthly cost of the active definitions."""
    total = 0.0
    for definition in definitions:
        if not definition.is_active:
            continue
        if definition.execution_dates:
            executions = len(definition.execution_dates)
        else:
            executions = MONTHLY_EXECUTIONS.get(definition.interval_days, 0)
        total += definition.amount * executions
    return round(total)


class RecurringService:
    def __init__(
        self,
        db: DatabaseManager,
        recurring_dao: RecurringDAO,
        pending_dao: PendingExpenseDAO,
        expense_dao: ExpenseDAO,
    ):
        self._db = db
        self._dao = recurring_dao
        self._pending_dao = pending_dao
        self._expense_dao = expense_dao

    def get_all(self) -> list[RecurringExpense]:
        return self._dao.get_all()

    def get_active(self) -> list[RecurringExpense]:
        return self._dao.get_active()

    def get_by_id(self, recurring_id: int) -> RecurringExpense | None:
        return self._dao.get_by_id(recurring_id)

    def create(
        self,
        amount: float,
        description: str,
        category: str,
        start_date: str,
        interval_days: int | None = None,
        execution_dates: list[int] | None = None,
        end_date: str | None = None,
        requires_confirmation: bool = True,
        notify_days_before: int = 1,
    ) -> RecurringExpense:
        start, end, days = self._validate(
            amount, description, category, start_date, interval_days,
            execution_dates, end_date, notify_days_before,
        )
        next_due = initial_due_date(start, interval_days, days)
        recurring = self._dao.create(
            amount=amount,
            description=description.strip(),
            category=category.strip(),
            start_date=start,
            next_due_date=format_date(next_due),
            interval_days=None if days else interval_days,
            execution_dates=days,
            end_date=end,
            requires_confirmation=requires_confirmation,
            notify_days_before=notify_days_before,
        )
        logger.info("Created recurring expense %s, first due %s", recurring.id, recurring.next_due_date)
        return recurring

    def update(
        self,
        recurring_id: int,
        amount: float,
        description: str,
        category: str,
        start_date: str,
        interval_days: int | None = None,
        execution_dates: list[int] | None = None,
        end_date: str | None = None,
        requires_confirmation: bool = True,
        notify_days_before: int = 1,
        is_active: bool | None = None,
    ) -> RecurringExpense:
        """Edit a definition.

        The stored next_due_date is kept unless the schedule (start date,
        interval or execution dates) changes. A changed schedule first
        materializes everything that lapsed under the old one, then restarts
        from the new start date. is_active=None keeps the stored flag.
        """
        start, end, days = self._validate(
            amount, description, category, start_date, interval_days,
            execution_dates, end_date, notify_days_before,
        )
        interval = None if days else interval_days
        with self._db.transaction():
            existing = self._dao.get_by_id(recurring_id)
            if existing is None:
                raise InvalidInputError(f"Recurring expense {recurring_id} does not exist.", field="id")

            next_due = existing.next_due_date
            if (existing.start_date, existing.interval_days, existing.execution_dates) != (start, interval, days):
                self.process_due()
                next_due = format_date(initial_due_date(start, interval, days))
                logger.info("Rescheduled recurring expense %s, next due %s", recurring_id, next_due)

            recurring = self._dao.update(
                recurring_id,
                amount=amount,
                description=description.strip(),
                category=category.strip(),
                start_date=start,
                next_due_date=next_due,
                interval_days=interval,
                execution_dates=days,
                end_date=end,
                requires_confirmation=requires_confirmation,
                notify_days_before=notify_days_before,
                is_active=existing.is_active if is_active is None else is_active,
            )
        return recurring

    def set_active(self, recurring_id: int, is_active: bool):
        self._dao.set_active(recurring_id, is_active)

    def delete(self, recurring_id: int):
        self._dao.delete(recurring_id)

    def process_due(self, now=None) -> list[PendingRecurringExpense]:
        """Materialize every lapsed occurrence and advance the definitions.

        Runs as one transaction. Definitions that do not require
        confirmation have their rows confirmed into expenses straight away.
        Returns the stored rows that were created.
        """
        current = to_date(now, "now") if now is not None else today()
        created: list[PendingRecurringExpense] = []
        with self._db.transaction():
            definitions = self._dao.get_active()
            result = materialize_pending(definitions, self._pending_dao.get_all(), current)
            for issue in result.issues:
                logger.warning("Skipping recurring expense %s: %s", issue.record_id, issue)

            auto_confirm = {d.id for d in definitions if not d.requires_confirmation}
            for row in result.pending:
                stored = self._pending_dao.create(row)
                if stored.recurring_expense_id in auto_confirm:
                    stored = self._confirm_row(stored)
                created.append(stored)

            for definition in result.advanced:
                self._dao.update_schedule(definition.id, definition.next_due_date, definition.last_executed)

        if created:
            logger.info("Materialized %d recurring expense(s) up to %s", len(created), current)
        return created

    def confirm(self, pending_id: int, amount: float | None = None, description: str | None = None) -> Expense:
        """Turn a pending row into an expense; both writes commit together."""
        with self._db.transaction():
            expense = self._confirm(self._get_pending_row(pending_id), amount, description)
        logger.info("Confirmed pending expense %s as expense %s", pending_id, expense.id)
        return expense

    def skip(self, pending_id: int) -> PendingRecurringExpense:
        with self._db.transaction():
            skipped = skip_pending(self._get_pending_row(pending_id))
            self._pending_dao.update_status(skipped.id, skipped.status)
        logger.info("Skipped pending expense %s", pending_id)
        return skipped

    def get_pending(self) -> list[PendingRecurringExpense]:
        return self._pending_dao.get_pending()

    def get_overdue(self, today_=None) -> list[OverdueExpense]:
        ref = to_date(today_, "today") if today_ is not None else today()
        overdue, issues = classify_overdue(self._pending_dao.get_pending(), ref, self._dao.get_all())
        for issue in issues:
            logger.warning("Ignoring orphaned pending expense %s: %s", issue.record_id, issue)
        return overdue

    def get_monthly_projection(self) -> float:
        return monthly_projection(self._dao.get_active())

    def _get_pending_row(self, pending_id: int) -> PendingRecurringExpense:
        row = self._pending_dao.get_by_id(pending_id)
        if row is None:
            raise InvalidInputError(f"Pending expense {pending_id} does not exist.", field="id")
        return row

    def _confirm(self, row: PendingRecurringExpense, amount=None, description=None) -> Expense:
        confirmed, expense = confirm_pending(row, amount, description)
        stored = self._expense_dao.create(
            amount=expense.amount,
            category=expense.category,
            date=expense.date,
            description=expense.description,
        )
        self._pending_dao.update_status(confirmed.id, confirmed.status, confirmed.amount)
        return stored

    def _confirm_row(self, row: PendingRecurringExpense) -> PendingRecurringExpense:
        self._confirm(row)
        return replace(row, status="confirmed")

    def _validate(
        self, amount, description, category, start_date, interval_days,
        execution_dates, end_date, notify_days_before,
    ) -> tuple[str, str | None, list[int]]:
        if amount is None or amount <= 0:
            raise InvalidInputError("Amount must be positive.", field="amount")
        if not description or not description.strip():
            raise InvalidInputError("Description cannot be empty.", field="description")
        if not category or not category.strip():
            raise InvalidInputError("Category cannot be empty.", field="category")
        days = sorted(set(execution_dates or []))
        for day in days:
            if not isinstance(day, int) or not MIN_DAY_OF_MONTH <= day <= MAX_DAY_OF_MONTH:
                raise InvalidInputError(
                    f"Day of month must be between {MIN_DAY_OF_MONTH} and {MAX_DAY_OF_MONTH}.",
                    field="execution_dates",
                )
        if not days and interval_days not in INTERVAL_OPTIONS:
            raise InvalidInputError(
                f"Interval must be one of {', '.join(map(str, INTERVAL_OPTIONS))} days.",
                field="interval_days",
            )
        if notify_days_before not in NOTIFICATION_OPTIONS:
            raise InvalidInputError("Invalid reminder lead time.", field="notify_days_before")
        start = to_date(start_date, "start_date")
        end = to_date(end_date, "end_date") if end_date else None
        if end is not None and end < start:
            raise InvalidInputError("End date cannot be before start date.", field="end_date")
        return format_date(start), format_date(end) if end else None, days
