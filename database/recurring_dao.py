import json
from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_expense import RecurringExpense


def encode_execution_dates(days: list[int]) -> str:
    """Stored as a JSON array of unique days, ascending."""
    return json.dumps(sorted(set(days or [])))


def decode_execution_dates(raw: str | None) -> list[int]:
    if not raw:
        return []
    return sorted({int(d) for d in json.loads(raw)})


class RecurringDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringExpense:
        return RecurringExpense(
            id=row["id"],
            amount=row["amount"],
            description=row["description"],
            category=row["category"],
            start_date=row["start_date"],
            next_due_date=row["next_due_date"],
            interval_days=row["interval_days"],
            execution_dates=decode_execution_dates(row["execution_dates"]),
            end_date=row["end_date"],
            is_active=bool(row["is_active"]),
            requires_confirmation=bool(row["requires_confirmation"]),
            last_executed=row["last_executed"],
            notify_days_before=row["notify_days_before"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_all(self) -> list[RecurringExpense]:
        with self._db.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM recurring_expenses ORDER BY next_due_date, id"
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self) -> list[RecurringExpense]:
        with self._db.transaction() as conn:
            rows = conn.execute(
                """SELECT * FROM recurring_expenses
                   WHERE is_active = 1 ORDER BY next_due_date, id"""
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, recurring_id: int) -> Optional[RecurringExpense]:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM recurring_expenses WHERE id = ?", (recurring_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        amount: float,
        description: str,
        category: str,
        start_date: str,
        next_due_date: str,
        interval_days: int | None = None,
        execution_dates: list[int] | None = None,
        end_date: str | None = None,
        requires_confirmation: bool = True,
        notify_days_before: int = 1,
    ) -> RecurringExpense:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """INSERT INTO recurring_expenses
                   (amount, description, category, interval_days, execution_dates,
                    start_date, end_date, next_due_date, requires_confirmation,
                    notify_days_before)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    amount, description, category, interval_days,
                    encode_execution_dates(execution_dates), start_date, end_date,
                    next_due_date, 1 if requires_confirmation else 0,
                    notify_days_before,
                ),
            )
            return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        recurring_id: int,
        amount: float,
        description: str,
        category: str,
        start_date: str,
        next_due_date: str,
        interval_days: int | None = None,
        execution_dates: list[int] | None = None,
        end_date: str | None = None,
        requires_confirmation: bool = True,
        notify_days_before: int = 1,
        is_active: bool = True,
    ) -> Optional[RecurringExpense]:
        with self._db.transaction() as conn:
            conn.execute(
                """UPDATE recurring_expenses SET
                   amount=?, description=?, category=?, interval_days=?,
                   execution_dates=?, start_date=?, end_date=?, next_due_date=?,
                   requires_confirmation=?, notify_days_before=?, is_active=?,
                   updated_at=datetime('now')
                   WHERE id=?""",
                (
                    amount, description, category, interval_days,
                    encode_execution_dates(execution_dates), start_date, end_date,
                    next_due_date, 1 if requires_confirmation else 0,
                    notify_days_before, 1 if is_active else 0, recurring_id,
                ),
            )
            return self.get_by_id(recurring_id)

    def set_active(self, recurring_id: int, is_active: bool):
        with self._db.transaction() as conn:
            conn.execute(
                """UPDATE recurring_expenses
                   SET is_active = ?, updated_at = datetime('now') WHERE id = ?""",
                (1 if is_active else 0, recurring_id),
            )

    def update_schedule(self, recurring_id: int, next_due_date: str, last_executed: str | None):
        with self._db.transaction() as conn:
            conn.execute(
                """UPDATE recurring_expenses
                   SET next_due_date = ?, last_executed = ?, updated_at = datetime('now')
                   WHERE id = ?""",
                (next_due_date, last_executed, recurring_id),
            )

    def delete(self, recurring_id: int):
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM recurring_expenses WHERE id = ?", (recurring_id,))
