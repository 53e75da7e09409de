from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_expense import PendingRecurringExpense


class PendingExpenseDAO:
    """Rows materialized from recurring expenses, awaiting confirm or skip."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> PendingRecurringExpense:
        return PendingRecurringExpense(
            id=row["id"],
            recurring_expense_id=row["recurring_expense_id"],
            scheduled_date=row["scheduled_date"],
            amount=row["amount"],
            description=row["description"],
            category=row["category"],
            status=row["status"],
            created_at=row["created_at"],
        )

    def get_all(self) -> list[PendingRecurringExpense]:
        with self._db.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM pending_recurring_expenses ORDER BY scheduled_date, id"
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_pending(self) -> list[PendingRecurringExpense]:
        with self._db.transaction() as conn:
            rows = conn.execute(
                """SELECT * FROM pending_recurring_expenses
                   WHERE status = 'pending' ORDER BY scheduled_date, id"""
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, pending_id: int) -> Optional[PendingRecurringExpense]:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM pending_recurring_expenses WHERE id = ?", (pending_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, pending: PendingRecurringExpense) -> PendingRecurringExpense:
        """Insert a row; an existing (recurring_expense_id, scheduled_date) row is kept."""
        with self._db.transaction() as conn:
            conn.execute(
                """INSERT OR IGNORE INTO pending_recurring_expenses
                   (recurring_expense_id, scheduled_date, amount, description,
                    category, status)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    pending.recurring_expense_id, pending.scheduled_date,
                    pending.amount, pending.description, pending.category,
                    pending.status,
                ),
            )
            row = conn.execute(
                """SELECT * FROM pending_recurring_expenses
                   WHERE recurring_expense_id = ? AND scheduled_date = ?""",
                (pending.recurring_expense_id, pending.scheduled_date),
            ).fetchone()
        return self._row_to_model(row)

    def update_status(self, pending_id: int, status: str, amount: float | None = None):
        with self._db.transaction() as conn:
            if amount is None:
                conn.execute(
                    "UPDATE pending_recurring_expenses SET status = ? WHERE id = ?",
                    (status, pending_id),
                )
            else:
                conn.execute(
                    """UPDATE pending_recurring_expenses
                       SET status = ?, amount = ? WHERE id = ?""",
                    (status, amount, pending_id),
                )

    def delete(self, pending_id: int):
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM pending_recurring_expenses WHERE id = ?", (pending_id,))
