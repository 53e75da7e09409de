from typing import Optional
from database.db_manager import DatabaseManager
from models.expense import Expense


class ExpenseDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Expense:
        return Expense(
            id=row["id"],
            amount=row["amount"],
            category=row["category"],
            date=row["date"],
            description=row["description"],
            created_at=row["created_at"],
        )

    def get_all(self) -> list[Expense]:
        with self._db.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM expenses ORDER BY date DESC, id DESC"
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, expense_id: int) -> Optional[Expense]:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM expenses WHERE id = ?", (expense_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def get_in_range(self, start_date: str, end_date: str) -> list[Expense]:
        """Expenses dated within [start_date, end_date], both YYYY-MM-DD."""
        with self._db.transaction() as conn:
            rows = conn.execute(
                """SELECT * FROM expenses
                   WHERE date(date) BETWEEN ? AND ?
                   ORDER BY date DESC, id DESC""",
                (start_date, end_date),
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def create(
        self,
        amount: float,
        category: str,
        date: str,
        description: str = "",
    ) -> Expense:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """INSERT INTO expenses (amount, category, date, description)
                   VALUES (?, ?, ?, ?)""",
                (amount, category, date, description),
            )
            return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        expense_id: int,
        amount: float,
        category: str,
        date: str,
        description: str = "",
    ) -> Optional[Expense]:
        with self._db.transaction() as conn:
            conn.execute(
                """UPDATE expenses
                   SET amount=?, category=?, date=?, description=?
                   WHERE id=?""",
                (amount, category, date, description, expense_id),
            )
            return self.get_by_id(expense_id)

    def delete(self, expense_id: int):
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
