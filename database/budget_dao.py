from typing import Optional
from database.db_manager import DatabaseManager
from models.budget import Budget


class BudgetDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Budget:
        return Budget(
            id=row["id"],
            amount=row["amount"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            is_active=bool(row["is_active"]),
            period=row["period"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_all(self) -> list[Budget]:
        with self._db.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM budgets ORDER BY start_date DESC, id DESC"
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self) -> Optional[Budget]:
        with self._db.transaction() as conn:
            row = conn.execute(
                """SELECT * FROM budgets WHERE is_active = 1
                   ORDER BY start_date DESC, id DESC LIMIT 1"""
            ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_id(self, budget_id: int) -> Optional[Budget]:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM budgets WHERE id = ?", (budget_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        amount: float,
        start_date: str,
        end_date: str | None = None,
        period: str = "monthly",
        is_active: bool = True,
    ) -> Budget:
        """Insert a budget; an active one deactivates every other budget."""
        with self._db.transaction() as conn:
            if is_active:
                conn.execute(
                    "UPDATE budgets SET is_active = 0, updated_at = datetime('now') WHERE is_active = 1"
                )
            cursor = conn.execute(
                """INSERT INTO budgets (amount, period, start_date, end_date, is_active)
                   VALUES (?, ?, ?, ?, ?)""",
                (amount, period, start_date, end_date, 1 if is_active else 0),
            )
            return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        budget_id: int,
        amount: float,
        start_date: str,
        end_date: str | None = None,
        period: str = "monthly",
    ) -> Optional[Budget]:
        with self._db.transaction() as conn:
            conn.execute(
                """UPDATE budgets
                   SET amount=?, period=?, start_date=?, end_date=?,
                       updated_at=datetime('now')
                   WHERE id=?""",
                (amount, period, start_date, end_date, budget_id),
            )
            return self.get_by_id(budget_id)

    def set_active(self, budget_id: int, is_active: bool):
        with self._db.transaction() as conn:
            conn.execute(
                "UPDATE budgets SET is_active = ?, updated_at = datetime('now') WHERE id = ?",
                (1 if is_active else 0, budget_id),
            )

    def activate(self, budget_id: int):
        """Make budget_id the only active budget."""
        with self._db.transaction() as conn:
            conn.execute(
                """UPDATE budgets SET is_active = CASE WHEN id = ? THEN 1 ELSE 0 END,
                   updated_at = datetime('now')
                   WHERE is_active = 1 OR id = ?""",
                (budget_id, budget_id),
            )

    def delete(self, budget_id: int):
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
