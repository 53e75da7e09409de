from database.db_manager import DatabaseManager


class DismissedReminderDAO:
    """Reminder keys the user dismissed, each hidden until its expiry date."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def dismiss(self, key: str, expires: str):
        """expires is YYYY-MM-DD; the reminder stays hidden through that day."""
        with self._db.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO dismissed_reminders(key, expires) VALUES (?, ?)",
                (key, expires),
            )

    def get_active_keys(self, ref_date: str) -> set[str]:
        """Purge expired rows, then return the keys still dismissed on ref_date."""
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM dismissed_reminders WHERE expires < ?", (ref_date,))
            rows = conn.execute(
                "SELECT key FROM dismissed_reminders WHERE expires >= ?", (ref_date,)
            ).fetchall()
        return {row["key"] for row in rows}
