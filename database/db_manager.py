import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator

from utils.constants import DB_FILE

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the single SQLite connection and serializes access to it.

    Every statement runs while holding one re-entrant lock, so callers on
    different threads never interleave on the shared handle. transaction()
    keeps the lock across several statements and commits only when the
    outermost scope exits cleanly.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._depth = 0

    def get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
                self._conn.row_factory = sqlite3.Row
                self._conn.execute("PRAGMA foreign_keys = ON")
                if self.db_path != ":memory:":
                    self._conn.execute("PRAGMA journal_mode = WAL")
            return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a unit of work atomically; nested scopes join the outer one."""
        with self._lock:
            conn = self.get_connection()
            self._depth += 1
            try:
                yield conn
            except Exception:
                self._depth -= 1
                if self._depth == 0:
                    conn.rollback()
                    logger.warning("Rolled back transaction on %s", self.db_path)
                raise
            else:
                self._depth -= 1
                if self._depth == 0:
                    conn.commit()

    def initialize(self):
        """Create the schema if it does not exist yet."""
        with self.transaction() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS expenses (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                amount      REAL NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                category    TEXT NOT NULL,
                date        TEXT NOT NULL,
                created_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS budgets (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                amount      REAL NOT NULL CHECK(amount > 0),
                period      TEXT NOT NULL DEFAULT 'monthly'
                            CHECK(period IN ('weekly','monthly','quarterly','custom')),
                start_date  TEXT NOT NULL,
                end_date    TEXT,
                is_active   INTEGER NOT NULL DEFAULT 1,
                created_at  TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS recurring_expenses (
                id                    INTEGER PRIMARY KEY AUTOINCREMENT,
                amount                REAL NOT NULL CHECK(amount > 0),
                description           TEXT NOT NULL,
                category              TEXT NOT NULL,
                interval_days         INTEGER CHECK(interval_days IS NULL OR interval_days IN (7, 15, 30)),
                execution_dates       TEXT NOT NULL DEFAULT '[]',
                start_date            TEXT NOT NULL,
                end_date              TEXT,
                next_due_date         TEXT NOT NULL,
                is_active             INTEGER NOT NULL DEFAULT 1,
                requires_confirmation INTEGER NOT NULL DEFAULT 1,
                last_executed         TEXT,
                notify_days_before    INTEGER NOT NULL DEFAULT 1,
                created_at            TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at            TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS pending_recurring_expenses (
                id                   INTEGER PRIMARY KEY AUTOINCREMENT,
                recurring_expense_id INTEGER NOT NULL
                                     REFERENCES recurring_expenses(id) ON DELETE CASCADE,
                scheduled_date       TEXT NOT NULL,
                amount               REAL NOT NULL,
                description          TEXT NOT NULL,
                category             TEXT NOT NULL,
                status               TEXT NOT NULL DEFAULT 'pending'
                                     CHECK(status IN ('pending','confirmed','skipped')),
                created_at           TEXT NOT NULL DEFAULT (datetime('now')),
                UNIQUE(recurring_expense_id, scheduled_date)
            );

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS dismissed_reminders (
                key     TEXT PRIMARY KEY,
                expires TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_expenses_date        ON expenses(date);
            CREATE INDEX IF NOT EXISTS idx_expenses_category    ON expenses(category);
            CREATE INDEX IF NOT EXISTS idx_budgets_active       ON budgets(is_active);
            CREATE INDEX IF NOT EXISTS idx_recurring_next_due   ON recurring_expenses(next_due_date);
            CREATE INDEX IF NOT EXISTS idx_pending_status       ON pending_recurring_expenses(status);
            CREATE INDEX IF NOT EXISTS idx_pending_scheduled    ON pending_recurring_expenses(scheduled_date);
        """)

    def get_setting(self, key: str, default: str = "") -> str:
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT value FROM app_settings WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    @staticmethod
    def open(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (and creates if needed) the expense store.

        db_folder: if provided, the DB file is stored in that directory instead of CWD.
        """
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
            path = os.path.join(db_folder, DB_FILE)
        else:
            path = DB_FILE
        db = DatabaseManager(path)
        db.initialize()
        logger.info("Opened expense store at %s", path)
        return db

    def close(self):
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
