import logging
import os
import sys

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.budget_dao import BudgetDAO
from database.expense_dao import ExpenseDAO
from database.recurring_dao import RecurringDAO
from database.pending_expense_dao import PendingExpenseDAO
from database.dismissed_reminder_dao import DismissedReminderDAO

from services.alert_service import BudgetAlertService
from services.budget_service import BudgetService
from services.category_limit_service import CategoryLimitService
from services.prediction_service import PredictionService
from services.recurring_service import RecurringService
from services.reminder_service import ReminderService
from services.report_service import ReportService

from utils.app_config import get_db_folder, get_log_level, set_db_folder
from utils.date_helpers import today

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None):
    """Run the startup checks. An optional folder argument becomes the saved DB folder."""
    args = sys.argv[1:] if argv is None else argv
    # ── Bootstrap: logging and DB folder from pre-DB config ───────────────────
    logging.basicConfig(
        level=getattr(logging, get_log_level(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if args:
        set_db_folder(args[0])
        logger.info("Database folder set to %s", args[0])
    db_folder = get_db_folder()

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager.open(db_folder=db_folder)

    try:
        # ── DAOs ─────────────────────────────────────────────────────────────
        expense_dao = ExpenseDAO(db)
        budget_dao = BudgetDAO(db)
        recurring_dao = RecurringDAO(db)
        pending_dao = PendingExpenseDAO(db)
        dismissed_reminder_dao = DismissedReminderDAO(db)

        # ── Services ─────────────────────────────────────────────────────────
        budget_svc = BudgetService(budget_dao, expense_dao)
        limit_svc = CategoryLimitService(db, expense_dao)
        recurring_svc = RecurringService(db, recurring_dao, pending_dao, expense_dao)
        reminder_svc = ReminderService(recurring_svc, limit_svc, dismissed_reminder_dao)
        prediction_svc = PredictionService(expense_dao, budget_svc)
        alert_svc = BudgetAlertService()
        report_svc = ReportService(budget_dao, expense_dao)

        ref = today()

        # ── Materialize due recurring expenses ───────────────────────────────
        recurring_svc.process_due(ref)

        # ── Startup reminders, alerts and predictions ────────────────────────
        for reminder in reminder_svc.get_reminders(ref):
            logger.info("[%s] %s: %s", reminder.severity, reminder.title, reminder.detail)

        status = budget_svc.get_status(ref)
        if status is not None:
            logger.info(
                "Budget: spent %.2f of %.2f (%.1f%%, %s), %d days left",
                status.spent, status.budget.amount, status.percentage,
                status.status, status.days_remaining,
            )
            alert_svc.check(status)

        report = report_svc.generate(now=ref)
        if report is not None:
            for total in report.category_breakdown:
                logger.info("  %s: %.2f (%.1f%%)", total.category, total.total, total.percentage)

        for prediction in prediction_svc.get_predictions(ref):
            logger.info("Prediction [%s] %s: %s", prediction.confidence, prediction.title, prediction.detail)
    finally:
        db.close()


if __name__ == "__main__":
    main()
