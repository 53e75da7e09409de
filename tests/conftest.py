"""Shared fixtures: an in-memory store with every DAO and service wired up."""
import pytest

from database.budget_dao import BudgetDAO
from database.db_manager import DatabaseManager
from database.dismissed_reminder_dao import DismissedReminderDAO
from database.expense_dao import ExpenseDAO
from database.pending_expense_dao import PendingExpenseDAO
from database.recurring_dao import RecurringDAO
from services.budget_service import BudgetService
from services.category_limit_service import CategoryLimitService
from services.expense_service import ExpenseService
from services.recurring_service import RecurringService
from services.reminder_service import ReminderService
from services.report_service import ReportService


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def expense_dao(db):
    return ExpenseDAO(db)


@pytest.fixture
def budget_dao(db):
    return BudgetDAO(db)


@pytest.fixture
def recurring_dao(db):
    return RecurringDAO(db)


@pytest.fixture
def pending_dao(db):
    return PendingExpenseDAO(db)


@pytest.fixture
def expense_service(expense_dao):
    return ExpenseService(expense_dao)


@pytest.fixture
def budget_service(budget_dao, expense_dao):
    return BudgetService(budget_dao, expense_dao)


@pytest.fixture
def limit_service(db, expense_dao):
    return CategoryLimitService(db, expense_dao)


@pytest.fixture
def recurring_service(db, recurring_dao, pending_dao, expense_dao):
    return RecurringService(db, recurring_dao, pending_dao, expense_dao)


@pytest.fixture
def reminder_service(db, recurring_service, limit_service):
    return ReminderService(recurring_service, limit_service, DismissedReminderDAO(db))


@pytest.fixture
def report_service(budget_dao, expense_dao):
    return ReportService(budget_dao, expense_dao)
