from datetime import date

import pytest
from freezegun import freeze_time

from utils.errors import InvalidInputError


@freeze_time("2025-09-10")
def test_create_sets_first_due_date(recurring_service):
    recurring = recurring_service.create(
        amount=80000.0,
        description=" Internet ",
        category="Services",
        start_date="2025-09-01",
        interval_days=7,
    )
    assert recurring.next_due_date == "2025-09-15"
    assert recurring.description == "Internet"
    assert recurring.interval_days == 7
    assert recurring.execution_dates == []


@freeze_time("2025-09-10")
def test_execution_dates_are_stored_sorted_and_unique(recurring_service):
    recurring = recurring_service.create(
        amount=10.0,
        description="Gym",
        category="Health",
        start_date="2025-09-01",
        execution_dates=[30, 15, 15],
    )
    assert recurring.execution_dates == [15, 30]
    assert recurring.interval_days is None
    assert recurring.next_due_date == "2025-09-15"


@pytest.mark.parametrize("kwargs", [
    {"interval_days": 10},
    {"interval_days": None},
    {"execution_dates": [0]},
    {"execution_dates": [32]},
    {"interval_days": 7, "amount": 0},
    {"interval_days": 7, "description": " "},
    {"interval_days": 7, "category": ""},
    {"interval_days": 7, "start_date": "2025-02-30"},
    {"interval_days": 7, "notify_days_before": 2},
    {"interval_days": 7, "end_date": "2024-12-31"},
])
def test_create_validation(recurring_service, kwargs):
    args = {
        "amount": 10.0,
        "description": "Gym",
        "category": "Health",
        "start_date": "2025-01-01",
    }
    args.update(kwargs)
    with pytest.raises(InvalidInputError):
        recurring_service.create(**args)


@freeze_time("2025-09-01")
def test_process_due_is_idempotent(recurring_service, pending_dao):
    recurring = recurring_service.create(50000.0, "Rent", "Housing", "2025-09-01", interval_days=30)
    assert recurring.next_due_date == "2025-09-01"

    created = recurring_service.process_due()
    assert [p.scheduled_date for p in created] == ["2025-09-01"]
    assert recurring_service.get_by_id(recurring.id).next_due_date == "2025-10-01"
    assert recurring_service.get_by_id(recurring.id).last_executed == "2025-09-01"

    assert recurring_service.process_due() == []
    assert len(pending_dao.get_all()) == 1


def test_process_due_catches_up(recurring_service, recurring_dao):
    with freeze_time("2025-09-01"):
        recurring = recurring_service.create(100.0, "Coffee", "Food", "2025-09-01", interval_days=7)
    created = recurring_service.process_due(date(2025, 9, 20))
    assert [p.scheduled_date for p in created] == ["2025-09-01", "2025-09-08", "2025-09-15"]
    assert recurring_dao.get_by_id(recurring.id).next_due_date == "2025-09-22"


@freeze_time("2025-09-01")
def test_paused_definitions_are_not_processed(recurring_service):
    recurring = recurring_service.create(100.0, "Coffee", "Food", "2025-09-01", interval_days=7)
    recurring_service.set_active(recurring.id, False)
    assert recurring_service.process_due() == []


@freeze_time("2025-09-01")
def test_auto_confirm_without_confirmation(recurring_service, expense_dao):
    recurring_service.create(
        20000.0, "Streaming", "Entertainment", "2025-09-01",
        interval_days=30, requires_confirmation=False,
    )
    [row] = recurring_service.process_due()
    assert row.status == "confirmed"
    [expense] = expense_dao.get_all()
    assert (expense.amount, expense.date, expense.category) == (20000.0, "2025-09-01", "Entertainment")
    assert recurring_service.get_pending() == []


@freeze_time("2025-09-01")
def test_confirm_creates_expense(recurring_service, pending_dao, expense_dao):
    recurring_service.create(50000.0, "Rent", "Housing", "2025-09-01", interval_days=30)
    [row] = recurring_service.process_due()

    expense = recurring_service.confirm(row.id, amount=45000.0)
    assert expense.id is not None
    assert (expense.amount, expense.date) == (45000.0, "2025-09-01")
    stored = pending_dao.get_by_id(row.id)
    assert stored.status == "confirmed"
    assert stored.amount == 45000.0

    with pytest.raises(InvalidInputError):
        recurring_service.confirm(row.id)
    assert len(expense_dao.get_all()) == 1


@freeze_time("2025-09-01")
def test_confirm_rolls_back_when_status_update_fails(recurring_service, pending_dao, expense_dao, monkeypatch):
    recurring_service.create(50000.0, "Rent", "Housing", "2025-09-01", interval_days=30)
    [row] = recurring_service.process_due()

    def fail(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(pending_dao, "update_status", fail)
    with pytest.raises(RuntimeError):
        recurring_service.confirm(row.id)
    assert expense_dao.get_all() == []
    assert pending_dao.get_by_id(row.id).status == "pending"


@freeze_time("2025-09-01")
def test_skip_is_terminal_and_not_retried(recurring_service, pending_dao, expense_dao):
    recurring = recurring_service.create(50000.0, "Rent", "Housing", "2025-09-01", interval_days=30)
    [row] = recurring_service.process_due()

    assert recurring_service.skip(row.id).status == "skipped"
    assert expense_dao.get_all() == []
    with pytest.raises(InvalidInputError):
        recurring_service.skip(row.id)

    # Editing the definition must not bring the skipped occurrence back
    recurring_service.update(recurring.id, 50000.0, "Rent", "Housing", "2025-09-01", interval_days=30)
    assert recurring_service.process_due() == []
    assert pending_dao.get_by_id(row.id).status == "skipped"


def test_editing_amount_keeps_lapsed_occurrences(recurring_service):
    with freeze_time("2025-09-01"):
        recurring = recurring_service.create(100.0, "Gym", "Health", "2025-09-01", interval_days=7)
        updated = recurring_service.update(recurring.id, 120.0, "Gym", "Health", "2025-09-01", interval_days=7)
    assert updated.next_due_date == "2025-09-01"
    assert updated.amount == 120.0

    rows = recurring_service.process_due(date(2025, 9, 20))
    assert [r.scheduled_date for r in rows] == ["2025-09-01", "2025-09-08", "2025-09-15"]
    assert {r.amount for r in rows} == {120.0}


def test_rescheduling_materializes_the_old_schedule_first(recurring_service, pending_dao):
    with freeze_time("2025-09-01"):
        recurring = recurring_service.create(100.0, "Gym", "Health", "2025-09-01", interval_days=7)
    with freeze_time("2025-09-10"):
        updated = recurring_service.update(recurring.id, 100.0, "Gym", "Health", "2025-09-10", interval_days=15)

    assert [r.scheduled_date for r in pending_dao.get_all()] == ["2025-09-01", "2025-09-08"]
    assert updated.next_due_date == "2025-09-10"
    assert updated.interval_days == 15


def test_update_keeps_paused_definition_paused(recurring_service):
    with freeze_time("2025-09-01"):
        recurring = recurring_service.create(100.0, "Gym", "Health", "2025-09-01", interval_days=7)
        recurring_service.set_active(recurring.id, False)
        recurring_service.update(recurring.id, 120.0, "Gym", "Health", "2025-09-01", interval_days=7)
    assert recurring_service.get_by_id(recurring.id).is_active is False

    recurring_service.update(recurring.id, 120.0, "Gym", "Health", "2025-09-01", interval_days=7, is_active=True)
    assert recurring_service.get_by_id(recurring.id).is_active is True


def test_update_unknown_definition(recurring_service):
    with pytest.raises(InvalidInputError):
        recurring_service.update(404, 10.0, "Gym", "Health", "2025-09-01", interval_days=7)


def test_confirm_unknown_row(recurring_service):
    with pytest.raises(InvalidInputError):
        recurring_service.confirm(404)


def test_get_overdue(recurring_service):
    with freeze_time("2025-09-01"):
        recurring_service.create(50000.0, "Rent", "Housing", "2025-09-01", interval_days=30)
        recurring_service.process_due()
    [overdue] = recurring_service.get_overdue(date(2025, 9, 6))
    assert overdue.days_overdue == 5
    assert overdue.priority == "medium"
    assert recurring_service.get_overdue(date(2025, 9, 1)) == []


def test_deleting_definition_removes_its_rows(recurring_service, pending_dao):
    with freeze_time("2025-09-01"):
        recurring = recurring_service.create(50000.0, "Rent", "Housing", "2025-09-01", interval_days=30)
        recurring_service.process_due()
    recurring_service.delete(recurring.id)
    assert pending_dao.get_all() == []


@freeze_time("2025-09-01")
def test_monthly_projection(recurring_service):
    recurring_service.create(100.0, "Coffee", "Food", "2025-09-01", interval_days=15)
    recurring_service.create(300.0, "Gym", "Health", "2025-09-01", execution_dates=[1, 15])
    assert recurring_service.get_monthly_projection() == 800
