from datetime import date

from freezegun import freeze_time


def _create_recurring(recurring_service, **kwargs):
    args = {
        "amount": 50000.0,
        "description": "Rent",
        "category": "Housing",
        "start_date": "2025-09-01",
        "interval_days": 30,
    }
    args.update(kwargs)
    with freeze_time("2025-09-01"):
        return recurring_service.create(**args)


def test_upcoming_within_notice_window(reminder_service, recurring_service):
    recurring = _create_recurring(recurring_service, start_date="2025-09-25", notify_days_before=3)

    assert reminder_service.get_reminders(date(2025, 9, 21)) == []
    [reminder] = reminder_service.get_reminders(date(2025, 9, 22))
    assert reminder.type == "upcoming_recurring"
    assert reminder.severity == "info"
    assert reminder.title == "Rent due in 3 days"
    assert reminder.key == f"recurring:{recurring.id}"


def test_overdue_pending_rows(reminder_service, recurring_service):
    _create_recurring(recurring_service)
    recurring_service.process_due(date(2025, 9, 1))

    [reminder] = reminder_service.get_reminders(date(2025, 9, 3))
    assert reminder.type == "overdue_recurring"
    assert reminder.severity == "warning"
    assert "2 days overdue" in reminder.detail

    [reminder] = reminder_service.get_reminders(date(2025, 9, 12))
    assert reminder.severity == "error"


def test_limit_reminders_sorted_by_severity(reminder_service, limit_service, expense_service, recurring_service):
    _create_recurring(recurring_service, start_date="2025-09-21", notify_days_before=1)
    limit_service.set_limit("Food", 100.0)
    limit_service.set_limit("Transport", 100.0)
    expense_service.create(80.0, "Food", "2025-09-05")
    expense_service.create(150.0, "Transport", "2025-09-06")

    reminders = reminder_service.get_reminders(date(2025, 9, 20))
    assert [(r.type, r.severity) for r in reminders] == [
        ("over_limit", "error"),
        ("near_limit", "warning"),
        ("upcoming_recurring", "info"),
    ]


def test_dismissed_reminders_are_hidden_until_expiry(reminder_service, limit_service, expense_service):
    limit_service.set_limit("Food", 100.0)
    expense_service.create(150.0, "Food", "2025-09-05")

    [reminder] = reminder_service.get_reminders(date(2025, 9, 20))
    reminder_service.dismiss(reminder, date(2025, 9, 20))
    assert reminder_service.compute_expiry(reminder, date(2025, 9, 20)) == "2025-09-30"

    assert reminder_service.get_reminders(date(2025, 9, 25)) == []
    # Explicit keys replace the stored dismissals
    assert len(reminder_service.get_reminders(date(2025, 9, 25), dismissed_keys=set())) == 1


def test_dismiss_accepts_iso_date_strings(reminder_service, limit_service, expense_service):
    limit_service.set_limit("Food", 100.0)
    expense_service.create(150.0, "Food", "2025-09-05")

    [reminder] = reminder_service.get_reminders("2025-09-20")
    reminder_service.dismiss(reminder, "2025-09-20")
    assert reminder_service.compute_expiry(reminder, "2025-09-20") == "2025-09-30"
    assert reminder_service.get_reminders("2025-09-25") == []
