import pytest

from models.expense import Expense
from services.expense_service import (
    aggregate_by_category,
    daily_totals,
    filter_in_range,
    period_stats,
    sum_in_range,
)
from utils.errors import InvalidInputError


def _expense(amount, category="Food", date="2025-09-10"):
    return Expense(id=None, amount=amount, category=category, date=date)


class TestAggregateByCategory:
    def test_totals_are_conserved(self):
        expenses = [
            _expense(100.0, "Food"),
            _expense(250.5, "Transport"),
            _expense(49.5, "Food"),
            _expense(10.0, "Health"),
        ]
        totals = aggregate_by_category(expenses)
        assert sum(t.total for t in totals) == pytest.approx(sum(e.amount for e in expenses))

    def test_percentages_sum_to_100(self):
        expenses = [_expense(1.0, "A"), _expense(1.0, "B"), _expense(1.0, "C")]
        totals = aggregate_by_category(expenses)
        assert sum(t.percentage for t in totals) == pytest.approx(100.0)

    def test_counts_and_order(self):
        totals = aggregate_by_category([
            _expense(10.0, "Food"),
            _expense(30.0, "Transport"),
            _expense(5.0, "Food"),
        ])
        assert [t.category for t in totals] == ["Transport", "Food"]
        food = totals[1]
        assert food.total == 15.0
        assert food.count == 2

    def test_empty_input(self):
        assert aggregate_by_category([]) == []

    def test_zero_grand_total_gives_zero_percentages(self):
        totals = aggregate_by_category([_expense(0.0, "A"), _expense(0.0, "B")])
        assert all(t.percentage == 0.0 for t in totals)


class TestRanges:
    def test_range_is_inclusive_on_both_ends(self):
        expenses = [
            _expense(1.0, date="2025-09-01"),
            _expense(2.0, date="2025-09-15"),
            _expense(4.0, date="2025-09-30"),
            _expense(8.0, date="2025-10-01"),
        ]
        assert sum_in_range(expenses, "2025-09-01", "2025-09-30") == 7.0

    def test_timestamps_compare_as_dates(self):
        expenses = [_expense(5.0, date="2025-09-30T23:59:59")]
        assert filter_in_range(expenses, "2025-09-30", "2025-09-30") == expenses

    def test_empty_range_sums_to_zero(self):
        assert sum_in_range([], "2025-09-01", "2025-09-30") == 0.0

    def test_daily_totals_fill_missing_days(self):
        expenses = [_expense(3.0, date="2025-09-02"), _expense(2.0, date="2025-09-02")]
        rows = daily_totals(expenses, "2025-09-01", "2025-09-03")
        assert [(r.date, r.amount) for r in rows] == [
            ("2025-09-01", 0.0),
            ("2025-09-02", 5.0),
            ("2025-09-03", 0.0),
        ]


def test_period_stats_change():
    stats = period_stats([_expense(150.0)], [_expense(100.0)])
    assert stats.percentage_change == pytest.approx(50.0)
    assert stats.difference == 50.0
    assert stats.expense_count == 1


def test_period_stats_without_previous_spending():
    assert period_stats([_expense(10.0)], []).percentage_change == 0.0


class TestExpenseService:
    def test_create_normalizes_date(self, expense_service):
        expense = expense_service.create(12.5, " Food ", "2025-09-10T08:30:00", "lunch")
        assert expense.date == "2025-09-10"
        assert expense.category == "Food"

    @pytest.mark.parametrize("amount", [0, -5])
    def test_rejects_non_positive_amount(self, expense_service, amount):
        with pytest.raises(InvalidInputError):
            expense_service.create(amount, "Food", "2025-09-10")

    def test_rejects_bad_date(self, expense_service):
        with pytest.raises(InvalidInputError) as excinfo:
            expense_service.create(10.0, "Food", "not-a-date")
        assert excinfo.value.field == "date"

    def test_rejects_empty_category(self, expense_service):
        with pytest.raises(InvalidInputError):
            expense_service.create(10.0, "  ", "2025-09-10")

    def test_category_totals_in_range(self, expense_service):
        expense_service.create(100.0, "Food", "2025-09-01")
        expense_service.create(50.0, "Transport", "2025-09-20")
        expense_service.create(999.0, "Food", "2025-10-01")
        totals = expense_service.get_category_totals("2025-09-01", "2025-09-30")
        assert {t.category: t.total for t in totals} == {"Food": 100.0, "Transport": 50.0}

    def test_get_in_range_rejects_reversed_range(self, expense_service):
        with pytest.raises(InvalidInputError):
            expense_service.get_in_range("2025-09-30", "2025-09-01")
