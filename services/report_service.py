"""Budget reports: status plus category and daily breakdowns, exported as
JSON, CSV or a plain-text summary, and side-by-side budget comparisons.
"""
import csv
import io
import json
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Iterable

from database.budget_dao import BudgetDAO
from database.expense_dao import ExpenseDAO
from models.budget import Budget
from models.expense import Expense
from models.report import BudgetComparison, BudgetReport
from services.budget_service import compute_status, effective_end_date
from services.expense_service import aggregate_by_category, daily_totals, filter_in_range
from utils.constants import EXCEEDED_THRESHOLD, PERIOD_LABELS, REPORT_FORMATS, WARNING_THRESHOLD
from utils.date_helpers import format_date, to_date
from utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


def generate_report(budget: Budget, expenses: Iterable[Expense], now=None) -> BudgetReport:
    """Build a report for budget from expenses.

    Expenses outside the budget's dates are ignored, so callers may pass a
    wider list.
    """
    start = format_date(to_date(budget.start_date, "start_date"))
    end = format_date(effective_end_date(budget))
    scoped = filter_in_range(expenses, start, end)
    return BudgetReport(
        status=compute_status(budget, scoped, now),
        start_date=start,
        end_date=end,
        expenses=sorted(scoped, key=lambda e: (e.date, e.id or 0), reverse=True),
        category_breakdown=aggregate_by_category(scoped),
        daily_spending=daily_totals(scoped, start, end),
        generated_at=datetime.now(),
    )


def comparison_report(reports: list[BudgetReport]) -> BudgetComparison:
    if not reports:
        raise InvalidInputError("At least one budget is needed for a comparison.", field="budgets")
    ranked = sorted(reports, key=lambda r: r.status.percentage)
    within = sum(1 for r in reports if r.status.percentage <= EXCEEDED_THRESHOLD)
    return BudgetComparison(
        reports=reports,
        total_budgeted=sum(r.budget.amount for r in reports),
        total_spent=sum(r.status.spent for r in reports),
        compliance_percent=within / len(reports) * 100,
        best=ranked[0],
        worst=ranked[-1],
    )


def export_report(
    report: BudgetReport,
    fmt: str = "json",
    include_expenses: bool = True,
    include_categories: bool = True,
    include_daily: bool = True,
) -> str:
    """Render report as 'json', 'csv' or 'detailed' text."""
    if fmt not in REPORT_FORMATS:
        raise InvalidInputError(f"Unsupported export format: {fmt}", field="format")
    if fmt == "json":
        return _to_json(report, include_expenses, include_categories, include_daily)
    if fmt == "csv":
        return _to_csv(report, include_expenses, include_categories, include_daily)
    return _to_text(report, include_categories)


def _money(amount: float) -> str:
    return f"{amount:,.2f}"


def _summary(report: BudgetReport) -> dict:
    status = report.status
    return {
        "total_spent": status.spent,
        "total_remaining": status.remaining,
        "percentage_used": round(status.percentage, 2),
        "status": status.status,
        "average_daily_spending": round(status.average_daily_spending, 2),
        "recommended_daily_limit": round(status.recommended_daily_limit, 2),
        "days_remaining": status.days_remaining,
        "projected_total": round(status.projected_total, 2),
    }


def _to_json(report: BudgetReport, include_expenses, include_categories, include_daily) -> str:
    budget = report.budget
    data = {
        "budget": {
            "id": budget.id,
            "amount": budget.amount,
            "period": budget.period,
            "start_date": budget.start_date,
            "end_date": budget.end_date,
            "is_active": budget.is_active,
        },
        "summary": _summary(report),
        "period": {
            "start_date": report.start_date,
            "end_date": report.end_date,
            "total_days": report.status.total_days,
            "days_elapsed": report.status.days_elapsed,
        },
        "exported_at": (report.generated_at or datetime.now()).isoformat(),
    }
    if include_categories:
        data["category_breakdown"] = [asdict(ct) for ct in report.category_breakdown]
    if include_daily:
        data["daily_spending"] = [asdict(d) for d in report.daily_spending]
    if include_expenses:
        data["expenses"] = [
            {"date": e.date, "description": e.description, "category": e.category, "amount": e.amount}
            for e in report.expenses
        ]
    return json.dumps(data, indent=2, ensure_ascii=False)


def _to_csv(report: BudgetReport, include_expenses, include_categories, include_daily) -> str:
    status = report.status
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")

    writer.writerow(["Budget report"])
    writer.writerows([
        ["Period", PERIOD_LABELS.get(report.budget.period, report.budget.period)],
        ["Amount", report.budget.amount],
        ["Start date", report.start_date],
        ["End date", report.end_date],
        ["Spent", status.spent],
        ["Remaining", status.remaining],
        ["Percentage used", f"{status.percentage:.1f}"],
        ["Days remaining", status.days_remaining],
        ["Average daily", round(status.average_daily_spending, 2)],
    ])

    if include_categories:
        writer.writerow([])
        writer.writerow(["Category", "Amount", "Percentage"])
        for ct in report.category_breakdown:
            writer.writerow([ct.category, ct.total, f"{ct.percentage:.1f}"])

    if include_daily:
        writer.writerow([])
        writer.writerow(["Date", "Amount"])
        for day in report.daily_spending:
            writer.writerow([day.date, day.amount])

    if include_expenses:
        writer.writerow([])
        writer.writerow(["Date", "Description", "Category", "Amount"])
        for e in report.expenses:
            writer.writerow([e.date, e.description, e.category, e.amount])

    return buf.getvalue()


def _recommendations(report: BudgetReport) -> list[str]:
    status = report.status
    budget = report.budget
    if status.percentage >= EXCEEDED_THRESHOLD:
        lines = [
            f"You are over budget by {_money(status.spent - budget.amount)}",
            "Review your spending before the next period",
        ]
    elif status.percentage >= WARNING_THRESHOLD:
        daily = status.remaining / max(1, status.days_remaining)
        lines = [
            "You are close to the budget limit",
            f"Keep daily spending under {_money(daily)}",
        ]
    else:
        lines = [
            "Spending is under control",
            f"You can still spend {_money(status.remaining)}",
        ]
    if status.projected_total > budget.amount:
        lines.append(
            f"At the current pace you will exceed the budget by {_money(status.projected_total - budget.amount)}"
        )
    return lines


def _to_text(report: BudgetReport, include_categories) -> str:
    status = report.status
    budget = report.budget
    rule = "-" * 30
    lines = [
        "=" * 50,
        "BUDGET REPORT".center(50),
        "=" * 50,
        "",
        f"Budget type: {PERIOD_LABELS.get(budget.period, budget.period)}",
        f"Amount: {_money(budget.amount)}",
        f"Period: {report.start_date} - {report.end_date}",
        f"State: {'Active' if budget.is_active else 'Inactive'}",
        "",
        rule,
        "STATUS",
        rule,
        f"Spent: {_money(status.spent)}",
        f"Remaining: {_money(status.remaining)}",
        f"Percentage used: {status.percentage:.1f}%",
        f"Days elapsed: {status.days_elapsed} of {status.total_days}",
        f"Days remaining: {status.days_remaining}",
        f"Average daily: {_money(status.average_daily_spending)}",
        f"Projected total: {_money(status.projected_total)}",
        f"Budget status: {status.status.upper()}",
        "",
    ]
    if include_categories:
        lines += [rule, "BY CATEGORY", rule]
        for ct in report.category_breakdown:
            lines.append(f"{ct.category:<20} {_money(ct.total):>15} ({ct.percentage:.1f}%)")
        lines.append("")

    lines += [rule, "RECOMMENDATIONS", rule]
    lines += [f"* {line}" for line in _recommendations(report)]
    lines += ["", rule]
    generated = report.generated_at or datetime.now()
    lines.append(f"Generated {generated:%Y-%m-%d %H:%M}")
    return "\n".join(lines) + "\n"


class ReportService:
    def __init__(self, budget_dao: BudgetDAO, expense_dao: ExpenseDAO):
        self._budget_dao = budget_dao
        self._expense_dao = expense_dao

    def generate(self, budget_id: int | None = None, now=None) -> BudgetReport | None:
        """Report for budget_id, or for the active budget (None if there is none)."""
        if budget_id is None:
            budget = self._budget_dao.get_active()
            if budget is None:
                return None
        else:
            budget = self._get_budget(budget_id)
        return self._build(budget, now)

    def export(self, budget_id: int, fmt: str = "json", now=None, **options) -> str:
        report = self._build(self._get_budget(budget_id), now)
        content = export_report(report, fmt, **options)
        logger.info("Exported budget %s report as %s", budget_id, fmt)
        return content

    def compare(self, budget_ids: list[int] | None = None, now=None) -> BudgetComparison:
        """Compare the given budgets, or every stored budget."""
        if budget_ids is None:
            budgets = self._budget_dao.get_all()
        else:
            budgets = [self._get_budget(budget_id) for budget_id in budget_ids]
        return comparison_report([self._build(b, now) for b in budgets])

    def _get_budget(self, budget_id: int) -> Budget:
        budget = self._budget_dao.get_by_id(budget_id)
        if budget is None:
            raise InvalidInputError(f"Budget {budget_id} does not exist.", field="id")
        return budget

    def _build(self, budget: Budget, now=None) -> BudgetReport:
        expenses = self._expense_dao.get_in_range(
            budget.start_date, format_date(effective_end_date(budget))
        )
        return generate_report(budget, expenses, now)
