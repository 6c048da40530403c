"""
Period totals for the dashboard: month and year-to-date income, spending and
investment deposits, income by month, plus budgets and goals of the same period.
"""
from sqlalchemy import text
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Tuple

from fintrack.crud import crud_income, crud_expense, crud_investment, crud_budget
from fintrack.crud.validation import validate_period
from fintrack.db.core import money
from fintrack.models.dashboard import MonthlyIncomeSummary, PeriodTotals


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """[first day of the month, first day of the next month)"""
    validate_period(year, month)
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def year_bounds(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year + 1, 1, 1)


def _totals(db: Session, start: date, end: date) -> PeriodTotals:
    income = crud_income.sum_incomes(db, start, end)
    expenses = crud_expense.sum_expenses(db, start, end)
    return PeriodTotals(
        income=income,
        expenses=expenses,
        investment_deposits=crud_investment.sum_investment_deposits(db, start, end),
        savings=income - expenses,
    )


def get_monthly_totals(db: Session, year: int, month: int) -> PeriodTotals:
    return _totals(db, *month_bounds(year, month))


def get_year_to_date_totals(db: Session, year: int) -> PeriodTotals:
    return _totals(db, *year_bounds(year))


def get_budgets_by_category(db: Session, year: int, month: int):
    return crud_budget.read_budgets_by_category(db, *month_bounds(year, month))


def get_yearly_income_summary(db: Session, year: int, use_views: bool = False) -> List[MonthlyIncomeSummary]:
    """Income total per month of the year. Months without income are left out."""
    validate_period(year, 1)
    if use_views:
        rows = db.execute(
            text("SELECT month, total_income FROM monthly_income_summary WHERE year = :year ORDER BY month"),
            {"year": year},
        ).all()
        totals = [(row_month, money(total)) for row_month, total in rows]
    else:
        totals = crud_income.read_monthly_income_totals(db, year)
    return [MonthlyIncomeSummary(year=year, month=month, total_income=total) for month, total in totals]
