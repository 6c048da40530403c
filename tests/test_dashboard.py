from datetime import date
from decimal import Decimal

import pytest

from fintrack.db.core import ValidationError
from fintrack.models.budget import BudgetUpsert
from fintrack.models.expense import ExpenseCreate
from fintrack.models.goals import YearlyGoalsUpsert
from fintrack.models.income import IncomeCreate
from fintrack.models.investment import InvestmentMovementCreate
from fintrack.services import dashboard
from fintrack.services.dashboard import month_bounds


@pytest.fixture
def activity(ledger, seeded):
    ledger.record_income(IncomeCreate(transaction_date=date(2026, 2, 1), amount=Decimal("3000"), account_id=seeded.bank))
    ledger.record_income(IncomeCreate(transaction_date=date(2026, 3, 1), amount=Decimal("3100"), account_id=seeded.bank))
    ledger.record_expense(ExpenseCreate(
        transaction_date=date(2026, 3, 2), amount=Decimal("80.00"), account_id=seeded.bank, category_id=seeded.food,
    ))
    ledger.record_expense(ExpenseCreate(
        transaction_date=date(2026, 3, 31), amount=Decimal("20.00"), account_id=seeded.bank, category_id=seeded.food,
    ))
    ledger.record_expense(ExpenseCreate(
        transaction_date=date(2026, 4, 1), amount=Decimal("999.00"), account_id=seeded.bank, category_id=seeded.food,
    ))
    ledger.record_investment_movement(InvestmentMovementCreate(
        transaction_date=date(2026, 3, 5), amount=Decimal("500"), investment_account_id=seeded.broker,
        kind="deposit", source_account_id=seeded.bank,
    ))
    ledger.record_investment_movement(InvestmentMovementCreate(
        transaction_date=date(2026, 3, 6), amount=Decimal("100"), investment_account_id=seeded.broker,
        kind="withdrawal", source_account_id=seeded.bank,
    ))
    return seeded


class TestPeriodTotals:
    """Tests for month and year totals"""

    def test_month_bounds(self):
        assert month_bounds(2026, 12) == (date(2026, 12, 1), date(2027, 1, 1))
        with pytest.raises(ValidationError):
            month_bounds(2026, 13)

    def test_monthly_totals(self, ledger, activity):
        totals = ledger.get_monthly_totals(2026, 3)

        assert totals.income == Decimal("3100.00")
        assert totals.expenses == Decimal("100.00")
        assert totals.investment_deposits == Decimal("500.00")
        assert totals.savings == Decimal("3000.00")

    def test_year_totals(self, ledger, activity):
        totals = ledger.get_year_to_date_totals(2026)

        assert totals.income == Decimal("6100.00")
        assert totals.expenses == Decimal("1099.00")

    def test_empty_month(self, ledger, seeded):
        totals = ledger.get_monthly_totals(2026, 7)

        assert totals.income == Decimal("0.00")
        assert totals.savings == Decimal("0.00")


class TestIncomeByMonth:
    """Tests for the per-month income breakdown of a year"""

    def test_months_with_income_only(self, ledger, activity):
        ledger.record_income(IncomeCreate(
            transaction_date=date(2026, 3, 20), amount=Decimal("49.99"), account_id=activity.savings,
        ))
        ledger.record_income(IncomeCreate(
            transaction_date=date(2027, 1, 2), amount=Decimal("10.00"), account_id=activity.bank,
        ))

        summary = ledger.get_yearly_income_summary(2026)

        assert [(row.year, row.month, row.total_income) for row in summary] == [
            (2026, 2, Decimal("3000.00")),
            (2026, 3, Decimal("3149.99")),
        ]

    def test_year_without_income(self, ledger, seeded):
        assert ledger.get_yearly_income_summary(2025) == []

    def test_view_matches_in_process(self, ledger, store, views_store, activity):
        ledger.record_income(IncomeCreate(
            transaction_date=date(2026, 12, 31), amount=Decimal("0.10"), account_id=activity.bank,
        ))

        with store.session() as db:
            in_process = dashboard.get_yearly_income_summary(db, 2026)
        with views_store.session() as db:
            from_views = dashboard.get_yearly_income_summary(db, 2026, use_views=True)

        assert [row.model_dump() for row in from_views] == [row.model_dump() for row in in_process]
        assert [row.month for row in from_views] == [2, 3, 12]

    def test_invalid_year_rejected(self, ledger):
        with pytest.raises(ValidationError):
            ledger.get_yearly_income_summary(0)


class TestBudgets:
    """Tests for budgets and spending per category"""

    def test_upsert_replaces_amount(self, ledger, seeded):
        ledger.upsert_budgets([BudgetUpsert(category_id=seeded.food, amount=Decimal("300"))])
        budgets = ledger.upsert_budgets([BudgetUpsert(category_id=seeded.food, amount=Decimal("350"))])

        assert [(b.category_id, b.amount) for b in budgets] == [(seeded.food, Decimal("350.00"))]

    def test_spent_against_budget(self, ledger, activity):
        ledger.upsert_budgets([
            BudgetUpsert(category_id=activity.food, amount=Decimal("400")),
            BudgetUpsert(category_id=activity.transport, amount=Decimal("120")),
        ])

        rows = {row.category_name: row for row in ledger.get_budgets_by_category(2026, 3)}

        assert rows["TestFood"].spent == Decimal("100.00")
        assert rows["TestTransport"].spent == Decimal("0.00")
        assert "TestUtilities" not in rows


class TestDashboard:
    def test_dashboard_collects_period(self, ledger, activity):
        ledger.upsert_goals(YearlyGoalsUpsert(year=2026, savings_goal=Decimal("12000")))
        ledger.take_monthly_snapshot(2026, 3)

        board = ledger.get_dashboard(2026, 3)

        assert board.monthly.income == Decimal("3100.00")
        assert board.year_to_date.income == Decimal("6100.00")
        assert board.goals.savings_goal == Decimal("12000.00")
        assert board.latest_snapshot.month == 3
