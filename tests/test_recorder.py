from datetime import date
from decimal import Decimal

import pytest

from fintrack.crud import crud_investment
from fintrack.db.core import ValidationError, UnknownReferenceError, ExpenseDB, IncomeDB, InvestmentMovementDB
from fintrack.models.debt import DebtCreate
from fintrack.models.expense import ExpenseCreate
from fintrack.models.income import IncomeCreate
from fintrack.models.investment import InvestmentMovementCreate
from fintrack.models.transfer import TransferCreate

POSTED = date(2026, 2, 10)


def count(store, table):
    with store.session() as db:
        return db.query(table).count()


class TestIncome:
    """Tests for recording incomes"""

    def test_income_raises_expected_balance(self, ledger, seeded):
        """An income adds its amount to the account's expected balance"""
        ledger.record_income(IncomeCreate(transaction_date=POSTED, amount=Decimal("250.00"), account_id=seeded.bank))

        assert ledger.get_expected_balance(seeded.bank) == Decimal("1250.00")

    def test_income_amount_is_stored_to_cents(self, ledger, seeded):
        income = ledger.record_income(IncomeCreate(
            transaction_date=POSTED, amount=Decimal("10.499"), account_id=seeded.bank, description="Refund",
        ))

        assert income.amount == Decimal("10.50")
        assert income.description == "Refund"

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    def test_non_positive_income_rejected(self, ledger, store, seeded, amount):
        """Zero and negative incomes never reach the ledger"""
        with pytest.raises(ValidationError):
            ledger.record_income(IncomeCreate(transaction_date=POSTED, amount=Decimal(amount), account_id=seeded.bank))

        assert count(store, IncomeDB) == 0
        assert ledger.get_expected_balance(seeded.bank) == Decimal("1000.00")

    def test_unknown_account_rejected(self, ledger, store, seeded):
        with pytest.raises(UnknownReferenceError):
            ledger.record_income(IncomeCreate(transaction_date=POSTED, amount=Decimal("5.00"), account_id=999))

        assert count(store, IncomeDB) == 0

    def test_posting_before_starting_date_rejected(self, ledger, seeded):
        """Postings dated before the account's starting balance are refused"""
        with pytest.raises(ValidationError):
            ledger.record_income(IncomeCreate(
                transaction_date=date(2025, 12, 31), amount=Decimal("5.00"), account_id=seeded.bank,
            ))


class TestExpense:
    """Tests for recording expenses"""

    def test_expense_lowers_expected_balance(self, ledger, seeded):
        ledger.record_expense(ExpenseCreate(
            transaction_date=POSTED, amount=Decimal("150.00"), account_id=seeded.bank, category_id=seeded.food,
        ))

        assert ledger.get_expected_balance(seeded.bank) == Decimal("850.00")

    def test_expense_defaults_from_references(self, ledger, seeded):
        """Category name and account type are filled in when omitted"""
        expense = ledger.record_expense(ExpenseCreate(
            transaction_date=POSTED, amount=Decimal("20.00"), account_id=seeded.bank, category_id=seeded.food,
        ))

        assert expense.category == "TestFood"
        assert expense.account_type == "Fiat"

    def test_unknown_category_rejected(self, ledger, store, seeded):
        with pytest.raises(UnknownReferenceError):
            ledger.record_expense(ExpenseCreate(
                transaction_date=POSTED, amount=Decimal("20.00"), account_id=seeded.bank, category_id=999,
            ))

        assert count(store, ExpenseDB) == 0

    def test_negative_expense_rejected(self, ledger, seeded):
        with pytest.raises(ValidationError):
            ledger.record_expense(ExpenseCreate(
                transaction_date=POSTED, amount=Decimal("-20.00"), account_id=seeded.bank,
            ))

        assert ledger.get_expected_balance(seeded.bank) == Decimal("1000.00")

    def test_expenses_only_touch_their_account(self, ledger, seeded):
        """Postings on one account leave every other account's expected balance alone"""
        ledger.record_expense(ExpenseCreate(transaction_date=POSTED, amount=Decimal("99.99"), account_id=seeded.bank))

        assert ledger.get_expected_balance(seeded.savings) == Decimal("500.00")
        assert ledger.get_expected_balance(seeded.cop) == Decimal("2000000.00")

    def test_list_expenses_paginates_newest_first(self, ledger, seeded):
        for day in range(1, 6):
            ledger.record_expense(ExpenseCreate(
                transaction_date=date(2026, 2, day), amount=Decimal("1.00"), account_id=seeded.bank,
            ))

        page = ledger.list_expenses(skip=1, limit=2)

        assert page.total == 5
        assert [e.transaction_date for e in page.items] == [date(2026, 2, 4), date(2026, 2, 3)]


class TestInvestmentMovement:
    """Tests for deposits into and withdrawals from investment accounts"""

    def test_deposit_raises_capital_and_funds_from_source(self, ledger, seeded):
        ledger.record_investment_movement(InvestmentMovementCreate(
            transaction_date=POSTED, amount=Decimal("200.00"), investment_account_id=seeded.crypto,
            kind="deposit", source_account_id=seeded.bank,
        ))

        assert ledger.get_investment_capital(seeded.crypto) == Decimal("1000.00")
        assert ledger.get_expected_balance(seeded.bank) == Decimal("800.00")

    def test_withdrawal_lowers_capital_and_returns_to_account(self, ledger, seeded):
        movement = ledger.record_investment_movement(InvestmentMovementCreate(
            transaction_date=POSTED, amount=Decimal("300.00"), investment_account_id=seeded.broker,
            kind="Withdrawal", source_account_id=seeded.savings,
        ))

        assert movement.kind.value == "withdrawal"
        assert ledger.get_investment_capital(seeded.broker) == Decimal("3700.00")
        assert ledger.get_expected_balance(seeded.savings) == Decimal("800.00")

    def test_movement_without_source_account_only_moves_capital(self, ledger, seeded):
        ledger.record_investment_movement(InvestmentMovementCreate(
            transaction_date=POSTED, amount=Decimal("50.00"), investment_account_id=seeded.crypto, kind="DEPOSIT",
        ))

        assert ledger.get_investment_capital(seeded.crypto) == Decimal("850.00")
        assert ledger.get_expected_balance(seeded.bank) == Decimal("1000.00")

    def test_deposit_then_partial_withdrawal(self, ledger, seeded):
        ledger.record_investment_movement(InvestmentMovementCreate(
            transaction_date=POSTED, amount=Decimal("300.00"), investment_account_id=seeded.crypto,
            kind="deposit", source_account_id=seeded.bank,
        ))
        assert ledger.get_investment_capital(seeded.crypto) == Decimal("1100.00")
        assert ledger.get_expected_balance(seeded.bank) == Decimal("700.00")

        ledger.record_investment_movement(InvestmentMovementCreate(
            transaction_date=POSTED, amount=Decimal("100.00"), investment_account_id=seeded.crypto,
            kind="withdrawal", source_account_id=seeded.bank,
        ))
        assert ledger.get_investment_capital(seeded.crypto) == Decimal("1000.00")
        assert ledger.get_expected_balance(seeded.bank) == Decimal("800.00")

    def test_failed_capital_update_rolls_back_movement(self, ledger, store, seeded, monkeypatch):
        """A movement row flushed before the capital update fails is not kept"""
        def fail_capital_update(db, investment_account_id, delta):
            raise UnknownReferenceError(f"Investment account {investment_account_id} not found")

        monkeypatch.setattr(crud_investment, "adjust_capital", fail_capital_update)

        with pytest.raises(UnknownReferenceError):
            ledger.record_investment_movement(InvestmentMovementCreate(
                transaction_date=POSTED, amount=Decimal("200.00"), investment_account_id=seeded.crypto,
                kind="deposit", source_account_id=seeded.bank,
            ))

        assert count(store, InvestmentMovementDB) == 0
        assert ledger.get_investment_capital(seeded.crypto) == Decimal("800.00")
        assert ledger.get_expected_balance(seeded.bank) == Decimal("1000.00")

    def test_unknown_kind_rejected(self, ledger, seeded):
        with pytest.raises(ValidationError):
            ledger.record_investment_movement(InvestmentMovementCreate(
                transaction_date=POSTED, amount=Decimal("50.00"), investment_account_id=seeded.crypto, kind="gift",
            ))

        assert ledger.get_investment_capital(seeded.crypto) == Decimal("800.00")

    def test_unknown_investment_account_rejected(self, ledger, seeded):
        with pytest.raises(UnknownReferenceError):
            ledger.record_investment_movement(InvestmentMovementCreate(
                transaction_date=POSTED, amount=Decimal("50.00"), investment_account_id=999, kind="deposit",
            ))


class TestTransfer:
    """Tests for transfers between fiat accounts"""

    def test_transfer_moves_expected_balance(self, ledger, seeded):
        ledger.record_transfer(TransferCreate(
            transaction_date=POSTED, source_account_id=seeded.bank, source_amount=Decimal("100.00"),
            dest_account_id=seeded.savings, dest_amount=Decimal("100.00"),
        ))

        assert ledger.get_expected_balance(seeded.bank) == Decimal("900.00")
        assert ledger.get_expected_balance(seeded.savings) == Decimal("600.00")

    def test_cross_currency_transfer_derives_rate(self, ledger, seeded):
        transfer = ledger.record_transfer(TransferCreate(
            transaction_date=POSTED, source_account_id=seeded.bank, source_amount=Decimal("100.00"),
            dest_account_id=seeded.cop, dest_amount=Decimal("400000.00"),
        ))

        assert transfer.exchange_rate == Decimal("4000")
        assert ledger.get_expected_balance(seeded.cop) == Decimal("2400000.00")

    def test_supplied_rate_is_kept(self, ledger, seeded):
        transfer = ledger.record_transfer(TransferCreate(
            transaction_date=POSTED, source_account_id=seeded.bank, source_amount=Decimal("100.00"),
            dest_account_id=seeded.cop, dest_amount=Decimal("395000.00"), exchange_rate=Decimal("3950.5"),
        ))

        assert transfer.exchange_rate == Decimal("3950.5")

    def test_transfer_to_same_account_rejected(self, ledger, seeded):
        with pytest.raises(ValidationError):
            ledger.record_transfer(TransferCreate(
                transaction_date=POSTED, source_account_id=seeded.bank, source_amount=Decimal("10.00"),
                dest_account_id=seeded.bank, dest_amount=Decimal("10.00"),
            ))


class TestDebt:
    """Tests for standalone debt rows"""

    def test_debt_does_not_touch_balances(self, ledger, seeded):
        debt = ledger.record_debt(DebtCreate(
            transaction_date=POSTED, amount=Decimal("40.00"), debtor_id=seeded.john, account_id=seeded.bank,
        ))

        assert debt.debtor_name == "TestJohn"
        assert ledger.get_expected_balance(seeded.bank) == Decimal("1000.00")

    def test_unknown_debtor_rejected(self, ledger, seeded):
        with pytest.raises(UnknownReferenceError):
            ledger.record_debt(DebtCreate(transaction_date=POSTED, amount=Decimal("40.00"), debtor_id=999))
