"""
Posting rules checked before anything is written.

The pure checks (amounts, kinds, distinct transfer ends, period) need no
session and run first. Reference checks load the referenced rows inside the
caller's transaction so a missing row aborts the unit of work before its
first insert.
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import date
from decimal import Decimal
from typing import Optional

from fintrack.db.core import (
    AccountDB,
    InvestmentAccountDB,
    DebtorDB,
    CategoryDB,
    IncomeDB,
    ExpenseDB,
    InvestmentMovementType,
    ValidationError,
    UnknownReferenceError,
)
from fintrack.models.income import IncomeCreate
from fintrack.models.expense import ExpenseCreate
from fintrack.models.investment import InvestmentMovementCreate
from fintrack.models.transfer import TransferCreate
from fintrack.models.debt import DebtCreate

# ===== PURE CHECKS =====

def validate_positive_amount(amount: Optional[Decimal], label: str) -> None:
    if amount is None or amount <= 0:
        raise ValidationError(f"{label} must be greater than zero, got {amount}")


def parse_movement_kind(kind: str) -> InvestmentMovementType:
    normalized = (kind or "").strip().lower()
    for member in InvestmentMovementType:
        if member.value == normalized:
            return member
    raise ValidationError(f"Investment movement kind must be 'deposit' or 'withdrawal', got '{kind}'")


def validate_period(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    if year < 1:
        raise ValidationError(f"Year must be positive, got {year}")


def validate_income(income_data: IncomeCreate) -> None:
    validate_positive_amount(income_data.amount, "Income amount")


def validate_expense(expense_data: ExpenseCreate) -> None:
    validate_positive_amount(expense_data.amount, "Expense amount")


def validate_debt(debt_data: DebtCreate) -> None:
    validate_positive_amount(debt_data.amount, "Debt amount")


def validate_investment_movement(movement_data: InvestmentMovementCreate) -> InvestmentMovementType:
    kind = parse_movement_kind(movement_data.kind)
    validate_positive_amount(movement_data.amount, "Investment amount")
    return kind


def validate_transfer(transfer_data: TransferCreate) -> None:
    validate_positive_amount(transfer_data.source_amount, "Transfer source amount")
    validate_positive_amount(transfer_data.dest_amount, "Transfer destination amount")
    if transfer_data.source_account_id == transfer_data.dest_account_id:
        raise ValidationError("Transfer source and destination accounts must differ")

# ===== REFERENCE CHECKS =====

def require_account(db: Session, account_id: int, posting_date: Optional[date] = None) -> AccountDB:
    """Load a fiat account, rejecting postings dated before its starting date."""
    account = db.get(AccountDB, account_id)
    if account is None:
        raise UnknownReferenceError(f"Account {account_id} does not exist")
    if posting_date is not None and posting_date < account.starting_date:
        raise ValidationError(
            f"Posting date {posting_date} is before the starting date {account.starting_date} "
            f"of account '{account.name}'"
        )
    return account


def require_investment_account(db: Session, investment_account_id: int) -> InvestmentAccountDB:
    investment_account = db.get(InvestmentAccountDB, investment_account_id)
    if investment_account is None:
        raise UnknownReferenceError(f"Investment account {investment_account_id} does not exist")
    return investment_account


def require_debtor(db: Session, debtor_id: int) -> DebtorDB:
    debtor = db.get(DebtorDB, debtor_id)
    if debtor is None:
        raise UnknownReferenceError(f"Debtor {debtor_id} does not exist")
    return debtor


def require_category(db: Session, category_id: int) -> CategoryDB:
    category = db.get(CategoryDB, category_id)
    if category is None:
        raise UnknownReferenceError(f"Category {category_id} does not exist")
    return category


def require_income(db: Session, income_id: int) -> IncomeDB:
    income = db.get(IncomeDB, income_id)
    if income is None:
        raise UnknownReferenceError(f"Income {income_id} does not exist")
    return income


def require_expense(db: Session, expense_id: int) -> ExpenseDB:
    expense = db.get(ExpenseDB, expense_id)
    if expense is None:
        raise UnknownReferenceError(f"Expense {expense_id} does not exist")
    return expense


def flush_posting(db: Session) -> None:
    """Flush pending inserts, reporting foreign key violations as unknown references."""
    try:
        db.flush()
    except IntegrityError as e:
        raise UnknownReferenceError(f"Posting references a missing row: {e.orig}") from e
