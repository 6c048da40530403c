"""
Multi-row postings. Each function writes every row of the posting through the
caller's session, so the surrounding LedgerStore.transaction() commits all of
them together or none of them.
"""
from sqlalchemy.orm import Session
from typing import Tuple

from fintrack.db.core import ExpenseDB, IncomeDB, DebtDB
from fintrack.models.expense import ExpenseCreate
from fintrack.models.income import IncomeCreate
from fintrack.models.debt import DebtCreate
from fintrack.crud import crud_expense, crud_income, crud_debt
from fintrack.crud.validation import validate_expense, validate_income, validate_debt


def create_expense_with_debt(
    db: Session, expense_data: ExpenseCreate, debt_data: DebtCreate
) -> Tuple[ExpenseDB, DebtDB]:
    """
    Record an expense paid on someone's behalf together with the debt it
    creates. The debt may cover only part of the expense.
    """
    validate_expense(expense_data)
    validate_debt(debt_data)

    db_expense = crud_expense.create_expense(db, expense_data)
    linked_debt = debt_data.model_copy(update={
        "expense_id": db_expense.id,
        "outbound": True,
        "account_id": debt_data.account_id if debt_data.account_id is not None else expense_data.account_id,
    })
    db_debt = crud_debt.create_debt(db, linked_debt)
    return db_expense, db_debt


def create_debt_repayment(
    db: Session, income_data: IncomeCreate, debt_data: DebtCreate
) -> Tuple[IncomeDB, DebtDB]:
    """Record money paid back by a debtor as an income plus an inbound debt row."""
    validate_income(income_data)
    validate_debt(debt_data)

    db_income = crud_income.create_income(db, income_data)
    linked_debt = debt_data.model_copy(update={
        "income_id": db_income.id,
        "outbound": False,
        "account_id": debt_data.account_id if debt_data.account_id is not None else income_data.account_id,
    })
    db_debt = crud_debt.create_debt(db, linked_debt)
    return db_income, db_debt
