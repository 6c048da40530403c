from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from fintrack.models.common import Page
from fintrack.models.debt import ExpenseWithDebtCreate, ExpenseWithDebtResponse
from fintrack.models.expense import ExpenseCreate, ExpenseResponse
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/expenses",
    tags=["expenses"],
)

@router.post("/", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def record_expense(expense: ExpenseCreate, ledger: Ledger = Depends(get_ledger)):
    """
    Record money spent from a fiat account.
    """
    return ledger.record_expense(expense)

@router.post("/with-debt", response_model=ExpenseWithDebtResponse, status_code=status.HTTP_201_CREATED)
def record_expense_with_debt(posting: ExpenseWithDebtCreate, ledger: Ledger = Depends(get_ledger)):
    """
    Record an expense paid partly or fully for someone else, together with the
    debt they now owe. Both rows are written or neither is.
    """
    expense, debt = ledger.post_expense_with_debt(posting.expense, posting.debt)
    return ExpenseWithDebtResponse(expense=expense, debt=debt)

@router.get("/", response_model=Page[ExpenseResponse])
def read_expenses(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=500),
    account_id: Optional[int] = None,
    category_id: Optional[int] = None,
    ledger: Ledger = Depends(get_ledger),
):
    return ledger.list_expenses(skip=skip, limit=limit, account_id=account_id, category_id=category_id)
