from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from fintrack.models.common import Page
from fintrack.models.debt import (
    DebtCreate,
    DebtResponse,
    DebtByDebtor,
    DebtRepaymentCreate,
    DebtRepaymentResponse,
)
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/debts",
    tags=["debts"],
)

@router.post("/", response_model=DebtResponse, status_code=status.HTTP_201_CREATED)
def record_debt(debt: DebtCreate, ledger: Ledger = Depends(get_ledger)):
    """
    Record a standalone debt movement. Does not change any account balance.
    """
    return ledger.record_debt(debt)

@router.post("/repayment", response_model=DebtRepaymentResponse, status_code=status.HTTP_201_CREATED)
def record_debt_repayment(posting: DebtRepaymentCreate, ledger: Ledger = Depends(get_ledger)):
    """
    Record money paid back by a debtor: an income plus an inbound debt row.
    """
    income, debt = ledger.post_debt_repayment(posting.income, posting.debt)
    return DebtRepaymentResponse(income=income, debt=debt)

@router.get("/by-debtor", response_model=List[DebtByDebtor])
def read_debts_by_debtor(ledger: Ledger = Depends(get_ledger)):
    return ledger.get_debts_by_debtor()

@router.get("/", response_model=Page[DebtResponse])
def read_debts(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=500),
    debtor_id: Optional[int] = None,
    ledger: Ledger = Depends(get_ledger),
):
    return ledger.list_debts(skip=skip, limit=limit, debtor_id=debtor_id)
