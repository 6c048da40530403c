from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from fintrack.models.common import Page
from fintrack.models.income import IncomeCreate, IncomeResponse
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/incomes",
    tags=["incomes"],
)

@router.post("/", response_model=IncomeResponse, status_code=status.HTTP_201_CREATED)
def record_income(income: IncomeCreate, ledger: Ledger = Depends(get_ledger)):
    """
    Record money received into a fiat account.
    """
    return ledger.record_income(income)

@router.get("/", response_model=Page[IncomeResponse])
def read_incomes(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=500),
    account_id: Optional[int] = None,
    ledger: Ledger = Depends(get_ledger),
):
    return ledger.list_incomes(skip=skip, limit=limit, account_id=account_id)
