from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from fintrack.models.common import Page
from fintrack.models.investment import InvestmentMovementCreate, InvestmentMovementResponse
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/investments",
    tags=["investments"],
)

@router.post("/", response_model=InvestmentMovementResponse, status_code=status.HTTP_201_CREATED)
def record_investment_movement(movement: InvestmentMovementCreate, ledger: Ledger = Depends(get_ledger)):
    """
    Record a deposit into or withdrawal from an investment account. The
    account's capital moves by the same amount.
    """
    return ledger.record_investment_movement(movement)

@router.get("/", response_model=Page[InvestmentMovementResponse])
def read_investment_movements(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=500),
    investment_account_id: Optional[int] = None,
    ledger: Ledger = Depends(get_ledger),
):
    return ledger.list_investment_movements(skip=skip, limit=limit, investment_account_id=investment_account_id)
