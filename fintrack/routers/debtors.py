from fastapi import APIRouter, Depends, status
from typing import List

from fintrack.models.debt import DebtorCreate, DebtorResponse
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/debtors",
    tags=["debtors"],
)

@router.post("/", response_model=DebtorResponse, status_code=status.HTTP_201_CREATED)
def create_debtor(debtor: DebtorCreate, ledger: Ledger = Depends(get_ledger)):
    return ledger.create_debtor(debtor)

@router.get("/", response_model=List[DebtorResponse])
def read_debtors(ledger: Ledger = Depends(get_ledger)):
    return ledger.list_debtors()
