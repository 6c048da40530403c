from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from fintrack.models.common import Page
from fintrack.models.transfer import TransferCreate, TransferResponse
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/transfers",
    tags=["transfers"],
)

@router.post("/", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
def record_transfer(transfer: TransferCreate, ledger: Ledger = Depends(get_ledger)):
    """
    Move money between two fiat accounts, possibly across currencies.
    """
    return ledger.record_transfer(transfer)

@router.get("/", response_model=Page[TransferResponse])
def read_transfers(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=500),
    account_id: Optional[int] = None,
    ledger: Ledger = Depends(get_ledger),
):
    return ledger.list_transfers(skip=skip, limit=limit, account_id=account_id)
