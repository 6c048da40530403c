from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from fintrack.models.net_worth import NetWorthSnapshotData, NetWorthSnapshotResponse
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/net-worth",
    tags=["net-worth"],
)

@router.get("/", response_model=List[NetWorthSnapshotResponse])
def read_net_worth_history(ledger: Ledger = Depends(get_ledger)):
    """
    Every stored monthly snapshot, oldest first.
    """
    return ledger.get_net_worth_history()

@router.get("/compute", response_model=NetWorthSnapshotData)
def compute_net_worth(year: int, month: int, ledger: Ledger = Depends(get_ledger)):
    """
    Compute a snapshot from the current balances without storing it.
    """
    return ledger.compute_snapshot(year, month)

@router.post("/snapshot", response_model=NetWorthSnapshotResponse)
def take_net_worth_snapshot(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Compute and store the snapshot of a month (current month by default),
    replacing any earlier snapshot of that month.
    """
    return ledger.take_monthly_snapshot(year, month)

@router.get("/{year}/{month}", response_model=NetWorthSnapshotResponse)
def read_net_worth_snapshot(year: int, month: int, ledger: Ledger = Depends(get_ledger)):
    return ledger.get_snapshot(year, month)
