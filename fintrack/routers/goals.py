from fastapi import APIRouter, Depends, Query
from datetime import date
from typing import Optional

from fintrack.models.goals import YearlyGoalsUpsert, YearlyGoalsResponse
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/goals",
    tags=["goals"],
)

@router.get("/", response_model=YearlyGoalsResponse)
def read_goals(year: Optional[int] = Query(None), ledger: Ledger = Depends(get_ledger)):
    """
    Goals of a year (current year by default). All zero when none were set.
    """
    return ledger.get_goals(year or date.today().year)

@router.put("/", response_model=YearlyGoalsResponse)
def upsert_goals(goals: YearlyGoalsUpsert, ledger: Ledger = Depends(get_ledger)):
    return ledger.upsert_goals(goals)
