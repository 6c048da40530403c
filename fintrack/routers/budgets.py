from fastapi import APIRouter, Depends, Query
from datetime import date
from typing import List, Optional

from fintrack.models.budget import BudgetUpsert, BudgetResponse, BudgetByCategory
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/budgets",
    tags=["budgets"],
)

@router.put("/", response_model=List[BudgetResponse])
def upsert_budgets(budgets: List[BudgetUpsert], ledger: Ledger = Depends(get_ledger)):
    """
    Set the monthly budget of one or more categories.
    """
    return ledger.upsert_budgets(budgets)

@router.get("/", response_model=List[BudgetResponse])
def read_budgets(ledger: Ledger = Depends(get_ledger)):
    return ledger.list_budgets()

@router.get("/by-category", response_model=List[BudgetByCategory])
def read_budgets_by_category(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Budget and amount spent per category for a month (current month by default).
    """
    today = date.today()
    return ledger.get_budgets_by_category(year or today.year, month or today.month)
