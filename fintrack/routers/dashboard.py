from fastapi import APIRouter, Depends, Query
from datetime import date
from typing import List, Optional

from fintrack.models.dashboard import DashboardResponse, MonthlyIncomeSummary, PeriodTotals
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
)

@router.get("/", response_model=DashboardResponse)
def read_dashboard(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Month and year-to-date totals, budgets, goals and the latest net worth snapshot.
    """
    today = date.today()
    return ledger.get_dashboard(year or today.year, month or today.month)

@router.get("/monthly", response_model=PeriodTotals)
def read_monthly_totals(year: int, month: int, ledger: Ledger = Depends(get_ledger)):
    return ledger.get_monthly_totals(year, month)

@router.get("/ytd", response_model=PeriodTotals)
def read_year_to_date_totals(year: int, ledger: Ledger = Depends(get_ledger)):
    return ledger.get_year_to_date_totals(year)

@router.get("/income-by-month", response_model=List[MonthlyIncomeSummary])
def read_yearly_income_summary(year: int, ledger: Ledger = Depends(get_ledger)):
    """
    Income total for each month of the year that has income.
    """
    return ledger.get_yearly_income_summary(year)
