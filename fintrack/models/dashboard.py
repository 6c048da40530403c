from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal

from fintrack.models.budget import BudgetByCategory
from fintrack.models.goals import YearlyGoalsResponse
from fintrack.models.net_worth import NetWorthSnapshotResponse


class PeriodTotals(BaseModel):
    """Income, spending and investment deposits over a month or year to date."""
    income: Decimal
    expenses: Decimal
    investment_deposits: Decimal
    savings: Decimal


class DashboardResponse(BaseModel):
    year: int
    month: int
    monthly: PeriodTotals
    year_to_date: PeriodTotals
    goals: YearlyGoalsResponse
    budgets: List[BudgetByCategory]
    latest_snapshot: Optional[NetWorthSnapshotResponse] = None


class MonthlyIncomeSummary(BaseModel):
    year: int
    month: int
    total_income: Decimal
