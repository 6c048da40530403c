from fastapi import APIRouter, Depends, status
from typing import List

from fintrack.models.account import (
    InvestmentAccountCreate,
    InvestmentAccountResponse,
    InvestmentAccountSummary,
)
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/investment-accounts",
    tags=["investment-accounts"],
)

@router.post("/", response_model=InvestmentAccountResponse, status_code=status.HTTP_201_CREATED)
def create_investment_account(account: InvestmentAccountCreate, ledger: Ledger = Depends(get_ledger)):
    return ledger.create_investment_account(account)

@router.get("/", response_model=List[InvestmentAccountResponse])
def read_investment_accounts(ledger: Ledger = Depends(get_ledger)):
    return ledger.list_investment_accounts()

@router.get("/summary", response_model=List[InvestmentAccountSummary])
def read_investment_summary(ledger: Ledger = Depends(get_ledger)):
    """
    PnL of every investment account: real balance minus capital, and that
    difference as a percentage of capital.
    """
    return ledger.get_investment_summary()

@router.get("/{investment_account_id}", response_model=InvestmentAccountResponse)
def read_investment_account(investment_account_id: int, ledger: Ledger = Depends(get_ledger)):
    return ledger.get_investment_account(investment_account_id)
