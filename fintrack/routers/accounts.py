from fastapi import APIRouter, Depends, status
from typing import List

from fintrack.models.account import (
    AccountCreate,
    AccountResponse,
    AccountExpectedBalance,
    ExpectedBalanceResponse,
    ReconcileRequest,
    ReconcileResponse,
)
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/accounts",
    tags=["accounts"],
)

@router.post("/", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(account: AccountCreate, ledger: Ledger = Depends(get_ledger)):
    """
    Create a fiat account. Its real balance starts at the starting balance.
    """
    return ledger.create_account(account)

@router.get("/", response_model=List[AccountResponse])
def read_accounts(ledger: Ledger = Depends(get_ledger)):
    return ledger.list_accounts()

@router.get("/expected-balances", response_model=List[AccountExpectedBalance])
def read_expected_balances(ledger: Ledger = Depends(get_ledger)):
    """
    Expected balance of every fiat account replayed from the transaction log,
    next to the real balance and the discrepancy between them.
    """
    return ledger.get_account_expected_balance_report()

@router.post("/reconcile", response_model=ReconcileResponse)
def reconcile_accounts(request: ReconcileRequest, ledger: Ledger = Depends(get_ledger)):
    """
    Store real balances read from the banks and brokers, then refresh this
    month's net worth snapshot.
    """
    return ledger.set_real_balances(request)

@router.get("/{account_id}", response_model=AccountResponse)
def read_account(account_id: int, ledger: Ledger = Depends(get_ledger)):
    return ledger.get_account(account_id)

@router.get("/{account_id}/expected-balance", response_model=ExpectedBalanceResponse)
def read_expected_balance(account_id: int, ledger: Ledger = Depends(get_ledger)):
    row = ledger.get_account_expected_balance(account_id)
    return ExpectedBalanceResponse(
        account_id=account_id,
        expected_balance=row.expected_balance,
        discrepancy=row.discrepancy,
    )
