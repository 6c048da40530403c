from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple

from fintrack.db.core import (
    AccountDB,
    InvestmentAccountDB,
    InvestmentAccountType,
    NotFoundError,
    ConflictError,
    utcnow,
)
from fintrack.models.account import AccountCreate, InvestmentAccountCreate, RealBalanceUpdate
from fintrack.logging_config import get_logger

logger = get_logger(__name__)

# ===== DATABASE OPERATIONS - FIAT ACCOUNTS =====

def create_db_account(db: Session, account_data: AccountCreate) -> AccountDB:
    """Create a fiat account whose real balance starts at its starting balance."""
    existing = db.query(AccountDB).filter(AccountDB.name == account_data.name).first()
    if existing:
        raise ConflictError(f"Account with name '{account_data.name}' already exists")

    db_account = AccountDB(
        **account_data.model_dump(),
        balance=account_data.starting_balance,
    )
    db.add(db_account)
    try:
        db.flush()
    except IntegrityError as e:
        raise ConflictError(f"Account with name '{account_data.name}' already exists") from e
    db.refresh(db_account)
    return db_account

def read_db_account(db: Session, account_id: int) -> Optional[AccountDB]:
    return db.query(AccountDB).filter(AccountDB.id == account_id).first()

def read_db_accounts(db: Session) -> List[AccountDB]:
    return db.query(AccountDB).order_by(AccountDB.id).all()

# ===== DATABASE OPERATIONS - INVESTMENT ACCOUNTS =====

def create_db_investment_account(db: Session, account_data: InvestmentAccountCreate) -> InvestmentAccountDB:
    """Create an investment account; capital and balance start at the starting capital."""
    existing = db.query(InvestmentAccountDB).filter(InvestmentAccountDB.name == account_data.name).first()
    if existing:
        raise ConflictError(f"Investment account with name '{account_data.name}' already exists")

    db_account = InvestmentAccountDB(
        **account_data.model_dump(exclude={"subtype"}),
        subtype=InvestmentAccountType(account_data.subtype.value),
        capital=account_data.starting_capital,
        balance=account_data.starting_capital,
    )
    db.add(db_account)
    try:
        db.flush()
    except IntegrityError as e:
        raise ConflictError(f"Investment account with name '{account_data.name}' already exists") from e
    db.refresh(db_account)
    return db_account

def read_db_investment_account(db: Session, investment_account_id: int) -> Optional[InvestmentAccountDB]:
    return db.query(InvestmentAccountDB).filter(InvestmentAccountDB.id == investment_account_id).first()

def read_db_investment_accounts(db: Session) -> List[InvestmentAccountDB]:
    return db.query(InvestmentAccountDB).order_by(InvestmentAccountDB.id).all()

# ===== REAL BALANCE RECONCILIATION =====

def update_real_balances(
    db: Session,
    accounts: List[RealBalanceUpdate],
    investment_accounts: List[RealBalanceUpdate],
) -> Tuple[List[AccountDB], List[InvestmentAccountDB]]:
    """
    Overwrite the manually reconciled balances. Any unknown id raises
    NotFoundError, which rolls back every update made in the same transaction.
    """
    now = utcnow()

    updated_accounts = []
    for update in accounts:
        db_account = db.get(AccountDB, update.id)
        if db_account is None:
            raise NotFoundError(f"Account {update.id} not found")
        db_account.balance = update.balance
        db_account.balance_last_updated = now
        updated_accounts.append(db_account)

    updated_investment_accounts = []
    for update in investment_accounts:
        db_investment_account = db.get(InvestmentAccountDB, update.id)
        if db_investment_account is None:
            raise NotFoundError(f"Investment account {update.id} not found")
        db_investment_account.balance = update.balance
        db_investment_account.balance_last_updated = now
        updated_investment_accounts.append(db_investment_account)

    db.flush()
    for db_account in updated_accounts:
        db.refresh(db_account)
    for db_investment_account in updated_investment_accounts:
        db.refresh(db_investment_account)

    logger.info(
        f"Updated real balances for {len(updated_accounts)} account(s) and "
        f"{len(updated_investment_accounts)} investment account(s)"
    )
    return updated_accounts, updated_investment_accounts
