from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional, List, Tuple

from fintrack.db.core import DebtDB, DebtorDB, ConflictError
from fintrack.models.debt import DebtCreate, DebtorCreate
from fintrack.crud.validation import (
    validate_debt,
    require_account,
    require_debtor,
    require_expense,
    require_income,
    flush_posting,
)
from fintrack.logging_config import get_logger

logger = get_logger(__name__)

# ===== DATABASE OPERATIONS - DEBTORS =====

def create_debtor(db: Session, debtor_data: DebtorCreate) -> DebtorDB:
    existing = db.query(DebtorDB).filter(DebtorDB.name == debtor_data.name).first()
    if existing:
        raise ConflictError(f"Debtor '{debtor_data.name}' already exists")

    db_debtor = DebtorDB(**debtor_data.model_dump())
    db.add(db_debtor)
    try:
        db.flush()
    except IntegrityError as e:
        raise ConflictError(f"Debtor '{debtor_data.name}' already exists") from e
    db.refresh(db_debtor)
    return db_debtor

def read_debtor(db: Session, debtor_id: int) -> Optional[DebtorDB]:
    return db.query(DebtorDB).filter(DebtorDB.id == debtor_id).first()

def read_debtors(db: Session) -> List[DebtorDB]:
    return db.query(DebtorDB).order_by(DebtorDB.name).all()

# ===== DATABASE OPERATIONS - DEBTS =====

def create_debt(db: Session, debt_data: DebtCreate) -> DebtDB:
    """
    Insert a debt row. Debts only track who owes what and never move an
    account's expected balance.
    """
    validate_debt(debt_data)
    debtor = require_debtor(db, debt_data.debtor_id)
    if debt_data.account_id is not None:
        require_account(db, debt_data.account_id)
    if debt_data.expense_id is not None:
        require_expense(db, debt_data.expense_id)
    if debt_data.income_id is not None:
        require_income(db, debt_data.income_id)

    db_debt = DebtDB(
        **debt_data.model_dump(exclude={"debtor_name"}),
        debtor_name=debt_data.debtor_name or debtor.name,
    )
    db.add(db_debt)
    flush_posting(db)
    db.refresh(db_debt)

    direction = "lent to" if db_debt.outbound else "received from"
    logger.info(f"Recorded debt {db_debt.id}: {db_debt.amount} {direction} debtor {db_debt.debtor_id}")
    return db_debt

def read_debts(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    debtor_id: Optional[int] = None,
) -> Tuple[List[DebtDB], int]:
    query = db.query(DebtDB)
    if debtor_id is not None:
        query = query.filter(DebtDB.debtor_id == debtor_id)

    total = query.count()
    items = query.order_by(DebtDB.transaction_date.desc(), DebtDB.id.desc()).offset(skip).limit(limit).all()
    return items, total
