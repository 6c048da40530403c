from sqlalchemy import func, update
from sqlalchemy.orm import Session
from datetime import date
from decimal import Decimal
from typing import Optional, List, Tuple

from fintrack.db.core import (
    InvestmentAccountDB,
    InvestmentMovementDB,
    InvestmentMovementType,
    UnknownReferenceError,
    money,
)
from fintrack.models.investment import InvestmentMovementCreate
from fintrack.crud.validation import (
    validate_investment_movement,
    require_account,
    require_investment_account,
    flush_posting,
)
from fintrack.logging_config import get_logger

logger = get_logger(__name__)

# ===== DATABASE OPERATIONS - MOVEMENTS =====

def create_investment_movement(db: Session, movement_data: InvestmentMovementCreate) -> InvestmentMovementDB:
    """
    Insert a deposit or withdrawal and move the account's capital by the same
    amount. Both statements run in the caller's transaction.
    """
    kind = validate_investment_movement(movement_data)
    require_investment_account(db, movement_data.investment_account_id)
    if movement_data.source_account_id is not None:
        require_account(db, movement_data.source_account_id, movement_data.transaction_date)

    db_movement = InvestmentMovementDB(**movement_data.model_dump(exclude={"kind"}), kind=kind)
    db.add(db_movement)
    flush_posting(db)

    delta = movement_data.amount if kind == InvestmentMovementType.DEPOSIT else -movement_data.amount
    adjust_capital(db, movement_data.investment_account_id, delta)
    db.refresh(db_movement)

    logger.info(
        f"Recorded investment {kind.value} {db_movement.id}: {db_movement.amount} "
        f"on investment account {db_movement.investment_account_id}"
    )
    return db_movement

def adjust_capital(db: Session, investment_account_id: int, delta: Decimal) -> None:
    # Single SQL-side increment so concurrent movements never lose an update
    result = db.execute(
        update(InvestmentAccountDB)
        .where(InvestmentAccountDB.id == investment_account_id)
        .values(capital=InvestmentAccountDB.capital + delta)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise UnknownReferenceError(f"Investment account {investment_account_id} does not exist")

    investment_account = db.get(InvestmentAccountDB, investment_account_id)
    if investment_account is not None:
        db.refresh(investment_account)

def read_investment_capital(db: Session, investment_account_id: int) -> Decimal:
    investment_account = require_investment_account(db, investment_account_id)
    return money(investment_account.capital)

def read_investment_movements(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    investment_account_id: Optional[int] = None,
) -> Tuple[List[InvestmentMovementDB], int]:
    query = db.query(InvestmentMovementDB)
    if investment_account_id is not None:
        query = query.filter(InvestmentMovementDB.investment_account_id == investment_account_id)

    total = query.count()
    items = query.order_by(
        InvestmentMovementDB.transaction_date.desc(), InvestmentMovementDB.id.desc()
    ).offset(skip).limit(limit).all()
    return items, total

def sum_investment_deposits(db: Session, start_date: date, end_date: date) -> Decimal:
    """Total deposited into investment accounts in [start_date, end_date)."""
    total = db.query(func.coalesce(func.sum(InvestmentMovementDB.amount), 0)).filter(
        InvestmentMovementDB.kind == InvestmentMovementType.DEPOSIT,
        InvestmentMovementDB.transaction_date >= start_date,
        InvestmentMovementDB.transaction_date < end_date,
    ).scalar()
    return money(total)
