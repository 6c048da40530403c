from sqlalchemy import extract, func
from sqlalchemy.orm import Session
from datetime import date
from decimal import Decimal
from typing import Optional, List, Tuple

from fintrack.db.core import IncomeDB, money
from fintrack.models.income import IncomeCreate
from fintrack.crud.validation import validate_income, require_account, flush_posting
from fintrack.logging_config import get_logger

logger = get_logger(__name__)

# ===== DATABASE OPERATIONS - INCOMES =====

def create_income(db: Session, income_data: IncomeCreate) -> IncomeDB:
    """Insert an income row. Runs inside the caller's transaction and does not commit."""
    validate_income(income_data)
    require_account(db, income_data.account_id, income_data.transaction_date)

    db_income = IncomeDB(**income_data.model_dump())
    db.add(db_income)
    flush_posting(db)
    db.refresh(db_income)

    logger.info(f"Recorded income {db_income.id}: {db_income.amount} into account {db_income.account_id}")
    return db_income

def read_income(db: Session, income_id: int) -> Optional[IncomeDB]:
    return db.query(IncomeDB).filter(IncomeDB.id == income_id).first()

def read_incomes(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    account_id: Optional[int] = None,
) -> Tuple[List[IncomeDB], int]:
    query = db.query(IncomeDB)
    if account_id is not None:
        query = query.filter(IncomeDB.account_id == account_id)

    total = query.count()
    items = query.order_by(IncomeDB.transaction_date.desc(), IncomeDB.id.desc()).offset(skip).limit(limit).all()
    return items, total

def sum_incomes(db: Session, start_date: date, end_date: date) -> Decimal:
    """Total income dated in [start_date, end_date)."""
    total = db.query(func.coalesce(func.sum(IncomeDB.amount), 0)).filter(
        IncomeDB.transaction_date >= start_date,
        IncomeDB.transaction_date < end_date,
    ).scalar()
    return money(total)


def read_monthly_income_totals(db: Session, year: int) -> List[Tuple[int, Decimal]]:
    """(month, total) for every month of the year that has at least one income, in month order."""
    month = extract("month", IncomeDB.transaction_date)
    rows = db.query(month, func.sum(IncomeDB.amount)).filter(
        IncomeDB.transaction_date >= date(year, 1, 1),
        IncomeDB.transaction_date < date(year + 1, 1, 1),
    ).group_by(month).order_by(month).all()
    return [(int(row_month), money(total)) for row_month, total in rows]
