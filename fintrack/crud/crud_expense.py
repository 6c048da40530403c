from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import date
from decimal import Decimal
from typing import Optional, List, Tuple

from fintrack.db.core import ExpenseDB, money
from fintrack.models.expense import ExpenseCreate
from fintrack.crud.validation import validate_expense, require_account, require_category, flush_posting
from fintrack.logging_config import get_logger

logger = get_logger(__name__)

# ===== DATABASE OPERATIONS - EXPENSES =====

def create_expense(db: Session, expense_data: ExpenseCreate) -> ExpenseDB:
    """Insert an expense row. Runs inside the caller's transaction and does not commit."""
    validate_expense(expense_data)
    account = require_account(db, expense_data.account_id, expense_data.transaction_date)

    category_name = expense_data.category
    if expense_data.category_id is not None:
        category = require_category(db, expense_data.category_id)
        category_name = category_name or category.name

    db_expense = ExpenseDB(
        **expense_data.model_dump(exclude={"category", "account_type"}),
        category=category_name,
        account_type=expense_data.account_type or account.account_type,
    )
    db.add(db_expense)
    flush_posting(db)
    db.refresh(db_expense)

    logger.info(f"Recorded expense {db_expense.id}: {db_expense.amount} from account {db_expense.account_id}")
    return db_expense

def read_expense(db: Session, expense_id: int) -> Optional[ExpenseDB]:
    return db.query(ExpenseDB).filter(ExpenseDB.id == expense_id).first()

def read_expenses(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    account_id: Optional[int] = None,
    category_id: Optional[int] = None,
) -> Tuple[List[ExpenseDB], int]:
    query = db.query(ExpenseDB)
    if account_id is not None:
        query = query.filter(ExpenseDB.account_id == account_id)
    if category_id is not None:
        query = query.filter(ExpenseDB.category_id == category_id)

    total = query.count()
    items = query.order_by(ExpenseDB.transaction_date.desc(), ExpenseDB.id.desc()).offset(skip).limit(limit).all()
    return items, total

def sum_expenses(db: Session, start_date: date, end_date: date) -> Decimal:
    """Total spending dated in [start_date, end_date)."""
    total = db.query(func.coalesce(func.sum(ExpenseDB.amount), 0)).filter(
        ExpenseDB.transaction_date >= start_date,
        ExpenseDB.transaction_date < end_date,
    ).scalar()
    return money(total)
