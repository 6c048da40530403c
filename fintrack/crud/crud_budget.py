from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import date
from typing import List

from fintrack.db.core import BudgetDB, CategoryDB, ExpenseDB, money
from fintrack.models.budget import BudgetUpsert, BudgetByCategory
from fintrack.crud.validation import require_category

# ===== DATABASE OPERATIONS - BUDGETS =====

def upsert_db_budget(db: Session, budget_data: BudgetUpsert) -> BudgetDB:
    """Set the monthly budget of a category, replacing any previous amount."""
    require_category(db, budget_data.category_id)

    db_budget = db.query(BudgetDB).filter(BudgetDB.category_id == budget_data.category_id).first()
    if db_budget:
        db_budget.amount = budget_data.amount
    else:
        db_budget = BudgetDB(**budget_data.model_dump())
        db.add(db_budget)

    db.flush()
    db.refresh(db_budget)
    return db_budget

def read_db_budgets(db: Session) -> List[BudgetDB]:
    return db.query(BudgetDB).order_by(BudgetDB.category_id).all()

def read_budgets_by_category(db: Session, start_date: date, end_date: date) -> List[BudgetByCategory]:
    """Each budgeted category with what was spent against it in [start_date, end_date)."""
    spent = (
        db.query(ExpenseDB.category_id, func.sum(ExpenseDB.amount).label("spent"))
        .filter(ExpenseDB.transaction_date >= start_date, ExpenseDB.transaction_date < end_date)
        .group_by(ExpenseDB.category_id)
        .subquery()
    )
    rows = (
        db.query(BudgetDB.category_id, CategoryDB.name, BudgetDB.amount, spent.c.spent)
        .join(CategoryDB, CategoryDB.id == BudgetDB.category_id)
        .outerjoin(spent, spent.c.category_id == BudgetDB.category_id)
        .order_by(CategoryDB.name)
        .all()
    )
    return [
        BudgetByCategory(
            category_id=row.category_id,
            category_name=row.name,
            amount=money(row.amount),
            spent=money(row.spent),
        )
        for row in rows
    ]
