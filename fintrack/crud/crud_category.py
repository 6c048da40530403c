from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional

from fintrack.db.core import CategoryDB, ConflictError
from fintrack.models.category import CategoryCreate

def create_db_category(db: Session, category_data: CategoryCreate) -> CategoryDB:
    """Create a new expense category"""

    # Check for duplicate category name
    existing_category = db.query(CategoryDB).filter(CategoryDB.name.ilike(category_data.name)).first()
    if existing_category:
        raise ConflictError(f"Category with name '{category_data.name}' already exists")

    db_category = CategoryDB(**category_data.model_dump())

    try:
        db.add(db_category)
        db.flush()
        db.refresh(db_category)
        return db_category
    except IntegrityError as e:
        raise ConflictError("Category creation failed due to a database constraint.") from e

def read_db_categories(db: Session) -> List[CategoryDB]:
    return db.query(CategoryDB).order_by(CategoryDB.name).all()

def read_db_category(db: Session, category_id: int) -> Optional[CategoryDB]:
    return db.query(CategoryDB).filter(CategoryDB.id == category_id).first()
