from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional

from fintrack.db.core import YearlyGoalsDB
from fintrack.models.goals import YearlyGoalsUpsert


def read_db_goals(db: Session, year: int) -> Optional[YearlyGoalsDB]:
    return db.query(YearlyGoalsDB).filter(YearlyGoalsDB.year == year).first()


def upsert_db_goals(db: Session, goals_data: YearlyGoalsUpsert) -> YearlyGoalsDB:
    """Insert or overwrite the single goals row of a year."""
    values = goals_data.model_dump(exclude={"year"})

    db_goals = read_db_goals(db, goals_data.year)
    if db_goals is None:
        try:
            # Savepoint so a concurrent insert of the same year only undoes this row
            with db.begin_nested():
                db_goals = YearlyGoalsDB(year=goals_data.year, **values)
                db.add(db_goals)
        except IntegrityError:
            db_goals = read_db_goals(db, goals_data.year)

    for key, value in values.items():
        setattr(db_goals, key, value)

    db.flush()
    db.refresh(db_goals)
    return db_goals
