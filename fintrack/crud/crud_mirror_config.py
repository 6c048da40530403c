from sqlalchemy.orm import Session
from typing import Dict, List, Tuple

from fintrack.db.core import MirrorConfigDB, MirrorTarget


def read_mirror_config(db: Session) -> Dict[MirrorTarget, Tuple[str, str]]:
    """Sheet name and A1 range per mirror target."""
    return {row.target: (row.sheet, row.a1_range) for row in db.query(MirrorConfigDB).all()}


def read_mirror_config_rows(db: Session) -> List[MirrorConfigDB]:
    return db.query(MirrorConfigDB).order_by(MirrorConfigDB.target).all()


def upsert_mirror_config(db: Session, target: MirrorTarget, sheet: str, a1_range: str) -> MirrorConfigDB:
    db_config = db.get(MirrorConfigDB, target)
    if db_config:
        db_config.sheet = sheet
        db_config.a1_range = a1_range
    else:
        db_config = MirrorConfigDB(target=target, sheet=sheet, a1_range=a1_range)
        db.add(db_config)

    db.flush()
    return db_config
