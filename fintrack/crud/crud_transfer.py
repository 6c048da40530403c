from sqlalchemy.orm import Session
from decimal import Decimal
from typing import Optional, List, Tuple

from fintrack.db.core import TransferDB
from fintrack.models.transfer import TransferCreate
from fintrack.crud.validation import validate_transfer, require_account, flush_posting
from fintrack.logging_config import get_logger

logger = get_logger(__name__)

RATE_PLACES = Decimal("0.00000001")

# ===== DATABASE OPERATIONS - TRANSFERS =====

def derive_exchange_rate(source_amount: Decimal, dest_amount: Decimal, exchange_rate: Optional[Decimal]) -> Optional[Decimal]:
    """Keep a caller supplied rate; otherwise dest / source when the source is positive."""
    if exchange_rate:
        return exchange_rate
    if source_amount > 0:
        return (dest_amount / source_amount).quantize(RATE_PLACES)
    return exchange_rate

def create_transfer(db: Session, transfer_data: TransferCreate) -> TransferDB:
    validate_transfer(transfer_data)
    require_account(db, transfer_data.source_account_id, transfer_data.transaction_date)
    require_account(db, transfer_data.dest_account_id, transfer_data.transaction_date)

    db_transfer = TransferDB(
        **transfer_data.model_dump(exclude={"exchange_rate"}),
        exchange_rate=derive_exchange_rate(
            transfer_data.source_amount, transfer_data.dest_amount, transfer_data.exchange_rate
        ),
    )
    db.add(db_transfer)
    flush_posting(db)
    db.refresh(db_transfer)

    logger.info(
        f"Recorded transfer {db_transfer.id}: {db_transfer.source_amount} from account "
        f"{db_transfer.source_account_id} to {db_transfer.dest_amount} in account {db_transfer.dest_account_id}"
    )
    return db_transfer

def read_transfers(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    account_id: Optional[int] = None,
) -> Tuple[List[TransferDB], int]:
    query = db.query(TransferDB)
    if account_id is not None:
        query = query.filter(
            (TransferDB.source_account_id == account_id) | (TransferDB.dest_account_id == account_id)
        )

    total = query.count()
    items = query.order_by(TransferDB.transaction_date.desc(), TransferDB.id.desc()).offset(skip).limit(limit).all()
    return items, total
