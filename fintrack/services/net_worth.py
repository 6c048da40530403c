"""
Net Worth Snapshot Service

Rolls real balances, investment capital and the expected fiat balance into a
monthly snapshot and stores at most one snapshot per (year, month).
"""
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fintrack.db.core import (
    AccountDB,
    InvestmentAccountDB,
    InvestmentAccountType,
    NetWorthSnapshotDB,
    utcnow,
    money,
)
from fintrack.models.net_worth import NetWorthSnapshotData
from fintrack.crud.validation import validate_period
from fintrack.services import reconciler
from fintrack.logging_config import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0.00")


def _expected_fiat_or_zero(db: Session, use_views: bool) -> Decimal:
    """
    Expected fiat total, or 0 when it cannot be derived. A snapshot with a
    zero expected side is still worth keeping for its real totals.
    """
    try:
        return reconciler.get_total_expected_fiat(db, use_views=use_views)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Expected fiat balance unavailable, using 0: {e}")
        return ZERO


def _percent(part: Decimal, total: Decimal) -> Decimal:
    if total <= 0:
        return ZERO
    return money(part * 100 / total)


def compute_snapshot(
    db: Session,
    year: int,
    month: int,
    use_views: bool = False,
    snapshot_date: Optional[datetime] = None,
) -> NetWorthSnapshotData:
    validate_period(year, month)

    total_fiat = money(db.query(func.sum(AccountDB.balance)).scalar())
    expected_fiat = _expected_fiat_or_zero(db, use_views)

    balances = {subtype: ZERO for subtype in InvestmentAccountType}
    capitals = {subtype: ZERO for subtype in InvestmentAccountType}
    grouped = (
        db.query(InvestmentAccountDB.subtype, func.sum(InvestmentAccountDB.balance), func.sum(InvestmentAccountDB.capital))
        .group_by(InvestmentAccountDB.subtype)
        .all()
    )
    for subtype, balance, capital in grouped:
        balances[subtype] = money(balance)
        capitals[subtype] = money(capital)

    crypto_balance = balances[InvestmentAccountType.CRYPTO]
    broker_balance = balances[InvestmentAccountType.BROKER]
    total_investment_balance = crypto_balance + broker_balance
    total_investment_capital = capitals[InvestmentAccountType.CRYPTO] + capitals[InvestmentAccountType.BROKER]

    total_real = total_fiat + total_investment_balance
    expected_net_worth = expected_fiat + total_investment_balance

    return NetWorthSnapshotData(
        snapshot_date=snapshot_date or utcnow(),
        year=year,
        month=month,
        total_fiat_balance=total_fiat,
        crypto_balance=crypto_balance,
        crypto_capital=capitals[InvestmentAccountType.CRYPTO],
        broker_balance=broker_balance,
        broker_capital=capitals[InvestmentAccountType.BROKER],
        total_investment_balance=total_investment_balance,
        total_investment_capital=total_investment_capital,
        total_real_net_worth=total_real,
        total_pnl=total_investment_balance - total_investment_capital,
        expected_fiat_balance=expected_fiat,
        expected_net_worth=expected_net_worth,
        fiat_discrepancy=total_fiat - expected_fiat,
        total_discrepancy=total_real - expected_net_worth,
        fiat_percent=_percent(total_fiat, total_real),
        crypto_percent=_percent(crypto_balance, total_real),
        broker_percent=_percent(broker_balance, total_real),
    )


def _read_snapshot(db: Session, year: int, month: int) -> Optional[NetWorthSnapshotDB]:
    return db.query(NetWorthSnapshotDB).filter(
        NetWorthSnapshotDB.year == year,
        NetWorthSnapshotDB.month == month,
    ).first()


def upsert_snapshot(db: Session, snapshot_data: NetWorthSnapshotData) -> NetWorthSnapshotDB:
    """
    Store the snapshot for its (year, month), overwriting any earlier one.
    A concurrent insert for the same period turns this call into an update.
    """
    validate_period(snapshot_data.year, snapshot_data.month)
    values = snapshot_data.model_dump()

    db_snapshot = _read_snapshot(db, snapshot_data.year, snapshot_data.month)
    if db_snapshot is None:
        try:
            with db.begin_nested():
                db_snapshot = NetWorthSnapshotDB(**values)
                db.add(db_snapshot)
        except IntegrityError:
            logger.info(f"Snapshot {snapshot_data.year}-{snapshot_data.month:02d} inserted concurrently, updating")
            db_snapshot = _read_snapshot(db, snapshot_data.year, snapshot_data.month)

    for key, value in values.items():
        setattr(db_snapshot, key, value)

    db.flush()
    db.refresh(db_snapshot)
    logger.info(
        f"Stored net worth snapshot {snapshot_data.year}-{snapshot_data.month:02d}: "
        f"total {snapshot_data.total_real_net_worth}"
    )
    return db_snapshot


def read_snapshot(db: Session, year: int, month: int) -> Optional[NetWorthSnapshotDB]:
    validate_period(year, month)
    return _read_snapshot(db, year, month)


def read_latest_snapshot(db: Session) -> Optional[NetWorthSnapshotDB]:
    return db.query(NetWorthSnapshotDB).order_by(
        NetWorthSnapshotDB.year.desc(), NetWorthSnapshotDB.month.desc()
    ).first()


def get_net_worth_history(db: Session) -> List[NetWorthSnapshotDB]:
    return db.query(NetWorthSnapshotDB).order_by(NetWorthSnapshotDB.year, NetWorthSnapshotDB.month).all()
