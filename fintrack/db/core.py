from contextlib import contextmanager
from typing import Iterator, Optional
from sqlalchemy import create_engine, event, ForeignKey, Index, UniqueConstraint, Boolean, Integer, String, Text, DECIMAL, DateTime, Date
from sqlalchemy.engine import Engine
from sqlalchemy.types import Enum
from sqlalchemy.orm import sessionmaker, Session, DeclarativeBase, Mapped, relationship, mapped_column
from datetime import datetime, date, timezone
from decimal import Decimal, ROUND_HALF_UP
import enum

from fintrack.config import LedgerSettings
from fintrack.db.views import create_views
from fintrack.logging_config import get_logger

logger = get_logger(__name__)


# ===== ERRORS =====

class NotFoundError(Exception):
    pass


class LedgerError(Exception):
    """Base class for errors raised by ledger operations."""


class ValidationError(LedgerError):
    """A posting broke a ledger rule and was rejected before any write."""


class UnknownReferenceError(LedgerError):
    """A posting referenced an account, debtor or category that does not exist."""


class ConflictError(LedgerError):
    """A write hit a unique constraint that cannot be resolved in place."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


CENTS = Decimal("0.01")


def money(value) -> Decimal:
    """Normalize an aggregate result (None, float, int or Decimal) to a 2-place Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class Base(DeclarativeBase):
    pass


# ===== ENUMS =====

class InvestmentAccountType(str, enum.Enum):
    CRYPTO = "Crypto"
    BROKER = "Broker"


class InvestmentMovementType(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class MirrorTarget(str, enum.Enum):
    EXPENSE = "expense"
    INCOME = "income"
    INCOME_MONTHLY = "income_monthly"
    INVESTMENT = "investment"
    INVESTMENT_CAPITAL = "investment_capital"
    DEBT = "debt"
    BUDGET = "budget"
    ACCOUNTING_ACCOUNTS = "accounting_accounts"
    ACCOUNTING_INVESTMENT_ACCOUNTS = "accounting_investment_accounts"


# ===== REFERENCE TABLES =====

class AccountDB(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("name", name="uq_account_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    account_type: Mapped[str] = mapped_column(String(50), default="Fiat")
    currency: Mapped[str] = mapped_column(String(3), default="USD")

    # Real balance, entered manually after bank reconciliation
    balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    balance_last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Replay origin for the expected balance
    starting_balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    starting_date: Mapped[date] = mapped_column(Date, default=date.today)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    incomes = relationship("IncomeDB", back_populates="account")
    expenses = relationship("ExpenseDB", back_populates="account")


class InvestmentAccountDB(Base):
    __tablename__ = "investment_accounts"

    __table_args__ = (
        UniqueConstraint("name", name="uq_investment_account_name"),
        Index("idx_investment_accounts_subtype", "subtype"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    subtype: Mapped[InvestmentAccountType] = mapped_column(Enum(InvestmentAccountType), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD")

    balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    balance_last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Cost basis: starting_capital plus deposits minus withdrawals
    capital: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    starting_capital: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    starting_date: Mapped[date] = mapped_column(Date, default=date.today)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    movements = relationship("InvestmentMovementDB", back_populates="investment_account")


class CategoryDB(Base):
    __tablename__ = "categories"

    __table_args__ = (
        UniqueConstraint("name", name="uq_category_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_essential: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    budget = relationship("BudgetDB", back_populates="category", uselist=False)


class DebtorDB(Base):
    __tablename__ = "debtors"

    __table_args__ = (
        UniqueConstraint("name", name="uq_debtor_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    debts = relationship("DebtDB", back_populates="debtor")


class BudgetDB(Base):
    __tablename__ = "budgets"

    __table_args__ = (
        UniqueConstraint("category_id", name="uq_budget_category"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)

    category = relationship("CategoryDB", back_populates="budget")


class MirrorConfigDB(Base):
    __tablename__ = "mirror_config"

    target: Mapped[MirrorTarget] = mapped_column(Enum(MirrorTarget), primary_key=True)
    sheet: Mapped[str] = mapped_column(String(255), nullable=False)
    a1_range: Mapped[str] = mapped_column(String(50), nullable=False)


# ===== APPEND-ONLY LEDGER TABLES =====

class IncomeDB(Base):
    __tablename__ = "incomes"

    __table_args__ = (
        Index("idx_incomes_account", "account_id"),
        Index("idx_incomes_date", "transaction_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500))
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    account = relationship("AccountDB", back_populates="incomes")


class ExpenseDB(Base):
    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expenses_account", "account_id"),
        Index("idx_expenses_date", "transaction_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"))
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500))
    method: Mapped[Optional[str]] = mapped_column(String(50))
    original_amount: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(15, 2))
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    account_type: Mapped[Optional[str]] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    account = relationship("AccountDB", back_populates="expenses")


class InvestmentMovementDB(Base):
    __tablename__ = "investment_movements"

    __table_args__ = (
        Index("idx_investment_movements_account", "investment_account_id"),
        Index("idx_investment_movements_source", "source_account_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500))
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    investment_account_id: Mapped[int] = mapped_column(ForeignKey("investment_accounts.id"), nullable=False)
    kind: Mapped[InvestmentMovementType] = mapped_column(Enum(InvestmentMovementType), nullable=False)
    source_account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    investment_account = relationship("InvestmentAccountDB", back_populates="movements")


class TransferDB(Base):
    __tablename__ = "transfers"

    __table_args__ = (
        Index("idx_transfers_source", "source_account_id"),
        Index("idx_transfers_dest", "dest_account_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500))
    source_account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    source_amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    dest_account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    dest_amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    exchange_rate: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(18, 8))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class DebtDB(Base):
    __tablename__ = "debts"

    __table_args__ = (
        Index("idx_debts_debtor", "debtor_id"),
        Index("idx_debts_expense", "expense_id"),
        Index("idx_debts_income", "income_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    description: Mapped[Optional[str]] = mapped_column(String(500))
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    debtor_id: Mapped[int] = mapped_column(ForeignKey("debtors.id"), nullable=False)
    debtor_name: Mapped[Optional[str]] = mapped_column(String(100))
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    original_amount: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(15, 2))
    currency: Mapped[str] = mapped_column(String(3), default="USD")

    # True: money lent out. False: money received back.
    outbound: Mapped[bool] = mapped_column(Boolean, nullable=False)

    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"))
    expense_id: Mapped[Optional[int]] = mapped_column(ForeignKey("expenses.id"))
    income_id: Mapped[Optional[int]] = mapped_column(ForeignKey("incomes.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    debtor = relationship("DebtorDB", back_populates="debts")


# ===== PERIOD TABLES =====

class YearlyGoalsDB(Base):
    __tablename__ = "yearly_goals"

    __table_args__ = (
        UniqueConstraint("year", name="uq_yearly_goals_year"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    savings_goal: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    investment_goal: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    ideal_investment: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class NetWorthSnapshotDB(Base):
    """
    Monthly point-in-time rollup of real and expected totals across all accounts.
    Exactly one row per (year, month); later snapshots of the same period overwrite it.
    """
    __tablename__ = "net_worth_snapshots"

    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_net_worth_year_month"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    snapshot_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    # Real totals
    total_fiat_balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    crypto_balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    crypto_capital: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    broker_balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    broker_capital: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    total_investment_balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    total_investment_capital: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    total_real_net_worth: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    total_pnl: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)

    # Expected totals and discrepancies
    expected_fiat_balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    expected_net_worth: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    fiat_discrepancy: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    total_discrepancy: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))

    # Allocation of real net worth
    fiat_percent: Mapped[Decimal] = mapped_column(DECIMAL(7, 2), default=Decimal("0.00"))
    crypto_percent: Mapped[Decimal] = mapped_column(DECIMAL(7, 2), default=Decimal("0.00"))
    broker_percent: Mapped[Decimal] = mapped_column(DECIMAL(7, 2), default=Decimal("0.00"))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


# ===== STORE HANDLE =====

def _configure_sqlite_connection(dbapi_connection, connection_record):
    # SQLAlchemy emits BEGIN itself (see _begin_sqlite_transaction) so SAVEPOINTs nest
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(conn):
    conn.exec_driver_sql("BEGIN")


class LedgerStore:
    """
    Owns the engine and session factory for one ledger database.

    Built once by the process entry point and handed to every component that
    reads or writes the ledger.
    """

    def __init__(self, settings: LedgerSettings, engine: Optional[Engine] = None):
        self.settings = settings
        self.engine = engine or create_engine(settings.database_url, echo=settings.sql_echo)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _configure_sqlite_connection)
            event.listen(self.engine, "begin", _begin_sqlite_transaction)
        self.session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def create_all(self) -> None:
        """Create every table and the aggregate views."""
        Base.metadata.create_all(self.engine)
        create_views(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Read-only unit: a plain session that is always closed."""
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Atomic unit of work. Commits when the block exits normally and rolls
        back every statement issued inside it when the block raises.
        """
        db = self.session_factory()
        try:
            with db.begin():
                yield db
        finally:
            db.close()

    def get_db(self) -> Iterator[Session]:
        # FastAPI dependency
        with self.session() as db:
            yield db

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Ledger store engine disposed")
