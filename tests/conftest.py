"""
Shared fixtures: a throwaway SQLite ledger per test, seeded reference data
and an in-memory sheet sink that records what the mirror writes.
"""
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from fintrack.config import LedgerSettings
from fintrack.db.core import LedgerStore, InvestmentAccountDB
from fintrack.main import create_app
from fintrack.models.account import AccountCreate, InvestmentAccountCreate, InvestmentAccountTypeEnum
from fintrack.models.category import CategoryCreate
from fintrack.models.debt import DebtorCreate
from fintrack.models.mirror_config import MirrorConfigUpsert, MirrorTargetEnum
from fintrack.services.ledger import Ledger
from fintrack.services.sheet_mirror import SheetSink

START = date(2026, 1, 1)


class RecordingSheetSink(SheetSink):
    """Keeps every write in memory. Set fail=True to make every write raise."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.appended = []
        self.cells = []
        self.ranges = []

    def _check(self):
        if self.fail:
            raise RuntimeError("sheets api unavailable")

    def append_row(self, sheet_range, values):
        self._check()
        self.appended.append((sheet_range, values))

    def update_cell(self, cell_ref, value):
        self._check()
        self.cells.append((cell_ref, value))

    def update_range(self, sheet_range, rows):
        self._check()
        self.ranges.append((sheet_range, rows))


@pytest.fixture
def settings(tmp_path):
    return LedgerSettings(database_url=f"sqlite:///{tmp_path / 'ledger.db'}")


@pytest.fixture
def store(settings):
    ledger_store = LedgerStore(settings)
    ledger_store.create_all()
    yield ledger_store
    ledger_store.dispose()


@pytest.fixture
def views_store(store):
    """Second handle on the same database that reads through the SQL views."""
    views = LedgerStore(store.settings.model_copy(update={"use_views": True}))
    yield views
    views.dispose()


@pytest.fixture
def ledger(store):
    return Ledger(store)


@pytest.fixture
def sink():
    return RecordingSheetSink()


@pytest.fixture
def mirrored_ledger(store, sink):
    mirrored = Ledger(store, sink)
    for target, sheet, a1_range in [
        (MirrorTargetEnum.EXPENSE, "Expenses", "A:I"),
        (MirrorTargetEnum.INCOME, "Incomes", "A:E"),
        (MirrorTargetEnum.INCOME_MONTHLY, "Summary", "C3"),
        (MirrorTargetEnum.INVESTMENT, "Investments", "A:F"),
        (MirrorTargetEnum.INVESTMENT_CAPITAL, "Accounting", "L3"),
        (MirrorTargetEnum.DEBT, "Debts", "A:G"),
        (MirrorTargetEnum.BUDGET, "Budget", "B2:B20"),
        (MirrorTargetEnum.ACCOUNTING_ACCOUNTS, "Accounting", "C3:C20"),
    ]:
        mirrored.set_mirror_config(MirrorConfigUpsert(target=target, sheet=sheet, a1_range=a1_range))
    mirrored.start()
    yield mirrored
    mirrored.mirror.stop()


def set_investment_balance(store, investment_account_id, balance):
    with store.transaction() as db:
        db.get(InvestmentAccountDB, investment_account_id).balance = Decimal(balance)


@pytest.fixture
def seeded(ledger, store):
    """
    Reference data every posting test starts from: three fiat accounts, two
    investment accounts with gains, three categories and two debtors.
    """
    bank = ledger.create_account(AccountCreate(
        name="TestBank", starting_balance=Decimal("1000.00"), starting_date=START,
    ))
    savings = ledger.create_account(AccountCreate(
        name="TestSavings", starting_balance=Decimal("500.00"), starting_date=START,
    ))
    cop = ledger.create_account(AccountCreate(
        name="TestCOP", currency="COP", starting_balance=Decimal("2000000.00"), starting_date=START,
    ))
    crypto = ledger.create_investment_account(InvestmentAccountCreate(
        name="TestCrypto", subtype=InvestmentAccountTypeEnum.CRYPTO,
        starting_capital=Decimal("800.00"), starting_date=START,
    ))
    broker = ledger.create_investment_account(InvestmentAccountCreate(
        name="TestBroker", subtype=InvestmentAccountTypeEnum.BROKER,
        starting_capital=Decimal("4000.00"), starting_date=START,
    ))
    set_investment_balance(store, crypto.id, "1200.00")
    set_investment_balance(store, broker.id, "5500.00")

    food = ledger.create_category(CategoryCreate(name="TestFood", is_essential=True))
    transport = ledger.create_category(CategoryCreate(name="TestTransport"))
    utilities = ledger.create_category(CategoryCreate(name="TestUtilities", is_essential=True))
    john = ledger.create_debtor(DebtorCreate(name="TestJohn"))
    jane = ledger.create_debtor(DebtorCreate(name="TestJane"))

    return SimpleNamespace(
        bank=bank.id,
        savings=savings.id,
        cop=cop.id,
        crypto=crypto.id,
        broker=broker.id,
        food=food.id,
        transport=transport.id,
        utilities=utilities.id,
        john=john.id,
        jane=jane.id,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings, sink=RecordingSheetSink())
    with TestClient(app) as test_client:
        yield test_client
