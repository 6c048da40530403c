"""
Ledger Service

Operation surface of the ledger. Every write runs in one store transaction;
mirror events are published only after that transaction has committed, and
every read recomputes from the current rows.
"""
from sqlalchemy.exc import SQLAlchemyError
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from fintrack.db.core import (
    LedgerStore,
    LedgerError,
    NotFoundError,
    AccountDB,
    InvestmentAccountDB,
    MirrorTarget,
)
from fintrack.crud import (
    crud_account,
    crud_budget,
    crud_category,
    crud_compound,
    crud_debt,
    crud_expense,
    crud_goals,
    crud_income,
    crud_investment,
    crud_mirror_config,
    crud_transfer,
)
from fintrack.models.account import (
    AccountCreate,
    AccountResponse,
    InvestmentAccountCreate,
    InvestmentAccountResponse,
    AccountExpectedBalance,
    InvestmentAccountSummary,
    ReconcileRequest,
    ReconcileResponse,
)
from fintrack.models.budget import BudgetUpsert, BudgetResponse, BudgetByCategory
from fintrack.models.category import CategoryCreate, CategoryResponse
from fintrack.models.common import Page
from fintrack.models.dashboard import DashboardResponse, MonthlyIncomeSummary, PeriodTotals
from fintrack.models.debt import DebtCreate, DebtResponse, DebtByDebtor, DebtorCreate, DebtorResponse
from fintrack.models.expense import ExpenseCreate, ExpenseResponse
from fintrack.models.goals import YearlyGoalsUpsert, YearlyGoalsResponse
from fintrack.models.income import IncomeCreate, IncomeResponse
from fintrack.models.investment import InvestmentMovementCreate, InvestmentMovementResponse
from fintrack.models.mirror_config import MirrorConfigUpsert, MirrorConfigResponse
from fintrack.models.net_worth import NetWorthSnapshotData, NetWorthSnapshotResponse
from fintrack.models.transfer import TransferCreate, TransferResponse
from fintrack.services import dashboard, net_worth, reconciler
from fintrack.services.sheet_mirror import (
    MirrorConfig,
    MirrorEvent,
    SheetMirror,
    SheetSink,
    balance_rows,
    cell_value,
    debt_row,
    expense_row,
    income_row,
    investment_row,
)
from fintrack.logging_config import get_logger

logger = get_logger(__name__)


class Ledger:
    """
    Facade over the store, the recorders, the reconciler and the snapshotter.

    Pass a SheetSink to mirror committed activity into a spreadsheet; without
    one nothing is mirrored.
    """

    def __init__(self, store: LedgerStore, sink: Optional[SheetSink] = None):
        self.store = store
        self.use_views = store.settings.use_views
        self.mirror: Optional[SheetMirror] = None
        if sink is not None:
            self.mirror = SheetMirror(sink, self.load_mirror_config, store.settings.mirror_queue_size)

    def start(self) -> None:
        if self.mirror is not None:
            self.mirror.start()

    def close(self) -> None:
        if self.mirror is not None:
            self.mirror.stop()
        self.store.dispose()

    def _publish(self, *events: MirrorEvent) -> None:
        if self.mirror is None:
            return
        for event in events:
            self.mirror.publish(event)

    # ===== TRANSACTION RECORDER =====

    def record_income(self, income: IncomeCreate) -> IncomeResponse:
        with self.store.transaction() as db:
            db_income = crud_income.create_income(db, income)
            response = IncomeResponse.model_validate(db_income)
            income_events = self._income_events(db, response)

        self._publish(*income_events)
        return response

    def record_expense(self, expense: ExpenseCreate) -> ExpenseResponse:
        with self.store.transaction() as db:
            response = ExpenseResponse.model_validate(crud_expense.create_expense(db, expense))

        self._publish(MirrorEvent(MirrorTarget.EXPENSE, values=expense_row(response)))
        return response

    def record_investment_movement(self, movement: InvestmentMovementCreate) -> InvestmentMovementResponse:
        with self.store.transaction() as db:
            db_movement = crud_investment.create_investment_movement(db, movement)
            response = InvestmentMovementResponse.model_validate(db_movement)
            investment_account = db.get(InvestmentAccountDB, response.investment_account_id)
            account_name = investment_account.name
            capital = investment_account.capital

        self._publish(
            MirrorEvent(MirrorTarget.INVESTMENT, values=investment_row(response, account_name)),
            MirrorEvent(MirrorTarget.INVESTMENT_CAPITAL, value=capital, key=response.investment_account_id),
        )
        return response

    def record_transfer(self, transfer: TransferCreate) -> TransferResponse:
        with self.store.transaction() as db:
            return TransferResponse.model_validate(crud_transfer.create_transfer(db, transfer))

    def record_debt(self, debt: DebtCreate) -> DebtResponse:
        with self.store.transaction() as db:
            response = DebtResponse.model_validate(crud_debt.create_debt(db, debt))

        self._publish(MirrorEvent(MirrorTarget.DEBT, values=debt_row(response)))
        return response

    def _income_events(self, db, income: IncomeResponse) -> List[MirrorEvent]:
        account_name = db.get(AccountDB, income.account_id).name
        start, end = dashboard.month_bounds(income.transaction_date.year, income.transaction_date.month)
        monthly_total = crud_income.sum_incomes(db, start, end)
        return [
            MirrorEvent(MirrorTarget.INCOME, values=income_row(income, account_name)),
            MirrorEvent(MirrorTarget.INCOME_MONTHLY, value=monthly_total, key=income.transaction_date.month),
        ]

    # ===== COMPOUND POSTER =====

    def post_expense_with_debt(self, expense: ExpenseCreate, debt: DebtCreate) -> Tuple[ExpenseResponse, DebtResponse]:
        with self.store.transaction() as db:
            db_expense, db_debt = crud_compound.create_expense_with_debt(db, expense, debt)
            expense_response = ExpenseResponse.model_validate(db_expense)
            debt_response = DebtResponse.model_validate(db_debt)

        self._publish(
            MirrorEvent(MirrorTarget.EXPENSE, values=expense_row(expense_response)),
            MirrorEvent(MirrorTarget.DEBT, values=debt_row(debt_response)),
        )
        return expense_response, debt_response

    def post_debt_repayment(self, income: IncomeCreate, debt: DebtCreate) -> Tuple[IncomeResponse, DebtResponse]:
        with self.store.transaction() as db:
            db_income, db_debt = crud_compound.create_debt_repayment(db, income, debt)
            income_response = IncomeResponse.model_validate(db_income)
            debt_response = DebtResponse.model_validate(db_debt)
            income_events = self._income_events(db, income_response)

        self._publish(*income_events, MirrorEvent(MirrorTarget.DEBT, values=debt_row(debt_response)))
        return income_response, debt_response

    # ===== BALANCE RECONCILER =====

    def get_account_expected_balance(self, account_id: int) -> AccountExpectedBalance:
        with self.store.session() as db:
            return reconciler.get_account_expected_balance(db, account_id, use_views=self.use_views)

    def get_expected_balance(self, account_id: int) -> Decimal:
        with self.store.session() as db:
            return reconciler.get_expected_balance(db, account_id, use_views=self.use_views)

    def get_discrepancy(self, account_id: int) -> Decimal:
        with self.store.session() as db:
            return reconciler.get_discrepancy(db, account_id, use_views=self.use_views)

    def get_account_expected_balance_report(self) -> List[AccountExpectedBalance]:
        with self.store.session() as db:
            return reconciler.get_account_expected_balance_report(db, use_views=self.use_views)

    def get_investment_summary(self) -> List[InvestmentAccountSummary]:
        with self.store.session() as db:
            return reconciler.get_investment_summary(db, use_views=self.use_views)

    def get_debts_by_debtor(self) -> List[DebtByDebtor]:
        with self.store.session() as db:
            return reconciler.get_debts_by_debtor(db, use_views=self.use_views)

    def get_investment_capital(self, investment_account_id: int) -> Decimal:
        with self.store.session() as db:
            return crud_investment.read_investment_capital(db, investment_account_id)

    # ===== NET WORTH SNAPSHOTTER =====

    def compute_snapshot(self, year: int, month: int) -> NetWorthSnapshotData:
        with self.store.session() as db:
            return net_worth.compute_snapshot(db, year, month, use_views=self.use_views)

    def upsert_snapshot(self, snapshot: NetWorthSnapshotData) -> NetWorthSnapshotResponse:
        with self.store.transaction() as db:
            return NetWorthSnapshotResponse.model_validate(net_worth.upsert_snapshot(db, snapshot))

    def take_monthly_snapshot(self, year: Optional[int] = None, month: Optional[int] = None) -> NetWorthSnapshotResponse:
        """Compute and store the snapshot of a month, the current one by default."""
        today = date.today()
        return self.upsert_snapshot(self.compute_snapshot(year or today.year, month or today.month))

    def get_snapshot(self, year: int, month: int) -> NetWorthSnapshotResponse:
        with self.store.session() as db:
            db_snapshot = net_worth.read_snapshot(db, year, month)
            if db_snapshot is None:
                raise NotFoundError(f"No net worth snapshot for {year}-{month:02d}")
            return NetWorthSnapshotResponse.model_validate(db_snapshot)

    def get_net_worth_history(self) -> List[NetWorthSnapshotResponse]:
        with self.store.session() as db:
            return [NetWorthSnapshotResponse.model_validate(s) for s in net_worth.get_net_worth_history(db)]

    # ===== ACCOUNT RECONCILIATION =====

    def set_real_balances(self, request: ReconcileRequest) -> ReconcileResponse:
        """
        Store manually reconciled balances, then refresh the current month's
        snapshot and mirror the account balance ranges.
        """
        with self.store.transaction() as db:
            accounts, investment_accounts = crud_account.update_real_balances(
                db, request.accounts, request.investment_accounts
            )
            account_responses = [AccountResponse.model_validate(a) for a in accounts]
            investment_responses = [InvestmentAccountResponse.model_validate(a) for a in investment_accounts]

        snapshot = None
        try:
            snapshot = self.take_monthly_snapshot()
        except (LedgerError, SQLAlchemyError) as e:
            logger.error(f"Balances stored but the net worth snapshot failed: {e}")

        events = []
        if account_responses:
            events.append(MirrorEvent(MirrorTarget.ACCOUNTING_ACCOUNTS, rows=balance_rows(self.list_accounts())))
        if investment_responses:
            events.append(MirrorEvent(
                MirrorTarget.ACCOUNTING_INVESTMENT_ACCOUNTS, rows=balance_rows(self.list_investment_accounts())
            ))
        self._publish(*events)

        return ReconcileResponse(
            accounts=account_responses,
            investment_accounts=investment_responses,
            snapshot=snapshot,
        )

    # ===== GOALS =====

    def get_goals(self, year: int) -> YearlyGoalsResponse:
        """Goals of a year; all zero when none were set."""
        with self.store.session() as db:
            db_goals = crud_goals.read_db_goals(db, year)
            if db_goals is None:
                zero = Decimal("0.00")
                return YearlyGoalsResponse(year=year, savings_goal=zero, investment_goal=zero, ideal_investment=zero)
            return YearlyGoalsResponse.model_validate(db_goals)

    def upsert_goals(self, goals: YearlyGoalsUpsert) -> YearlyGoalsResponse:
        with self.store.transaction() as db:
            return YearlyGoalsResponse.model_validate(crud_goals.upsert_db_goals(db, goals))

    # ===== REFERENCE DATA =====

    def create_account(self, account: AccountCreate) -> AccountResponse:
        with self.store.transaction() as db:
            return AccountResponse.model_validate(crud_account.create_db_account(db, account))

    def list_accounts(self) -> List[AccountResponse]:
        with self.store.session() as db:
            return [AccountResponse.model_validate(a) for a in crud_account.read_db_accounts(db)]

    def get_account(self, account_id: int) -> AccountResponse:
        with self.store.session() as db:
            db_account = crud_account.read_db_account(db, account_id)
            if db_account is None:
                raise NotFoundError(f"Account {account_id} not found")
            return AccountResponse.model_validate(db_account)

    def create_investment_account(self, account: InvestmentAccountCreate) -> InvestmentAccountResponse:
        with self.store.transaction() as db:
            return InvestmentAccountResponse.model_validate(crud_account.create_db_investment_account(db, account))

    def list_investment_accounts(self) -> List[InvestmentAccountResponse]:
        with self.store.session() as db:
            return [InvestmentAccountResponse.model_validate(a) for a in crud_account.read_db_investment_accounts(db)]

    def get_investment_account(self, investment_account_id: int) -> InvestmentAccountResponse:
        with self.store.session() as db:
            db_account = crud_account.read_db_investment_account(db, investment_account_id)
            if db_account is None:
                raise NotFoundError(f"Investment account {investment_account_id} not found")
            return InvestmentAccountResponse.model_validate(db_account)

    def create_debtor(self, debtor: DebtorCreate) -> DebtorResponse:
        with self.store.transaction() as db:
            return DebtorResponse.model_validate(crud_debt.create_debtor(db, debtor))

    def list_debtors(self) -> List[DebtorResponse]:
        with self.store.session() as db:
            return [DebtorResponse.model_validate(d) for d in crud_debt.read_debtors(db)]

    def create_category(self, category: CategoryCreate) -> CategoryResponse:
        with self.store.transaction() as db:
            return CategoryResponse.model_validate(crud_category.create_db_category(db, category))

    def list_categories(self) -> List[CategoryResponse]:
        with self.store.session() as db:
            return [CategoryResponse.model_validate(c) for c in crud_category.read_db_categories(db)]

    # ===== LISTINGS =====

    def list_incomes(self, skip: int = 0, limit: int = 10, account_id: Optional[int] = None) -> Page[IncomeResponse]:
        with self.store.session() as db:
            items, total = crud_income.read_incomes(db, skip, limit, account_id)
            return Page[IncomeResponse](
                items=[IncomeResponse.model_validate(i) for i in items], total=total, skip=skip, limit=limit
            )

    def list_expenses(
        self, skip: int = 0, limit: int = 10, account_id: Optional[int] = None, category_id: Optional[int] = None
    ) -> Page[ExpenseResponse]:
        with self.store.session() as db:
            items, total = crud_expense.read_expenses(db, skip, limit, account_id, category_id)
            return Page[ExpenseResponse](
                items=[ExpenseResponse.model_validate(e) for e in items], total=total, skip=skip, limit=limit
            )

    def list_investment_movements(
        self, skip: int = 0, limit: int = 10, investment_account_id: Optional[int] = None
    ) -> Page[InvestmentMovementResponse]:
        with self.store.session() as db:
            items, total = crud_investment.read_investment_movements(db, skip, limit, investment_account_id)
            return Page[InvestmentMovementResponse](
                items=[InvestmentMovementResponse.model_validate(m) for m in items], total=total, skip=skip, limit=limit
            )

    def list_transfers(self, skip: int = 0, limit: int = 10, account_id: Optional[int] = None) -> Page[TransferResponse]:
        with self.store.session() as db:
            items, total = crud_transfer.read_transfers(db, skip, limit, account_id)
            return Page[TransferResponse](
                items=[TransferResponse.model_validate(t) for t in items], total=total, skip=skip, limit=limit
            )

    def list_debts(self, skip: int = 0, limit: int = 10, debtor_id: Optional[int] = None) -> Page[DebtResponse]:
        with self.store.session() as db:
            items, total = crud_debt.read_debts(db, skip, limit, debtor_id)
            return Page[DebtResponse](
                items=[DebtResponse.model_validate(d) for d in items], total=total, skip=skip, limit=limit
            )

    # ===== BUDGETS & DASHBOARD =====

    def upsert_budgets(self, budgets: List[BudgetUpsert]) -> List[BudgetResponse]:
        with self.store.transaction() as db:
            for budget in budgets:
                crud_budget.upsert_db_budget(db, budget)
            all_budgets = [BudgetResponse.model_validate(b) for b in crud_budget.read_db_budgets(db)]

        self._publish(MirrorEvent(MirrorTarget.BUDGET, rows=[[cell_value(b.amount)] for b in all_budgets]))
        return all_budgets

    def list_budgets(self) -> List[BudgetResponse]:
        with self.store.session() as db:
            return [BudgetResponse.model_validate(b) for b in crud_budget.read_db_budgets(db)]

    def get_budgets_by_category(self, year: int, month: int) -> List[BudgetByCategory]:
        with self.store.session() as db:
            return dashboard.get_budgets_by_category(db, year, month)

    def get_monthly_totals(self, year: int, month: int) -> PeriodTotals:
        with self.store.session() as db:
            return dashboard.get_monthly_totals(db, year, month)

    def get_year_to_date_totals(self, year: int) -> PeriodTotals:
        with self.store.session() as db:
            return dashboard.get_year_to_date_totals(db, year)

    def get_yearly_income_summary(self, year: int) -> List[MonthlyIncomeSummary]:
        with self.store.session() as db:
            return dashboard.get_yearly_income_summary(db, year, use_views=self.use_views)

    def get_dashboard(self, year: int, month: int) -> DashboardResponse:
        with self.store.session() as db:
            monthly = dashboard.get_monthly_totals(db, year, month)
            year_to_date = dashboard.get_year_to_date_totals(db, year)
            budgets = dashboard.get_budgets_by_category(db, year, month)
            latest = net_worth.read_latest_snapshot(db)
            latest_snapshot = NetWorthSnapshotResponse.model_validate(latest) if latest else None

        return DashboardResponse(
            year=year,
            month=month,
            monthly=monthly,
            year_to_date=year_to_date,
            goals=self.get_goals(year),
            budgets=budgets,
            latest_snapshot=latest_snapshot,
        )

    # ===== MIRROR CONFIG =====

    def load_mirror_config(self) -> MirrorConfig:
        with self.store.session() as db:
            return crud_mirror_config.read_mirror_config(db)

    def list_mirror_config(self) -> List[MirrorConfigResponse]:
        with self.store.session() as db:
            return [MirrorConfigResponse.model_validate(c) for c in crud_mirror_config.read_mirror_config_rows(db)]

    def set_mirror_config(self, config: MirrorConfigUpsert) -> MirrorConfigResponse:
        with self.store.transaction() as db:
            db_config = crud_mirror_config.upsert_mirror_config(
                db, MirrorTarget(config.target.value), config.sheet, config.a1_range
            )
            return MirrorConfigResponse.model_validate(db_config)
