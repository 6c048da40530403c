"""
Balance Reconciler

Derives expected fiat balances, investment PnL and per-debtor totals by
replaying the transaction log. Nothing here is cached or stored: every call
recomputes from the current rows.

Each aggregate runs either as SQLAlchemy aggregate queries (default) or by
reading the matching database view; both produce the same numbers.
"""
from sqlalchemy import func, text
from sqlalchemy.orm import Session
from decimal import Decimal
from typing import Dict, List, Optional

from fintrack.db.core import (
    AccountDB,
    InvestmentAccountDB,
    InvestmentAccountType,
    IncomeDB,
    ExpenseDB,
    InvestmentMovementDB,
    InvestmentMovementType,
    TransferDB,
    DebtDB,
    DebtorDB,
    NotFoundError,
    money,
)
from fintrack.models.account import AccountExpectedBalance, InvestmentAccountSummary
from fintrack.models.debt import DebtByDebtor

ZERO = Decimal("0.00")


def _sum_by(db: Session, key_column, amount_column, *criteria) -> Dict[int, Decimal]:
    rows = db.query(key_column, func.sum(amount_column)).filter(*criteria).group_by(key_column).all()
    return {key: money(total) for key, total in rows if key is not None}


# ===== EXPECTED BALANCES =====

def _expected_balance_rows(db: Session, account_id: Optional[int] = None) -> List[AccountExpectedBalance]:
    accounts_query = db.query(AccountDB)
    income_criteria = []
    expense_criteria = []
    movement_criteria = []
    transfer_out_criteria = []
    transfer_in_criteria = []
    if account_id is not None:
        accounts_query = accounts_query.filter(AccountDB.id == account_id)
        income_criteria.append(IncomeDB.account_id == account_id)
        expense_criteria.append(ExpenseDB.account_id == account_id)
        movement_criteria.append(InvestmentMovementDB.source_account_id == account_id)
        transfer_out_criteria.append(TransferDB.source_account_id == account_id)
        transfer_in_criteria.append(TransferDB.dest_account_id == account_id)

    incomes = _sum_by(db, IncomeDB.account_id, IncomeDB.amount, *income_criteria)
    expenses = _sum_by(db, ExpenseDB.account_id, ExpenseDB.amount, *expense_criteria)
    deposits = _sum_by(
        db, InvestmentMovementDB.source_account_id, InvestmentMovementDB.amount,
        InvestmentMovementDB.kind == InvestmentMovementType.DEPOSIT, *movement_criteria,
    )
    withdrawals = _sum_by(
        db, InvestmentMovementDB.source_account_id, InvestmentMovementDB.amount,
        InvestmentMovementDB.kind == InvestmentMovementType.WITHDRAWAL, *movement_criteria,
    )
    transfers_out = _sum_by(db, TransferDB.source_account_id, TransferDB.source_amount, *transfer_out_criteria)
    transfers_in = _sum_by(db, TransferDB.dest_account_id, TransferDB.dest_amount, *transfer_in_criteria)

    rows = []
    for account in accounts_query.order_by(AccountDB.id).all():
        starting_balance = money(account.starting_balance)
        total_income = incomes.get(account.id, ZERO)
        total_expenses = expenses.get(account.id, ZERO)
        total_deposits = deposits.get(account.id, ZERO)
        total_withdrawals = withdrawals.get(account.id, ZERO)
        total_out = transfers_out.get(account.id, ZERO)
        total_in = transfers_in.get(account.id, ZERO)

        expected = (
            starting_balance
            + total_income
            - total_expenses
            - total_deposits
            + total_withdrawals
            - total_out
            + total_in
        )
        real = money(account.balance)
        rows.append(AccountExpectedBalance(
            id=account.id,
            name=account.name,
            currency=account.currency,
            starting_balance=starting_balance,
            starting_date=account.starting_date,
            total_income=total_income,
            total_expenses=total_expenses,
            total_investment_deposits=total_deposits,
            total_investment_withdrawals=total_withdrawals,
            total_transfers_out=total_out,
            total_transfers_in=total_in,
            expected_balance=expected,
            real_balance=real,
            discrepancy=real - expected,
        ))
    return rows


def _expected_balance_rows_from_view(db: Session, account_id: Optional[int] = None) -> List[AccountExpectedBalance]:
    sql = (
        "SELECT id, name, currency, starting_balance, starting_date, "
        "total_income, total_expenses, total_investment_deposits, total_investment_withdrawals, "
        "total_transfers_out, total_transfers_in, expected_balance, real_balance, discrepancy "
        "FROM account_expected_balance"
    )
    params = {}
    if account_id is not None:
        sql += " WHERE id = :account_id"
        params["account_id"] = account_id
    sql += " ORDER BY id"

    rows = []
    for row in db.execute(text(sql), params).mappings():
        values = dict(row)
        for key in (
            "starting_balance", "total_income", "total_expenses", "total_investment_deposits",
            "total_investment_withdrawals", "total_transfers_out", "total_transfers_in",
            "expected_balance", "real_balance", "discrepancy",
        ):
            values[key] = money(values[key])
        rows.append(AccountExpectedBalance(**values))
    return rows


def get_account_expected_balance_report(db: Session, use_views: bool = False) -> List[AccountExpectedBalance]:
    """One row per fiat account: component totals, expected balance, real balance and discrepancy."""
    if use_views:
        return _expected_balance_rows_from_view(db)
    return _expected_balance_rows(db)


def get_account_expected_balance(db: Session, account_id: int, use_views: bool = False) -> AccountExpectedBalance:
    """The full reconciliation row for one fiat account, read in a single query."""
    rows = _expected_balance_rows_from_view(db, account_id) if use_views else _expected_balance_rows(db, account_id)
    if not rows:
        raise NotFoundError(f"Account {account_id} not found")
    return rows[0]


def get_expected_balance(db: Session, account_id: int, use_views: bool = False) -> Decimal:
    return get_account_expected_balance(db, account_id, use_views).expected_balance


def get_discrepancy(db: Session, account_id: int, use_views: bool = False) -> Decimal:
    """Real minus expected. Positive when the bank holds more than the log predicts."""
    return get_account_expected_balance(db, account_id, use_views).discrepancy


def get_total_expected_fiat(db: Session, use_views: bool = False) -> Decimal:
    if use_views:
        total = db.execute(text("SELECT COALESCE(SUM(expected_balance), 0) FROM account_expected_balance")).scalar()
        return money(total)
    return sum((row.expected_balance for row in _expected_balance_rows(db)), ZERO)


# ===== INVESTMENT SUMMARY =====

def _pnl_percent(pnl: Decimal, capital: Decimal) -> Decimal:
    if capital == 0:
        return ZERO
    return money(pnl * 100 / capital)


def _summary_from_view_row(row) -> InvestmentAccountSummary:
    # SQLite hands back floats, so PnL is rebuilt from the quantized columns
    balance = money(row["real_balance"])
    capital = money(row["total_capital"])
    pnl = balance - capital
    return InvestmentAccountSummary(
        id=row["id"],
        name=row["name"],
        subtype=InvestmentAccountType[row["subtype"]].value,
        currency=row["currency"],
        real_balance=balance,
        total_capital=capital,
        starting_capital=money(row["starting_capital"]),
        pnl=pnl,
        pnl_percent=_pnl_percent(pnl, capital),
    )


def get_investment_summary(db: Session, use_views: bool = False) -> List[InvestmentAccountSummary]:
    if use_views:
        rows = db.execute(text(
            "SELECT id, name, subtype, currency, real_balance, total_capital, starting_capital "
            "FROM investment_account_summary ORDER BY id"
        )).mappings()
        return [_summary_from_view_row(row) for row in rows]

    summaries = []
    for account in db.query(InvestmentAccountDB).order_by(InvestmentAccountDB.id).all():
        balance = money(account.balance)
        capital = money(account.capital)
        pnl = balance - capital
        summaries.append(InvestmentAccountSummary(
            id=account.id,
            name=account.name,
            subtype=account.subtype.value,
            currency=account.currency,
            real_balance=balance,
            total_capital=capital,
            starting_capital=money(account.starting_capital),
            pnl=pnl,
            pnl_percent=_pnl_percent(pnl, capital),
        ))
    return summaries


# ===== DEBTS =====

def get_debts_by_debtor(db: Session, use_views: bool = False) -> List[DebtByDebtor]:
    """Totals per debtor that has at least one debt row. net_owed > 0 means they still owe us."""
    if use_views:
        rows = db.execute(text(
            "SELECT debtor_id, debtor_name, total_lent, total_received, net_owed, transaction_count "
            "FROM debt_by_debtor ORDER BY debtor_id"
        )).mappings()
        return [
            DebtByDebtor(
                debtor_id=row["debtor_id"],
                debtor_name=row["debtor_name"],
                total_lent=money(row["total_lent"]),
                total_received=money(row["total_received"]),
                net_owed=money(row["net_owed"]),
                transaction_count=row["transaction_count"],
            )
            for row in rows
        ]

    grouped = (
        db.query(DebtDB.debtor_id, DebtorDB.name, DebtDB.outbound, func.sum(DebtDB.amount), func.count(DebtDB.id))
        .join(DebtorDB, DebtorDB.id == DebtDB.debtor_id)
        .group_by(DebtDB.debtor_id, DebtorDB.name, DebtDB.outbound)
        .all()
    )

    totals: Dict[int, dict] = {}
    for debtor_id, debtor_name, outbound, amount, count in grouped:
        entry = totals.setdefault(debtor_id, {
            "debtor_name": debtor_name, "total_lent": ZERO, "total_received": ZERO, "transaction_count": 0,
        })
        if outbound:
            entry["total_lent"] += money(amount)
        else:
            entry["total_received"] += money(amount)
        entry["transaction_count"] += count

    return [
        DebtByDebtor(
            debtor_id=debtor_id,
            debtor_name=entry["debtor_name"],
            total_lent=entry["total_lent"],
            total_received=entry["total_received"],
            net_owed=entry["total_lent"] - entry["total_received"],
            transaction_count=entry["transaction_count"],
        )
        for debtor_id, entry in sorted(totals.items())
    ]
