from sqlalchemy import text
from sqlalchemy.engine import Engine
from typing import Dict

from fintrack.logging_config import get_logger

logger = get_logger(__name__)

# Enum columns are persisted by member name ('DEPOSIT', 'CRYPTO', ...), so the
# literals below use the names rather than the display values.

ACCOUNT_EXPECTED_BALANCE_SQL = """
CREATE VIEW account_expected_balance AS
SELECT
    a.id AS id,
    a.name AS name,
    a.currency AS currency,
    a.starting_balance AS starting_balance,
    a.starting_date AS starting_date,
    COALESCE(inc.total, 0) AS total_income,
    COALESCE(ex.total, 0) AS total_expenses,
    COALESCE(dep.total, 0) AS total_investment_deposits,
    COALESCE(wd.total, 0) AS total_investment_withdrawals,
    COALESCE(tout.total, 0) AS total_transfers_out,
    COALESCE(tin.total, 0) AS total_transfers_in,
    a.starting_balance
        + COALESCE(inc.total, 0)
        - COALESCE(ex.total, 0)
        - COALESCE(dep.total, 0)
        + COALESCE(wd.total, 0)
        - COALESCE(tout.total, 0)
        + COALESCE(tin.total, 0) AS expected_balance,
    a.balance AS real_balance,
    a.balance - (
        a.starting_balance
        + COALESCE(inc.total, 0)
        - COALESCE(ex.total, 0)
        - COALESCE(dep.total, 0)
        + COALESCE(wd.total, 0)
        - COALESCE(tout.total, 0)
        + COALESCE(tin.total, 0)
    ) AS discrepancy
FROM accounts a
LEFT JOIN (
    SELECT account_id, SUM(amount) AS total FROM incomes GROUP BY account_id
) inc ON inc.account_id = a.id
LEFT JOIN (
    SELECT account_id, SUM(amount) AS total FROM expenses GROUP BY account_id
) ex ON ex.account_id = a.id
LEFT JOIN (
    SELECT source_account_id, SUM(amount) AS total FROM investment_movements
    WHERE kind = 'DEPOSIT' AND source_account_id IS NOT NULL
    GROUP BY source_account_id
) dep ON dep.source_account_id = a.id
LEFT JOIN (
    SELECT source_account_id, SUM(amount) AS total FROM investment_movements
    WHERE kind = 'WITHDRAWAL' AND source_account_id IS NOT NULL
    GROUP BY source_account_id
) wd ON wd.source_account_id = a.id
LEFT JOIN (
    SELECT source_account_id, SUM(source_amount) AS total FROM transfers GROUP BY source_account_id
) tout ON tout.source_account_id = a.id
LEFT JOIN (
    SELECT dest_account_id, SUM(dest_amount) AS total FROM transfers GROUP BY dest_account_id
) tin ON tin.dest_account_id = a.id
"""

INVESTMENT_ACCOUNT_SUMMARY_SQL = """
CREATE VIEW investment_account_summary AS
SELECT
    ia.id AS id,
    ia.name AS name,
    ia.subtype AS subtype,
    ia.currency AS currency,
    ia.balance AS real_balance,
    ia.capital AS total_capital,
    ia.starting_capital AS starting_capital,
    ia.balance - ia.capital AS pnl,
    CASE
        WHEN ia.capital = 0 THEN 0
        ELSE (ia.balance - ia.capital) * 100.0 / ia.capital
    END AS pnl_percent
FROM investment_accounts ia
"""

DEBT_BY_DEBTOR_SQL = """
CREATE VIEW debt_by_debtor AS
SELECT
    d.debtor_id AS debtor_id,
    dr.name AS debtor_name,
    SUM(CASE WHEN d.outbound THEN d.amount ELSE 0 END) AS total_lent,
    SUM(CASE WHEN d.outbound THEN 0 ELSE d.amount END) AS total_received,
    SUM(CASE WHEN d.outbound THEN d.amount ELSE -d.amount END) AS net_owed,
    COUNT(d.id) AS transaction_count
FROM debts d
JOIN debtors dr ON dr.id = d.debtor_id
GROUP BY d.debtor_id, dr.name
"""

MONTHLY_INCOME_SUMMARY_SQL = """
CREATE VIEW monthly_income_summary AS
SELECT
    {year} AS year,
    {month} AS month,
    SUM(i.amount) AS total_income
FROM incomes i
GROUP BY {year}, {month}
"""

VIEWS = {
    "account_expected_balance": ACCOUNT_EXPECTED_BALANCE_SQL,
    "investment_account_summary": INVESTMENT_ACCOUNT_SUMMARY_SQL,
    "debt_by_debtor": DEBT_BY_DEBTOR_SQL,
    "monthly_income_summary": MONTHLY_INCOME_SUMMARY_SQL,
}


def _date_part(dialect_name: str, part: str, column: str) -> str:
    # SQLite has no EXTRACT; dates are stored as ISO text there
    if dialect_name == "sqlite":
        pattern = {"year": "%Y", "month": "%m"}[part]
        return f"CAST(strftime('{pattern}', {column}) AS INTEGER)"
    return f"CAST(EXTRACT({part.upper()} FROM {column}) AS INTEGER)"


def view_statements(dialect_name: str) -> Dict[str, str]:
    """CREATE VIEW statement per view name, rendered for the given SQL dialect."""
    parts = {
        "year": _date_part(dialect_name, "year", "i.transaction_date"),
        "month": _date_part(dialect_name, "month", "i.transaction_date"),
    }
    return {name: ddl.format(**parts) for name, ddl in VIEWS.items()}


def create_views(engine: Engine) -> None:
    """(Re)create the aggregate views. Safe to call on every start."""
    with engine.begin() as conn:
        for name, ddl in view_statements(engine.dialect.name).items():
            conn.execute(text(f"DROP VIEW IF EXISTS {name}"))
            conn.execute(text(ddl))
    logger.debug(f"Created views: {', '.join(VIEWS)}")


def drop_views(engine: Engine) -> None:
    with engine.begin() as conn:
        for name in VIEWS:
            conn.execute(text(f"DROP VIEW IF EXISTS {name}"))
