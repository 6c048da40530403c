"""create ledger tables and aggregate views

Revision ID: 3f1c9a7e2b10
Revises: 
Create Date: 2026-10-17 09:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from fintrack.db.views import VIEWS, view_statements


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


investment_account_type = sa.Enum('CRYPTO', 'BROKER', name='investmentaccounttype')
investment_movement_type = sa.Enum('DEPOSIT', 'WITHDRAWAL', name='investmentmovementtype')
mirror_target = sa.Enum(
    'EXPENSE', 'INCOME', 'INCOME_MONTHLY', 'INVESTMENT', 'INVESTMENT_CAPITAL', 'DEBT', 'BUDGET',
    'ACCOUNTING_ACCOUNTS', 'ACCOUNTING_INVESTMENT_ACCOUNTS',
    name='mirrortarget',
)


def upgrade() -> None:
    # Reference tables
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('account_type', sa.String(50), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('balance', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('balance_last_updated', sa.DateTime, nullable=True),
        sa.Column('starting_balance', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('starting_date', sa.Date, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('name', name='uq_account_name'),
    )
    op.create_table(
        'investment_accounts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('subtype', investment_account_type, nullable=False),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('balance', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('balance_last_updated', sa.DateTime, nullable=True),
        sa.Column('capital', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('starting_capital', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('starting_date', sa.Date, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('name', name='uq_investment_account_name'),
    )
    op.create_index('idx_investment_accounts_subtype', 'investment_accounts', ['subtype'])
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('is_essential', sa.Boolean, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('name', name='uq_category_name'),
    )
    op.create_table(
        'debtors',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('name', name='uq_debtor_name'),
    )
    op.create_table(
        'budgets',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('category_id', sa.Integer, sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.UniqueConstraint('category_id', name='uq_budget_category'),
    )
    op.create_table(
        'mirror_config',
        sa.Column('target', mirror_target, primary_key=True),
        sa.Column('sheet', sa.String(255), nullable=False),
        sa.Column('a1_range', sa.String(50), nullable=False),
    )

    # Append-only ledger tables
    op.create_table(
        'incomes',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('transaction_date', sa.Date, nullable=False),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_incomes_account', 'incomes', ['account_id'])
    op.create_index('idx_incomes_date', 'incomes', ['transaction_date'])
    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('transaction_date', sa.Date, nullable=False),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('category_id', sa.Integer, sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('method', sa.String(50), nullable=True),
        sa.Column('original_amount', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('account_type', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_expenses_account', 'expenses', ['account_id'])
    op.create_index('idx_expenses_date', 'expenses', ['transaction_date'])
    op.create_table(
        'investment_movements',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('transaction_date', sa.Date, nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('investment_account_id', sa.Integer, sa.ForeignKey('investment_accounts.id'), nullable=False),
        sa.Column('kind', investment_movement_type, nullable=False),
        sa.Column('source_account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_investment_movements_account', 'investment_movements', ['investment_account_id'])
    op.create_index('idx_investment_movements_source', 'investment_movements', ['source_account_id'])
    op.create_table(
        'transfers',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('transaction_date', sa.Date, nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('source_account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('source_amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('dest_account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('dest_amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('exchange_rate', sa.DECIMAL(18, 8), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_transfers_source', 'transfers', ['source_account_id'])
    op.create_index('idx_transfers_dest', 'transfers', ['dest_account_id'])
    op.create_table(
        'debts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('debtor_id', sa.Integer, sa.ForeignKey('debtors.id'), nullable=False),
        sa.Column('debtor_name', sa.String(100), nullable=True),
        sa.Column('transaction_date', sa.Date, nullable=False),
        sa.Column('original_amount', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('outbound', sa.Boolean, nullable=False),
        sa.Column('account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('expense_id', sa.Integer, sa.ForeignKey('expenses.id'), nullable=True),
        sa.Column('income_id', sa.Integer, sa.ForeignKey('incomes.id'), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_debts_debtor', 'debts', ['debtor_id'])
    op.create_index('idx_debts_expense', 'debts', ['expense_id'])
    op.create_index('idx_debts_income', 'debts', ['income_id'])

    # Period tables
    op.create_table(
        'yearly_goals',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('year', sa.Integer, nullable=False),
        sa.Column('savings_goal', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('investment_goal', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('ideal_investment', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('year', name='uq_yearly_goals_year'),
    )
    op.create_table(
        'net_worth_snapshots',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('snapshot_date', sa.DateTime, nullable=False),
        sa.Column('year', sa.Integer, nullable=False),
        sa.Column('month', sa.Integer, nullable=False),
        sa.Column('total_fiat_balance', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('crypto_balance', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('crypto_capital', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('broker_balance', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('broker_capital', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('total_investment_balance', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('total_investment_capital', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('total_real_net_worth', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('total_pnl', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('expected_fiat_balance', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('expected_net_worth', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('fiat_discrepancy', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('total_discrepancy', sa.DECIMAL(15, 2), nullable=True),
        sa.Column('fiat_percent', sa.DECIMAL(7, 2), nullable=True),
        sa.Column('crypto_percent', sa.DECIMAL(7, 2), nullable=True),
        sa.Column('broker_percent', sa.DECIMAL(7, 2), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('year', 'month', name='uq_net_worth_year_month'),
    )

    # Aggregate views
    for ddl in view_statements(op.get_bind().dialect.name).values():
        op.execute(ddl)


def downgrade() -> None:
    for name in reversed(list(VIEWS)):
        op.execute(f"DROP VIEW IF EXISTS {name}")

    op.drop_table('net_worth_snapshots')
    op.drop_table('yearly_goals')
    op.drop_table('debts')
    op.drop_table('transfers')
    op.drop_table('investment_movements')
    op.drop_table('expenses')
    op.drop_table('incomes')
    op.drop_table('mirror_config')
    op.drop_table('budgets')
    op.drop_table('debtors')
    op.drop_table('categories')
    op.drop_table('investment_accounts')
    op.drop_table('accounts')

    bind = op.get_bind()
    mirror_target.drop(bind, checkfirst=True)
    investment_movement_type.drop(bind, checkfirst=True)
    investment_account_type.drop(bind, checkfirst=True)
