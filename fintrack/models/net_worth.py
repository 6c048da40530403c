from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal


class NetWorthSnapshotData(BaseModel):
    """
    Point-in-time rollup of real and expected totals.

    Real side comes from manually reconciled balances; the expected side
    replays the transaction log. Percentages describe the allocation of the
    real net worth and are all zero when it is not positive.
    """
    snapshot_date: datetime
    year: int
    month: int

    total_fiat_balance: Decimal
    crypto_balance: Decimal
    crypto_capital: Decimal
    broker_balance: Decimal
    broker_capital: Decimal
    total_investment_balance: Decimal
    total_investment_capital: Decimal
    total_real_net_worth: Decimal
    total_pnl: Decimal

    expected_fiat_balance: Decimal
    expected_net_worth: Decimal
    fiat_discrepancy: Decimal
    total_discrepancy: Decimal

    fiat_percent: Decimal
    crypto_percent: Decimal
    broker_percent: Decimal

    class Config:
        from_attributes = True


class NetWorthSnapshotResponse(NetWorthSnapshotData):
    id: int
    created_at: datetime
