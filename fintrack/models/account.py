from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from fintrack.models.common import enum_value
from fintrack.models.net_worth import NetWorthSnapshotResponse


# ===== ENUMS =====

class InvestmentAccountTypeEnum(str, Enum):
    CRYPTO = "Crypto"
    BROKER = "Broker"


# ===== FIAT ACCOUNT MODELS =====

class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Account name")
    description: Optional[str] = None
    account_type: str = Field(default="Fiat", max_length=50)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    starting_balance: Decimal = Field(default=Decimal("0.00"), description="Balance at starting_date")
    starting_date: date = Field(default_factory=date.today)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip()

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('starting_balance')
    @classmethod
    def validate_starting_balance(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class AccountResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    account_type: str
    currency: str
    balance: Decimal
    balance_last_updated: Optional[datetime]
    starting_balance: Decimal
    starting_date: date
    created_at: datetime

    class Config:
        from_attributes = True


# ===== INVESTMENT ACCOUNT MODELS =====

class InvestmentAccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    subtype: InvestmentAccountTypeEnum
    currency: str = Field(default="USD", min_length=3, max_length=3)
    starting_capital: Decimal = Field(default=Decimal("0.00"), ge=0)
    starting_date: date = Field(default_factory=date.today)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip()

    @field_validator('starting_capital')
    @classmethod
    def validate_starting_capital(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class InvestmentAccountResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    subtype: InvestmentAccountTypeEnum
    currency: str
    balance: Decimal
    balance_last_updated: Optional[datetime]
    capital: Decimal
    starting_capital: Decimal
    starting_date: date
    created_at: datetime

    @field_validator("subtype", mode="before")
    @classmethod
    def validate_subtype(cls, v):
        return enum_value(v)

    class Config:
        from_attributes = True


# ===== DERIVED REPORTS =====

class AccountExpectedBalance(BaseModel):
    """Replay of the transaction log for one fiat account against its real balance."""
    id: int
    name: str
    currency: str
    starting_balance: Decimal
    starting_date: date
    total_income: Decimal
    total_expenses: Decimal
    total_investment_deposits: Decimal
    total_investment_withdrawals: Decimal
    total_transfers_out: Decimal
    total_transfers_in: Decimal
    expected_balance: Decimal
    real_balance: Decimal
    discrepancy: Decimal


class InvestmentAccountSummary(BaseModel):
    id: int
    name: str
    subtype: InvestmentAccountTypeEnum
    currency: str
    real_balance: Decimal
    total_capital: Decimal
    starting_capital: Decimal
    pnl: Decimal
    pnl_percent: Decimal


# ===== RECONCILIATION =====

class RealBalanceUpdate(BaseModel):
    id: int
    balance: Decimal

    @field_validator('balance')
    @classmethod
    def validate_balance(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class ReconcileRequest(BaseModel):
    accounts: List[RealBalanceUpdate] = Field(default_factory=list)
    investment_accounts: List[RealBalanceUpdate] = Field(default_factory=list)


class ReconcileResponse(BaseModel):
    accounts: List[AccountResponse]
    investment_accounts: List[InvestmentAccountResponse]
    # None when the follow-up snapshot could not be stored
    snapshot: Optional[NetWorthSnapshotResponse] = None


class ExpectedBalanceResponse(BaseModel):
    account_id: int
    expected_balance: Decimal
    discrepancy: Decimal
