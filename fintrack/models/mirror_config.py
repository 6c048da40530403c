from pydantic import BaseModel, Field, field_validator
from enum import Enum

from fintrack.models.common import enum_value


class MirrorTargetEnum(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    INCOME_MONTHLY = "income_monthly"
    INVESTMENT = "investment"
    INVESTMENT_CAPITAL = "investment_capital"
    DEBT = "debt"
    BUDGET = "budget"
    ACCOUNTING_ACCOUNTS = "accounting_accounts"
    ACCOUNTING_INVESTMENT_ACCOUNTS = "accounting_investment_accounts"


class MirrorConfigUpsert(BaseModel):
    target: MirrorTargetEnum
    sheet: str = Field(..., min_length=1, max_length=255, description="Sheet (tab) name")
    a1_range: str = Field(..., min_length=1, max_length=50, description="A1 range or base cell")


class MirrorConfigResponse(BaseModel):
    target: MirrorTargetEnum
    sheet: str
    a1_range: str

    @field_validator("target", mode="before")
    @classmethod
    def validate_target(cls, v):
        return enum_value(v)

    class Config:
        from_attributes = True
