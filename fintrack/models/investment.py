from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from fintrack.models.common import enum_value


class InvestmentMovementTypeEnum(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class InvestmentMovementCreate(BaseModel):
    transaction_date: date
    description: Optional[str] = Field(None, max_length=500)
    amount: Decimal
    investment_account_id: int
    # Free text on input; checked case-insensitively by the posting validator
    kind: str
    source_account_id: Optional[int] = None

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class InvestmentMovementResponse(BaseModel):
    id: int
    transaction_date: date
    description: Optional[str]
    amount: Decimal
    investment_account_id: int
    kind: InvestmentMovementTypeEnum
    source_account_id: Optional[int]
    created_at: datetime

    @field_validator("kind", mode="before")
    @classmethod
    def validate_kind(cls, v):
        return enum_value(v)

    class Config:
        from_attributes = True
