from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, date
from decimal import Decimal


class IncomeCreate(BaseModel):
    transaction_date: date
    amount: Decimal
    description: Optional[str] = Field(None, max_length=500)
    account_id: int

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class IncomeResponse(BaseModel):
    id: int
    transaction_date: date
    amount: Decimal
    description: Optional[str]
    account_id: int
    created_at: datetime

    class Config:
        from_attributes = True
