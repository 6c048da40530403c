from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, date
from decimal import Decimal


class ExpenseCreate(BaseModel):
    transaction_date: date
    category: Optional[str] = Field(None, max_length=100)
    category_id: Optional[int] = None
    amount: Decimal
    description: Optional[str] = Field(None, max_length=500)
    method: Optional[str] = Field(None, max_length=50)
    original_amount: Optional[Decimal] = None
    account_id: int
    account_type: Optional[str] = Field(None, max_length=50)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class ExpenseResponse(BaseModel):
    id: int
    transaction_date: date
    category: Optional[str]
    category_id: Optional[int]
    amount: Decimal
    description: Optional[str]
    method: Optional[str]
    original_amount: Optional[Decimal]
    account_id: int
    account_type: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
