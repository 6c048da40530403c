from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, date
from decimal import Decimal


class TransferCreate(BaseModel):
    transaction_date: date
    description: Optional[str] = Field(None, max_length=500)
    source_account_id: int
    source_amount: Decimal
    dest_account_id: int
    dest_amount: Decimal
    # Derived as dest_amount / source_amount when omitted
    exchange_rate: Optional[Decimal] = None

    @field_validator('source_amount', 'dest_amount')
    @classmethod
    def validate_amounts(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class TransferResponse(BaseModel):
    id: int
    transaction_date: date
    description: Optional[str]
    source_account_id: int
    source_amount: Decimal
    dest_account_id: int
    dest_amount: Decimal
    exchange_rate: Optional[Decimal]
    created_at: datetime

    class Config:
        from_attributes = True
