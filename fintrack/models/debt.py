from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, date
from decimal import Decimal

from fintrack.models.expense import ExpenseCreate, ExpenseResponse
from fintrack.models.income import IncomeCreate, IncomeResponse

# ===== DEBTOR MODELS =====

class DebtorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip()

class DebtorResponse(BaseModel):
    id: int
    name: str
    first_name: Optional[str]
    last_name: Optional[str]
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True

# ===== DEBT MODELS =====

class DebtCreate(BaseModel):
    description: Optional[str] = Field(None, max_length=500)
    amount: Decimal
    debtor_id: int
    debtor_name: Optional[str] = Field(None, max_length=100)
    transaction_date: date
    original_amount: Optional[Decimal] = None
    currency: str = Field(default="USD", min_length=3, max_length=3)
    outbound: bool = True
    account_id: Optional[int] = None
    expense_id: Optional[int] = None
    income_id: Optional[int] = None

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)

class DebtResponse(BaseModel):
    id: int
    description: Optional[str]
    amount: Decimal
    debtor_id: int
    debtor_name: Optional[str]
    transaction_date: date
    original_amount: Optional[Decimal]
    currency: str
    outbound: bool
    account_id: Optional[int]
    expense_id: Optional[int]
    income_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True

class DebtByDebtor(BaseModel):
    debtor_id: int
    debtor_name: str
    total_lent: Decimal
    total_received: Decimal
    net_owed: Decimal
    transaction_count: int

# ===== COMPOUND POSTINGS =====

class ExpenseWithDebtCreate(BaseModel):
    expense: ExpenseCreate
    debt: DebtCreate

class ExpenseWithDebtResponse(BaseModel):
    expense: ExpenseResponse
    debt: DebtResponse

class DebtRepaymentCreate(BaseModel):
    income: IncomeCreate
    debt: DebtCreate

class DebtRepaymentResponse(BaseModel):
    income: IncomeResponse
    debt: DebtResponse
