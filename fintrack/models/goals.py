from pydantic import BaseModel, Field, field_validator
from typing import Optional
from decimal import Decimal


class YearlyGoalsUpsert(BaseModel):
    year: int = Field(..., ge=1900, le=9999)
    savings_goal: Decimal = Decimal("0.00")
    investment_goal: Decimal = Decimal("0.00")
    ideal_investment: Decimal = Decimal("0.00")

    @field_validator('savings_goal', 'investment_goal', 'ideal_investment')
    @classmethod
    def validate_goal(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class YearlyGoalsResponse(BaseModel):
    """Goals for one year. id is None when nothing has been stored for the year yet."""
    id: Optional[int] = None
    year: int
    savings_goal: Decimal
    investment_goal: Decimal
    ideal_investment: Decimal

    class Config:
        from_attributes = True
