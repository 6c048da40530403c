from pydantic import BaseModel, Field, field_validator
from decimal import Decimal

# ===== BUDGET PYDANTIC MODELS =====

class BudgetUpsert(BaseModel):
    category_id: int = Field(..., description="The ID of the category")
    amount: Decimal = Field(..., ge=0, description="Monthly budget amount")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)

class BudgetResponse(BaseModel):
    id: int
    category_id: int
    amount: Decimal

    class Config:
        from_attributes = True

class BudgetByCategory(BaseModel):
    category_id: int
    category_name: str
    amount: Decimal
    spent: Decimal
