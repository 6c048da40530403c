from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Category name")
    description: Optional[str] = None
    is_essential: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip()


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    is_essential: bool
    created_at: datetime

    class Config:
        from_attributes = True
