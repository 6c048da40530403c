from pydantic import BaseModel
from typing import Generic, List, TypeVar
from enum import Enum

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a newest-first listing plus the total row count."""
    items: List[T]
    total: int
    skip: int
    limit: int


def enum_value(value):
    """Unwrap an ORM enum member so a response model validates it by value."""
    if isinstance(value, Enum):
        return value.value
    return value
