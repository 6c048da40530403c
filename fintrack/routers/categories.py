from fastapi import APIRouter, Depends, status
from typing import List

from fintrack.models.category import CategoryCreate, CategoryResponse
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)

@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(category: CategoryCreate, ledger: Ledger = Depends(get_ledger)):
    """
    Create a new expense category.
    """
    return ledger.create_category(category)

@router.get("/", response_model=List[CategoryResponse])
def read_categories(ledger: Ledger = Depends(get_ledger)):
    return ledger.list_categories()
