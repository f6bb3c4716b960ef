"""
Expense Schemas - Pydantic V2
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from finance_portal.schemas.budget import CategoryResponse
from finance_portal.schemas.user import UserSummary


class ExpenseCreate(BaseModel):
    """Schema for recording an expense"""
    bookable_id: int
    category_id: int
    item_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., ge=0)
    unit_price: float = Field(..., ge=0)
    amount: Optional[float] = Field(None, ge=0, description="Checked against quantity x unit_price")
    remarks: Optional[str] = None


class ExpenseUpdate(BaseModel):
    """Schema for updating an expense"""
    item_name: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[float] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    amount: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None


class ExpenseResponse(BaseModel):
    """Schema for expense response"""
    id: int
    bookable_id: int
    category: CategoryResponse
    item_name: str
    quantity: float
    unit_price: float
    amount: float
    remarks: Optional[str] = None
    added_by: UserSummary
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseListResponse(BaseModel):
    """Schema for list of expenses"""
    total: int
    expenses: List[ExpenseResponse]
