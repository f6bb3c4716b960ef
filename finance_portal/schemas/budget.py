"""
Budget Schemas
Pydantic models for budget categories and budget lines
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


class CategoryCreate(BaseModel):
    """Schema for creating a budget category"""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class CategoryUpdate(BaseModel):
    """Schema for updating a budget category"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    """Schema for budget category response"""
    id: int
    name: str
    description: Optional[str] = None
    order: int
    is_active: bool

    class Config:
        from_attributes = True


class BudgetLineInput(BaseModel):
    """One requested line in a budget submission"""
    category_id: int
    amount: float = Field(..., ge=0)
    sponsor_amount: float = Field(0.0, ge=0)
    remarks: Optional[str] = None


class BudgetSubmit(BaseModel):
    """Budget submission for a bookable"""
    budgets: List[BudgetLineInput] = Field(..., min_length=1)

    @field_validator("budgets")
    @classmethod
    def unique_categories(cls, value: List[BudgetLineInput]) -> List[BudgetLineInput]:
        category_ids = [line.category_id for line in value]
        if len(category_ids) != len(set(category_ids)):
            raise ValueError("each category may appear only once per submission")
        return value


class BudgetLineResponse(BaseModel):
    """Schema for budget line response"""
    id: int
    bookable_id: int
    category: CategoryResponse
    amount: float
    sponsor_amount: float
    approved_amount: Optional[float] = None
    remarks: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
