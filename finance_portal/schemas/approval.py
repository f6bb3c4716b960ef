"""
Approval Schemas
Pydantic models for the budget review workflow
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from finance_portal.models.approval import ApprovalDecision
from finance_portal.schemas.user import UserSummary


class BudgetAdjustment(BaseModel):
    """Finance adjustment to one budget line"""
    category_id: int
    approved_amount: float = Field(..., ge=0)
    sponsor_amount: float = Field(0.0, ge=0)


class BudgetReview(BaseModel):
    """Schema for approving or rejecting a budget"""
    status: ApprovalDecision
    remarks: Optional[str] = None
    budget_adjustments: Optional[List[BudgetAdjustment]] = None


class ApprovalResponse(BaseModel):
    """Schema for approval response"""
    id: int
    bookable_id: int
    decision: ApprovalDecision
    remarks: str
    reviewer: UserSummary
    created_at: datetime

    class Config:
        from_attributes = True
