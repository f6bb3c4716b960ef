"""
Budget Approval Model
Append-only review history for a bookable's budget
"""

from sqlalchemy import Column, Integer, DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from finance_portal.config.database import Base


class ApprovalDecision(str, enum.Enum):
    """Review outcome"""
    APPROVED = "approved"
    REJECTED = "rejected"


class BudgetApproval(Base):
    """One finance review of a bookable budget, never updated after insert"""
    __tablename__ = "budget_approvals"

    id = Column(Integer, primary_key=True, index=True)

    bookable_id = Column(Integer, ForeignKey("bookables.id"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    decision = Column(Enum(ApprovalDecision), nullable=False)
    remarks = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    bookable = relationship("Bookable", back_populates="approvals")
    reviewer = relationship("User", foreign_keys=[reviewer_id])

    def __repr__(self):
        return f"<BudgetApproval {self.bookable_id} - {self.decision.value}>"
