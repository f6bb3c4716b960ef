"""
Budget Models
Budget categories and per-category budget lines of a bookable
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from finance_portal.config.database import Base


class BudgetCategory(Base):
    """Budget category, soft-deleted through is_active"""
    __tablename__ = "budget_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<BudgetCategory {self.name}>"


class BudgetLine(Base):
    """Requested and approved amount for one category of a bookable"""
    __tablename__ = "budget_lines"
    __table_args__ = (
        UniqueConstraint("bookable_id", "category_id", name="uq_budget_line_bookable_category"),
    )

    id = Column(Integer, primary_key=True, index=True)

    bookable_id = Column(Integer, ForeignKey("bookables.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("budget_categories.id"), nullable=False)

    amount = Column(Float, nullable=False)
    sponsor_amount = Column(Float, default=0.0, nullable=False)
    approved_amount = Column(Float, nullable=True)
    remarks = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    bookable = relationship("Bookable", back_populates="budget_lines")
    category = relationship("BudgetCategory")

    def __repr__(self):
        return f"<BudgetLine {self.bookable_id}/{self.category_id} - {self.amount}>"

    @property
    def effective_amount(self) -> float:
        """Approved amount once finance has set one, requested amount before"""
        return self.approved_amount if self.approved_amount is not None else self.amount
