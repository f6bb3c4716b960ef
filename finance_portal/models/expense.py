"""
Expense Model
Actual spending recorded against a bookable's budget category
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from finance_portal.config.database import Base


class Expense(Base):
    """Expense model"""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)

    bookable_id = Column(Integer, ForeignKey("bookables.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("budget_categories.id"), nullable=False, index=True)
    added_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    item_name = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    unit_price = Column(Float, nullable=False)
    amount = Column(Float, nullable=False)  # always quantity * unit_price
    remarks = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    bookable = relationship("Bookable", back_populates="expenses")
    category = relationship("BudgetCategory")
    added_by = relationship("User", foreign_keys=[added_by_id])

    def __repr__(self):
        return f"<Expense {self.item_name} - {self.amount}>"
