"""
Bookable Model
Events and workshops share one table and one approval lifecycle
"""

from sqlalchemy import Column, Integer, String, Date, DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from finance_portal.config.database import Base
from finance_portal.models.user import UserRole


class BookableKind(str, enum.Enum):
    """Kinds of bookable activities"""
    EVENT = "event"
    WORKSHOP = "workshop"


class BookableStatus(str, enum.Enum):
    """Bookable status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


# Statuses in which a team lead may still edit or re-submit
EDITABLE_STATUSES = (BookableStatus.PENDING, BookableStatus.REJECTED)

# Statuses that hold a venue for their date range
BLOCKING_STATUSES = (BookableStatus.APPROVED, BookableStatus.PENDING)

TEAM_LEAD_FOR_KIND = {
    BookableKind.EVENT: UserRole.EVENT_TEAM_LEAD,
    BookableKind.WORKSHOP: UserRole.WORKSHOP_TEAM_LEAD,
}

COORDINATOR_FOR_KIND = {
    BookableKind.EVENT: UserRole.EVENT_COORDINATOR,
    BookableKind.WORKSHOP: UserRole.WORKSHOP_COORDINATOR,
}


class Bookable(Base):
    """Event or workshop"""
    __tablename__ = "bookables"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(Enum(BookableKind), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(BookableStatus), default=BookableStatus.PENDING, nullable=False, index=True)

    # People
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    coordinator_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Scheduling
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=True, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    creator = relationship("User", back_populates="created_bookables", foreign_keys=[creator_id])
    coordinator = relationship("User", back_populates="coordinated_bookables", foreign_keys=[coordinator_id])
    venue = relationship("Venue", back_populates="bookables")
    budget_lines = relationship("BudgetLine", back_populates="bookable", cascade="all, delete-orphan")
    approvals = relationship(
        "BudgetApproval",
        back_populates="bookable",
        cascade="all, delete-orphan",
        order_by="BudgetApproval.id.desc()"
    )
    expenses = relationship("Expense", back_populates="bookable", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="bookable", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Bookable {self.kind.value}:{self.id} - {self.status.value}>"

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_STATUSES
