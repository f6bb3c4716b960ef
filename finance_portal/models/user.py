"""
User Model
Represents portal users with role-based access control
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from finance_portal.config.database import Base


class UserRole(str, enum.Enum):
    """User roles"""
    ADMIN = "admin"
    EVENT_TEAM_LEAD = "event_team_lead"
    WORKSHOP_TEAM_LEAD = "workshop_team_lead"
    FINANCE_TEAM = "finance_team"
    FACILITIES_TEAM = "facilities_team"
    EVENT_COORDINATOR = "event_coordinator"
    WORKSHOP_COORDINATOR = "workshop_coordinator"


TEAM_LEAD_ROLES = (UserRole.EVENT_TEAM_LEAD, UserRole.WORKSHOP_TEAM_LEAD)
COORDINATOR_ROLES = (UserRole.EVENT_COORDINATOR, UserRole.WORKSHOP_COORDINATOR)
GLOBAL_VIEWER_ROLES = (UserRole.ADMIN, UserRole.FINANCE_TEAM, UserRole.FACILITIES_TEAM)


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)

    role = Column(Enum(UserRole), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    created_bookables = relationship("Bookable", back_populates="creator", foreign_keys="Bookable.creator_id")
    coordinated_bookables = relationship("Bookable", back_populates="coordinator", foreign_keys="Bookable.coordinator_id")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"

    @property
    def is_team_lead(self) -> bool:
        return self.role in TEAM_LEAD_ROLES
