"""
Notification Model
In-app notifications and the log of admin broadcasts
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from finance_portal.config.database import Base


class NotificationType(str, enum.Enum):
    """Notification types"""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(Base):
    """Notification model"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)

    # User
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Notification details
    type = Column(Enum(NotificationType), default=NotificationType.INFO, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)

    # Related bookable (optional)
    bookable_id = Column(Integer, ForeignKey("bookables.id"), nullable=True)

    # Status
    is_read = Column(Boolean, default=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    read_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="notifications")
    bookable = relationship("Bookable", back_populates="notifications")

    def __repr__(self):
        return f"<Notification {self.type.value} - User {self.user_id}>"


class BroadcastTarget(str, enum.Enum):
    """Audience of an admin broadcast"""
    ALL = "all"
    ROLE = "role"
    USER = "user"


class NotificationHistory(Base):
    """One admin broadcast, kept so it can be listed and resent"""
    __tablename__ = "notification_history"

    id = Column(Integer, primary_key=True, index=True)

    type = Column(Enum(NotificationType), default=NotificationType.INFO, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)

    # Audience
    target_type = Column(Enum(BroadcastTarget), nullable=False)
    target_role = Column(String, nullable=True)
    target_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    sent_to_count = Column(Integer, default=0, nullable=False)

    sent_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    sent_at = Column(DateTime, default=datetime.utcnow)

    sender = relationship("User", foreign_keys=[sent_by_id])

    def __repr__(self):
        return f"<NotificationHistory {self.target_type.value} x{self.sent_to_count}>"
