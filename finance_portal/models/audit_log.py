"""
Audit Log Model
Tracks state-changing actions for compliance and auditing
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from finance_portal.config.database import Base


class AuditLog(Base):
    """Audit log model"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # User who performed the action; nulled when that user is deleted
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Action details
    action = Column(String, nullable=False)  # e.g., "assign_venue", "review_budget"
    entity_type = Column(String, nullable=False)  # e.g., "event", "venue", "user"
    entity_id = Column(Integer, nullable=True)

    # Details
    description = Column(Text, nullable=False)
    changes = Column(JSON, nullable=True)  # {"old": {...}, "new": {...}}

    # Timestamp
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User")

    def __repr__(self):
        return f"<AuditLog {self.action} by User {self.user_id}>"
