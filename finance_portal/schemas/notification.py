"""
Notification Schemas
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from finance_portal.models.notification import BroadcastTarget, NotificationType
from finance_portal.models.user import UserRole
from finance_portal.schemas.user import UserSummary


class NotificationResponse(BaseModel):
    """Schema for notification response"""
    id: int
    type: NotificationType
    title: str
    message: str
    bookable_id: Optional[int] = None
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BroadcastCreate(BaseModel):
    """
    Admin broadcast

    The audience is everyone when send_to_all is set, otherwise the target
    user, otherwise every active user holding target_role.
    """
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
    send_to_all: bool = False
    target_role: Optional[UserRole] = None
    target_user_id: Optional[int] = None


class NotificationHistoryResponse(BaseModel):
    """Schema for a logged broadcast"""
    id: int
    type: NotificationType
    title: str
    message: str
    target_type: BroadcastTarget
    target_role: Optional[str] = None
    target_user_id: Optional[int] = None
    sent_to_count: int
    sender: Optional[UserSummary] = None
    sent_at: datetime

    class Config:
        from_attributes = True
