"""
Notification Routes
In-app inbox of the signed-in user and admin broadcasts
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from finance_portal.config.database import get_db
from finance_portal.models.user import User
from finance_portal.schemas.notification import BroadcastCreate, NotificationHistoryResponse, NotificationResponse
from finance_portal.services.auth_service import auth_service
from finance_portal.services.notification_service import notification_service

router = APIRouter()


@router.get("/my-notifications")
async def list_notifications(
    unread_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_user)
):
    """
    Notifications addressed to the caller, newest first

    **Returns:**
    - total: Matching notifications before pagination
    - unread_count: Unread notifications overall
    """
    total, notifications = notification_service.inbox(db, current_user, unread_only, skip, limit)
    return {
        "success": True,
        "total": total,
        "unread_count": notification_service.unread_count(db, current_user),
        "notifications": [NotificationResponse.model_validate(n) for n in notifications]
    }


@router.get("/unread-count")
async def unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_user)
):
    return {"success": True, "unread_count": notification_service.unread_count(db, current_user)}


@router.put("/mark-all-read")
async def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_user)
):
    count = notification_service.mark_all_read(db, current_user)
    return {
        "success": True,
        "message": f"{count} notification(s) marked as read",
        "count": count
    }


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_user)
):
    changed = notification_service.mark_read(db, notification_id, current_user)
    return {
        "success": True,
        "message": "Notification marked as read" if changed else "Notification was already read"
    }


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_user)
):
    notification_service.delete(db, notification_id, current_user)
    return {"success": True, "message": "Notification deleted"}


@router.post("", status_code=status.HTTP_201_CREATED)
async def broadcast_notification(
    broadcast_in: BroadcastCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("broadcast_notifications"))
):
    """
    Send a message to all active users, one role or one user

    **Returns:**
    - count: Notifications written
    - history: Logged broadcast, usable with /resend/{id}
    """
    history = notification_service.broadcast(db, broadcast_in, current_user)
    return {
        "success": True,
        "message": "Notifications sent successfully",
        "count": history.sent_to_count,
        "history": NotificationHistoryResponse.model_validate(history)
    }


@router.get("/history")
async def list_broadcast_history(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("broadcast_notifications"))
):
    total, entries = notification_service.list_history(db, skip, limit)
    return {
        "success": True,
        "total": total,
        "history": [NotificationHistoryResponse.model_validate(h) for h in entries]
    }


@router.post("/resend/{history_id}")
async def resend_broadcast(
    history_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("broadcast_notifications"))
):
    """Send a logged broadcast again to whoever matches its audience now"""
    history = notification_service.resend(db, history_id, current_user)
    return {
        "success": True,
        "message": "Notification resent successfully",
        "count": history.sent_to_count,
        "history": NotificationHistoryResponse.model_validate(history)
    }
