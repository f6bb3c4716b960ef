"""
Notification Service
In-app notifications with matching emails, admin broadcasts and the user inbox
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from finance_portal.config.database import transaction
from finance_portal.models.notification import BroadcastTarget, Notification, NotificationHistory, NotificationType
from finance_portal.models.user import User, UserRole
from finance_portal.schemas.notification import BroadcastCreate
from finance_portal.services import audit_service
from finance_portal.services.email_service import email_service
from finance_portal.utils.exceptions import NotFoundError, ValidationError
from finance_portal.utils.logger import setup_logger

logger = setup_logger()


# template name -> (type, title, message format)
NOTIFICATION_TEMPLATES: Dict[str, Tuple[NotificationType, str, str]] = {
    "coordinator_assigned": (
        NotificationType.INFO,
        "Assigned as coordinator",
        "You have been assigned as coordinator of {kind} '{title}' by {actor}."
    ),
    "budget_submitted": (
        NotificationType.INFO,
        "Budget submitted",
        "{actor} submitted a budget of {total} for {kind} '{title}'."
    ),
    "budget_approved": (
        NotificationType.SUCCESS,
        "Budget approved",
        "The budget for {kind} '{title}' was approved by {actor}. Remarks: {remarks}"
    ),
    "budget_rejected": (
        NotificationType.ERROR,
        "Budget rejected",
        "The budget for {kind} '{title}' was rejected by {actor}. Remarks: {remarks}"
    ),
    "venue_assigned": (
        NotificationType.INFO,
        "Venue assigned",
        "{venue} has been assigned to {kind} '{title}'."
    ),
    "expense_added": (
        NotificationType.INFO,
        "Expense recorded",
        "{actor} recorded '{item_name}' ({amount}) for {kind} '{title}'."
    ),
}


class NotificationService:
    """Service for managing notifications"""

    def active_users_with_role(self, db: Session, role: UserRole) -> List[User]:
        """Active users holding a role"""
        return db.query(User).filter(User.role == role, User.is_active == True).all()

    def notify(
        self,
        db: Session,
        recipients: Iterable[Optional[User]],
        template: str,
        data: dict,
        background_tasks: Optional[BackgroundTasks] = None,
        bookable_id: Optional[int] = None
    ) -> int:
        """
        Notify users in-app and by email

        Must be called after the primary change has been committed. Any
        failure is logged and swallowed so it never changes the outcome of
        the request that triggered it.

        Args:
            db: Database session
            recipients: Users to notify, None entries and duplicates are ignored
            template: Key of NOTIFICATION_TEMPLATES
            data: Values for the message format; ``title`` is always expected
            background_tasks: Request background tasks used to defer emails
            bookable_id: Bookable the notification refers to

        Returns:
            int: Number of in-app notifications written
        """
        unique: Dict[int, User] = {}
        for user in recipients:
            if user is not None and user.is_active:
                unique.setdefault(user.id, user)

        if not unique:
            logger.warning(f"No recipients for {template} notification")
            return 0

        try:
            notification_type, title, message_format = NOTIFICATION_TEMPLATES[template]
            message = message_format.format(**data)

            for user in unique.values():
                db.add(Notification(
                    user_id=user.id,
                    type=notification_type,
                    title=title,
                    message=message,
                    bookable_id=bookable_id
                ))
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to create {template} notifications: {str(e)}")
            return 0

        details = [("Title", str(data.get("title", ""))), ("Type", str(data.get("kind", "")).title())]
        subject_title = data.get("title", title)
        for user in unique.values():
            if background_tasks is not None:
                background_tasks.add_task(
                    self._deliver_email, user.email, user.full_name, template, subject_title, message, details
                )
            else:
                self._deliver_email(user.email, user.full_name, template, subject_title, message, details)

        logger.info(f"Sent {template} notification to {len(unique)} user(s)")
        return len(unique)

    def _deliver_email(self, to_email: str, recipient_name: str, template: str,
                       title: str, message: str, details: list) -> None:
        """Send one notification email, runs after the response in background tasks"""
        try:
            email_service.send_template(to_email, recipient_name, template, title, message, details)
        except Exception as e:
            logger.error(f"Failed to send {template} email to {to_email}: {str(e)}")

    # Admin broadcasts

    def _audience(self, db: Session, target_type: BroadcastTarget,
                  target_role: Optional[str], target_user_id: Optional[int]) -> List[User]:
        query = db.query(User).filter(User.is_active == True)
        if target_type == BroadcastTarget.ALL:
            return query.order_by(User.id).all()
        if target_type == BroadcastTarget.USER:
            user = query.filter(User.id == target_user_id).first()
            if user is None:
                raise ValidationError("Target user not found or inactive")
            return [user]
        return query.filter(User.role == UserRole(target_role)).order_by(User.id).all()

    def _send_broadcast(self, db: Session, history: NotificationHistory, actor: User,
                        action: str) -> NotificationHistory:
        with transaction(db):
            recipients = self._audience(db, history.target_type, history.target_role, history.target_user_id)
            for user in recipients:
                db.add(Notification(
                    user_id=user.id,
                    type=history.type,
                    title=history.title,
                    message=history.message
                ))
            history.sent_to_count = len(recipients)
            history.sent_by_id = actor.id
            db.add(history)
            db.flush()
            audit_service.record(
                db, actor, action, "notification_history", history.id,
                f"Sent '{history.title}' to {len(recipients)} user(s)",
                changes={"new": {"target_type": history.target_type.value,
                                 "target_role": history.target_role,
                                 "target_user_id": history.target_user_id}}
            )
        db.refresh(history)
        return history

    def broadcast(self, db: Session, broadcast_in: BroadcastCreate, actor: User) -> NotificationHistory:
        """
        Send an admin message to everyone, one role or one user

        The in-app notifications and the history entry are written together.

        Raises:
            ValidationError: No audience given, or the target user is missing or inactive
        """
        title = broadcast_in.title.strip()
        message = broadcast_in.message.strip()
        if not title or not message:
            raise ValidationError("title and message must not be empty")

        if broadcast_in.send_to_all:
            target = BroadcastTarget.ALL
        elif broadcast_in.target_user_id is not None:
            target = BroadcastTarget.USER
        elif broadcast_in.target_role is not None:
            target = BroadcastTarget.ROLE
        else:
            raise ValidationError("Either send_to_all, target_role or target_user_id must be specified")

        history = NotificationHistory(
            type=broadcast_in.type,
            title=title,
            message=message,
            target_type=target,
            target_role=broadcast_in.target_role.value if target == BroadcastTarget.ROLE else None,
            target_user_id=broadcast_in.target_user_id if target == BroadcastTarget.USER else None
        )
        history = self._send_broadcast(db, history, actor, "broadcast_notification")
        logger.info(f"Admin {actor.id} broadcast '{title}' to {history.sent_to_count} user(s)")
        return history

    def list_history(self, db: Session, skip: int = 0, limit: int = 20) -> Tuple[int, List[NotificationHistory]]:
        query = db.query(NotificationHistory)
        total = query.count()
        entries = query.order_by(
            NotificationHistory.sent_at.desc(), NotificationHistory.id.desc()
        ).offset(skip).limit(limit).all()
        return total, entries

    def resend(self, db: Session, history_id: int, actor: User) -> NotificationHistory:
        """Send a logged broadcast again to its current audience, logged as a new entry"""
        original = db.get(NotificationHistory, history_id)
        if original is None:
            raise NotFoundError("Notification history not found")

        history = NotificationHistory(
            type=original.type,
            title=original.title,
            message=original.message,
            target_type=original.target_type,
            target_role=original.target_role,
            target_user_id=original.target_user_id
        )
        history = self._send_broadcast(db, history, actor, "resend_notification")
        logger.info(f"Admin {actor.id} resent broadcast {history_id} as {history.id}")
        return history

    # Inbox

    def _unread(self, db: Session, user: User):
        return db.query(Notification).filter(
            Notification.user_id == user.id,
            Notification.is_read == False
        )

    def _get_own(self, db: Session, notification_id: int, user: User) -> Notification:
        notification = db.get(Notification, notification_id)
        if notification is None or notification.user_id != user.id:
            raise NotFoundError("Notification not found")
        return notification

    def inbox(self, db: Session, user: User, unread_only: bool = False,
              skip: int = 0, limit: int = 50) -> Tuple[int, List[Notification]]:
        """Newest first, with the total before pagination"""
        query = self._unread(db, user) if unread_only else db.query(Notification).filter(
            Notification.user_id == user.id
        )
        total = query.count()
        page = query.order_by(
            Notification.created_at.desc(), Notification.id.desc()
        ).offset(skip).limit(limit).all()
        return total, page

    def unread_count(self, db: Session, user: User) -> int:
        return self._unread(db, user).count()

    def mark_read(self, db: Session, notification_id: int, user: User) -> bool:
        """
        Mark one notification read

        Returns:
            bool: False if it was already read
        """
        notification = self._get_own(db, notification_id, user)
        if notification.is_read:
            return False
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
        return True

    def mark_all_read(self, db: Session, user: User) -> int:
        count = self._unread(db, user).update(
            {"is_read": True, "read_at": datetime.utcnow()},
            synchronize_session=False
        )
        db.commit()
        logger.info(f"User {user.id} marked {count} notifications as read")
        return count

    def delete(self, db: Session, notification_id: int, user: User) -> None:
        db.delete(self._get_own(db, notification_id, user))
        db.commit()
        logger.info(f"User {user.id} deleted notification {notification_id}")


# Create singleton instance
notification_service = NotificationService()
