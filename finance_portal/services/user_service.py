"""
User Service
Admin management of portal users
"""

from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from finance_portal.config.database import transaction
from finance_portal.models.approval import BudgetApproval
from finance_portal.models.audit_log import AuditLog
from finance_portal.models.expense import Expense
from finance_portal.models.notification import NotificationHistory
from finance_portal.models.user import User, UserRole
from finance_portal.schemas.user import UserCreate, UserUpdate
from finance_portal.services import audit_service
from finance_portal.utils.exceptions import ConflictError, NotFoundError, ValidationError
from finance_portal.utils.logger import setup_logger

logger = setup_logger()


class UserService:
    """Service for user administration"""

    def get_user(self, db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def list_users(
        self,
        db: Session,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100
    ) -> Tuple[int, List[User]]:
        query = db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        total = query.count()
        return total, query.order_by(User.id).offset(skip).limit(limit).all()

    def _ensure_email_free(self, db: Session, email: str, exclude_id: Optional[int] = None):
        query = db.query(User).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError(f"A user with email {email} already exists")

    def create_user(self, db: Session, user_in: UserCreate, actor: User) -> User:
        email = user_in.email.lower()
        self._ensure_email_free(db, email)

        with transaction(db):
            user = User(email=email, full_name=user_in.full_name.strip(), role=user_in.role, is_active=True)
            db.add(user)
            db.flush()
            audit_service.record(
                db, actor, "create_user", "user", user.id,
                f"Created user {email} with role {user.role.value}",
                changes={"new": {"email": email, "role": user.role.value}}
            )

        db.refresh(user)
        logger.info(f"Admin {actor.id} created user {user.id} ({user.role.value})")
        return user

    def update_user(self, db: Session, user_id: int, user_in: UserUpdate, actor: User) -> User:
        user = self.get_user(db, user_id)
        updates = user_in.model_dump(exclude_unset=True)

        if "email" in updates and updates["email"] is not None:
            updates["email"] = updates["email"].lower()
            self._ensure_email_free(db, updates["email"], exclude_id=user.id)

        if user.id == actor.id and (updates.get("is_active") is False or updates.get("role", actor.role) != actor.role):
            raise ValidationError("You cannot deactivate or change the role of your own account")

        with transaction(db):
            old = {}
            for field, value in updates.items():
                if value is None:
                    continue
                old[field] = getattr(user, field)
                setattr(user, field, value)
            audit_service.record(
                db, actor, "update_user", "user", user.id, f"Updated user {user.email}",
                changes={
                    "old": {k: getattr(v, "value", v) for k, v in old.items()},
                    "new": {k: getattr(v, "value", v) for k, v in updates.items() if k in old},
                }
            )

        db.refresh(user)
        return user

    def delete_user(self, db: Session, user_id: int, actor: User) -> dict:
        """
        Delete a user and everything that only makes sense with them

        Their bookables go with their budget lines, approvals, expenses and
        notifications. Bookables they coordinate lose the coordinator. Their
        reviews, expenses and notifications are removed. Audit history is
        kept with the user reference cleared, and so is the broadcast log.
        All in one transaction.

        Returns:
            dict: Number of rows affected per kind
        """
        if user_id == actor.id:
            raise ValidationError("You cannot delete your own account")

        user = self.get_user(db, user_id)

        with transaction(db):
            created = list(user.created_bookables)
            coordinated = [b for b in user.coordinated_bookables if b.creator_id != user.id]
            approvals = db.query(BudgetApproval).filter(BudgetApproval.reviewer_id == user.id).all()
            expenses = db.query(Expense).filter(Expense.added_by_id == user.id).all()

            for bookable in coordinated:
                bookable.coordinator_id = None
            for approval in approvals:
                db.delete(approval)
            for expense in expenses:
                db.delete(expense)
            for bookable in created:
                db.delete(bookable)

            audit_rows = db.query(AuditLog).filter(AuditLog.user_id == user.id).update(
                {AuditLog.user_id: None}, synchronize_session=False
            )
            sent_rows = db.query(NotificationHistory).filter(NotificationHistory.sent_by_id == user.id).update(
                {NotificationHistory.sent_by_id: None}, synchronize_session=False
            )
            db.query(NotificationHistory).filter(NotificationHistory.target_user_id == user.id).update(
                {NotificationHistory.target_user_id: None}, synchronize_session=False
            )
            db.flush()
            db.expire(user, ["created_bookables", "coordinated_bookables"])

            summary = {
                "bookables_deleted": len(created),
                "coordinator_cleared": len(coordinated),
                "approvals_deleted": len(approvals),
                "expenses_deleted": len(expenses),
                "audit_logs_detached": audit_rows,
                "broadcasts_detached": sent_rows,
            }
            audit_service.record(
                db, actor, "delete_user", "user", user.id, f"Deleted user {user.email}",
                changes={"old": {"email": user.email, "role": user.role.value}, "removed": summary}
            )
            db.delete(user)

        logger.info(f"Admin {actor.id} deleted user {user_id} ({summary})")
        return summary


# Create singleton instance
user_service = UserService()
