"""
Bookable Service
Lifecycle of events and workshops
"""

from typing import List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from finance_portal.config.database import transaction
from finance_portal.models.bookable import (
    Bookable,
    BookableKind,
    BookableStatus,
    TEAM_LEAD_FOR_KIND,
    COORDINATOR_FOR_KIND,
)
from finance_portal.models.user import User, UserRole
from finance_portal.schemas.bookable import BookableCreate, BookableUpdate
from finance_portal.services import audit_service
from finance_portal.services.notification_service import notification_service
from finance_portal.services.policy import can_access, is_allowed, scope_query
from finance_portal.services.venue_service import conflict_entry, venue_service
from finance_portal.utils.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
    ValidationError,
)
from finance_portal.utils.logger import setup_logger

logger = setup_logger()


class BookableService:
    """Service for event and workshop business logic"""

    def __init__(self):
        self.notification_service = notification_service

    def _resolve_coordinator(self, db: Session, kind: BookableKind, email: Optional[str]) -> Optional[User]:
        """Find the active coordinator of the matching kind for an email"""
        if not email:
            return None
        coordinator = db.query(User).filter(
            User.email == email.lower(),
            User.role == COORDINATOR_FOR_KIND[kind],
            User.is_active == True
        ).first()
        if coordinator is None:
            raise ValidationError(
                f"No active {COORDINATOR_FOR_KIND[kind].value} found with email {email}"
            )
        return coordinator

    def get_bookable(self, db: Session, kind: BookableKind, bookable_id: int, user: User) -> Bookable:
        """
        Load a bookable the user may see

        Raises:
            NotFoundError: Missing or of the other kind
            PermissionDeniedError: Outside the user's scope
        """
        bookable = db.query(Bookable).filter(
            Bookable.id == bookable_id,
            Bookable.kind == kind
        ).first()
        if bookable is None:
            raise NotFoundError(f"{kind.value.title()} {bookable_id} not found")
        if not can_access(user.role, user.id, bookable):
            raise PermissionDeniedError(f"You don't have access to this {kind.value}")
        return bookable

    def list_bookables(
        self,
        db: Session,
        kind: BookableKind,
        user: User,
        status: Optional[BookableStatus] = None,
        skip: int = 0,
        limit: int = 100
    ) -> Tuple[int, List[Bookable]]:
        """Bookables of one kind visible to the user, newest first"""
        query = scope_query(db.query(Bookable).filter(Bookable.kind == kind), user)
        if status is not None:
            query = query.filter(Bookable.status == status)
        total = query.count()
        items = query.order_by(Bookable.created_at.desc(), Bookable.id.desc()).offset(skip).limit(limit).all()
        return total, items

    def create_bookable(
        self,
        db: Session,
        kind: BookableKind,
        bookable_in: BookableCreate,
        actor: User,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> Bookable:
        """
        Create an event or workshop in pending status

        Raises:
            PermissionDeniedError: Team lead of the other kind
            ValidationError: Coordinator email does not resolve
        """
        if actor.role != UserRole.ADMIN and actor.role != TEAM_LEAD_FOR_KIND[kind]:
            raise PermissionDeniedError(f"Only {TEAM_LEAD_FOR_KIND[kind].value} or admin can create a {kind.value}")

        coordinator = self._resolve_coordinator(db, kind, bookable_in.coordinator_email)

        with transaction(db):
            bookable = Bookable(
                kind=kind,
                title=bookable_in.title.strip(),
                description=bookable_in.description,
                status=BookableStatus.PENDING,
                creator_id=actor.id,
                coordinator_id=coordinator.id if coordinator else None,
                start_date=bookable_in.start_date,
                end_date=bookable_in.end_date,
                start_time=bookable_in.start_time,
                end_time=bookable_in.end_time,
            )
            db.add(bookable)
            db.flush()
            audit_service.record(
                db, actor, f"create_{kind.value}", kind.value, bookable.id,
                f"Created {kind.value} '{bookable.title}'",
                changes={"new": bookable_in.model_dump(mode="json")}
            )

        db.refresh(bookable)
        logger.info(f"User {actor.id} created {kind.value} {bookable.id}")

        if coordinator:
            self._notify_coordinator(db, bookable, coordinator, actor, background_tasks)
        return bookable

    def update_bookable(
        self,
        db: Session,
        kind: BookableKind,
        bookable_id: int,
        bookable_in: BookableUpdate,
        actor: User,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> Bookable:
        """
        Update an event or workshop

        Team leads may edit their own bookables while pending or rejected;
        admins may edit in any status. Moving the dates of a bookable that
        already holds a venue is checked for conflicts.

        Raises:
            PermissionDeniedError: Role not allowed or not the creator
            PreconditionFailedError: Team lead editing outside pending/rejected
            ValidationError: Inverted date range or unknown coordinator
            ConflictError: New dates overlap another booking of the venue
        """
        if not is_allowed(actor.role, "update_bookable"):
            raise PermissionDeniedError(f"You don't have permission to edit this {kind.value}")

        bookable = self.get_bookable(db, kind, bookable_id, actor)

        if actor.is_team_lead and not bookable.is_editable:
            raise PreconditionFailedError(
                f"Cannot edit {kind.value} after it has been {bookable.status.value}"
            )

        updates = bookable_in.model_dump(exclude_unset=True)
        coordinator_email = updates.pop("coordinator_email", None)
        new_coordinator = None
        if coordinator_email:
            new_coordinator = self._resolve_coordinator(db, kind, coordinator_email)
            if new_coordinator.id != bookable.coordinator_id:
                updates["coordinator_id"] = new_coordinator.id
            else:
                new_coordinator = None

        if "title" in updates and updates["title"] is not None:
            updates["title"] = updates["title"].strip()
        if "title" in updates and not updates["title"]:
            raise ValidationError("title must not be empty")

        start = updates.get("start_date", bookable.start_date)
        end = updates.get("end_date", bookable.end_date)
        if start and end and end < start:
            raise ValidationError("end_date must be on or after start_date")

        dates_changed = start != bookable.start_date or end != bookable.end_date

        with transaction(db):
            if bookable.venue_id and dates_changed:
                # Same lock as assign_venue, held until commit
                venue_service.lock_venue(db, bookable.venue_id)
                conflicts = venue_service.find_conflicts(
                    db, bookable.venue_id, start, end, exclude_bookable_id=bookable.id
                )
                if conflicts:
                    raise ConflictError(
                        "New dates overlap another booking of the assigned venue",
                        conflicts=[conflict_entry(c) for c in conflicts]
                    )

            old = {}
            for field, value in updates.items():
                old[field] = getattr(bookable, field)
                setattr(bookable, field, value)
            audit_service.record(
                db, actor, f"update_{kind.value}", kind.value, bookable.id,
                f"Updated {kind.value} '{bookable.title}'",
                changes={
                    "old": {k: v.isoformat() if hasattr(v, "isoformat") else v for k, v in old.items()},
                    "new": {k: v.isoformat() if hasattr(v, "isoformat") else v for k, v in updates.items()},
                }
            )

        db.refresh(bookable)
        logger.info(f"User {actor.id} updated {kind.value} {bookable.id}: {sorted(updates)}")

        if new_coordinator:
            self._notify_coordinator(db, bookable, new_coordinator, actor, background_tasks)
        return bookable

    def delete_bookable(self, db: Session, kind: BookableKind, bookable_id: int, actor: User) -> dict:
        """
        Delete a bookable with its budget, approvals, expenses and notifications

        Returns:
            dict: Number of dependent rows removed per kind
        """
        if not is_allowed(actor.role, "delete_bookable"):
            raise PermissionDeniedError(f"Only admin can delete a {kind.value}")

        bookable = self.get_bookable(db, kind, bookable_id, actor)
        removed = {
            "budget_lines": len(bookable.budget_lines),
            "approvals": len(bookable.approvals),
            "expenses": len(bookable.expenses),
            "notifications": len(bookable.notifications),
        }

        with transaction(db):
            audit_service.record(
                db, actor, f"delete_{kind.value}", kind.value, bookable.id,
                f"Deleted {kind.value} '{bookable.title}'",
                changes={"old": {"title": bookable.title, "status": bookable.status.value}, "removed": removed}
            )
            db.delete(bookable)

        logger.info(f"User {actor.id} deleted {kind.value} {bookable_id} ({removed})")
        return removed

    def _notify_coordinator(
        self,
        db: Session,
        bookable: Bookable,
        coordinator: User,
        actor: User,
        background_tasks: Optional[BackgroundTasks]
    ):
        self.notification_service.notify(
            db,
            [coordinator],
            "coordinator_assigned",
            {"kind": bookable.kind.value, "title": bookable.title, "actor": actor.full_name},
            background_tasks,
            bookable_id=bookable.id
        )


# Create singleton instance
bookable_service = BookableService()
