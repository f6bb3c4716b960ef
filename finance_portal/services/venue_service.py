"""
Venue Service
Venue management and double-booking detection across events and workshops
"""

from datetime import date
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from finance_portal.config.database import transaction
from finance_portal.models.bookable import Bookable, BookableKind, BookableStatus, BLOCKING_STATUSES
from finance_portal.models.user import User
from finance_portal.models.venue import Venue
from finance_portal.schemas.venue import VenueCreate, VenueUpdate
from finance_portal.services import audit_service
from finance_portal.services.notification_service import notification_service
from finance_portal.utils.exceptions import (
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
)
from finance_portal.utils.logger import setup_logger

logger = setup_logger()


def conflict_entry(bookable: Bookable) -> dict:
    """Serialize a conflicting booking for error bodies and availability checks"""
    return {
        "id": bookable.id,
        "kind": bookable.kind.value,
        "title": bookable.title,
        "start_date": bookable.start_date.isoformat() if bookable.start_date else None,
        "end_date": bookable.end_date.isoformat() if bookable.end_date else None,
        "creator": bookable.creator.full_name if bookable.creator else None,
    }


class VenueService:
    """Service for venues and venue assignment"""

    def __init__(self):
        self.notification_service = notification_service

    def get_active_venue(self, db: Session, venue_id: int, lock: bool = False) -> Venue:
        """
        Load an active venue

        Args:
            db: Database session
            venue_id: Venue ID
            lock: Take a row lock held until the surrounding transaction ends

        Raises:
            NotFoundError: If the venue does not exist or was deactivated
        """
        query = db.query(Venue).filter(Venue.id == venue_id, Venue.is_active == True)
        if lock:
            query = query.with_for_update()
        venue = query.first()
        if venue is None:
            raise NotFoundError(f"Venue {venue_id} not found")
        return venue

    def lock_venue(self, db: Session, venue_id: int) -> Optional[Venue]:
        """Lock a venue row, active or not, until the surrounding transaction ends"""
        return db.query(Venue).filter(Venue.id == venue_id).with_for_update().first()

    def find_conflicts(
        self,
        db: Session,
        venue_id: int,
        start: Optional[date],
        end: Optional[date],
        exclude_bookable_id: Optional[int] = None
    ) -> List[Bookable]:
        """
        Find bookings of either kind that overlap [start, end] on a venue

        Intervals are inclusive on both ends, so a booking ending on the day
        another starts is a conflict. Only approved and pending bookings hold
        the venue. A missing bound on either side means no conflict.

        Args:
            db: Database session
            venue_id: Venue to check
            start: First day of the candidate booking
            end: Last day of the candidate booking
            exclude_bookable_id: The candidate itself, when already stored

        Returns:
            list: Conflicting bookables ordered by start date
        """
        if start is None or end is None:
            return []

        query = db.query(Bookable).filter(
            Bookable.venue_id == venue_id,
            Bookable.status.in_(BLOCKING_STATUSES),
            Bookable.start_date.isnot(None),
            Bookable.end_date.isnot(None),
            Bookable.start_date <= end,
            Bookable.end_date >= start
        )
        if exclude_bookable_id is not None:
            query = query.filter(Bookable.id != exclude_bookable_id)

        return query.order_by(Bookable.start_date, Bookable.id).all()

    def check_availability(
        self,
        db: Session,
        venue_id: int,
        start: Optional[date],
        end: Optional[date],
        exclude_bookable_id: Optional[int] = None
    ) -> dict:
        """Availability of a venue for a date range"""
        if start and end and end < start:
            raise ValidationError("end_date must be on or after start_date")
        self.get_active_venue(db, venue_id)
        conflicts = self.find_conflicts(db, venue_id, start, end, exclude_bookable_id)
        return {
            "venue_id": venue_id,
            "available": not conflicts,
            "conflicts": [conflict_entry(b) for b in conflicts],
        }

    def assign_venue(
        self,
        db: Session,
        bookable_id: int,
        venue_id: Optional[int],
        actor: User,
        background_tasks: Optional[BackgroundTasks] = None,
        kind: Optional[BookableKind] = None
    ) -> Bookable:
        """
        Assign a venue to an approved bookable

        The venue row is locked for the whole check-then-write transaction so
        two concurrent assignments to the same venue are serialized.

        Raises:
            ValidationError: venue_id missing
            NotFoundError: bookable or venue missing, or venue inactive
            PreconditionFailedError: bookable not approved
            ConflictError: overlapping booking on the venue
        """
        if venue_id is None:
            raise ValidationError("venue_id is required")

        with transaction(db):
            query = db.query(Bookable).filter(Bookable.id == bookable_id)
            if kind is not None:
                query = query.filter(Bookable.kind == kind)
            bookable = query.first()
            if bookable is None:
                raise NotFoundError(f"Bookable {bookable_id} not found")

            if bookable.status != BookableStatus.APPROVED:
                raise PreconditionFailedError(
                    f"Only approved {bookable.kind.value}s can be assigned a venue "
                    f"(current status: {bookable.status.value})"
                )

            venue = self.get_active_venue(db, venue_id, lock=True)

            conflicts = self.find_conflicts(
                db, venue.id, bookable.start_date, bookable.end_date, exclude_bookable_id=bookable.id
            )
            if conflicts:
                logger.info(
                    f"Venue {venue.id} conflicts for {bookable.kind.value} {bookable.id}: "
                    f"{[c.id for c in conflicts]}"
                )
                raise ConflictError(
                    f"Venue '{venue.name}' is already booked for overlapping dates",
                    conflicts=[conflict_entry(c) for c in conflicts]
                )

            old_venue_id = bookable.venue_id
            bookable.venue_id = venue.id
            audit_service.record(
                db, actor, "assign_venue", bookable.kind.value, bookable.id,
                f"Assigned venue '{venue.name}' to {bookable.kind.value} '{bookable.title}'",
                changes={"old": {"venue_id": old_venue_id}, "new": {"venue_id": venue.id}}
            )

        db.refresh(bookable)
        logger.info(f"User {actor.id} assigned venue {venue.id} to {bookable.kind.value} {bookable.id}")

        self.notification_service.notify(
            db,
            [bookable.creator, bookable.coordinator],
            "venue_assigned",
            {"kind": bookable.kind.value, "title": bookable.title, "venue": venue.name},
            background_tasks,
            bookable_id=bookable.id
        )
        return bookable

    def list_venues(self, db: Session, include_inactive: bool = False) -> List[Venue]:
        query = db.query(Venue)
        if not include_inactive:
            query = query.filter(Venue.is_active == True)
        return query.order_by(Venue.name).all()

    def create_venue(self, db: Session, venue_in: VenueCreate, actor: User) -> Venue:
        with transaction(db):
            venue = Venue(**venue_in.model_dump())
            db.add(venue)
            db.flush()
            audit_service.record(
                db, actor, "create_venue", "venue", venue.id, f"Created venue '{venue.name}'",
                changes={"new": venue_in.model_dump()}
            )
        db.refresh(venue)
        return venue

    def update_venue(self, db: Session, venue_id: int, venue_in: VenueUpdate, actor: User) -> Venue:
        venue = db.query(Venue).filter(Venue.id == venue_id).first()
        if venue is None:
            raise NotFoundError(f"Venue {venue_id} not found")

        updates = venue_in.model_dump(exclude_unset=True)
        with transaction(db):
            old = {field: getattr(venue, field) for field in updates}
            for field, value in updates.items():
                setattr(venue, field, value)
            audit_service.record(
                db, actor, "update_venue", "venue", venue.id, f"Updated venue '{venue.name}'",
                changes={"old": old, "new": updates}
            )
        db.refresh(venue)
        return venue

    def deactivate_venue(self, db: Session, venue_id: int, actor: User) -> Venue:
        """Soft delete; existing assignments are kept"""
        venue = self.get_active_venue(db, venue_id)
        with transaction(db):
            venue.is_active = False
            audit_service.record(
                db, actor, "delete_venue", "venue", venue.id, f"Deactivated venue '{venue.name}'",
                changes={"old": {"is_active": True}, "new": {"is_active": False}}
            )
        return venue

    def list_awaiting_assignment(self, db: Session) -> List[Bookable]:
        """Approved bookables of both kinds that have no venue yet"""
        return db.query(Bookable).filter(
            Bookable.status == BookableStatus.APPROVED,
            Bookable.venue_id.is_(None)
        ).order_by(Bookable.start_date, Bookable.id).all()


# Create singleton instance
venue_service = VenueService()
