"""
Venue Routes
Venue management and availability checks
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from finance_portal.config.database import get_db
from finance_portal.models.user import User
from finance_portal.schemas.bookable import BookableResponse
from finance_portal.schemas.venue import AvailabilityResponse, VenueCreate, VenueResponse, VenueUpdate
from finance_portal.services.auth_service import auth_service
from finance_portal.services.venue_service import venue_service

router = APIRouter()


@router.get("")
async def list_venues(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_venues"))
):
    """List venues for facilities and admins, active ones unless include_inactive is set"""
    venues = venue_service.list_venues(db, include_inactive)
    return {
        "success": True,
        "total": len(venues),
        "venues": [VenueResponse.model_validate(v) for v in venues]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_venue(
    venue_in: VenueCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_venues"))
):
    venue = venue_service.create_venue(db, venue_in, current_user)
    return {
        "success": True,
        "message": "Venue created successfully",
        "venue": VenueResponse.model_validate(venue)
    }


@router.get("/awaiting-assignment")
async def list_awaiting_assignment(
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("assign_venue"))
):
    """Approved events and workshops without a venue"""
    bookables = venue_service.list_awaiting_assignment(db)
    return {
        "success": True,
        "total": len(bookables),
        "bookables": [BookableResponse.model_validate(b) for b in bookables]
    }


@router.get("/{venue_id}/conflicts", response_model=AvailabilityResponse)
async def check_venue_availability(
    venue_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    exclude_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("assign_venue"))
):
    """
    Check whether a venue is free for a date range

    Admin and facilities only.

    **Parameters:**
    - start_date / end_date: Inclusive range to check
    - exclude_id: Bookable to ignore, typically the one being rescheduled
    """
    return venue_service.check_availability(db, venue_id, start_date, end_date, exclude_id)


@router.put("/{venue_id}")
async def update_venue(
    venue_id: int,
    venue_in: VenueUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_venues"))
):
    venue = venue_service.update_venue(db, venue_id, venue_in, current_user)
    return {
        "success": True,
        "message": "Venue updated successfully",
        "venue": VenueResponse.model_validate(venue)
    }


@router.delete("/{venue_id}")
async def delete_venue(
    venue_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_venues"))
):
    """Deactivate a venue, existing assignments are kept"""
    venue_service.deactivate_venue(db, venue_id, current_user)
    return {
        "success": True,
        "message": "Venue deleted successfully"
    }
