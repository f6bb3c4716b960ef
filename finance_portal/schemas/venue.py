"""
Venue Schemas
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date

from finance_portal.models.bookable import BookableKind


class VenueCreate(BaseModel):
    """Schema for creating a venue"""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    location: Optional[str] = None
    facilities: Optional[str] = None


class VenueUpdate(BaseModel):
    """Schema for updating a venue"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    location: Optional[str] = None
    facilities: Optional[str] = None
    is_active: Optional[bool] = None


class VenueSummary(BaseModel):
    """Compact venue reference"""
    id: int
    name: str
    capacity: Optional[int] = None

    class Config:
        from_attributes = True


class VenueResponse(VenueSummary):
    """Schema for venue response"""
    description: Optional[str] = None
    location: Optional[str] = None
    facilities: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class VenueAssign(BaseModel):
    """Request body for venue assignment"""
    venue_id: Optional[int] = None


class ConflictEntry(BaseModel):
    """A booking that overlaps the requested interval"""
    id: int
    kind: BookableKind
    title: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    creator: str


class AvailabilityResponse(BaseModel):
    """Result of an availability check"""
    venue_id: int
    available: bool
    conflicts: List[ConflictEntry]
