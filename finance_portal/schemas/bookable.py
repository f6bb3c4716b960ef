"""
Bookable Schemas
Pydantic models for events and workshops
"""

from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
from datetime import datetime, date

from finance_portal.models.bookable import BookableKind, BookableStatus
from finance_portal.schemas.user import UserSummary
from finance_portal.schemas.venue import VenueSummary

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class BookableBase(BaseModel):
    """Fields shared by create and update"""
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    coordinator_email: Optional[EmailStr] = None

    @model_validator(mode='after')
    def validate_dates(self):
        """Ensure the date range is not inverted"""
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class BookableCreate(BookableBase):
    """Schema for creating an event or workshop"""
    title: str = Field(..., min_length=1, max_length=200)


class BookableUpdate(BookableBase):
    """Schema for updating an event or workshop, all fields optional"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)


class BookableResponse(BaseModel):
    """Schema for bookable response"""
    id: int
    kind: BookableKind
    title: str
    description: Optional[str] = None
    status: BookableStatus
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    creator: UserSummary
    coordinator: Optional[UserSummary] = None
    venue: Optional[VenueSummary] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
