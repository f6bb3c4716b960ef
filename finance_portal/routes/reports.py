"""
Report Routes
Portal-wide financial summaries
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finance_portal.config.database import get_db
from finance_portal.models.user import User
from finance_portal.services.auth_service import auth_service
from finance_portal.services.summary_service import summary_service

router = APIRouter()


@router.get("/overall-summary")
async def get_overall_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("view_overall_summary"))
):
    """
    Budget and spend totals across all events and workshops (Finance/Admin)

    **Returns:**
    - bookables: Counts per kind and status
    - totals: Requested, approved and sponsored budget and total expenses
    - expenses_by_category: Spend per category name
    """
    return {
        "success": True,
        **summary_service.overall_summary(db)
    }
