"""
Bookable Routes
Event and workshop endpoints, including budgets, reviews and venue assignment

Events and workshops expose the same endpoints; one router is built per kind.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from finance_portal.config.database import get_db
from finance_portal.models.bookable import BookableKind, BookableStatus
from finance_portal.models.user import User
from finance_portal.schemas.approval import ApprovalResponse, BudgetReview
from finance_portal.schemas.bookable import BookableCreate, BookableResponse, BookableUpdate
from finance_portal.schemas.budget import BudgetLineResponse, BudgetSubmit
from finance_portal.schemas.venue import VenueAssign
from finance_portal.services.auth_service import auth_service
from finance_portal.services.bookable_service import bookable_service
from finance_portal.services.budget_service import budget_service
from finance_portal.services.summary_service import summary_service
from finance_portal.services.venue_service import venue_service
from finance_portal.utils.logger import setup_logger

logger = setup_logger()


def build_router(kind: BookableKind) -> APIRouter:
    """
    Build the router for one bookable kind

    Args:
        kind: Event or workshop

    Returns:
        APIRouter: Router to mount under /api/events or /api/workshops
    """
    router = APIRouter()
    singular = kind.value
    plural = f"{kind.value}s"

    @router.get("")
    async def list_bookables(
        status_filter: Optional[BookableStatus] = Query(None, alias="status"),
        skip: int = 0,
        limit: int = 100,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.get_current_user)
    ):
        """
        List bookables visible to the current user

        **Parameters:**
        - status: Only return this status
        - skip / limit: Pagination
        """
        total, items = bookable_service.list_bookables(db, kind, current_user, status_filter, skip, limit)
        return {
            "success": True,
            "total": total,
            plural: [BookableResponse.model_validate(b) for b in items]
        }

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_bookable(
        bookable_in: BookableCreate,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.require_action("create_bookable"))
    ):
        """Create a bookable in pending status"""
        bookable = bookable_service.create_bookable(db, kind, bookable_in, current_user, background_tasks)
        return {
            "success": True,
            "message": f"{singular.title()} created successfully",
            singular: BookableResponse.model_validate(bookable)
        }

    @router.get("/{bookable_id}")
    async def get_bookable(
        bookable_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.get_current_user)
    ):
        """Get one bookable with its latest budget decision"""
        bookable = bookable_service.get_bookable(db, kind, bookable_id, current_user)
        latest = budget_service.latest_approval(db, bookable.id)
        return {
            "success": True,
            singular: BookableResponse.model_validate(bookable),
            "latest_approval": ApprovalResponse.model_validate(latest) if latest else None
        }

    @router.put("/{bookable_id}")
    async def update_bookable(
        bookable_id: int,
        bookable_in: BookableUpdate,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.require_action("update_bookable"))
    ):
        """Update a bookable, team leads only while pending or rejected"""
        bookable = bookable_service.update_bookable(db, kind, bookable_id, bookable_in, current_user, background_tasks)
        return {
            "success": True,
            "message": f"{singular.title()} updated successfully",
            singular: BookableResponse.model_validate(bookable)
        }

    @router.delete("/{bookable_id}")
    async def delete_bookable(
        bookable_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.require_action("delete_bookable"))
    ):
        """
        Delete a bookable (Admin only)

        **Warning:** Budget lines, approvals, expenses and notifications are
        removed with it.
        """
        removed = bookable_service.delete_bookable(db, kind, bookable_id, current_user)
        return {
            "success": True,
            "message": f"{singular.title()} deleted successfully",
            "removed": removed
        }

    @router.post("/{bookable_id}/budgets")
    async def submit_budget(
        bookable_id: int,
        budget_in: BudgetSubmit,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.require_action("submit_budget"))
    ):
        """Create or update budget lines by category"""
        bookable_service.get_bookable(db, kind, bookable_id, current_user)
        lines = budget_service.submit_budget(db, bookable_id, budget_in.budgets, current_user, background_tasks)
        return {
            "success": True,
            "message": "Budget submitted successfully",
            "budgets": [BudgetLineResponse.model_validate(line) for line in lines]
        }

    @router.get("/{bookable_id}/budgets")
    async def list_budget_lines(
        bookable_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.get_current_user)
    ):
        bookable = bookable_service.get_bookable(db, kind, bookable_id, current_user)
        lines = budget_service.list_budget_lines(db, bookable.id)
        return {
            "success": True,
            "budgets": [BudgetLineResponse.model_validate(line) for line in lines]
        }

    @router.post("/{bookable_id}/review")
    async def review_budget(
        bookable_id: int,
        review: BudgetReview,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.require_action("review_budget"))
    ):
        """
        Approve or reject the budget (Finance team)

        **Parameters:**
        - status: approved or rejected
        - remarks: Required reviewer remarks
        - budget_adjustments: Optional approved/sponsor amounts per category
        """
        bookable_service.get_bookable(db, kind, bookable_id, current_user)
        approval = budget_service.review_budget(
            db, bookable_id, review.status, review.remarks, review.budget_adjustments,
            current_user, background_tasks
        )
        return {
            "success": True,
            "message": f"Budget {review.status.value} successfully",
            "approval": ApprovalResponse.model_validate(approval),
            "status": approval.bookable.status.value
        }

    @router.get("/{bookable_id}/approvals")
    async def list_approvals(
        bookable_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.get_current_user)
    ):
        """Review history, newest first"""
        bookable = bookable_service.get_bookable(db, kind, bookable_id, current_user)
        approvals = budget_service.list_approvals(db, bookable.id)
        return {
            "success": True,
            "total": len(approvals),
            "approvals": [ApprovalResponse.model_validate(a) for a in approvals]
        }

    @router.get("/{bookable_id}/summary")
    async def get_summary(
        bookable_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.get_current_user)
    ):
        """Budget versus spend per category"""
        bookable = bookable_service.get_bookable(db, kind, bookable_id, current_user)
        return {
            "success": True,
            "summary": summary_service.summarize(db, bookable.id)
        }

    @router.get("/{bookable_id}/report")
    async def get_financial_report(
        bookable_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.get_current_user)
    ):
        """Budget lines, expenses and totals"""
        bookable = bookable_service.get_bookable(db, kind, bookable_id, current_user)
        return {
            "success": True,
            "report": summary_service.financial_report(db, bookable)
        }

    @router.post("/{bookable_id}/assign-venue")
    async def assign_venue(
        bookable_id: int,
        assignment: VenueAssign,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db),
        current_user: User = Depends(auth_service.require_action("assign_venue"))
    ):
        """
        Assign a venue (Facilities team)

        **Errors:**
        - 400: venue_id missing or the bookable is not approved
        - 404: bookable or venue not found
        - 409: overlapping booking, the body lists the conflicts
        """
        bookable = venue_service.assign_venue(
            db, bookable_id, assignment.venue_id, current_user, background_tasks, kind=kind
        )
        return {
            "success": True,
            "message": "Venue assigned successfully",
            singular: BookableResponse.model_validate(bookable)
        }

    return router


events_router = build_router(BookableKind.EVENT)
workshops_router = build_router(BookableKind.WORKSHOP)
