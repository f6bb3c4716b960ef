"""
Budget Service
Budget submission and the finance review workflow
"""

from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from finance_portal.config.database import transaction
from finance_portal.models.approval import ApprovalDecision, BudgetApproval
from finance_portal.models.bookable import Bookable, BookableStatus
from finance_portal.models.budget import BudgetCategory, BudgetLine
from finance_portal.models.user import User, UserRole
from finance_portal.schemas.approval import BudgetAdjustment
from finance_portal.schemas.budget import BudgetLineInput
from finance_portal.services import audit_service
from finance_portal.services.notification_service import notification_service
from finance_portal.services.policy import is_allowed
from finance_portal.utils.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
    ValidationError,
)
from finance_portal.utils.helpers import format_currency
from finance_portal.utils.logger import setup_logger

logger = setup_logger()

DECISION_TO_STATUS = {
    ApprovalDecision.APPROVED: BookableStatus.APPROVED,
    ApprovalDecision.REJECTED: BookableStatus.REJECTED,
}


class BudgetService:
    """Service for budget lines and approvals"""

    def __init__(self):
        self.notification_service = notification_service

    def _get_bookable(self, db: Session, bookable_id: int) -> Bookable:
        bookable = db.query(Bookable).filter(Bookable.id == bookable_id).first()
        if bookable is None:
            raise NotFoundError(f"Bookable {bookable_id} not found")
        return bookable

    def submit_budget(
        self,
        db: Session,
        bookable_id: int,
        lines: List[BudgetLineInput],
        actor: User,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> List[BudgetLine]:
        """
        Create or update the budget lines of a bookable

        Lines are matched by category; an existing line for the same
        category is overwritten. The bookable status does not change.

        Args:
            db: Database session
            bookable_id: Bookable ID
            lines: Requested lines
            actor: Submitting user
            background_tasks: Used to defer finance emails

        Returns:
            list: All budget lines of the bookable after the submission

        Raises:
            PermissionDeniedError: Role not allowed or team lead not the creator
            PreconditionFailedError: Team lead submitting outside pending/rejected
            ValidationError: Unknown or inactive category
        """
        if not is_allowed(actor.role, "submit_budget"):
            raise PermissionDeniedError("You don't have permission to submit budgets")

        if not lines:
            raise ValidationError("At least one budget line is required")

        bookable = self._get_bookable(db, bookable_id)

        if actor.is_team_lead:
            if bookable.creator_id != actor.id:
                raise PermissionDeniedError("You can only submit budgets for your own bookables")
            if not bookable.is_editable:
                raise PreconditionFailedError(
                    f"Budget can only be submitted while pending or rejected "
                    f"(current status: {bookable.status.value})"
                )

        category_ids = {line.category_id for line in lines}
        categories = {
            c.id: c for c in db.query(BudgetCategory).filter(
                BudgetCategory.id.in_(category_ids),
                BudgetCategory.is_active == True
            ).all()
        }
        missing = sorted(category_ids - set(categories))
        if missing:
            raise ValidationError(
                f"Unknown or inactive budget categories: {missing}",
                {"category_ids": missing}
            )

        existing = {line.category_id: line for line in bookable.budget_lines}

        with transaction(db):
            for line_in in lines:
                line = existing.get(line_in.category_id)
                if line is None:
                    line = BudgetLine(bookable_id=bookable.id, category_id=line_in.category_id)
                    db.add(line)
                    existing[line_in.category_id] = line
                line.amount = line_in.amount
                line.sponsor_amount = line_in.sponsor_amount or 0.0
                line.remarks = line_in.remarks

            audit_service.record(
                db, actor, "submit_budget", bookable.kind.value, bookable.id,
                f"Submitted {len(lines)} budget line(s) for {bookable.kind.value} '{bookable.title}'",
                changes={"new": {"lines": [l.model_dump() for l in lines]}}
            )

        db.refresh(bookable)
        total = sum(line.amount for line in bookable.budget_lines)
        logger.info(f"User {actor.id} submitted budget for {bookable.kind.value} {bookable.id} (total {total})")

        if actor.is_team_lead:
            self.notification_service.notify(
                db,
                self.notification_service.active_users_with_role(db, UserRole.FINANCE_TEAM),
                "budget_submitted",
                {
                    "kind": bookable.kind.value,
                    "title": bookable.title,
                    "actor": actor.full_name,
                    "total": format_currency(total),
                },
                background_tasks,
                bookable_id=bookable.id
            )

        return self.list_budget_lines(db, bookable.id)

    def review_budget(
        self,
        db: Session,
        bookable_id: int,
        decision: ApprovalDecision,
        remarks: str,
        adjustments: Optional[List[BudgetAdjustment]],
        actor: User,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> BudgetApproval:
        """
        Approve or reject the budget of a bookable

        Every call appends one approval record, applies the adjustments and
        moves the bookable to the decided status in a single transaction.
        Creator and coordinator are notified afterwards.

        Raises:
            PermissionDeniedError: Role not allowed to review
            ValidationError: Missing remarks or adjustment for an unknown line
        """
        if not is_allowed(actor.role, "review_budget"):
            raise PermissionDeniedError("Only finance team can review budgets")

        if not remarks or not remarks.strip():
            raise ValidationError("Remarks are required")

        bookable = self._get_bookable(db, bookable_id)
        lines_by_category = {line.category_id: line for line in bookable.budget_lines}

        unknown = sorted({a.category_id for a in adjustments or []} - set(lines_by_category))
        if unknown:
            raise ValidationError(
                f"No budget line for categories: {unknown}",
                {"category_ids": unknown}
            )

        with transaction(db):
            old_status = bookable.status
            for adjustment in adjustments or []:
                line = lines_by_category[adjustment.category_id]
                line.approved_amount = adjustment.approved_amount
                line.sponsor_amount = adjustment.sponsor_amount or 0.0

            approval = BudgetApproval(
                bookable_id=bookable.id,
                reviewer_id=actor.id,
                decision=decision,
                remarks=remarks.strip()
            )
            db.add(approval)
            bookable.status = DECISION_TO_STATUS[decision]

            audit_service.record(
                db, actor, "review_budget", bookable.kind.value, bookable.id,
                f"Budget {decision.value} for {bookable.kind.value} '{bookable.title}'",
                changes={
                    "old": {"status": old_status.value},
                    "new": {
                        "status": bookable.status.value,
                        "adjustments": [a.model_dump() for a in adjustments or []],
                    },
                }
            )

        db.refresh(approval)
        logger.info(f"User {actor.id} {decision.value} budget of {bookable.kind.value} {bookable.id}")

        self.notification_service.notify(
            db,
            [bookable.creator, bookable.coordinator],
            f"budget_{decision.value}",
            {
                "kind": bookable.kind.value,
                "title": bookable.title,
                "actor": actor.full_name,
                "remarks": approval.remarks,
            },
            background_tasks,
            bookable_id=bookable.id
        )
        return approval

    def list_budget_lines(self, db: Session, bookable_id: int) -> List[BudgetLine]:
        return db.query(BudgetLine).join(BudgetCategory).filter(
            BudgetLine.bookable_id == bookable_id
        ).order_by(BudgetCategory.order, BudgetCategory.id).all()

    def list_approvals(self, db: Session, bookable_id: int) -> List[BudgetApproval]:
        """Review history, newest first"""
        return db.query(BudgetApproval).filter(
            BudgetApproval.bookable_id == bookable_id
        ).order_by(BudgetApproval.created_at.desc(), BudgetApproval.id.desc()).all()

    def latest_approval(self, db: Session, bookable_id: int) -> Optional[BudgetApproval]:
        return db.query(BudgetApproval).filter(
            BudgetApproval.bookable_id == bookable_id
        ).order_by(BudgetApproval.created_at.desc(), BudgetApproval.id.desc()).first()


# Create singleton instance
budget_service = BudgetService()
