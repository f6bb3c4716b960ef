"""
Expense Service
Business logic for expense management
"""

from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from finance_portal.config.database import transaction
from finance_portal.config.settings import settings
from finance_portal.models.bookable import Bookable
from finance_portal.models.budget import BudgetCategory
from finance_portal.models.expense import Expense
from finance_portal.models.user import User
from finance_portal.schemas.expense import ExpenseCreate, ExpenseUpdate
from finance_portal.services import audit_service
from finance_portal.services.notification_service import notification_service
from finance_portal.services.policy import can_access
from finance_portal.utils.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from finance_portal.utils.helpers import format_currency, round_money
from finance_portal.utils.logger import setup_logger

logger = setup_logger()


def compute_amount(quantity: float, unit_price: float, claimed: Optional[float] = None) -> float:
    """
    Amount of an expense line

    Args:
        quantity: Units bought
        unit_price: Price per unit
        claimed: Amount sent by the client, if any

    Returns:
        float: quantity x unit_price rounded to cents

    Raises:
        ValidationError: The claimed amount differs by more than the tolerance
    """
    amount = round_money(quantity * unit_price)
    if claimed is not None and abs(claimed - amount) > settings.AMOUNT_TOLERANCE:
        raise ValidationError(
            f"Amount {claimed} does not match quantity x unit price ({amount})",
            {"expected_amount": amount}
        )
    return amount


class ExpenseService:
    """Service for expense-related business logic"""

    def __init__(self):
        """Initialize with dependent services"""
        self.notification_service = notification_service

    def _get_bookable(self, db: Session, bookable_id: int, user: User) -> Bookable:
        bookable = db.query(Bookable).filter(Bookable.id == bookable_id).first()
        if bookable is None:
            raise NotFoundError(f"Bookable {bookable_id} not found")
        if not can_access(user.role, user.id, bookable):
            raise PermissionDeniedError("You don't have access to this bookable")
        return bookable

    def get_expense(self, db: Session, expense_id: int) -> Expense:
        expense = db.query(Expense).filter(Expense.id == expense_id).first()
        if expense is None:
            raise NotFoundError(f"Expense {expense_id} not found")
        return expense

    def list_expenses(self, db: Session, bookable_id: int, user: User) -> List[Expense]:
        """Expenses of a bookable the user may see, oldest first"""
        self._get_bookable(db, bookable_id, user)
        return db.query(Expense).filter(
            Expense.bookable_id == bookable_id
        ).order_by(Expense.created_at, Expense.id).all()

    def create_expense(
        self,
        db: Session,
        expense_in: ExpenseCreate,
        actor: User,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> Expense:
        """
        Record an expense against a bookable

        Args:
            db: Database session
            expense_in: Expense payload
            actor: Facilities, finance or admin user
            background_tasks: Used to defer the coordinator email

        Returns:
            Expense: Stored expense
        """
        bookable = self._get_bookable(db, expense_in.bookable_id, actor)

        category = db.query(BudgetCategory).filter(
            BudgetCategory.id == expense_in.category_id,
            BudgetCategory.is_active == True
        ).first()
        if category is None:
            raise ValidationError(f"Unknown or inactive budget category {expense_in.category_id}")

        item_name = expense_in.item_name.strip()
        if not item_name:
            raise ValidationError("item_name must not be empty")

        amount = compute_amount(expense_in.quantity, expense_in.unit_price, expense_in.amount)

        with transaction(db):
            expense = Expense(
                bookable_id=bookable.id,
                category_id=category.id,
                added_by_id=actor.id,
                item_name=item_name,
                quantity=expense_in.quantity,
                unit_price=expense_in.unit_price,
                amount=amount,
                remarks=expense_in.remarks
            )
            db.add(expense)
            db.flush()
            audit_service.record(
                db, actor, "create_expense", "expense", expense.id,
                f"Recorded expense '{item_name}' ({amount}) for {bookable.kind.value} '{bookable.title}'",
                changes={"new": {"item_name": item_name, "amount": amount, "category_id": category.id}}
            )

        db.refresh(expense)
        logger.info(f"User {actor.id} added expense {expense.id} to {bookable.kind.value} {bookable.id}")

        self.notification_service.notify(
            db,
            [bookable.coordinator],
            "expense_added",
            {
                "kind": bookable.kind.value,
                "title": bookable.title,
                "actor": actor.full_name,
                "item_name": item_name,
                "amount": format_currency(amount),
            },
            background_tasks,
            bookable_id=bookable.id
        )
        return expense

    def update_expense(self, db: Session, expense_id: int, expense_in: ExpenseUpdate, actor: User) -> Expense:
        """Update an expense, the amount is recomputed from the new quantity and price"""
        expense = self.get_expense(db, expense_id)
        self._get_bookable(db, expense.bookable_id, actor)

        updates = expense_in.model_dump(exclude_unset=True)
        claimed = updates.pop("amount", None)
        if "item_name" in updates:
            updates["item_name"] = (updates["item_name"] or "").strip()
            if not updates["item_name"]:
                raise ValidationError("item_name must not be empty")

        quantity = updates.get("quantity", expense.quantity)
        unit_price = updates.get("unit_price", expense.unit_price)
        updates["amount"] = compute_amount(quantity, unit_price, claimed)

        with transaction(db):
            old = {field: getattr(expense, field) for field in updates}
            for field, value in updates.items():
                setattr(expense, field, value)
            audit_service.record(
                db, actor, "update_expense", "expense", expense.id,
                f"Updated expense '{expense.item_name}'",
                changes={"old": old, "new": updates}
            )

        db.refresh(expense)
        return expense

    def delete_expense(self, db: Session, expense_id: int, actor: User):
        expense = self.get_expense(db, expense_id)
        self._get_bookable(db, expense.bookable_id, actor)

        with transaction(db):
            audit_service.record(
                db, actor, "delete_expense", "expense", expense.id,
                f"Deleted expense '{expense.item_name}'",
                changes={"old": {"item_name": expense.item_name, "amount": expense.amount}}
            )
            db.delete(expense)

        logger.info(f"User {actor.id} deleted expense {expense_id}")


# Create singleton instance
expense_service = ExpenseService()
