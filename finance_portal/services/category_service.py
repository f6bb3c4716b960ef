"""
Category Service
Budget category administration
"""

from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from finance_portal.config.database import transaction
from finance_portal.models.budget import BudgetCategory
from finance_portal.models.user import User
from finance_portal.schemas.budget import CategoryCreate, CategoryUpdate
from finance_portal.services import audit_service
from finance_portal.utils.exceptions import ConflictError, NotFoundError
from finance_portal.utils.logger import setup_logger

logger = setup_logger()


class CategoryService:
    """Service for budget categories"""

    def list_categories(self, db: Session, include_inactive: bool = False) -> List[BudgetCategory]:
        query = db.query(BudgetCategory)
        if not include_inactive:
            query = query.filter(BudgetCategory.is_active == True)
        return query.order_by(BudgetCategory.order, BudgetCategory.id).all()

    def get_category(self, db: Session, category_id: int) -> BudgetCategory:
        category = db.query(BudgetCategory).filter(BudgetCategory.id == category_id).first()
        if category is None:
            raise NotFoundError(f"Budget category {category_id} not found")
        return category

    def _ensure_name_free(self, db: Session, name: str, exclude_id: int = None):
        query = db.query(BudgetCategory).filter(func.lower(BudgetCategory.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(BudgetCategory.id != exclude_id)
        if query.first():
            raise ConflictError(f"Budget category '{name}' already exists")

    def create_category(self, db: Session, category_in: CategoryCreate, actor: User) -> BudgetCategory:
        """
        Create a category

        When no order is given the category goes after the current last one.
        """
        self._ensure_name_free(db, category_in.name)

        order = category_in.order
        if order is None:
            order = (db.query(func.max(BudgetCategory.order)).scalar() or 0) + 1

        with transaction(db):
            category = BudgetCategory(name=category_in.name, description=category_in.description, order=order)
            db.add(category)
            db.flush()
            audit_service.record(
                db, actor, "create_category", "budget_category", category.id,
                f"Created budget category '{category.name}'",
                changes={"new": {"name": category.name, "order": order}}
            )

        db.refresh(category)
        return category

    def update_category(self, db: Session, category_id: int, category_in: CategoryUpdate, actor: User) -> BudgetCategory:
        category = self.get_category(db, category_id)
        updates = category_in.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in updates:
            updates["name"] = updates["name"].strip()
            self._ensure_name_free(db, updates["name"], exclude_id=category.id)

        with transaction(db):
            old = {field: getattr(category, field) for field in updates}
            for field, value in updates.items():
                setattr(category, field, value)
            audit_service.record(
                db, actor, "update_category", "budget_category", category.id,
                f"Updated budget category '{category.name}'",
                changes={"old": old, "new": updates}
            )

        db.refresh(category)
        return category

    def deactivate_category(self, db: Session, category_id: int, actor: User) -> BudgetCategory:
        """Soft delete; existing budget lines and expenses keep their category"""
        category = self.get_category(db, category_id)
        with transaction(db):
            category.is_active = False
            audit_service.record(
                db, actor, "delete_category", "budget_category", category.id,
                f"Deactivated budget category '{category.name}'",
                changes={"old": {"is_active": True}, "new": {"is_active": False}}
            )
        logger.info(f"User {actor.id} deactivated budget category {category.id}")
        return category


# Create singleton instance
category_service = CategoryService()
