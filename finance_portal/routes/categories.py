"""
Budget Category Routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from finance_portal.config.database import get_db
from finance_portal.models.user import User
from finance_portal.schemas.budget import CategoryCreate, CategoryResponse, CategoryUpdate
from finance_portal.services.auth_service import auth_service
from finance_portal.services.category_service import category_service

router = APIRouter()


@router.get("")
async def list_categories(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.get_current_user)
):
    """List budget categories in display order"""
    categories = category_service.list_categories(db, include_inactive)
    return {
        "success": True,
        "categories": [CategoryResponse.model_validate(c) for c in categories]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    category_in: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_categories"))
):
    """Create a budget category, appended after the last one when no order is given"""
    category = category_service.create_category(db, category_in, current_user)
    return {
        "success": True,
        "message": "Category created successfully",
        "category": CategoryResponse.model_validate(category)
    }


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    category_in: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_categories"))
):
    category = category_service.update_category(db, category_id, category_in, current_user)
    return {
        "success": True,
        "message": "Category updated successfully",
        "category": CategoryResponse.model_validate(category)
    }


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_categories"))
):
    category_service.deactivate_category(db, category_id, current_user)
    return {
        "success": True,
        "message": "Category deleted successfully"
    }
