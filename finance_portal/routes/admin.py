"""
Admin Routes
User management and system administration endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Optional

from finance_portal.config.database import get_db
from finance_portal.models.audit_log import AuditLog
from finance_portal.models.bookable import Bookable, BookableStatus
from finance_portal.models.budget import BudgetLine
from finance_portal.models.expense import Expense
from finance_portal.models.user import User, UserRole
from finance_portal.schemas.user import UserCreate, UserResponse, UserUpdate
from finance_portal.services.auth_service import auth_service
from finance_portal.services.user_service import user_service

router = APIRouter()


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_users"))
):
    """Create a user (Admin only)"""
    user = user_service.create_user(db, user_in, current_user)
    return {
        "success": True,
        "message": f"User {user.email} created successfully",
        "user": UserResponse.model_validate(user)
    }


@router.get("/users")
async def list_users(
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_users"))
):
    total, users = user_service.list_users(db, role, is_active, skip, limit)
    return {
        "success": True,
        "total": total,
        "users": [UserResponse.model_validate(u) for u in users]
    }


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_users"))
):
    return user_service.get_user(db, user_id)


@router.put("/users/{user_id}")
async def update_user(
    user_id: int,
    user_in: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_users"))
):
    user = user_service.update_user(db, user_id, user_in, current_user)
    return {
        "success": True,
        "message": "User updated successfully",
        "user": UserResponse.model_validate(user)
    }


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("manage_users"))
):
    """
    Delete user (Admin only)

    **Warning:** This permanently deletes the user's events and workshops
    together with their budgets, approvals and expenses. Consider
    deactivating instead.
    """
    removed = user_service.delete_user(db, user_id, current_user)
    return {
        "success": True,
        "message": "User deleted successfully",
        "removed": removed
    }


@router.get("/audit-logs")
async def get_audit_logs(
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("view_audit_logs"))
):
    """
    Get audit logs (Admin only)

    **Parameters:**
    - user_id / action / entity_type / entity_id: Filters
    - skip / limit: Pagination

    **Returns:**
    - total: Matching log count
    - logs: Newest first
    """
    query = db.query(AuditLog)

    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(AuditLog.entity_id == entity_id)

    total = query.count()
    logs = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit).all()

    return {
        "success": True,
        "total": total,
        "logs": [
            {
                "id": log.id,
                "user_id": log.user_id,
                "user_name": log.user.full_name if log.user else None,
                "action": log.action,
                "entity_type": log.entity_type,
                "entity_id": log.entity_id,
                "description": log.description,
                "changes": log.changes,
                "created_at": log.created_at.isoformat() if log.created_at else None
            }
            for log in logs
        ]
    }


@router.get("/system-stats")
async def get_system_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("view_audit_logs"))
):
    """
    Get system statistics (Admin only)

    **Returns:**
    - User statistics
    - Event and workshop counts by status
    - Expense count and requested budget total
    """
    total_users = db.query(func.count(User.id)).scalar()
    active_users = db.query(func.count(User.id)).filter(User.is_active == True).scalar()
    users_by_role = db.query(
        User.role,
        func.count(User.id).label("count")
    ).group_by(User.role).all()

    status_counts = dict(
        db.query(Bookable.status, func.count(Bookable.id)).group_by(Bookable.status).all()
    )

    total_expenses = db.query(func.count(Expense.id)).scalar()
    total_requested = db.query(func.sum(BudgetLine.amount)).scalar() or 0

    return {
        "success": True,
        "users": {
            "total": total_users,
            "active": active_users,
            "inactive": total_users - active_users,
            "by_role": [
                {"role": role.value, "count": count}
                for role, count in users_by_role
            ]
        },
        "bookables": {s.value: status_counts.get(s, 0) for s in BookableStatus},
        "expenses": {
            "total": total_expenses
        },
        "total_requested_budget": float(total_requested)
    }
