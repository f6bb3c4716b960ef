"""
User Directory Routes
Lets team leads look up coordinators by name and email
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from finance_portal.config.database import get_db
from finance_portal.models.user import User, UserRole
from finance_portal.schemas.user import UserDirectoryEntry
from finance_portal.services.auth_service import auth_service
from finance_portal.services.user_service import user_service

router = APIRouter()


@router.get("")
async def list_directory(
    role: Optional[UserRole] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_service.require_action("view_user_directory"))
):
    """Active users, optionally filtered by role"""
    total, users = user_service.list_users(db, role=role, is_active=True, skip=skip, limit=limit)
    return {
        "success": True,
        "total": total,
        "users": [UserDirectoryEntry.model_validate(u) for u in users]
    }
