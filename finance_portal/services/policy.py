"""
Access Policy
Role-scoped visibility of bookables and the per-operation role allow-list
"""

from typing import Dict, FrozenSet

from sqlalchemy import false
from sqlalchemy.orm import Query

from finance_portal.models.bookable import Bookable
from finance_portal.models.user import User, UserRole, TEAM_LEAD_ROLES, COORDINATOR_ROLES, GLOBAL_VIEWER_ROLES


ACTION_ROLES: Dict[str, FrozenSet[UserRole]] = {
    "create_bookable": frozenset({UserRole.ADMIN, *TEAM_LEAD_ROLES}),
    "update_bookable": frozenset({UserRole.ADMIN, *TEAM_LEAD_ROLES}),
    "delete_bookable": frozenset({UserRole.ADMIN}),
    "submit_budget": frozenset({UserRole.ADMIN, UserRole.FINANCE_TEAM, *TEAM_LEAD_ROLES}),
    "review_budget": frozenset({UserRole.ADMIN, UserRole.FINANCE_TEAM}),
    "assign_venue": frozenset({UserRole.ADMIN, UserRole.FACILITIES_TEAM}),
    "manage_venues": frozenset({UserRole.ADMIN, UserRole.FACILITIES_TEAM}),
    "manage_categories": frozenset({UserRole.ADMIN, UserRole.FINANCE_TEAM}),
    "manage_expenses": frozenset({UserRole.ADMIN, UserRole.FINANCE_TEAM, UserRole.FACILITIES_TEAM}),
    "manage_users": frozenset({UserRole.ADMIN}),
    "view_audit_logs": frozenset({UserRole.ADMIN}),
    "view_overall_summary": frozenset({UserRole.ADMIN, UserRole.FINANCE_TEAM}),
    "broadcast_notifications": frozenset({UserRole.ADMIN}),
    "view_user_directory": frozenset({UserRole.ADMIN, *TEAM_LEAD_ROLES}),
}


def is_allowed(role: UserRole, action: str) -> bool:
    """
    Check the static allow-list

    Unknown actions are denied.
    """
    return role in ACTION_ROLES.get(action, frozenset())


def can_access(role: UserRole, user_id: int, bookable: Bookable) -> bool:
    """
    Decide whether a user may see a bookable

    Team leads see what they created, coordinators see what they are
    assigned to coordinate, global viewers see everything.
    """
    if role in GLOBAL_VIEWER_ROLES:
        return True
    if role in TEAM_LEAD_ROLES:
        return bookable.creator_id == user_id
    if role in COORDINATOR_ROLES:
        return bookable.coordinator_id == user_id
    return False


def scope_query(query: Query, user: User) -> Query:
    """Restrict a Bookable query to the rows the user may see"""
    if user.role in GLOBAL_VIEWER_ROLES:
        return query
    if user.role in TEAM_LEAD_ROLES:
        return query.filter(Bookable.creator_id == user.id)
    if user.role in COORDINATOR_ROLES:
        return query.filter(Bookable.coordinator_id == user.id)
    return query.filter(false())
