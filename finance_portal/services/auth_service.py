"""
Authentication Service
Resolves the caller from a bearer token and enforces role checks
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from finance_portal.config.database import get_db
from finance_portal.models.user import User
from finance_portal.services.policy import is_allowed
from finance_portal.utils.exceptions import PermissionDeniedError
from finance_portal.utils.security import decode_token
from finance_portal.utils.logger import setup_logger

logger = setup_logger()

bearer_scheme = HTTPBearer(auto_error=False)


class AuthService:
    """Authentication service"""

    def get_current_user(
        self,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        db: Session = Depends(get_db)
    ) -> User:
        """
        Get current authenticated user from token

        Args:
            credentials: Bearer credentials from the Authorization header
            db: Database session

        Returns:
            User: Current user

        Raises:
            HTTPException: 401 if the token is missing or invalid, 403 if the account is inactive
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

        if credentials is None:
            raise credentials_exception

        payload = decode_token(credentials.credentials)
        if payload is None:
            raise credentials_exception

        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception

        try:
            user = db.query(User).filter(User.id == int(user_id)).first()
        except ValueError:
            raise credentials_exception

        if user is None:
            raise credentials_exception

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User account is inactive"
            )

        return user

    def require_action(self, action: str):
        """
        Dependency factory checking the per-operation allow-list

        Runs before the handler body, so a denied caller never reaches
        the database work of the route.

        Args:
            action: Key into policy.ACTION_ROLES
        """
        def action_checker(current_user: User = Depends(self.get_current_user)) -> User:
            if not is_allowed(current_user.role, action):
                logger.warning(f"User {current_user.id} ({current_user.role.value}) denied action {action}")
                raise PermissionDeniedError(f"Role {current_user.role.value} may not {action.replace('_', ' ')}")
            return current_user

        return action_checker


# Create singleton instance
auth_service = AuthService()
