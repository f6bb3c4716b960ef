"""
Domain Exceptions
Business errors raised by services and mapped to HTTP responses in main.py
"""

from typing import Any, Dict, List, Optional


class PortalError(Exception):
    """Base class for all business errors"""
    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the error envelope"""
        body = {
            "success": False,
            "error": self.error_code,
            "message": self.message,
        }
        body.update(self.details)
        return body


class ValidationError(PortalError):
    """Malformed or missing input"""
    status_code = 400
    error_code = "validation_error"


class PreconditionFailedError(PortalError):
    """Operation not allowed in the resource's current state"""
    status_code = 400
    error_code = "precondition_failed"


class PermissionDeniedError(PortalError):
    """Role or ownership check failed"""
    status_code = 403
    error_code = "permission_denied"


class NotFoundError(PortalError):
    """Referenced entity does not exist"""
    status_code = 404
    error_code = "not_found"


class ConflictError(PortalError):
    """Venue double-booking or duplicate unique key"""
    status_code = 409
    error_code = "conflict"

    def __init__(self, message: str, conflicts: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, {"conflicts": conflicts or []})
        self.conflicts = conflicts or []


class PersistenceError(PortalError):
    """Storage failure, the transaction was rolled back"""
    status_code = 500
    error_code = "persistence_error"
