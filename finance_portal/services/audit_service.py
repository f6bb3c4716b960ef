"""
Audit Service
Records state-changing actions in the audit_logs table and the audit log file
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from finance_portal.models.audit_log import AuditLog
from finance_portal.models.user import User
from finance_portal.utils.logger import log_audit


def record(
    db: Session,
    actor: User,
    action: str,
    entity_type: str,
    entity_id: Optional[int],
    description: str,
    changes: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Stage an audit row in the caller's transaction

    The row is only added to the session; it is committed together with
    the change it describes.
    """
    entry = AuditLog(
        user_id=actor.id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        changes=changes
    )
    db.add(entry)
    log_audit(actor.id, action, entity_type, entity_id)
    return entry
