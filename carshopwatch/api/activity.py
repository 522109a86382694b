"""Activity producer: append audit records for successful user actions."""

import json
import logging
from typing import Any, Mapping, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from carshopwatch.database.audit_log_repository import AuditLogRepository
from carshopwatch.models.audit_record import AuditRecord
from carshopwatch.models.user import User

logger = logging.getLogger(__name__)


def record_action(
    db: Session,
    user: User,
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    request: Optional[Request] = None,
    body: Optional[Mapping[str, Any]] = None,
) -> Optional[AuditRecord]:
    """Append a best-effort audit record for an action that already succeeded.
    
    Failures are logged and swallowed; the caller's response must not depend on
    the audit write. A request `body` is stored alongside the route details
    with any `password` field removed.
    """
    details = None
    ip_address = None
    if request is not None:
        details = json.dumps({
            "path": request.url.path,
            "method": request.method,
            "params": dict(request.path_params),
            "body": _sanitize_body(body),
        })
        ip_address = request.client.host if request.client else None
    
    try:
        return AuditLogRepository(db).append(
            AuditRecord(
                user_id=user.id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details,
                ip_address=ip_address,
            )
        )
    except Exception as e:
        logger.error(f"Error logging user action {action} {entity_type} for user {user.id}: {type(e).__name__}: {str(e)}")
        return None


def _sanitize_body(body: Optional[Mapping[str, Any]]) -> dict:
    if not body:
        return {}
    return {key: value for key, value in body.items() if key != "password"}
