import logging
from typing import Any, Dict, Optional
from fastapi import Request
from sqlalchemy.orm import Session
from vms.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def request_context(request: Optional[Request]) -> Dict[str, Optional[str]]:
    """Client address and user agent for an audit entry"""
    if request is None:
        return {"ip_address": None, "user_agent": None}
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return {"ip_address": ip_address, "user_agent": request.headers.get("user-agent")}


class AuditService:
    @staticmethod
    def log_action(
        db: Session,
        action: str,
        module: str,
        user_id: Optional[int] = None,
        property_id: Optional[int] = None,
        details: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ):
        """
        Log an audit event to the database.
        Never raises.
        """
        try:
            log_entry = AuditLog(
                action=action,
                module=getattr(module, "value", module),
                user_id=user_id,
                property_id=property_id,
                details=details,
                meta=metadata,
                ip_address=ip_address,
                user_agent=user_agent
            )
            db.add(log_entry)
            db.commit()
            logger.info(f"[AUDIT] {action} by user {user_id} ({module})")
        except Exception as e:
            logger.error(f"[AUDIT] Failed to write audit log for {action}: {e}", exc_info=True)
            db.rollback()
