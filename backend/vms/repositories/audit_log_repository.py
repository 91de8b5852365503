from datetime import datetime
from sqlalchemy.orm import Session
from vms.models.audit_log import AuditLog
from typing import Optional, List, Tuple


class AuditLogRepository:
    def list(
        self,
        db: Session,
        since: Optional[datetime] = None,
        module: Optional[str] = None,
        action: Optional[str] = None,
        user_id: Optional[int] = None,
        property_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[AuditLog], int]:
        query = db.query(AuditLog)
        if since is not None:
            query = query.filter(AuditLog.created_at >= since)
        if module:
            query = query.filter(AuditLog.module == module)
        if action:
            query = query.filter(AuditLog.action == action)
        if user_id:
            query = query.filter(AuditLog.user_id == user_id)
        if property_id:
            query = query.filter(AuditLog.property_id == property_id)
        total = query.count()
        items = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit).all()
        return items, total

    def purge_older_than(self, db: Session, cutoff: datetime) -> int:
        deleted = db.query(AuditLog).filter(AuditLog.created_at < cutoff).delete(synchronize_session=False)
        db.commit()
        return deleted
