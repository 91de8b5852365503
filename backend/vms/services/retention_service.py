import logging
from datetime import datetime, timedelta
from typing import Dict

from sqlalchemy.orm import Session

from vms.core.config import settings
from vms.repositories.audit_log_repository import AuditLogRepository
from vms.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)


class RetentionService:
    """Deletes notifications past their expiry and audit logs past the retention window"""

    def __init__(self, db: Session):
        self.db = db
        self.notification_repo = NotificationRepository()
        self.audit_repo = AuditLogRepository()

    def purge(self, now: datetime = None) -> Dict[str, int]:
        now = now or datetime.utcnow()
        notifications = self.notification_repo.purge_expired(self.db, now)
        audit_logs = self.audit_repo.purge_older_than(
            self.db, now - timedelta(days=settings.AUDIT_LOG_RETENTION_DAYS)
        )
        if notifications or audit_logs:
            logger.info(f"[RETENTION] Purged {notifications} notifications and {audit_logs} audit logs")
        return {"notifications": notifications, "audit_logs": audit_logs}
