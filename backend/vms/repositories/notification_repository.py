from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import or_
from vms.models.notification import Notification
from typing import Optional, List


class NotificationRepository:
    def create(self, db: Session, notification: Notification) -> Notification:
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    def get_by_id(self, db: Session, notification_id: int) -> Optional[Notification]:
        return db.query(Notification).filter(Notification.id == notification_id).first()

    def _live_for_user(self, db: Session, user_id: int, now: datetime):
        return db.query(Notification).filter(
            Notification.user_id == user_id,
            or_(Notification.expires_at.is_(None), Notification.expires_at > now)
        )

    def list_for_user(
        self,
        db: Session,
        user_id: int,
        now: datetime,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        query = self._live_for_user(db, user_id, now)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def count_unread(self, db: Session, user_id: int, now: datetime) -> int:
        return self._live_for_user(db, user_id, now).filter(Notification.is_read.is_(False)).count()

    def mark_read(self, db: Session, notification: Notification, now: datetime) -> Notification:
        notification.is_read = True
        notification.read_at = now
        db.commit()
        db.refresh(notification)
        return notification

    def purge_expired(self, db: Session, now: datetime) -> int:
        deleted = db.query(Notification).filter(
            Notification.expires_at.isnot(None),
            Notification.expires_at <= now
        ).delete(synchronize_session=False)
        db.commit()
        return deleted

    def delete_for_user(self, db: Session, user_id: int) -> int:
        return db.query(Notification).filter(Notification.user_id == user_id).delete(synchronize_session=False)
