from datetime import datetime
from typing import Optional, List
from vms.models.notification import Notification
from vms.repositories.notification_repository import NotificationRepository


class MockNotificationRepository(NotificationRepository):
    def __init__(self, fail: bool = False):
        self.notifications = {}
        self.next_id = 1
        self.fail = fail

    def create(self, db, notification: Notification) -> Notification:
        if self.fail:
            raise RuntimeError("database unavailable")
        notification.id = self.next_id
        if notification.is_read is None:
            notification.is_read = False
        self.notifications[self.next_id] = notification
        self.next_id += 1
        return notification

    def get_by_id(self, db, notification_id: int) -> Optional[Notification]:
        return self.notifications.get(notification_id)

    def for_user(self, user_id: int) -> List[Notification]:
        return [n for n in self.notifications.values() if n.user_id == user_id]

    def mark_read(self, db, notification: Notification, now: datetime) -> Notification:
        notification.is_read = True
        notification.read_at = now
        return notification
