import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from vms.core.config import settings
from vms.core.errors import NotFound
from vms.models.notification import Notification, NotificationType, NotificationPriority
from vms.models.resident import Resident
from vms.models.visitor import Visitor
from vms.repositories.notification_repository import NotificationRepository
from vms.repositories.user_repository import UserRepository
from vms.services.messaging_service import MessagingService

logger = logging.getLogger(__name__)


class NotificationService:
    """
    In-app notification fan-out plus best-effort WhatsApp/SMS side channels.
    Nothing here raises into a transition that has already been committed.
    """
    def __init__(self, db: Session, messaging: Optional[MessagingService] = None):
        self.db = db
        self.messaging = messaging
        self.notification_repo = NotificationRepository()
        self.user_repo = UserRepository()

    # ---------- PERSISTENCE ----------
    def notify(
        self,
        user_id: int,
        property_id: Optional[int],
        type: str,
        title: str,
        message: str,
        related_visitor_id: Optional[int] = None,
        priority: str = NotificationPriority.MEDIUM.value,
        action_url: Optional[str] = None
    ) -> Optional[Notification]:
        try:
            now = datetime.utcnow()
            notification = Notification(
                user_id=user_id,
                property_id=property_id,
                type=getattr(type, "value", type),
                title=title,
                message=message,
                related_visitor_id=related_visitor_id,
                priority=getattr(priority, "value", priority),
                action_url=action_url,
                created_at=now,
                expires_at=now + timedelta(days=settings.NOTIFICATION_RETENTION_DAYS),
            )
            return self.notification_repo.create(self.db, notification)
        except Exception as e:
            logger.error(f"Failed to create notification for user {user_id}: {e}", exc_info=True)
            self.db.rollback()
            return None

    async def _deliver(self, description: str, send) -> bool:
        """Await a messaging call, logging instead of raising on failure"""
        if self.messaging is None:
            return False
        try:
            sent = await send()
            if not sent:
                logger.warning(f"{description} was not delivered")
            return bool(sent)
        except Exception as e:
            logger.error(f"{description} failed: {e}", exc_info=True)
            return False

    # ---------- FAN-OUT ----------
    async def notify_resident_of_visitor(self, resident: Resident, visitor: Visitor) -> Optional[Notification]:
        """New request for the host: in-app plus WhatsApp approval prompt"""
        notification = self.notify(
            user_id=resident.user_id,
            property_id=visitor.property_id,
            type=NotificationType.VISITOR_REQUEST,
            title="New Visitor Request",
            message=f"{visitor.name} wants to visit you. Purpose: {visitor.purpose}",
            related_visitor_id=visitor.id,
            priority=NotificationPriority.HIGH,
            action_url="/resident/approvals",
        )
        if resident.phone_number:
            await self._deliver(
                f"WhatsApp approval request for visitor {visitor.id}",
                lambda: self.messaging.send_approval_request(
                    resident.phone_number, visitor.name, visitor.phone, resident.unit_number, visitor.purpose
                ),
            )
        return notification

    async def notify_guards_of_approval(self, visitor: Visitor, resident: Resident) -> List[Notification]:
        title = "Visitor Approved"
        message = f"{visitor.name} has been approved by {resident.name}. Allow entry."
        created = []
        for guard in self.user_repo.get_active_guards(self.db, visitor.property_id):
            notification = self.notify(
                user_id=guard.id,
                property_id=visitor.property_id,
                type=NotificationType.VISITOR_APPROVED,
                title=title,
                message=message,
                related_visitor_id=visitor.id,
                priority=NotificationPriority.HIGH,
                action_url="/guard",
            )
            if notification:
                created.append(notification)
            if guard.phone_number:
                await self._deliver(
                    f"WhatsApp approval alert to guard {guard.id}",
                    lambda phone=guard.phone_number: self.messaging.send_guard_alert(phone, title, message),
                )
        return created

    def notify_guards_of_rejection(self, visitor: Visitor, resident: Resident) -> List[Notification]:
        message = f"{resident.name} rejected visitor {visitor.name}"
        if visitor.rejection_reason:
            message += f". Reason: {visitor.rejection_reason}"
        return self._notify_guards(
            visitor,
            NotificationType.VISITOR_REJECTED,
            "Visitor Rejected",
            message,
            NotificationPriority.MEDIUM,
            "/guard",
        )

    def notify_guards_of_exit(self, visitor: Visitor, resident: Resident) -> List[Notification]:
        return self._notify_guards(
            visitor,
            NotificationType.VISITOR_EXIT_MARKED,
            "Visitor Exit Marked",
            f"{resident.name} marked {visitor.name} as exited. Verify at gate.",
            NotificationPriority.HIGH,
            "/guard/active-visitors",
        )

    def _notify_guards(self, visitor, type, title, message, priority, action_url) -> List[Notification]:
        created = []
        for guard in self.user_repo.get_active_guards(self.db, visitor.property_id):
            notification = self.notify(
                user_id=guard.id,
                property_id=visitor.property_id,
                type=type,
                title=title,
                message=message,
                related_visitor_id=visitor.id,
                priority=priority,
                action_url=action_url,
            )
            if notification:
                created.append(notification)
        return created

    async def notify_forward_target(
        self,
        visitor: Visitor,
        from_resident: Resident,
        to_resident: Resident
    ) -> Optional[Notification]:
        message = f"{from_resident.name} forwarded {visitor.name} to you. Purpose: {visitor.purpose}"
        if visitor.forwarding_note:
            message += f". Note: {visitor.forwarding_note}"
        notification = self.notify(
            user_id=to_resident.user_id,
            property_id=visitor.property_id,
            type=NotificationType.VISITOR_REQUEST,
            title="Forwarded Visitor Request",
            message=message,
            related_visitor_id=visitor.id,
            priority=NotificationPriority.HIGH,
            action_url="/resident/approvals",
        )
        if to_resident.phone_number:
            await self._deliver(
                f"WhatsApp forward request for visitor {visitor.id}",
                lambda: self.messaging.send_approval_request(
                    to_resident.phone_number, visitor.name, visitor.phone, to_resident.unit_number, visitor.purpose
                ),
            )
        return notification

    async def notify_visitor_approved(self, visitor: Visitor, resident: Resident) -> bool:
        if not visitor.phone:
            return False
        return await self._deliver(
            f"Approval message to visitor {visitor.id}",
            lambda: self.messaging.send_visitor_approved(visitor.phone, visitor.name, resident.name, resident.unit_number),
        )

    async def notify_visitor_rejected(self, visitor: Visitor) -> bool:
        if not visitor.phone:
            return False
        return await self._deliver(
            f"Rejection message to visitor {visitor.id}",
            lambda: self.messaging.send_visitor_rejected(visitor.phone, visitor.name, visitor.rejection_reason),
        )

    # ---------- INBOX ----------
    def list_for_user(self, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        return self.notification_repo.list_for_user(
            self.db, user_id, datetime.utcnow(), unread_only=unread_only, limit=limit
        )

    def unread_count(self, user_id: int) -> int:
        return self.notification_repo.count_unread(self.db, user_id, datetime.utcnow())

    def mark_read(self, user_id: int, notification_id: int) -> Notification:
        notification = self.notification_repo.get_by_id(self.db, notification_id)
        if not notification or notification.user_id != user_id:
            raise NotFound("Notification not found")
        if notification.is_read:
            return notification
        return self.notification_repo.mark_read(self.db, notification, datetime.utcnow())
