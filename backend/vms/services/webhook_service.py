import logging
from typing import Optional
from xml.sax.saxutils import escape

from sqlalchemy.orm import Session

from vms.core.errors import AppError
from vms.repositories.resident_repository import ResidentRepository
from vms.repositories.user_repository import UserRepository
from vms.repositories.visitor_repository import VisitorRepository
from vms.services.messaging_service import MessagingService, local_number
from vms.services.visitor_service import VisitorService

logger = logging.getLogger(__name__)

APPROVE_WORDS = {"APPROVE", "YES", "ACCEPT", "OK"}
REJECT_WORDS = {"REJECT", "NO", "DECLINE", "DENIED"}


def twiml_message(text: str) -> str:
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<Response>\n  <Message>{escape(text)}</Message>\n</Response>'


class WhatsAppWebhookService:
    """Applies a resident's WhatsApp reply to their most recent pending visitor"""

    def __init__(self, db: Session, messaging: Optional[MessagingService] = None):
        self.db = db
        self.messaging = messaging
        self.resident_repo = ResidentRepository()
        self.user_repo = UserRepository()
        self.visitor_repo = VisitorRepository()

    async def handle_reply(self, sender: Optional[str], body: Optional[str]) -> str:
        """Returns the TwiML reply"""
        if not sender or not body:
            return twiml_message("Invalid request.")

        phone = local_number(sender)
        if len(phone) != 10:
            return twiml_message("Invalid phone number format.")

        command = body.strip().upper()
        resident = self.resident_repo.get_active_by_phone(self.db, phone)
        user = self.user_repo.get_by_id(self.db, resident.user_id) if resident else None
        if not resident or not user or not user.is_active:
            logger.info(f"[WEBHOOK] Reply from unknown number {phone}")
            return twiml_message("Resident account not found.")

        visitor = self.visitor_repo.latest_pending_for_host(self.db, resident.id)
        if not visitor:
            return twiml_message("No pending visitor requests found.")

        service = VisitorService(self.db, self.messaging, {"ip_address": None, "user_agent": "twilio-webhook"})
        try:
            if command in APPROVE_WORDS:
                await service.approve(user, visitor.id)
                logger.info(f"[WEBHOOK] Resident {resident.id} approved visitor {visitor.id} via WhatsApp")
                return twiml_message(
                    f"Visitor Approved!\n\n{visitor.name} has been approved. The guard has been notified.\n\nThank you!"
                )
            if command in REJECT_WORDS:
                await service.reject(user, visitor.id, "Rejected via WhatsApp")
                logger.info(f"[WEBHOOK] Resident {resident.id} rejected visitor {visitor.id} via WhatsApp")
                return twiml_message(f"Visitor Declined\n\n{visitor.name} has been declined.\n\nThank you!")
        except AppError as e:
            logger.info(f"[WEBHOOK] Reply for visitor {visitor.id} refused: {e.message}")
            return twiml_message(e.message)

        return twiml_message(
            f"Invalid Response\n\nPending request from {visitor.name}. Reply:\n"
            "APPROVE - to allow entry\n"
            "REJECT - to decline"
        )
