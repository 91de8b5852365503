import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from vms.core.config import settings
from vms.core.errors import NotFound, ValidationError, InternalError
from vms.models.otp import OtpChallenge
from vms.repositories.otp_repository import OtpRepository
from vms.repositories.visitor_repository import VisitorRepository
from vms.services.messaging_service import MessagingService

logger = logging.getLogger(__name__)


def generate_otp(length: Optional[int] = None) -> str:
    length = length or settings.OTP_LENGTH
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


class OtpService:
    def __init__(self, db: Session, messaging: Optional[MessagingService] = None):
        self.db = db
        self.messaging = messaging
        self.otp_repo = OtpRepository()
        self.visitor_repo = VisitorRepository()

    async def send_otp(self, phone: str, visitor_id: Optional[int] = None) -> OtpChallenge:
        visitor = None
        if visitor_id is not None:
            visitor = self.visitor_repo.get_by_id(self.db, visitor_id)
            if not visitor:
                raise NotFound("Visitor not found")

        code = generate_otp()
        expires_at = datetime.utcnow() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)

        if visitor is not None:
            visitor.otp = code
            visitor.otp_expiry = expires_at
            visitor.otp_verified = False
        challenge = self.otp_repo.upsert(self.db, phone, code, expires_at)

        sent = False
        if self.messaging is not None:
            try:
                sent = await self.messaging.send_otp(phone, code)
            except Exception as e:
                logger.error(f"OTP delivery to {phone} failed: {e}", exc_info=True)
                sent = False

        if not sent:
            if settings.is_development:
                logger.info(f"[OTP] Development mode, OTP for {phone} is {code}")
            else:
                raise InternalError("Failed to send OTP")
        else:
            logger.info(f"[OTP] Sent verification code to {phone}")
        return challenge

    def verify_otp(self, phone: str, otp: str) -> OtpChallenge:
        challenge = self.otp_repo.get_by_phone(self.db, phone)
        if not challenge:
            raise NotFound("OTP not found. Please request a new one")

        now = datetime.utcnow()
        if challenge.consumed or challenge.expires_at < now or not secrets.compare_digest(challenge.code.encode(), otp.encode()):
            raise ValidationError("Invalid or expired OTP")

        visitor = self.visitor_repo.latest_unverified_by_phone(self.db, phone)
        if visitor is not None:
            visitor.otp_verified = True
            visitor.phone_verified = True
            visitor.otp = None
            visitor.otp_expiry = None
        challenge = self.otp_repo.mark_verified(self.db, challenge, now)
        logger.info(f"[OTP] Phone {phone} verified")
        return challenge

    def consume_verified(self, phone: str) -> bool:
        """
        Mark an outstanding verified challenge as used without committing.
        The caller commits it together with the row that relies on it.
        """
        challenge = self.otp_repo.get_by_phone(self.db, phone)
        if challenge is None or not challenge.verified or challenge.consumed:
            return False
        challenge.consumed = True
        return True
