"""
Visitor lifecycle transitions.

pending -> approved | rejected (host resident), pending -> pending with a new
host (forward), approved -> checked_in (guard). Mark-exit stamps a
checked_in visitor without changing its status. Every status write is a
conditional update on the expected status, so a lost race surfaces as
``Conflict`` instead of a silent overwrite.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from vms.core.audit import AuditService
from vms.core.config import settings
from vms.core.errors import Conflict, Forbidden, NotFound, ValidationError
from vms.models.audit_log import AuditModule
from vms.models.resident import Resident
from vms.models.user import User
from vms.models.visitor import Visitor, VisitorStatus
from vms.repositories.resident_repository import ResidentRepository
from vms.repositories.visitor_repository import VisitorRepository
from vms.schemas.visitor import ManualEntryRequest, VisitorRegisterRequest
from vms.services.messaging_service import MessagingService
from vms.services.notification_service import NotificationService
from vms.services.otp_service import OtpService

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Request declined"


class VisitorService:
    def __init__(
        self,
        db: Session,
        messaging: Optional[MessagingService] = None,
        audit_context: Optional[Dict[str, Optional[str]]] = None
    ):
        self.db = db
        self.visitor_repo = VisitorRepository()
        self.resident_repo = ResidentRepository()
        self.notifications = NotificationService(db, messaging)
        self.otp_service = OtpService(db, messaging)
        self.audit_context = audit_context or {}

    # ---------- HELPERS ----------
    def _audit(self, action: str, user_id: Optional[int], visitor: Visitor, details: str, module=AuditModule.VISITOR):
        AuditService.log_action(
            self.db,
            action=action,
            module=module,
            user_id=user_id,
            property_id=visitor.property_id,
            details=details,
            metadata={"visitor_id": visitor.id, "status": visitor.status},
            ip_address=self.audit_context.get("ip_address"),
            user_agent=self.audit_context.get("user_agent"),
        )

    def resident_for(self, user: User) -> Resident:
        """Resident profile of the calling user"""
        resident = self.resident_repo.get_by_user_id(self.db, user.id)
        if not resident or not resident.is_active:
            raise Forbidden("Resident profile not found")
        return resident

    def _hosted_visitor(self, user: User, visitor_id: int, expected_status: str) -> Tuple[Resident, Visitor]:
        resident = self.resident_for(user)
        visitor = self.visitor_repo.get_by_id(self.db, visitor_id)
        if not visitor:
            raise NotFound("Visitor not found")
        if visitor.host_resident_id != resident.id:
            raise Forbidden("You are not authorized to act on this visitor")
        if visitor.status != expected_status:
            if expected_status == VisitorStatus.PENDING.value:
                raise Conflict(f"Visitor already {visitor.status}")
            raise Conflict(f"Visitor is {visitor.status}, expected {expected_status}")
        return resident, visitor

    def _apply(
        self,
        visitor: Visitor,
        expected_status: str,
        values: Dict[str, Any],
        host_resident_id: Optional[int] = None
    ) -> Visitor:
        if not self.visitor_repo.transition(self.db, visitor.id, expected_status, values, host_resident_id):
            current = self.visitor_repo.get_by_id(self.db, visitor.id)
            if current is not None and host_resident_id is not None and current.host_resident_id != host_resident_id:
                raise Forbidden("You are not authorized to act on this visitor")
            raise Conflict(f"Visitor already {current.status if current else 'removed'}")
        self.db.refresh(visitor)
        return visitor

    def _require_phone_or_id_card(self, phone: Optional[str], id_card_image_url: Optional[str]):
        if not phone and not id_card_image_url:
            raise ValidationError("Either phone number or ID card image is required")

    # ---------- REGISTRATION ----------
    async def register(self, data: VisitorRegisterRequest) -> Visitor:
        self._require_phone_or_id_card(data.phone, data.id_card_image_url)

        host = self.resident_repo.get_active_in_property(self.db, data.host_resident_id, data.property_id)
        if not host:
            raise NotFound("Host resident not found")

        phone_verified = False
        if data.phone:
            phone_verified = self.otp_service.consume_verified(data.phone)
            if not phone_verified and settings.REQUIRE_VERIFIED_PHONE and not data.id_card_image_url:
                raise ValidationError("Phone number is not verified. Please verify the OTP first")

        visitor = Visitor(
            property_id=data.property_id,
            name=data.name,
            phone=data.phone,
            phone_verified=phone_verified,
            otp_verified=phone_verified,
            id_card_type=data.id_card_type.value if data.id_card_type else None,
            id_card_number=data.id_card_number,
            id_card_image_url=data.id_card_image_url,
            photo_url=data.photo_url,
            asset_photo_url=data.asset_photo_url,
            asset_description=data.asset_description,
            purpose=data.purpose,
            host_resident_id=host.id,
            vehicle_number=data.vehicle_number,
            number_of_persons=data.number_of_persons,
            status=VisitorStatus.PENDING.value,
            is_walk_in=False,
            created_at=datetime.utcnow(),
        )
        visitor = self.visitor_repo.create(self.db, visitor)
        logger.info(f"[VISITOR] {visitor.id} registered for resident {host.id} at property {visitor.property_id}")

        await self.notifications.notify_resident_of_visitor(host, visitor)
        self._audit("VISITOR_REGISTERED", None, visitor, f"{visitor.name} registered to visit {host.name}")
        return visitor

    async def manual_entry(self, guard: User, data: ManualEntryRequest) -> Visitor:
        self._require_phone_or_id_card(data.phone, data.id_card_image_url)

        host = self.resident_repo.get_active_in_property(self.db, data.host_resident_id, guard.property_id)
        if not host:
            raise NotFound("Host resident not found")

        visitor = Visitor(
            property_id=guard.property_id,
            name=data.name,
            phone=data.phone,
            phone_verified=bool(data.phone),
            id_card_image_url=data.id_card_image_url,
            photo_url=data.photo_url,
            purpose=data.purpose,
            host_resident_id=host.id,
            vehicle_number=data.vehicle_number,
            number_of_persons=data.number_of_persons,
            status=VisitorStatus.PENDING.value,
            is_walk_in=True,
            created_by=guard.id,
            created_at=datetime.utcnow(),
        )
        visitor = self.visitor_repo.create(self.db, visitor)
        logger.info(f"[VISITOR] Walk-in {visitor.id} created by guard {guard.id} for resident {host.id}")

        await self.notifications.notify_resident_of_visitor(host, visitor)
        self._audit("VISITOR_WALK_IN", guard.id, visitor, f"Walk-in {visitor.name} for {host.name}", AuditModule.GUARD)
        return visitor

    # ---------- RESIDENT DECISIONS ----------
    async def approve(self, user: User, visitor_id: int) -> Dict[str, Any]:
        resident, visitor = self._hosted_visitor(user, visitor_id, VisitorStatus.PENDING.value)
        visitor = self._apply(
            visitor,
            VisitorStatus.PENDING.value,
            {"status": VisitorStatus.APPROVED.value, "approved_by": user.id, "approved_at": datetime.utcnow()},
            host_resident_id=resident.id,
        )
        logger.info(f"[VISITOR] {visitor.id} approved by resident {resident.id}")

        await self.notifications.notify_guards_of_approval(visitor, resident)
        await self.notifications.notify_visitor_approved(visitor, resident)
        self._audit("VISITOR_APPROVED", user.id, visitor, f"{resident.name} approved {visitor.name}", AuditModule.RESIDENT)

        return {
            "visitorId": visitor.id,
            "status": visitor.status,
            "visitorName": visitor.name,
            "approvedBy": resident.name or user.email,
        }

    async def reject(self, user: User, visitor_id: int, reason: Optional[str] = None) -> Dict[str, Any]:
        resident, visitor = self._hosted_visitor(user, visitor_id, VisitorStatus.PENDING.value)
        visitor = self._apply(
            visitor,
            VisitorStatus.PENDING.value,
            {
                "status": VisitorStatus.REJECTED.value,
                "rejected_by": user.id,
                "rejected_at": datetime.utcnow(),
                "rejection_reason": (reason or "").strip() or DEFAULT_REJECTION_REASON,
            },
            host_resident_id=resident.id,
        )
        logger.info(f"[VISITOR] {visitor.id} rejected by resident {resident.id}")

        await self.notifications.notify_visitor_rejected(visitor)
        self.notifications.notify_guards_of_rejection(visitor, resident)
        self._audit(
            "VISITOR_REJECTED", user.id, visitor,
            f"{resident.name} rejected {visitor.name}: {visitor.rejection_reason}", AuditModule.RESIDENT,
        )

        return {
            "visitorId": visitor.id,
            "status": visitor.status,
            "visitorName": visitor.name,
            "rejectedAt": visitor.rejected_at,
        }

    async def forward(self, user: User, visitor_id: int, target_resident_id: int, note: Optional[str] = None) -> Dict[str, Any]:
        resident, visitor = self._hosted_visitor(user, visitor_id, VisitorStatus.PENDING.value)
        if target_resident_id == resident.id:
            raise ValidationError("Cannot forward a visitor to yourself")
        target = self.resident_repo.get_active_in_property(self.db, target_resident_id, visitor.property_id)
        if not target:
            raise NotFound("Target resident not found in this property")

        visitor = self._apply(
            visitor,
            VisitorStatus.PENDING.value,
            {
                "is_forwarded": True,
                "forwarded_from": resident.id,
                "forwarded_to": target.id,
                "forwarded_at": datetime.utcnow(),
                "forwarding_note": note,
                "host_resident_id": target.id,
            },
            host_resident_id=resident.id,
        )
        logger.info(f"[VISITOR] {visitor.id} forwarded from resident {resident.id} to {target.id}")

        await self.notifications.notify_forward_target(visitor, resident, target)
        self._audit(
            "VISITOR_FORWARDED", user.id, visitor,
            f"{resident.name} forwarded {visitor.name} to {target.name}", AuditModule.RESIDENT,
        )
        return {"visitorId": visitor.id, "forwardedTo": target.name}

    def mark_exit(self, user: User, visitor_id: int) -> Dict[str, Any]:
        resident, visitor = self._hosted_visitor(user, visitor_id, VisitorStatus.CHECKED_IN.value)
        visitor = self._apply(
            visitor,
            VisitorStatus.CHECKED_IN.value,
            {"marked_exit_by": user.id, "marked_exit_at": datetime.utcnow()},
            host_resident_id=resident.id,
        )
        logger.info(f"[VISITOR] {visitor.id} exit marked by resident {resident.id}")

        self.notifications.notify_guards_of_exit(visitor, resident)
        self._audit("VISITOR_EXIT_MARKED", user.id, visitor, f"{resident.name} marked {visitor.name} as exited", AuditModule.RESIDENT)
        return {"visitorId": visitor.id, "markedExitAt": visitor.marked_exit_at}

    # ---------- GUARD ----------
    def check_in(self, guard: User, visitor_id: int) -> Dict[str, Any]:
        visitor = self.visitor_repo.get_in_property(self.db, visitor_id, guard.property_id)
        if not visitor:
            raise NotFound("Visitor not found")
        if visitor.status != VisitorStatus.APPROVED.value:
            raise Conflict(f"Visitor is {visitor.status}, only approved visitors can be checked in")
        visitor = self._apply(
            visitor,
            VisitorStatus.APPROVED.value,
            {
                "status": VisitorStatus.CHECKED_IN.value,
                "checked_in_by": guard.id,
                "actual_check_in_time": datetime.utcnow(),
            },
        )
        logger.info(f"[VISITOR] {visitor.id} checked in by guard {guard.id}")
        self._audit("VISITOR_CHECKED_IN", guard.id, visitor, f"{visitor.name} checked in", AuditModule.GUARD)
        return {"visitorId": visitor.id, "status": visitor.status, "checkInTime": visitor.actual_check_in_time}
