import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from vms.core.audit import AuditService
from vms.core.config import settings
from vms.core.errors import Conflict, Forbidden, NotFound, ValidationError
from vms.core.security import get_password_hash
from vms.models.audit_log import AuditLog, AuditModule
from vms.models.property import Property
from vms.models.resident import Resident
from vms.models.user import User, UserRole
from vms.repositories.audit_log_repository import AuditLogRepository
from vms.repositories.notification_repository import NotificationRepository
from vms.repositories.property_repository import PropertyRepository
from vms.repositories.resident_repository import ResidentRepository
from vms.repositories.user_repository import UserRepository
from vms.repositories.visitor_repository import VisitorRepository
from vms.schemas.common import dump
from vms.schemas.property import PropertyCreate, property_payload
from vms.schemas.user import UserCreate, UserResponse, UserUpdate
from vms.services.visitor_query_service import page_info, paginate

logger = logging.getLogger(__name__)


class AdminService:
    """Superadmin management of users, properties, audit logs and analytics"""

    def __init__(self, db: Session, admin: User, audit_context: Optional[Dict[str, Optional[str]]] = None):
        self.db = db
        self.admin = admin
        self.audit_context = audit_context or {}
        self.user_repo = UserRepository()
        self.resident_repo = ResidentRepository()
        self.property_repo = PropertyRepository()
        self.visitor_repo = VisitorRepository()
        self.notification_repo = NotificationRepository()
        self.audit_repo = AuditLogRepository()

    def _audit(self, action: str, module, details: str, property_id: Optional[int] = None, metadata: Optional[dict] = None):
        AuditService.log_action(
            self.db,
            action=action,
            module=module,
            user_id=self.admin.id,
            property_id=property_id,
            details=details,
            metadata=metadata,
            **self.audit_context,
        )

    # ---------- USERS ----------
    def create_user(self, data: UserCreate) -> Dict[str, Any]:
        if self.user_repo.get_by_email(self.db, data.email):
            raise Conflict("Email already registered")
        prop = self.property_repo.get_by_id(self.db, data.property_id)
        if not prop:
            raise NotFound("Property not found")

        user = User(
            email=data.email,
            hashed_password=get_password_hash(data.password),
            full_name=data.full_name,
            role=data.role,
            property_id=prop.id,
            unit_number=data.unit_number,
            phone_number=data.phone_number,
            is_active=True,
            created_by=self.admin.id,
        )
        try:
            self.db.add(user)
            self.db.flush()
            if data.role == UserRole.RESIDENT.value:
                self.db.add(Resident(
                    user_id=user.id,
                    property_id=prop.id,
                    unit_number=data.unit_number,
                    name=data.full_name,
                    phone_number=data.phone_number,
                    alternate_phone=data.alternate_phone,
                    email=data.email,
                    number_of_members=data.number_of_members,
                    vehicle_numbers=data.vehicle_numbers,
                    emergency_contact_name=data.emergency_contact_name,
                    emergency_contact_phone=data.emergency_contact_phone,
                    emergency_contact_relation=data.emergency_contact_relation,
                    is_active=True,
                ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        logger.info(f"[ADMIN] {self.admin.email} created {user.role} {user.email}")
        self._audit("USER_CREATED", AuditModule.USER, f"Created {user.role} {user.email}", prop.id, {"target_user_id": user.id})
        return self._user_payload(user)

    def _user_payload(self, user: User) -> Dict[str, Any]:
        payload = dump(UserResponse.model_validate(user))
        if user.role == UserRole.RESIDENT.value:
            resident = self.resident_repo.get_by_user_id(self.db, user.id)
            payload["residentId"] = resident.id if resident else None
        return payload

    def list_users(self, role: Optional[str] = None, property_id: Optional[int] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        if role and role not in (UserRole.RESIDENT.value, UserRole.GUARD.value):
            raise ValidationError("Role must be 'resident' or 'guard'")
        page, limit, skip = paginate(page, limit)
        users, total = self.user_repo.list(self.db, role, property_id, skip, limit)
        return {"users": [self._user_payload(u) for u in users], "pagination": page_info(page, limit, total)}

    def update_user(self, user_id: int, data: UserUpdate) -> Dict[str, Any]:
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise NotFound("User not found")
        if user.role == UserRole.SUPERADMIN.value and user.id != self.admin.id:
            raise Forbidden("Cannot modify another superadmin")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in changes and changes["email"] != user.email:
            existing = self.user_repo.get_by_email(self.db, changes["email"])
            if existing and existing.id != user.id:
                raise Conflict("Email already registered")
            user.email = changes["email"]
        if "password" in changes:
            user.hashed_password = get_password_hash(changes["password"])
        for field in ("full_name", "unit_number", "phone_number", "is_active"):
            if field in changes:
                setattr(user, field, changes[field])

        resident = self.resident_repo.get_by_user_id(self.db, user.id)
        if resident is not None:
            resident.name = user.full_name
            resident.email = user.email
            resident.is_active = user.is_active
            if user.unit_number:
                resident.unit_number = user.unit_number
            if user.phone_number:
                resident.phone_number = user.phone_number

        user = self.user_repo.update(self.db, user)
        logger.info(f"[ADMIN] {self.admin.email} updated user {user.email}")
        self._audit(
            "USER_UPDATED", AuditModule.USER, f"Updated {user.email}", user.property_id,
            {"target_user_id": user.id, "fields": sorted(k for k in changes if k != "password")},
        )
        return self._user_payload(user)

    def delete_user(self, user_id: int, permanent: bool = False) -> str:
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise NotFound("User not found")
        if user.role == UserRole.SUPERADMIN.value:
            raise Forbidden("Cannot delete superadmin user")

        resident = self.resident_repo.get_by_user_id(self.db, user.id)
        email, property_id = user.email, user.property_id
        if permanent:
            try:
                if resident is not None:
                    self.visitor_repo.detach_host(self.db, resident.id)
                    self.db.delete(resident)
                self.notification_repo.delete_for_user(self.db, user.id)
                self.db.delete(user)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            message = "User permanently deleted"
            action = "USER_DELETED"
        else:
            user.is_active = False
            if resident is not None:
                resident.is_active = False
            self.user_repo.update(self.db, user)
            message = "User deactivated successfully"
            action = "USER_DEACTIVATED"

        logger.info(f"[ADMIN] {self.admin.email}: {message} ({email})")
        self._audit(action, AuditModule.USER, f"{message}: {email}", property_id, {"target_user_id": user_id})
        return message

    # ---------- PROPERTIES ----------
    def create_property(self, data: PropertyCreate) -> Dict[str, Any]:
        contact = data.contact_person
        prop = Property(
            name=data.name.strip(),
            type=data.type.value,
            street=data.address.street,
            city=data.address.city,
            state=data.address.state,
            pincode=data.address.pincode,
            country=data.address.country,
            contact_person_name=contact.name if contact else None,
            contact_person_phone=contact.phone if contact else None,
            contact_person_email=contact.email if contact else None,
            qr_code=data.qr_code,
            total_units=data.total_units,
            is_active=True,
            created_by=self.admin.id,
        )
        prop = self.property_repo.create(self.db, prop)
        logger.info(f"[ADMIN] {self.admin.email} created property {prop.id} ({prop.name})")
        self._audit("PROPERTY_CREATED", AuditModule.PROPERTY, f"Created property {prop.name}", prop.id)
        return property_payload(prop)

    def list_properties(self, property_type: Optional[str] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        page, limit, skip = paginate(page, limit)
        items, total = self.property_repo.list(self.db, property_type, skip, limit)
        return {"properties": [property_payload(p) for p in items], "pagination": page_info(page, limit, total)}

    # ---------- AUDIT LOGS ----------
    def list_audit_logs(
        self,
        module: Optional[str] = None,
        action: Optional[str] = None,
        user_id: Optional[int] = None,
        property_id: Optional[int] = None,
        page: int = 1,
        limit: int = 50
    ) -> Dict[str, Any]:
        page, limit, skip = paginate(page, limit)
        since = datetime.utcnow() - timedelta(days=settings.AUDIT_LOG_RETENTION_DAYS)
        logs, total = self.audit_repo.list(self.db, since, module, action, user_id, property_id, skip, limit)
        return {"logs": [self._log_payload(log) for log in logs], "pagination": page_info(page, limit, total)}

    @staticmethod
    def _log_payload(log: AuditLog) -> Dict[str, Any]:
        return {
            "id": log.id,
            "userId": log.user_id,
            "propertyId": log.property_id,
            "action": log.action,
            "module": log.module,
            "details": log.details,
            "ipAddress": log.ip_address,
            "userAgent": log.user_agent,
            "metadata": log.meta,
            "createdAt": log.created_at,
        }

    # ---------- ANALYTICS ----------
    def analytics(
        self,
        property_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Dict[str, Any]:
        start = datetime(start_date.year, start_date.month, start_date.day) if start_date else None
        end = None
        if end_date:
            end = datetime(end_date.year, end_date.month, end_date.day) + timedelta(days=1)
        if start and end and start >= end:
            raise ValidationError("startDate must not be after endDate")

        by_status = self.visitor_repo.count_by_status(self.db, property_id, start, end)

        today, _ = self.visitor_repo.day_bounds(datetime.utcnow())
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)  # Sunday
        month_start = today.replace(day=1)

        recent = self.visitor_repo.list_recent(self.db, property_id, start, end, limit=20)

        return {
            "visitors": {
                "total": sum(by_status.values()),
                "byStatus": by_status,
                "walkIns": self.visitor_repo.count_walk_ins(self.db, property_id, start, end),
                "today": self.visitor_repo.count_created_since(self.db, today, property_id),
                "thisWeek": self.visitor_repo.count_created_since(self.db, week_start, property_id),
                "thisMonth": self.visitor_repo.count_created_since(self.db, month_start, property_id),
            },
            "users": {
                "residents": self.user_repo.count(self.db, UserRole.RESIDENT.value, property_id, active_only=True),
                "guards": self.user_repo.count(self.db, UserRole.GUARD.value, property_id, active_only=True),
                "active": self.user_repo.count(self.db, property_id=property_id, active_only=True),
            },
            "properties": {
                "total": self.property_repo.count(self.db),
                "active": self.property_repo.count(self.db, active_only=True),
            },
            "recentVisitors": [
                {
                    "id": v.id,
                    "name": v.name,
                    "status": v.status,
                    "propertyId": v.property_id,
                    "hostResidentId": v.host_resident_id,
                    "isWalkIn": v.is_walk_in,
                    "createdAt": v.created_at,
                }
                for v in recent
            ],
        }
