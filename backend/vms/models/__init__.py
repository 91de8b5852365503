from vms.models.user import User, UserRole
from vms.models.resident import Resident
from vms.models.property import Property, PropertyType
from vms.models.visitor import Visitor, VisitorStatus, IdCardType
from vms.models.notification import Notification, NotificationType, NotificationPriority
from vms.models.audit_log import AuditLog, AuditModule
from vms.models.otp import OtpChallenge

__all__ = [
    "User",
    "UserRole",
    "Resident",
    "Property",
    "PropertyType",
    "Visitor",
    "VisitorStatus",
    "IdCardType",
    "Notification",
    "NotificationType",
    "NotificationPriority",
    "AuditLog",
    "AuditModule",
    "OtpChallenge",
]
