import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from vms.core.database import Base


class NotificationType(str, enum.Enum):
    VISITOR_REQUEST = "visitor_request"
    VISITOR_APPROVED = "visitor_approved"
    VISITOR_REJECTED = "visitor_rejected"
    VISITOR_CHECKED_IN = "visitor_checked_in"
    VISITOR_EXIT_MARKED = "visitor_exit_marked"
    VISITOR_AT_GATE = "visitor_at_gate"
    SYSTEM = "system"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # Recipient
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    related_visitor_id = Column(Integer, ForeignKey("visitors.id"), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime, nullable=True)
    priority = Column(String, default=NotificationPriority.MEDIUM.value, nullable=False)
    action_url = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    expires_at = Column(DateTime, nullable=True, index=True)
