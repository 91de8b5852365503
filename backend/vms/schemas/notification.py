from datetime import datetime
from typing import Optional
from vms.schemas.common import CamelModel


class MarkReadRequest(CamelModel):
    notification_id: int


class NotificationResponse(CamelModel):
    id: int
    type: str
    title: str
    message: str
    related_visitor_id: Optional[int] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    priority: str
    action_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
