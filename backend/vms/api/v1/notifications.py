from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from vms.core.database import get_db
from vms.core.permissions import get_current_user
from vms.models.user import User
from vms.schemas.common import dump, success_response
from vms.schemas.notification import MarkReadRequest, NotificationResponse
from vms.services.notification_service import NotificationService

router = APIRouter()

POLL_LIMIT = 10


def _payload(notifications):
    return [dump(NotificationResponse.model_validate(n)) for n in notifications]


@router.get("")
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = Query(False, alias="unreadOnly"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = NotificationService(db)
    return success_response({
        "notifications": _payload(service.list_for_user(current_user.id, unread_only, limit)),
        "unreadCount": service.unread_count(current_user.id),
    })


@router.get("/poll")
async def poll_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = NotificationService(db)
    return success_response({
        "notifications": _payload(service.list_for_user(current_user.id, unread_only=True, limit=POLL_LIMIT)),
        "unreadCount": service.unread_count(current_user.id),
    })


@router.get("/unread-count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return success_response({"count": NotificationService(db).unread_count(current_user.id)})


@router.post("/mark-read")
async def mark_read(
    data: MarkReadRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification = NotificationService(db).mark_read(current_user.id, data.notification_id)
    return success_response({"notification": dump(NotificationResponse.model_validate(notification))}, "Notification marked as read")
