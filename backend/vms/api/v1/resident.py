from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from vms.core.audit import request_context
from vms.core.database import get_db
from vms.core.permissions import get_resident_user
from vms.models.user import User
from vms.schemas.common import success_response
from vms.schemas.visitor import ForwardVisitorRequest, RejectVisitorRequest, VisitorActionRequest
from vms.services.messaging_service import MessagingService, get_messaging_service
from vms.services.visitor_query_service import VisitorQueryService
from vms.services.visitor_service import VisitorService

router = APIRouter()


@router.get("/visitors/pending")
async def pending_visitors(
    current_user: User = Depends(get_resident_user),
    db: Session = Depends(get_db)
):
    return success_response({"visitors": VisitorQueryService(db).resident_pending(current_user)})


@router.get("/visitors/history")
async def visitor_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    current_user: User = Depends(get_resident_user),
    db: Session = Depends(get_db)
):
    return success_response(VisitorQueryService(db).resident_history(current_user, page, limit, status))


@router.post("/visitors/approve")
async def approve_visitor(
    data: VisitorActionRequest,
    request: Request,
    current_user: User = Depends(get_resident_user),
    db: Session = Depends(get_db),
    messaging: MessagingService = Depends(get_messaging_service)
):
    service = VisitorService(db, messaging, request_context(request))
    result = await service.approve(current_user, data.visitor_id)
    return success_response(result, "Visitor approved successfully")


@router.post("/visitors/reject")
async def reject_visitor(
    data: RejectVisitorRequest,
    request: Request,
    current_user: User = Depends(get_resident_user),
    db: Session = Depends(get_db),
    messaging: MessagingService = Depends(get_messaging_service)
):
    service = VisitorService(db, messaging, request_context(request))
    result = await service.reject(current_user, data.visitor_id, data.reason)
    return success_response(result, "Visitor request rejected")


@router.post("/visitors/forward")
async def forward_visitor(
    data: ForwardVisitorRequest,
    request: Request,
    current_user: User = Depends(get_resident_user),
    db: Session = Depends(get_db),
    messaging: MessagingService = Depends(get_messaging_service)
):
    service = VisitorService(db, messaging, request_context(request))
    result = await service.forward(current_user, data.visitor_id, data.forward_to_resident_id, data.note)
    return success_response(result, "Visitor request forwarded successfully")


@router.post("/visitors/mark-exit")
async def mark_exit(
    data: VisitorActionRequest,
    request: Request,
    current_user: User = Depends(get_resident_user),
    db: Session = Depends(get_db)
):
    result = VisitorService(db, None, request_context(request)).mark_exit(current_user, data.visitor_id)
    return success_response(result, "Exit marked. Guards have been notified")


@router.get("/residents/list")
async def forwarding_targets(
    search: Optional[str] = None,
    current_user: User = Depends(get_resident_user),
    db: Session = Depends(get_db)
):
    return success_response({"residents": VisitorQueryService(db).forwarding_targets(current_user, search)})
