from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from vms.core.audit import request_context
from vms.core.database import get_db
from vms.core.permissions import get_guard_user
from vms.models.user import User
from vms.schemas.common import success_response
from vms.schemas.visitor import ManualEntryRequest, VisitorActionRequest
from vms.services.messaging_service import MessagingService, get_messaging_service
from vms.services.visitor_query_service import VisitorQueryService
from vms.services.visitor_service import VisitorService

router = APIRouter()


@router.get("/visitors/approved")
async def approved_visitors(
    current_user: User = Depends(get_guard_user),
    db: Session = Depends(get_db)
):
    return success_response({"visitors": VisitorQueryService(db).guard_approved(current_user)})


@router.get("/visitors/active")
async def active_visitors(
    current_user: User = Depends(get_guard_user),
    db: Session = Depends(get_db)
):
    return success_response({"visitors": VisitorQueryService(db).guard_active(current_user)})


@router.get("/visitors/history")
async def visitor_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_guard_user),
    db: Session = Depends(get_db)
):
    return success_response(VisitorQueryService(db).guard_history(current_user, page, limit, day))


@router.post("/visitors/check-in")
async def check_in(
    data: VisitorActionRequest,
    request: Request,
    current_user: User = Depends(get_guard_user),
    db: Session = Depends(get_db)
):
    result = VisitorService(db, None, request_context(request)).check_in(current_user, data.visitor_id)
    return success_response(result, "Visitor checked in successfully")


@router.post("/manual-entry", status_code=status.HTTP_201_CREATED)
async def manual_entry(
    data: ManualEntryRequest,
    request: Request,
    current_user: User = Depends(get_guard_user),
    db: Session = Depends(get_db),
    messaging: MessagingService = Depends(get_messaging_service)
):
    visitor = await VisitorService(db, messaging, request_context(request)).manual_entry(current_user, data)
    return success_response(
        {"visitorId": visitor.id, "status": visitor.status},
        "Visitor entry created. Approval request sent.",
    )


@router.get("/residents/list")
async def residents(
    search: Optional[str] = None,
    current_user: User = Depends(get_guard_user),
    db: Session = Depends(get_db)
):
    return success_response({"residents": VisitorQueryService(db).guard_residents(current_user, search)})
