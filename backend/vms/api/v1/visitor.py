"""
Public gate endpoints used by visitors before they have an account.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from vms.core.audit import request_context
from vms.core.database import get_db
from vms.schemas.common import success_response
from vms.schemas.visitor import SendOtpRequest, VerifyOtpRequest, VisitorRegisterRequest
from vms.services.messaging_service import MessagingService, get_messaging_service
from vms.services.otp_service import OtpService
from vms.services.visitor_query_service import VisitorQueryService
from vms.services.visitor_service import VisitorService

router = APIRouter()


@router.post("/send-otp")
async def send_otp(
    data: SendOtpRequest,
    db: Session = Depends(get_db),
    messaging: MessagingService = Depends(get_messaging_service)
):
    challenge = await OtpService(db, messaging).send_otp(data.phone, data.visitor_id)
    return success_response({"phone": challenge.phone, "expiresAt": challenge.expires_at}, "OTP sent successfully")


@router.post("/verify-otp")
async def verify_otp(data: VerifyOtpRequest, db: Session = Depends(get_db)):
    challenge = OtpService(db).verify_otp(data.phone, data.otp)
    return success_response({"phone": challenge.phone, "verified": challenge.verified}, "OTP verified successfully")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    data: VisitorRegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
    messaging: MessagingService = Depends(get_messaging_service)
):
    visitor = await VisitorService(db, messaging, request_context(request)).register(data)
    return success_response(
        {"visitorId": visitor.id, "status": visitor.status},
        "Visitor registration submitted successfully",
    )


@router.get("/residents")
async def list_residents(
    property_id: int = Query(..., alias="propertyId"),
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return success_response({"residents": VisitorQueryService(db).public_residents(property_id, search)})
