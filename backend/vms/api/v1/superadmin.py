from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from vms.core.audit import request_context
from vms.core.database import get_db
from vms.core.permissions import get_super_admin
from vms.models.property import PropertyType
from vms.models.user import User
from vms.schemas.common import success_response
from vms.schemas.property import PropertyCreate
from vms.schemas.user import UserCreate, UserUpdate
from vms.services.admin_service import AdminService

router = APIRouter()


def get_admin_service(
    request: Request,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(get_db)
) -> AdminService:
    return AdminService(db, current_user, request_context(request))


# ---------- USERS ----------
@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, service: AdminService = Depends(get_admin_service)):
    return success_response({"user": service.create_user(data)}, "User created successfully")


@router.get("/users")
async def list_users(
    role: Optional[str] = None,
    property_id: Optional[int] = Query(None, alias="propertyId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: AdminService = Depends(get_admin_service)
):
    return success_response(service.list_users(role, property_id, page, limit))


@router.put("/users/{user_id}")
async def update_user(user_id: int, data: UserUpdate, service: AdminService = Depends(get_admin_service)):
    return success_response({"user": service.update_user(user_id, data)}, "User updated successfully")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    permanent: bool = False,
    service: AdminService = Depends(get_admin_service)
):
    return success_response(message=service.delete_user(user_id, permanent))


# ---------- PROPERTIES ----------
@router.post("/properties", status_code=status.HTTP_201_CREATED)
async def create_property(data: PropertyCreate, service: AdminService = Depends(get_admin_service)):
    return success_response({"property": service.create_property(data)}, "Property created successfully")


@router.get("/properties")
async def list_properties(
    type: Optional[PropertyType] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: AdminService = Depends(get_admin_service)
):
    return success_response(service.list_properties(type.value if type else None, page, limit))


# ---------- AUDIT & ANALYTICS ----------
@router.get("/audit-logs")
async def audit_logs(
    module: Optional[str] = None,
    action: Optional[str] = None,
    user_id: Optional[int] = Query(None, alias="userId"),
    property_id: Optional[int] = Query(None, alias="propertyId"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    service: AdminService = Depends(get_admin_service)
):
    return success_response(service.list_audit_logs(module, action, user_id, property_id, page, limit))


@router.get("/analytics")
async def analytics(
    property_id: Optional[int] = Query(None, alias="propertyId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    service: AdminService = Depends(get_admin_service)
):
    return success_response(service.analytics(property_id, start_date, end_date))
