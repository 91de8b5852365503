from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from vms.core.audit import request_context
from vms.core.database import get_db
from vms.schemas.auth import IdentityResponse, SetupSuperadminRequest
from vms.schemas.common import dump, success_response
from vms.services.auth_service import AuthService

router = APIRouter()


@router.post("/superadmin", status_code=status.HTTP_201_CREATED)
async def create_superadmin(
    data: SetupSuperadminRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    user = AuthService(db, request_context(request)).setup_superadmin(data)
    return success_response(
        {"user": dump(IdentityResponse.model_validate(user))},
        "Superadmin created successfully",
    )
