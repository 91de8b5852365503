from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from vms.core.audit import request_context
from vms.core.config import settings
from vms.core.database import get_db
from vms.core.permissions import get_current_user
from vms.models.user import User
from vms.schemas.auth import IdentityResponse, LoginRequest
from vms.schemas.common import dump, success_response
from vms.services.auth_service import AuthService

router = APIRouter()


@router.post("/login")
async def login(
    login_data: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    user, token = AuthService(db, request_context(request)).login(login_data)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )
    return success_response(
        {"user": dump(IdentityResponse.model_validate(user)), "token": token},
        "Login successful",
    )


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(key=settings.AUTH_COOKIE_NAME, path="/")
    return success_response(message="Logged out successfully")


@router.get("/verify")
async def verify(current_user: User = Depends(get_current_user)):
    return success_response({"user": dump(IdentityResponse.model_validate(current_user))})
