from vms.schemas.common import CamelModel, success_response, dump
from vms.schemas.auth import LoginRequest, SetupSuperadminRequest, IdentityResponse
from vms.schemas.visitor import (
    SendOtpRequest, VerifyOtpRequest, VisitorRegisterRequest, ManualEntryRequest,
    VisitorActionRequest, RejectVisitorRequest, ForwardVisitorRequest,
    VisitorResponse, ResidentOption, ResidentResponse,
)
from vms.schemas.notification import MarkReadRequest, NotificationResponse
from vms.schemas.user import UserCreate, UserUpdate, UserResponse
from vms.schemas.property import PropertyCreate, PropertyResponse

__all__ = [
    "CamelModel", "success_response", "dump",
    "LoginRequest", "SetupSuperadminRequest", "IdentityResponse",
    "SendOtpRequest", "VerifyOtpRequest", "VisitorRegisterRequest", "ManualEntryRequest",
    "VisitorActionRequest", "RejectVisitorRequest", "ForwardVisitorRequest",
    "VisitorResponse", "ResidentOption", "ResidentResponse",
    "MarkReadRequest", "NotificationResponse",
    "UserCreate", "UserUpdate", "UserResponse",
    "PropertyCreate", "PropertyResponse",
]
