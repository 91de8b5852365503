import re
from typing import Any, Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

PHONE_PATTERN = re.compile(r"^\d{10}$")


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case is accepted on input too"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


def validate_phone(v: Optional[str]) -> Optional[str]:
    """Strip separators and require exactly 10 digits"""
    v = blank_to_none(v)
    if v is None:
        return None
    digits = re.sub(r"[\s\-()]", "", str(v))
    if not PHONE_PATTERN.match(digits):
        raise ValueError("Phone number must be 10 digits")
    return digits


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    """Success envelope: {"success": true, "message"?: str, "data"?: ...}"""
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def dump(model: BaseModel) -> dict:
    return model.model_dump(by_alias=True, mode="json")
