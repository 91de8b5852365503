"""
Outbound SMS and WhatsApp delivery through Twilio (and MSG91 for SMS).

Every public coroutine returns ``bool`` and never raises: delivery is
best-effort and callers only log the outcome.
"""
import base64
import hashlib
import hmac
import json
import logging
import re
from typing import Dict, Iterable, Optional, Tuple

import aiohttp

from vms.core.config import settings

logger = logging.getLogger(__name__)


def to_e164(phone: str, country_code: Optional[str] = None) -> str:
    """Normalise a local or international number to +<country><number>"""
    country_code = country_code or settings.DEFAULT_COUNTRY_CODE
    raw = phone.strip()
    if raw.startswith("whatsapp:"):
        raw = raw[len("whatsapp:"):]
    digits = re.sub(r"\D", "", raw)
    if raw.startswith("+"):
        return f"+{digits}"
    if len(digits) == 10:
        return f"+{country_code}{digits}"
    if digits.startswith(country_code) and len(digits) == 10 + len(country_code):
        return f"+{digits}"
    return f"+{digits}"


def to_whatsapp_address(phone: str) -> str:
    return f"whatsapp:{to_e164(phone)}"


def local_number(phone: str) -> str:
    """Last 10 digits of any formatted number (whatsapp:+91XXXXXXXXXX -> XXXXXXXXXX)"""
    digits = re.sub(r"\D", "", phone or "")
    return digits[-10:]


def twilio_signature(url: str, params: Iterable[Tuple[str, str]], auth_token: str) -> str:
    """X-Twilio-Signature value: base64 HMAC-SHA1 of the URL followed by the sorted POST params"""
    payload = url + "".join(f"{key}{value}" for key, value in sorted(params))
    digest = hmac.new(auth_token.encode(), payload.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode()


def valid_twilio_signature(url: str, params: Iterable[Tuple[str, str]], signature: Optional[str]) -> bool:
    if not signature or not settings.TWILIO_AUTH_TOKEN:
        return False
    expected = twilio_signature(url, params, settings.TWILIO_AUTH_TOKEN)
    return hmac.compare_digest(expected.encode(), signature.encode())


class MessagingService:
    def __init__(self, timeout: Optional[int] = None):
        self.timeout = timeout or settings.MESSAGING_TIMEOUT_SECONDS

    # ---------- CONFIG ----------
    @property
    def twilio_configured(self) -> bool:
        return bool(settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN)

    @property
    def whatsapp_configured(self) -> bool:
        return self.twilio_configured and bool(settings.TWILIO_WHATSAPP_NUMBER)

    @property
    def sms_configured(self) -> bool:
        if settings.SMS_PROVIDER == "msg91":
            return bool(settings.MSG91_AUTH_KEY)
        return self.twilio_configured and bool(settings.TWILIO_PHONE_NUMBER)

    def _client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.timeout)

    def _messages_url(self) -> str:
        return f"{settings.TWILIO_API_BASE_URL}/Accounts/{settings.TWILIO_ACCOUNT_SID}/Messages.json"

    # ---------- TRANSPORT ----------
    async def _post_twilio(self, form: Dict[str, str]) -> bool:
        try:
            auth = aiohttp.BasicAuth(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
            async with aiohttp.ClientSession() as session:
                async with session.post(self._messages_url(), data=form, auth=auth, timeout=self._client_timeout()) as resp:
                    if resp.status in (200, 201):
                        data = await resp.json(content_type=None)
                        logger.info(f"Twilio accepted message {data.get('sid')} to {form.get('To')}")
                        return True
                    response_text = await resp.text()
                    logger.error(f"Twilio rejected message to {form.get('To')}: {resp.status} - {response_text}")
                    return False
        except Exception as e:
            logger.error(f"Error sending Twilio message to {form.get('To')}: {e}", exc_info=True)
            return False

    async def _post_msg91(self, phone: str, variables: Dict[str, str]) -> bool:
        try:
            payload = {
                "template_id": settings.MSG91_TEMPLATE_ID,
                "sender": settings.MSG91_SENDER_ID,
                "short_url": "0",
                "recipients": [{"mobiles": to_e164(phone).lstrip("+"), **variables}],
            }
            headers = {"authkey": settings.MSG91_AUTH_KEY, "content-type": "application/json"}
            async with aiohttp.ClientSession() as session:
                async with session.post(settings.MSG91_API_URL, json=payload, headers=headers, timeout=self._client_timeout()) as resp:
                    if resp.status == 200:
                        return True
                    response_text = await resp.text()
                    logger.error(f"MSG91 rejected message: {resp.status} - {response_text}")
                    return False
        except Exception as e:
            logger.error(f"Error sending MSG91 message: {e}", exc_info=True)
            return False

    # ---------- CHANNELS ----------
    async def send_sms(self, phone: str, body: str) -> bool:
        if not self.sms_configured:
            logger.warning(f"SMS provider not configured, skipping SMS to {phone}")
            return False
        if settings.SMS_PROVIDER == "msg91":
            return await self._post_msg91(phone, {"message": body})
        return await self._post_twilio({
            "To": to_e164(phone),
            "From": settings.TWILIO_PHONE_NUMBER,
            "Body": body,
        })

    async def send_whatsapp(self, phone: str, body: str) -> bool:
        if not self.whatsapp_configured:
            logger.warning(f"WhatsApp not configured, skipping message to {phone}")
            return False
        return await self._post_twilio({
            "To": to_whatsapp_address(phone),
            "From": settings.TWILIO_WHATSAPP_NUMBER,
            "Body": body,
        })

    async def send_whatsapp_template(self, phone: str, content_sid: str, variables: Dict[str, str]) -> bool:
        if not self.whatsapp_configured:
            logger.warning(f"WhatsApp not configured, skipping template to {phone}")
            return False
        return await self._post_twilio({
            "To": to_whatsapp_address(phone),
            "From": settings.TWILIO_WHATSAPP_NUMBER,
            "ContentSid": content_sid,
            "ContentVariables": json.dumps(variables),
        })

    # ---------- VISITOR MESSAGES ----------
    async def send_otp(self, phone: str, code: str) -> bool:
        body = (
            f"Your visitor verification code is {code}. "
            f"It is valid for {settings.OTP_EXPIRY_MINUTES} minutes. Do not share it with anyone."
        )
        if settings.SMS_PROVIDER == "msg91" and self.sms_configured:
            return await self._post_msg91(phone, {"otp": code})
        return await self.send_sms(phone, body)

    async def send_approval_request(
        self,
        resident_phone: str,
        visitor_name: str,
        visitor_phone: Optional[str],
        unit_number: str,
        purpose: str
    ) -> bool:
        """Ask the host to approve over WhatsApp; buttons template first, plain text fallback"""
        if settings.TWILIO_WHATSAPP_APPROVAL_TEMPLATE_SID:
            sent = await self.send_whatsapp_template(
                resident_phone,
                settings.TWILIO_WHATSAPP_APPROVAL_TEMPLATE_SID,
                {"1": visitor_name, "2": visitor_phone or "-", "3": unit_number, "4": purpose},
            )
            if sent:
                return True
            logger.info("Approval template failed, falling back to plain text")
        body = (
            "*VMS - Visitor Approval*\n\n"
            f"Visitor: {visitor_name}\n"
            f"Phone: {visitor_phone or '-'}\n"
            f"Unit: {unit_number}\n"
            f"Purpose: {purpose}\n\n"
            "Do you approve?\n\n"
            "Reply: APPROVE or REJECT"
        )
        return await self.send_whatsapp(resident_phone, body)

    async def send_visitor_approved(self, phone: str, visitor_name: str, resident_name: str, unit_number: str) -> bool:
        """SMS and WhatsApp to the visitor; True when either channel delivered"""
        sms = await self.send_sms(
            phone, f"Dear {visitor_name}, your visit to {resident_name} (Unit {unit_number}) has been approved. Show this at the gate."
        )
        whatsapp = await self.send_whatsapp(
            phone,
            f"*Visit Approved*\n\nDear {visitor_name},\n\nYour visit has been APPROVED!\n\n"
            f"Host: {resident_name}\nUnit: {unit_number}\n\nShow this to the guard at gate."
        )
        return sms or whatsapp

    async def send_visitor_rejected(self, phone: str, visitor_name: str, reason: Optional[str] = None) -> bool:
        reason_line = f" Reason: {reason}" if reason else ""
        sms = await self.send_sms(phone, f"Dear {visitor_name}, your visit request has been declined.{reason_line}")
        whatsapp = await self.send_whatsapp(
            phone, f"*Visit Declined*\n\nDear {visitor_name},\nYour visit request was declined.{reason_line}"
        )
        return sms or whatsapp

    async def send_guard_alert(self, phone: str, title: str, message: str) -> bool:
        return await self.send_whatsapp(phone, f"*{title}*\n\n{message}")


_messaging_service: Optional[MessagingService] = None


def get_messaging_service() -> MessagingService:
    """FastAPI dependency; overridden with a recording fake in tests"""
    global _messaging_service
    if _messaging_service is None:
        _messaging_service = MessagingService()
    return _messaging_service
