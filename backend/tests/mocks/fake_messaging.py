from typing import List, Optional, Tuple
from vms.services.messaging_service import MessagingService


class FakeMessagingService(MessagingService):
    """Records every outbound message instead of calling Twilio"""

    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        super().__init__(timeout=1)
        self.result = result
        self.error = error
        self.sent: List[Tuple[str, str, tuple]] = []
        self.otps = {}

    def _record(self, kind: str, phone: str, *args) -> bool:
        self.sent.append((kind, phone, args))
        if self.error is not None:
            raise self.error
        return self.result

    def kinds(self) -> List[str]:
        return [kind for kind, _, _ in self.sent]

    def to(self, phone: str) -> List[str]:
        return [kind for kind, target, _ in self.sent if target == phone]

    async def send_sms(self, phone, body):
        return self._record("sms", phone, body)

    async def send_whatsapp(self, phone, body):
        return self._record("whatsapp", phone, body)

    async def send_otp(self, phone, code):
        self.otps[phone] = code
        return self._record("otp", phone, code)

    async def send_approval_request(self, resident_phone, visitor_name, visitor_phone, unit_number, purpose):
        return self._record("approval_request", resident_phone, visitor_name, purpose)

    async def send_visitor_approved(self, phone, visitor_name, resident_name, unit_number):
        return self._record("visitor_approved", phone, visitor_name, resident_name)

    async def send_visitor_rejected(self, phone, visitor_name, reason=None):
        return self._record("visitor_rejected", phone, visitor_name, reason)

    async def send_guard_alert(self, phone, title, message):
        return self._record("guard_alert", phone, title)
