import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from vms.core.config import settings
from vms.core.database import get_db
from vms.core.errors import Forbidden
from vms.services.messaging_service import MessagingService, get_messaging_service, valid_twilio_signature
from vms.services.webhook_service import WhatsAppWebhookService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/whatsapp")
async def whatsapp_webhook(
    request: Request,
    db: Session = Depends(get_db),
    messaging: MessagingService = Depends(get_messaging_service)
):
    """Twilio inbound WhatsApp message (form encoded). Quick-reply buttons arrive as ButtonPayload."""
    form = await request.form()
    url = settings.TWILIO_WEBHOOK_URL or str(request.url)
    if not valid_twilio_signature(url, form.multi_items(), request.headers.get("X-Twilio-Signature")):
        logger.warning(f"[WEBHOOK] Rejected unsigned or mis-signed request from {form.get('From')}")
        raise Forbidden("Invalid Twilio signature")

    body = form.get("ButtonPayload") or form.get("Body")
    reply = await WhatsAppWebhookService(db, messaging).handle_reply(form.get("From"), body)
    return Response(content=reply, media_type="application/xml")
