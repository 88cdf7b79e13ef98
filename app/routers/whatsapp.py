"""Twilio WhatsApp webhook.

POST accepts two kinds of traffic on the same path:
- Twilio inbound messages (application/x-www-form-urlencoded), answered in TwiML
- internal notify calls (application/json + x-api-key) that push an outbound
  message without going through the conversation engine
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.dependencies import get_conversation_engine, get_session_store, get_whatsapp_service
from app.logging_config import get_logger
from app.schemas.webhook import NotifyRequest, NotifyResponse, TwilioInboundMessage
from app.services.conversation_service import ConversationEngine
from app.services.health_service import check_sessions
from app.services.replies import unexpected_error_reply
from app.services.session_store import SessionStore
from app.services.whatsapp_service import WhatsAppService, is_whatsapp_address, render_twiml_reply

logger = get_logger("whatsapp_webhook")

router = APIRouter()

WEBHOOK_PATH = "/api/whatsapp/webhook"
TWIML_MEDIA_TYPE = "application/xml"


def _twiml(text: str) -> Response:
    return Response(content=render_twiml_reply(text), media_type=TWIML_MEDIA_TYPE)


def _signed_url(request: Request) -> str:
    """The URL Twilio signed: the configured public URL, else what we were called on."""
    if settings.public_base_url:
        return f"{settings.public_base_url.rstrip('/')}{WEBHOOK_PATH}"
    return str(request.url)


def _is_authorized(provided: Optional[str]) -> bool:
    expected = settings.agrihaul_api_key
    return bool(expected) and provided == expected


@router.get(WEBHOOK_PATH, response_class=PlainTextResponse)
def webhook_health(store: SessionStore = Depends(get_session_store)):
    """Health probe. Also sweeps expired sessions."""
    check_sessions(store)
    return PlainTextResponse("AgriHaul WhatsApp webhook OK")


@router.post(WEBHOOK_PATH)
async def whatsapp_webhook(
    request: Request,
    engine: ConversationEngine = Depends(get_conversation_engine),
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
):
    try:
        content_type = request.headers.get("content-type", "")

        if "application/json" in content_type:
            return await _handle_notify(request, whatsapp)

        if "application/x-www-form-urlencoded" not in content_type:
            return PlainTextResponse("Unsupported media type", status_code=415)

        form = await request.form()
        params = {key: value for key, value in form.items() if isinstance(value, str)}

        if settings.twilio_validate_signature:
            signature = request.headers.get("X-Twilio-Signature")
            if not whatsapp.is_valid_signature(_signed_url(request), params, signature):
                logger.warning(
                    "Rejected webhook with invalid signature",
                    extra={"context": {"from": params.get("From"), "has_signature": bool(signature)}},
                )
                return PlainTextResponse("Invalid signature", status_code=403)

        inbound = TwilioInboundMessage.model_validate(params)
        logger.info(
            "Webhook received",
            extra={"context": {"from": inbound.from_, "message_sid": inbound.message_sid, "length": len(inbound.body)}},
        )

        if not is_whatsapp_address(inbound.from_):
            return PlainTextResponse("Ignored non-WhatsApp source")

        reply = await run_in_threadpool(engine.handle_incoming_message, inbound.from_, inbound.body.strip())
        return _twiml(reply)

    except Exception as e:
        logger.error(
            "WhatsApp webhook failed",
            extra={"context": {"error": str(e), "error_kind": "internal"}},
            exc_info=True,
        )
        return _twiml(unexpected_error_reply())


async def _handle_notify(request: Request, whatsapp: WhatsAppService) -> JSONResponse:
    if not _is_authorized(request.headers.get("x-api-key")):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        notify = NotifyRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        notify = NotifyRequest()

    if not notify.to or not notify.message:
        return JSONResponse(status_code=400, content={"error": "Missing 'to' or 'message'."})

    result = await run_in_threadpool(whatsapp.send_message, notify.to, notify.message)
    if not result.ok:
        return JSONResponse(status_code=502, content={"success": False, "error": result.error})

    return JSONResponse(content=NotifyResponse(success=True, sid=result.value).model_dump())
