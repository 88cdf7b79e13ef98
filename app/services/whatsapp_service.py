from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.request_validator import RequestValidator
from twilio.rest import Client
from twilio.twiml.messaging_response import MessagingResponse

from app.logging_config import get_logger
from app.services.result import ErrorKind, Result

logger = get_logger("whatsapp_service")

WHATSAPP_PREFIX = "whatsapp:"


def is_whatsapp_address(value: Optional[str]) -> bool:
    return bool(value) and value.startswith(WHATSAPP_PREFIX)


def to_whatsapp_address(number: str) -> str:
    """Add the channel prefix Twilio expects for WhatsApp numbers."""
    number = number.strip()
    return number if is_whatsapp_address(number) else f"{WHATSAPP_PREFIX}{number}"


def render_twiml_reply(text: str) -> str:
    """Wrap a reply in a TwiML MessagingResponse document."""
    response = MessagingResponse()
    response.message(text)
    return str(response)


class WhatsAppService:
    """Service for sending WhatsApp messages through Twilio."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        client: Optional[Client] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def send_message(self, to: str, body: str) -> Result[str]:
        """Send a text message. Returns the Twilio message sid."""
        if not self.configured and self._client is None:
            logger.error("Twilio credentials missing, cannot send WhatsApp message")
            return Result.failure("Twilio is not configured", "not_configured", kind=ErrorKind.INTERNAL)

        recipient = to_whatsapp_address(to)
        try:
            message = self.client.messages.create(
                from_=to_whatsapp_address(self.from_number),
                to=recipient,
                body=body,
            )
        except (TwilioException, OSError) as e:
            logger.error(
                "Failed to send WhatsApp message",
                extra={"context": {"to": recipient, "error": str(e)}},
            )
            return Result.upstream_failure(str(e), "twilio_error")

        logger.info("WhatsApp message sent", extra={"context": {"to": recipient, "sid": message.sid}})
        return Result.success(message.sid)

    def is_valid_signature(self, url: str, params: dict, signature: Optional[str]) -> bool:
        """Check the X-Twilio-Signature header against the request url and form params."""
        if not self.auth_token or not signature:
            return False
        return RequestValidator(self.auth_token).validate(url, params, signature)
