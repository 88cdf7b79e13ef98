from app.schemas.message import MessageRequest, MessageResponse
from app.schemas.webhook import NotifyRequest, NotifyResponse, TwilioInboundMessage

__all__ = ["MessageRequest", "MessageResponse", "NotifyRequest", "NotifyResponse", "TwilioInboundMessage"]
