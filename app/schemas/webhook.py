from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TwilioInboundMessage(BaseModel):
    """The Twilio webhook form fields the bot uses."""

    model_config = ConfigDict(extra="ignore")

    from_: str = Field(default="", validation_alias=AliasChoices("From", "from"))
    body: str = Field(default="", validation_alias=AliasChoices("Body", "body"))
    message_sid: Optional[str] = Field(default=None, validation_alias=AliasChoices("MessageSid", "message_sid"))


class NotifyRequest(BaseModel):
    """Server-to-server push of an outbound WhatsApp message."""

    to: Optional[str] = None
    message: Optional[str] = None


class NotifyResponse(BaseModel):
    success: bool
    sid: Optional[str] = None
