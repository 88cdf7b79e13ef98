from typing import Optional

from pydantic import BaseModel, Field


class MessageRequest(BaseModel):
    sender_id: str = Field(min_length=1)
    content: str = ""


class MessageResponse(BaseModel):
    success: bool
    sender_id: str
    flow: str
    bot_response: Optional[str] = None
