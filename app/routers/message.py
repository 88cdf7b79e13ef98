from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.config import settings
from app.dependencies import get_conversation_engine
from app.logging_config import get_logger
from app.schemas.message import MessageRequest, MessageResponse
from app.services.conversation_service import ConversationEngine
from app.services.replies import unexpected_error_reply
from app.services.state_machine import Flow

logger = get_logger("message_router")

router = APIRouter()


def _require_api_key(provided: Optional[str]) -> None:
    expected = settings.agrihaul_api_key
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="AGRIHAUL_API_KEY not configured",
        )
    if not provided or provided != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


@router.post("/message", response_model=MessageResponse)
def handle_message(
    request: MessageRequest,
    x_api_key: Optional[str] = Header(default=None, alias="x-api-key"),
    engine: ConversationEngine = Depends(get_conversation_engine),
):
    """Run one chat turn for a sender and return the reply as JSON."""
    _require_api_key(x_api_key)

    try:
        outcome = engine.process_turn(request.sender_id, request.content)
    except Exception as e:
        logger.error(
            "Message turn failed",
            extra={"context": {"sender_id": request.sender_id, "error": str(e), "error_kind": "internal"}},
            exc_info=True,
        )
        return MessageResponse(
            success=False,
            sender_id=request.sender_id,
            flow=Flow.MAIN.value,
            bot_response=unexpected_error_reply(),
        )

    return MessageResponse(
        success=True,
        sender_id=request.sender_id,
        flow=outcome.flow.value,
        bot_response=outcome.reply,
    )
