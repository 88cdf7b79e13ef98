"""Shared service instances handed to routers through FastAPI's Depends."""

from datetime import timedelta
from typing import Optional

from app.config import settings
from app.services.agrihaul_client import AgriHaulClient
from app.services.conversation_service import ConversationEngine
from app.services.session_store import InMemorySessionStore, SessionStore
from app.services.whatsapp_service import WhatsAppService

_session_store: Optional[SessionStore] = None
_engine: Optional[ConversationEngine] = None
_whatsapp_service: Optional[WhatsAppService] = None


def get_session_store() -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = InMemorySessionStore(timeout=timedelta(minutes=settings.session_timeout_minutes))
    return _session_store


def get_agrihaul_client() -> AgriHaulClient:
    return AgriHaulClient(
        base_url=settings.agrihaul_api_base_url,
        api_key=settings.agrihaul_api_key,
        timeout=settings.agrihaul_api_timeout_seconds,
    )


def get_conversation_engine() -> ConversationEngine:
    global _engine
    if _engine is None:
        _engine = ConversationEngine(
            store=get_session_store(),
            client=get_agrihaul_client(),
            find_loads_fetch_limit=settings.find_loads_fetch_limit,
            find_loads_max_results=settings.find_loads_max_results,
        )
    return _engine


def get_whatsapp_service() -> WhatsAppService:
    global _whatsapp_service
    if _whatsapp_service is None:
        _whatsapp_service = WhatsAppService(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_whatsapp_number,
        )
    return _whatsapp_service
