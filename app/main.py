from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.dependencies import get_session_store
from app.logging_config import setup_logging
from app.routers import message, whatsapp
from app.services.health_service import check_sessions
from app.services.session_store import SessionStore

setup_logging(settings.log_level)

app = FastAPI(
    title="AgriHaul WhatsApp Bot",
    description="Numbered-menu WhatsApp chatbot for the AgriHaul freight marketplace",
    version="0.1.0",
)

cors_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(whatsapp.router)
app.include_router(message.router)


@app.get("/health")
def health(store: SessionStore = Depends(get_session_store)):
    return {"status": "ok", "sessions": check_sessions(store)}
