from datetime import datetime, timezone

from app.logging_config import get_logger
from app.services.session_store import SessionStore

logger = get_logger("health_service")


def check_sessions(store: SessionStore) -> dict:
    """Purge expired sessions and report what is left."""
    purged = store.purge_expired()
    active = store.count()

    if purged:
        logger.info(f"Health check purged {purged} expired sessions, {active} active")

    return {
        "active": active,
        "purged": purged,
        "timeout_seconds": int(store.timeout.total_seconds()),
        "checked_at": datetime.now(timezone.utc).isoformat(),
    }
