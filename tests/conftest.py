from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from app.services.agrihaul_client import AgriHaulClient
from app.services.conversation_service import ConversationEngine
from app.services.result import Result
from app.services.session_store import InMemorySessionStore

SENDER = "whatsapp:+15550001111"

OPEN_JOBS = [
    {
        "id": "job-1",
        "crop": "Corn",
        "load_size": 20,
        "payout_dollars": 2400,
        "pickup_address": "Fresno, CA",
        "dropoff_address": "Chicago, IL",
        "farmer": {"rating_overall": 8.5},
    },
    {
        "id": "job-2",
        "crop": "Wheat",
        "load_size": 22.5,
        "payout_dollars": 3100.4,
        "pickup_address": "123 Farm Rd, Fresno CA",
        "dropoff_address": "Denver, CO",
    },
    {
        "id": "job-3",
        "crop": "Tomatoes",
        "load_size": 10,
        "payout_dollars": 1800,
        "pickup_address": "Salinas, CA",
        "dropoff_address": "Portland, OR",
    },
    {
        "id": "job-4",
        "crop": "Soybeans",
        "load_size": 18,
        "payout_dollars": 2000,
        "pickup_address": "FRESNO YARD 2",
        "dropoff_address": "Omaha, NE",
    },
    {
        "id": "job-5",
        "crop": "Rice",
        "load_size": 12,
        "payout_dollars": 1500,
        "pickup_address": "East Fresno",
        "dropoff_address": "Houston, TX",
    },
]


class FakeClock:
    """Controllable replacement for the store's clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemorySessionStore(timeout=timedelta(minutes=30), clock=clock)


@pytest.fixture
def backend():
    """Mock AgriHaul API client where every call succeeds."""
    client = Mock(spec=AgriHaulClient)
    client.create_job.return_value = Result.success("job-123")
    client.list_open_jobs.return_value = Result.success(OPEN_JOBS)
    client.get_job.return_value = Result.success(
        {
            "id": "job-1",
            "status": "in_transit",
            "pickup_address": "Fresno, CA",
            "dropoff_address": "Chicago, IL",
            "eta": "2025-06-02T14:00:00Z",
            "farmer_id": "farmer-77",
        }
    )
    client.accept_job.return_value = Result.success({"status": "accepted"})
    client.submit_rating.return_value = Result.success({"id": "rating-1"})
    return client


@pytest.fixture
def engine(store, backend):
    return ConversationEngine(store=store, client=backend)


def converse(engine: ConversationEngine, *messages: str, sender: str = SENDER) -> list[str]:
    """Send messages in order and return every reply."""
    return [engine.handle_incoming_message(sender, text) for text in messages]
