from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from app.services.parsers import format_dollars, format_rating, format_tons
from app.services.state_machine import Flow


@dataclass
class PostLoadDraft:
    """Answers collected by the six post-load steps."""

    crop: Optional[str] = None
    weight_lbs: Optional[int] = None
    weight_display: Optional[str] = None
    pickup: Optional[str] = None
    drop: Optional[str] = None
    payment_dollars: Optional[int] = None
    payment_display: Optional[str] = None
    equipment: Optional[str] = None


@dataclass
class LoadListing:
    """One open job as shown in a find-loads reply."""

    job_id: str
    crop: str
    weight_display: str
    route: str
    price_display: str
    rating_display: str

    @classmethod
    def from_job(cls, job: dict[str, Any]) -> "LoadListing":
        farmer = job.get("farmer") or {}
        pickup = job.get("pickup_address")
        dropoff = job.get("dropoff_address")
        crop = job.get("crop")
        job_id = job.get("id")
        return cls(
            job_id=str(job_id) if job_id is not None else "JOB_UNKNOWN",
            crop=str(crop) if crop is not None else "Unknown",
            weight_display=format_tons(job.get("load_size")),
            route=f"{pickup if pickup is not None else 'N/A'} to {dropoff if dropoff is not None else 'N/A'}",
            price_display=format_dollars(job.get("payout_dollars")),
            rating_display=format_rating(farmer.get("rating_overall") if isinstance(farmer, dict) else None),
        )


@dataclass
class FindLoadsDraft:
    location: Optional[str] = None
    # Replaced on every search; reply numbers are 1-based indexes into it.
    last_shown: list[LoadListing] = field(default_factory=list)
    selected_job_id: Optional[str] = None

    def listing_for(self, job_id: str) -> Optional[LoadListing]:
        return next((item for item in self.last_shown if item.job_id == job_id), None)


@dataclass
class TrackDraft:
    job_id: Optional[str] = None


@dataclass
class RateDraft:
    job_id: Optional[str] = None
    score: Optional[int] = None
    comment: Optional[str] = None


FlowDraft = Union[PostLoadDraft, FindLoadsDraft, TrackDraft, RateDraft]

# Which draft type each non-main flow carries.
DRAFT_TYPES: dict[Flow, type] = {
    Flow.POST_LOAD_CROP: PostLoadDraft,
    Flow.POST_LOAD_WEIGHT: PostLoadDraft,
    Flow.POST_LOAD_PICKUP: PostLoadDraft,
    Flow.POST_LOAD_DROP: PostLoadDraft,
    Flow.POST_LOAD_PAYMENT: PostLoadDraft,
    Flow.POST_LOAD_EQUIPMENT: PostLoadDraft,
    Flow.FIND_LOADS_LOCATION: FindLoadsDraft,
    Flow.FIND_LOADS_SELECT: FindLoadsDraft,
    Flow.FIND_LOADS_LINK_CARRIER: FindLoadsDraft,
    Flow.TRACK_JOB_ENTER: TrackDraft,
    Flow.RATE_ENTER_JOB: RateDraft,
    Flow.RATE_ENTER_SCORE: RateDraft,
    Flow.RATE_ENTER_COMMENT: RateDraft,
}


class SessionStateError(Exception):
    """The session's draft does not belong to its current flow."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    sender_id: str
    flow: Flow = Flow.MAIN
    last_active_at: datetime = field(default_factory=_utcnow)
    draft: Optional[FlowDraft] = None
    # Account link, kept across resets.
    linked_carrier_id: Optional[str] = None

    def reset_to_main(self) -> None:
        self.flow = Flow.MAIN
        self.draft = None

    def start(self, flow: Flow) -> None:
        """Enter the first step of a flow with a fresh draft."""
        self.flow = flow
        self.draft = DRAFT_TYPES[flow]()

    def draft_as(self, draft_type: type) -> Any:
        if not isinstance(self.draft, draft_type):
            raise SessionStateError(
                f"flow {getattr(self.flow, 'value', self.flow)} expects {draft_type.__name__}, "
                f"found {type(self.draft).__name__}"
            )
        return self.draft
