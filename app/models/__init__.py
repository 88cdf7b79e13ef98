from app.models.session import (
    FindLoadsDraft,
    LoadListing,
    PostLoadDraft,
    RateDraft,
    Session,
    SessionStateError,
    TrackDraft,
)

__all__ = [
    "Session",
    "SessionStateError",
    "PostLoadDraft",
    "FindLoadsDraft",
    "LoadListing",
    "TrackDraft",
    "RateDraft",
]
