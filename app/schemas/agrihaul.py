"""Request and response shapes of the AgriHaul REST API v1."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

RATING_MIN = 0
RATING_MAX = 10


class Equipment(str, Enum):
    DRY_VAN = "Dry Van"
    REFRIGERATED_TRUCK = "Refrigerated Truck"
    FLATBED = "Flatbed"
    GRAIN_HOPPER = "Grain Hopper"

    @property
    def slug(self) -> str:
        """Value expected in `equipment_needed`."""
        return EQUIPMENT_SLUGS[self]

    @classmethod
    def from_menu_number(cls, number: Optional[int]) -> Optional["Equipment"]:
        return EQUIPMENT_MENU.get(number)


EQUIPMENT_SLUGS = {
    Equipment.DRY_VAN: "dry van",
    Equipment.REFRIGERATED_TRUCK: "refrigerated",
    Equipment.FLATBED: "flatbed",
    Equipment.GRAIN_HOPPER: "grain hopper",
}

EQUIPMENT_MENU = {
    1: Equipment.DRY_VAN,
    2: Equipment.REFRIGERATED_TRUCK,
    3: Equipment.FLATBED,
    4: Equipment.GRAIN_HOPPER,
}


class ApiEnvelope(BaseModel):
    success: bool = False
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None
    pagination: Optional[Any] = None


class CreateJobRequest(BaseModel):
    crop: str
    load_size: Optional[float] = None
    payout_dollars: int
    pickup_address: str
    dropoff_address: str
    equipment_needed: list[str]
    is_perishable: bool = False
    notes: str = "Posted via WhatsApp"


class AcceptJobRequest(BaseModel):
    carrier_id: str


def score_to_category_value(score_1_to_5: int) -> int:
    """Map a 1-5 chat rating onto the 0-10 category scale."""
    return max(RATING_MIN, min(RATING_MAX, score_1_to_5 * 2))


class RatingRequest(BaseModel):
    job_id: str
    ratee_id: str
    on_time: int = Field(ge=RATING_MIN, le=RATING_MAX)
    communication: int = Field(ge=RATING_MIN, le=RATING_MAX)
    accuracy: int = Field(ge=RATING_MIN, le=RATING_MAX)
    compliance: int = Field(ge=RATING_MIN, le=RATING_MAX)
    condition: int = Field(ge=RATING_MIN, le=RATING_MAX)
    resolution: int = Field(ge=RATING_MIN, le=RATING_MAX)
    comment: str = ""

    @classmethod
    def uniform(cls, job_id: str, ratee_id: str, score_1_to_5: int, comment: str = "") -> "RatingRequest":
        """Apply one overall score to all six categories."""
        value = score_to_category_value(score_1_to_5)
        return cls(
            job_id=job_id,
            ratee_id=ratee_id,
            on_time=value,
            communication=value,
            accuracy=value,
            compliance=value,
            condition=value,
            resolution=value,
            comment=comment,
        )
