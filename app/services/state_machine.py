from enum import Enum


class Flow(str, Enum):
    MAIN = "main"

    POST_LOAD_CROP = "post_load_crop"
    POST_LOAD_WEIGHT = "post_load_weight"
    POST_LOAD_PICKUP = "post_load_pickup"
    POST_LOAD_DROP = "post_load_drop"
    POST_LOAD_PAYMENT = "post_load_payment"
    POST_LOAD_EQUIPMENT = "post_load_equipment"

    FIND_LOADS_LOCATION = "find_loads_location"
    FIND_LOADS_SELECT = "find_loads_select"
    FIND_LOADS_LINK_CARRIER = "find_loads_link_carrier"

    TRACK_JOB_ENTER = "track_job_enter"

    RATE_ENTER_JOB = "rate_enter_job"
    RATE_ENTER_SCORE = "rate_enter_score"
    RATE_ENTER_COMMENT = "rate_enter_comment"


# Forward steps only. Returning to MAIN is a reset and is allowed from anywhere.
VALID_TRANSITIONS = {
    Flow.MAIN: [
        Flow.POST_LOAD_CROP,
        Flow.FIND_LOADS_LOCATION,
        Flow.TRACK_JOB_ENTER,
        Flow.RATE_ENTER_JOB,
    ],
    Flow.POST_LOAD_CROP: [Flow.POST_LOAD_WEIGHT],
    Flow.POST_LOAD_WEIGHT: [Flow.POST_LOAD_PICKUP],
    Flow.POST_LOAD_PICKUP: [Flow.POST_LOAD_DROP],
    Flow.POST_LOAD_DROP: [Flow.POST_LOAD_PAYMENT],
    Flow.POST_LOAD_PAYMENT: [Flow.POST_LOAD_EQUIPMENT],
    Flow.POST_LOAD_EQUIPMENT: [],
    Flow.FIND_LOADS_LOCATION: [Flow.FIND_LOADS_SELECT],
    Flow.FIND_LOADS_SELECT: [Flow.FIND_LOADS_LINK_CARRIER],
    Flow.FIND_LOADS_LINK_CARRIER: [],
    Flow.TRACK_JOB_ENTER: [],
    Flow.RATE_ENTER_JOB: [Flow.RATE_ENTER_SCORE],
    Flow.RATE_ENTER_SCORE: [Flow.RATE_ENTER_COMMENT],
    Flow.RATE_ENTER_COMMENT: [],
}

MAIN_MENU_OPTIONS = {
    1: Flow.POST_LOAD_CROP,
    2: Flow.FIND_LOADS_LOCATION,
    3: Flow.TRACK_JOB_ENTER,
    4: Flow.RATE_ENTER_JOB,
}


class InvalidTransitionError(Exception):
    def __init__(self, from_flow: Flow, to_flow: Flow):
        self.from_flow = from_flow
        self.to_flow = to_flow
        super().__init__(f"Invalid transition: {from_flow.value} -> {to_flow.value}")


def coerce_flow(value) -> Flow | None:
    """Return the Flow for a stored value, or None if it is not a known state."""
    if isinstance(value, Flow):
        return value
    try:
        return Flow(value)
    except ValueError:
        return None


def can_transition(from_flow: Flow, to_flow: Flow) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_flow, [])
    return to_flow in allowed


def transition(from_flow: Flow, to_flow: Flow) -> Flow:
    """Perform a forward step. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_flow, to_flow):
        raise InvalidTransitionError(from_flow, to_flow)
    return to_flow
