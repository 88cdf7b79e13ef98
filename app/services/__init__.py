from app.services.result import ErrorKind, Result
from app.services.state_machine import (
    Flow,
    InvalidTransitionError,
    can_transition,
    transition,
)

__all__ = ["ErrorKind", "Result", "Flow", "InvalidTransitionError", "can_transition", "transition"]
