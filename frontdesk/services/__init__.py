from frontdesk.services.booking_state import (
    BookingState,
    InvalidTransitionError,
    can_transition,
    transition,
)
from frontdesk.services.commands import parse_selection
from frontdesk.services.dispatcher import dispatch_event
from frontdesk.services.result import ErrorCode, Result
from frontdesk.services.scheduler_service import run_scheduler_tick

__all__ = [
    "BookingState",
    "InvalidTransitionError",
    "can_transition",
    "transition",
    "parse_selection",
    "dispatch_event",
    "ErrorCode",
    "Result",
    "run_scheduler_tick",
]
