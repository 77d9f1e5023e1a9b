from enum import Enum


class BookingState(str, Enum):
    CONFIRMED = "confirmed"
    AWAITING_ID_TYPE = "awaiting_id_type"
    AWAITING_IMAGE = "awaiting_image"
    VERIFICATION_EXPIRED = "verification_expired"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    VERIFICATION_DECLINED = "verification_declined"
    AWAITING_PAYMENT = "awaiting_payment"
    CHECKED_IN = "checked_in"
    CANCELLED = "cancelled"


VALID_TRANSITIONS = {
    BookingState.CONFIRMED: [BookingState.AWAITING_ID_TYPE, BookingState.CANCELLED],
    BookingState.AWAITING_ID_TYPE: [BookingState.AWAITING_IMAGE, BookingState.CANCELLED],
    BookingState.AWAITING_IMAGE: [
        BookingState.AWAITING_IMAGE,
        BookingState.AWAITING_CONFIRMATION,
        BookingState.VERIFICATION_EXPIRED,
        BookingState.CANCELLED,
    ],
    BookingState.VERIFICATION_EXPIRED: [
        BookingState.AWAITING_ID_TYPE,
        BookingState.AWAITING_IMAGE,
        BookingState.CANCELLED,
    ],
    BookingState.AWAITING_CONFIRMATION: [
        BookingState.AWAITING_PAYMENT,
        BookingState.CHECKED_IN,
        BookingState.VERIFICATION_DECLINED,
        BookingState.CANCELLED,
    ],
    BookingState.VERIFICATION_DECLINED: [
        BookingState.AWAITING_ID_TYPE,
        BookingState.AWAITING_IMAGE,
        BookingState.CANCELLED,
    ],
    BookingState.AWAITING_PAYMENT: [BookingState.CHECKED_IN, BookingState.CANCELLED],
    BookingState.CHECKED_IN: [],
    BookingState.CANCELLED: [],
}

PRE_CHECKIN_STATES = frozenset(state for state in BookingState if BookingState.CANCELLED in VALID_TRANSITIONS[state])
ACTIVE_STATES = PRE_CHECKIN_STATES | {BookingState.CHECKED_IN}


class InvalidTransitionError(Exception):
    def __init__(self, from_state: BookingState, to_state: BookingState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


def can_transition(from_state: BookingState, to_state: BookingState) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_state, [])
    return to_state in allowed


def transition(from_state: BookingState, to_state: BookingState) -> BookingState:
    """Perform state transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(from_state, to_state)
    return to_state


def apply_transition(booking, to_state: BookingState) -> BookingState:
    """Move a booking row to a new state and bump its version."""
    new_state = transition(BookingState(booking.state), to_state)
    booking.state = new_state.value
    booking.state_version = (booking.state_version or 0) + 1
    return new_state


def start_checkin(booking) -> BookingState:
    """Guest asked to check in; wait for the ID type."""
    return apply_transition(booking, BookingState.AWAITING_ID_TYPE)


def select_id_type(booking, id_type: str) -> BookingState:
    """Guest picked an ID type; wait for the photo."""
    new_state = apply_transition(booking, BookingState.AWAITING_IMAGE)
    booking.selected_id_type = id_type
    return new_state


def expire_verification(booking) -> BookingState:
    """Upload window closed without a photo."""
    new_state = apply_transition(booking, BookingState.VERIFICATION_EXPIRED)
    booking.selected_id_type = None
    return new_state


def id_extracted(booking) -> BookingState:
    return apply_transition(booking, BookingState.AWAITING_CONFIRMATION)


def decline_extraction(booking) -> BookingState:
    new_state = apply_transition(booking, BookingState.VERIFICATION_DECLINED)
    booking.selected_id_type = None
    return new_state


def confirm_identity(booking) -> BookingState:
    """Guest confirmed the extracted identity; payment decides the next state."""
    if booking.paid_status == "paid":
        return apply_transition(booking, BookingState.CHECKED_IN)
    return apply_transition(booking, BookingState.AWAITING_PAYMENT)


def payment_received(booking) -> BookingState | None:
    """Mark a booking paid; finish check-in if it was only waiting on payment."""
    booking.paid_status = "paid"
    if booking.state == BookingState.AWAITING_PAYMENT.value:
        return apply_transition(booking, BookingState.CHECKED_IN)
    return None


def cancel(booking) -> BookingState:
    return apply_transition(booking, BookingState.CANCELLED)
