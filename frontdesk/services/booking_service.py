from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from frontdesk.logging_config import get_logger
from frontdesk.models import Booking, Feedback, Room, User
from frontdesk.schemas.booking import BookingCreate, BookingUpdate
from frontdesk.services.booking_state import (
    ACTIVE_STATES,
    PRE_CHECKIN_STATES,
    BookingState,
    InvalidTransitionError,
    cancel,
    payment_received,
)
from frontdesk.services.reminder_service import (
    CHECKIN_WELCOME,
    cancel_booking_reminders,
    cancel_jobs,
    rearm_booking_reminders,
    schedule_booking_reminders,
    schedule_job,
)
from frontdesk.services.result import ErrorCode, Result

logger = get_logger("booking_service")

ACTIVE_STATE_VALUES = [state.value for state in ACTIVE_STATES]
REPRICING_FIELDS = {"room_type", "check_in_date", "check_out_date"}


@dataclass
class AvailabilityQuote:
    room_type: str
    available: bool
    remaining_rooms: int
    price_per_night: Decimal
    nights: int
    estimated_total: Decimal


@dataclass
class PaymentOutcome:
    booking: Booking
    checked_in: bool


def get_user_by_phone(db: Session, phone: str) -> Optional[User]:
    return db.query(User).filter(User.phone == phone).first()


def get_or_create_user(db: Session, phone: str, name: Optional[str] = None) -> User:
    """Find a user by phone or create one. A supplied name replaces the stored one."""
    user = get_user_by_phone(db, phone)
    if user:
        if name and user.name != name:
            user.name = name
        return user

    user = User(phone=phone, name=name or phone)
    db.add(user)
    db.flush()
    logger.info("User created", extra={"context": {"user_id": user.id, "phone": phone}})
    return user


def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
    return db.query(Booking).filter(Booking.id == booking_id).first()


def get_active_booking(db: Session, user_id: int) -> Optional[Booking]:
    """Latest non-cancelled booking for a user; the target of view/modify/cancel."""
    return (
        db.query(Booking)
        .filter(Booking.user_id == user_id, Booking.state.in_(ACTIVE_STATE_VALUES))
        .order_by(Booking.id.desc())
        .first()
    )


def has_active_booking_for_phone(db: Session, phone: str) -> bool:
    user = get_user_by_phone(db, phone)
    return bool(user and get_active_booking(db, user.id))


def get_room(db: Session, room_type: str) -> Optional[Room]:
    return db.query(Room).filter(Room.type == room_type).first()


def list_rooms(db: Session) -> List[Room]:
    return db.query(Room).order_by(Room.price, Room.id).all()


def calculate_nights(check_in_date: date, check_out_date: date) -> int:
    """Nights are exclusive of the check-out day: 10th to 12th is 2 nights."""
    return (check_out_date - check_in_date).days


def calculate_price(price_per_night, nights: int) -> Decimal:
    return (Decimal(price_per_night) * nights).quantize(Decimal("0.01"))


def count_overlapping(
    db: Session,
    room_type: str,
    check_in_date: date,
    check_out_date: date,
    exclude_booking_id: Optional[int] = None,
) -> int:
    """Count active bookings of a room type whose stay overlaps [check_in_date, check_out_date)."""
    query = db.query(func.count(Booking.id)).filter(
        Booking.room_type == room_type,
        Booking.state.in_(ACTIVE_STATE_VALUES),
        Booking.check_in_date < check_out_date,
        Booking.check_out_date > check_in_date,
    )
    if exclude_booking_id is not None:
        query = query.filter(Booking.id != exclude_booking_id)
    return query.scalar() or 0


def check_availability(
    db: Session,
    room_type: str,
    check_in_date: date,
    check_out_date: date,
    exclude_booking_id: Optional[int] = None,
) -> Result[AvailabilityQuote]:
    if check_out_date <= check_in_date:
        return Result.failure("Check-out date must be after check-in date", ErrorCode.INVALID_DATES)

    room = get_room(db, room_type)
    if not room:
        return Result.failure(f"Room type '{room_type}' not found", ErrorCode.ROOM_NOT_FOUND)

    overlapping = count_overlapping(db, room_type, check_in_date, check_out_date, exclude_booking_id)
    remaining = max(room.availability - overlapping, 0)
    nights = calculate_nights(check_in_date, check_out_date)
    return Result.success(
        AvailabilityQuote(
            room_type=room_type,
            available=remaining > 0,
            remaining_rooms=remaining,
            price_per_night=Decimal(room.price),
            nights=nights,
            estimated_total=calculate_price(room.price, nights),
        )
    )


def rooms_available_on(db: Session, day: date) -> List[Tuple[Room, int]]:
    """Remaining rooms per type for a single night."""
    rows = []
    for room in list_rooms(db):
        overlapping = count_overlapping(db, room.type, day, day + timedelta(days=1))
        rows.append((room, max(room.availability - overlapping, 0)))
    return rows


def create_booking(db: Session, data: BookingCreate, now: Optional[datetime] = None) -> Result[Booking]:
    """Book a room for a phone number. A guest holds at most one active booking at a time."""
    existing_user = get_user_by_phone(db, data.phone)
    active = get_active_booking(db, existing_user.id) if existing_user else None
    if active:
        return Result.failure(
            f"Guest already has active booking #{active.id}; modify it instead", ErrorCode.INVALID_STATE
        )

    quote = check_availability(db, data.room_type, data.check_in_date, data.check_out_date)
    if not quote.ok:
        return Result.failure(quote.error, quote.error_code)
    if not quote.value.available:
        return Result.failure(f"No {data.room_type} rooms available for these dates", ErrorCode.UNAVAILABLE)

    user = get_or_create_user(db, data.phone, data.name)
    booking = Booking(
        user_id=user.id,
        room_type=data.room_type,
        check_in_date=data.check_in_date,
        check_in_time=data.check_in_time,
        check_out_date=data.check_out_date,
        check_out_time=data.check_out_time,
        guest_count=data.guest_count,
        total_price=quote.value.estimated_total,
        paid_status="unpaid",
        state=BookingState.CONFIRMED.value,
        state_version=0,
        notes=data.notes,
    )
    db.add(booking)
    db.flush()
    schedule_booking_reminders(db, booking, now)

    logger.info(
        "Booking created",
        extra={"context": {"booking_id": booking.id, "user_id": user.id, "total_price": str(booking.total_price)}},
    )
    return Result.success(booking)


def update_booking(
    db: Session, booking_id: int, changes: BookingUpdate, now: Optional[datetime] = None
) -> Result[Booking]:
    """Apply a partial update. Price and availability are evaluated on the new values."""
    booking = get_booking(db, booking_id)
    if not booking:
        return Result.failure(f"Booking {booking_id} not found", ErrorCode.NOT_FOUND)
    if booking.state == BookingState.CANCELLED.value:
        return Result.failure("Cancelled bookings cannot be modified", ErrorCode.INVALID_STATE)

    updates = changes.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        return Result.success(booking)

    repricing = bool(REPRICING_FIELDS & updates.keys())
    if repricing and booking.state == BookingState.CHECKED_IN.value:
        return Result.failure("Room and dates cannot change after check-in", ErrorCode.INVALID_STATE)

    if repricing:
        quote = check_availability(
            db,
            updates.get("room_type", booking.room_type),
            updates.get("check_in_date", booking.check_in_date),
            updates.get("check_out_date", booking.check_out_date),
            exclude_booking_id=booking.id,
        )
        if not quote.ok:
            return Result.failure(quote.error, quote.error_code)
        if not quote.value.available:
            return Result.failure("No rooms available for the requested change", ErrorCode.UNAVAILABLE)
        booking.total_price = quote.value.estimated_total

    for field, value in updates.items():
        setattr(booking, field, value)
    db.flush()

    if booking.state in {state.value for state in PRE_CHECKIN_STATES}:
        rearm_booking_reminders(db, booking, now)

    logger.info(
        "Booking updated",
        extra={"context": {"booking_id": booking.id, "fields": sorted(updates), "total_price": str(booking.total_price)}},
    )
    return Result.success(booking)


def cancel_booking(db: Session, booking_id: int) -> Result[Booking]:
    booking = get_booking(db, booking_id)
    if not booking:
        return Result.failure(f"Booking {booking_id} not found", ErrorCode.NOT_FOUND)

    try:
        cancel(booking)
    except InvalidTransitionError as e:
        return Result.failure(str(e), ErrorCode.INVALID_STATE)

    cancel_booking_reminders(db, booking.id)
    cancel_jobs(db, booking.id)
    db.flush()
    logger.info("Booking cancelled", extra={"context": {"booking_id": booking.id}})
    return Result.success(booking)


def schedule_checkin_welcome(db: Session, booking: Booking, now: Optional[datetime] = None) -> None:
    """Queue the in-room welcome announcement so the reply path is not held up by it."""
    schedule_job(db, CHECKIN_WELCOME, booking.user.phone, now or datetime.now(), booking_id=booking.id)


def record_payment(db: Session, booking_id: int, now: Optional[datetime] = None) -> Result[PaymentOutcome]:
    booking = get_booking(db, booking_id)
    if not booking:
        return Result.failure(f"Booking {booking_id} not found", ErrorCode.NOT_FOUND)
    if booking.state == BookingState.CANCELLED.value:
        return Result.failure("Cancelled bookings cannot be paid", ErrorCode.INVALID_STATE)

    checked_in = payment_received(booking) == BookingState.CHECKED_IN
    if checked_in:
        cancel_booking_reminders(db, booking.id)
        schedule_checkin_welcome(db, booking, now)
    db.flush()

    logger.info("Payment recorded", extra={"context": {"booking_id": booking.id, "checked_in": checked_in}})
    return Result.success(PaymentOutcome(booking=booking, checked_in=checked_in))


def add_feedback(db: Session, booking_id: int, rating: int, comment: Optional[str] = None) -> Result[Feedback]:
    booking = get_booking(db, booking_id)
    if not booking:
        return Result.failure(f"Booking {booking_id} not found", ErrorCode.NOT_FOUND)

    feedback = Feedback(booking_id=booking.id, rating=rating, comment=comment)
    db.add(feedback)
    db.flush()
    return Result.success(feedback)
