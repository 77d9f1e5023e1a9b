from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from frontdesk.database import get_db
from frontdesk.logging_config import get_logger
from frontdesk.schemas.booking import (
    AvailabilityRequest,
    AvailabilityResponse,
    BookingCreate,
    BookingMutationResponse,
    BookingResponse,
    BookingUpdate,
    FeedbackRequest,
    FeedbackResponse,
    PaymentResponse,
)
from frontdesk.services import messages
from frontdesk.services.booking_service import (
    add_feedback,
    cancel_booking,
    check_availability,
    create_booking,
    get_booking,
    record_payment,
    update_booking,
)
from frontdesk.services.reminder_service import cancel_follow_ups
from frontdesk.services.result import ErrorCode, Result
from frontdesk.services.whatsapp_service import WhatsAppService, get_whatsapp_service

logger = get_logger("bookings")

router = APIRouter(prefix="/api")

NOT_FOUND_CODES = {ErrorCode.NOT_FOUND.value, ErrorCode.ROOM_NOT_FOUND.value}


def _raise_for(result: Result) -> None:
    if result.ok:
        return
    status_code = 404 if result.error_code in NOT_FOUND_CODES else 400
    raise HTTPException(status_code=status_code, detail={"error": result.error, "code": result.error_code})


def _notify(gateway: WhatsAppService, booking, text: str) -> None:
    if booking.user:
        gateway.send_text(booking.user.phone, text)


@router.post("/bookings", response_model=BookingMutationResponse, status_code=201)
def create(
    data: BookingCreate,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(get_whatsapp_service),
):
    result = create_booking(db, data)
    _raise_for(result)
    booking = result.value
    cancel_follow_ups(db, data.phone)
    db.commit()

    _notify(gateway, booking, messages.booking_confirmation(booking))
    return BookingMutationResponse(message="Booking created", booking=BookingResponse.model_validate(booking))


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
def read(booking_id: int, db: Session = Depends(get_db)):
    booking = get_booking(db, booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail=f"Booking {booking_id} not found")
    return BookingResponse.model_validate(booking)


@router.patch("/bookings/{booking_id}", response_model=BookingMutationResponse)
def modify(
    booking_id: int,
    changes: BookingUpdate,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(get_whatsapp_service),
):
    result = update_booking(db, booking_id, changes)
    _raise_for(result)
    db.commit()

    booking = result.value
    _notify(gateway, booking, messages.booking_modified(booking))
    return BookingMutationResponse(message="Booking updated", booking=BookingResponse.model_validate(booking))


@router.delete("/bookings/{booking_id}", response_model=BookingMutationResponse)
def cancel(
    booking_id: int,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(get_whatsapp_service),
):
    result = cancel_booking(db, booking_id)
    _raise_for(result)
    db.commit()

    booking = result.value
    _notify(gateway, booking, messages.booking_cancelled(booking))
    return BookingMutationResponse(message="Booking cancelled", booking=BookingResponse.model_validate(booking))


@router.post("/rooms/availability", response_model=AvailabilityResponse)
def availability(request: AvailabilityRequest, db: Session = Depends(get_db)):
    result = check_availability(db, request.room_type, request.check_in_date, request.check_out_date)
    _raise_for(result)
    quote = result.value
    return AvailabilityResponse(
        available=quote.available,
        remaining_rooms=quote.remaining_rooms,
        room_price_per_night=quote.price_per_night,
        estimated_total_price=quote.estimated_total,
        number_of_nights=quote.nights,
    )


@router.post("/bookings/{booking_id}/payment", response_model=PaymentResponse)
def pay(
    booking_id: int,
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(get_whatsapp_service),
):
    """Payment confirmation from the web payment page."""
    result = record_payment(db, booking_id)
    _raise_for(result)
    db.commit()

    outcome = result.value
    if outcome.checked_in:
        _notify(gateway, outcome.booking, messages.checkin_complete(outcome.booking))
    else:
        _notify(gateway, outcome.booking, f"✅ Payment received for booking #{outcome.booking.id}. Thank you!")
    return PaymentResponse(
        booking_id=outcome.booking.id,
        paid_status=outcome.booking.paid_status,
        checked_in=outcome.checked_in,
    )


@router.post("/bookings/{booking_id}/feedback", response_model=FeedbackResponse, status_code=201)
def feedback(booking_id: int, request: FeedbackRequest, db: Session = Depends(get_db)):
    result = add_feedback(db, booking_id, request.rating, request.comment)
    _raise_for(result)
    db.commit()
    item = result.value
    logger.info("Feedback stored", extra={"context": {"booking_id": booking_id, "rating": item.rating}})
    return FeedbackResponse(id=item.id, booking_id=item.booking_id, rating=item.rating)
