from datetime import date, time
from decimal import Decimal

import pytest
from conftest import NOW

from frontdesk.models import Booking, Room, ScheduledJob, User
from frontdesk.schemas.booking import BookingCreate, BookingUpdate
from frontdesk.services.booking_service import (
    add_feedback,
    calculate_nights,
    calculate_price,
    cancel_booking,
    check_availability,
    create_booking,
    get_active_booking,
    get_or_create_user,
    record_payment,
    rooms_available_on,
    update_booking,
)
from frontdesk.services.reminder_service import CHECKIN_WELCOME
from frontdesk.services.result import ErrorCode


@pytest.fixture
def suite_room(db):
    room = Room(type="Suite", price=Decimal("250.00"), availability=1, description="Separate living room")
    db.add(room)
    db.commit()
    return room


def _request(**overrides):
    values = {
        "name": "Jane Doe",
        "phone": "+1555",
        "room_type": "Deluxe",
        "check_in_date": date(2024, 1, 10),
        "check_in_time": time(14, 0),
        "check_out_date": date(2024, 1, 12),
        "check_out_time": time(11, 0),
        "guest_count": 2,
    }
    values.update(overrides)
    return BookingCreate(**values)


class TestPricing:
    def test_nights_exclude_checkout_day(self):
        assert calculate_nights(date(2024, 1, 10), date(2024, 1, 12)) == 2

    def test_price_is_rounded_to_cents(self):
        assert calculate_price(Decimal("89.99"), 3) == Decimal("269.97")
        assert calculate_price(Decimal("100.00"), 2) == Decimal("200.00")


class TestAvailability:
    def test_quote_for_free_room(self, db, deluxe_room):
        result = check_availability(db, "Deluxe", date(2024, 1, 10), date(2024, 1, 12))

        assert result.ok
        quote = result.value
        assert quote.available is True
        assert quote.remaining_rooms == 2
        assert quote.nights == 2
        assert quote.estimated_total == Decimal("200.00")

    def test_overlapping_bookings_reduce_remaining(self, db, make_booking):
        make_booking(phone="+1001")
        make_booking(phone="+1002", check_in_date=date(2024, 1, 11), check_out_date=date(2024, 1, 13))

        result = check_availability(db, "Deluxe", date(2024, 1, 11), date(2024, 1, 12))

        assert result.value.available is False
        assert result.value.remaining_rooms == 0

    def test_adjacent_stay_does_not_overlap(self, db, make_booking):
        make_booking(phone="+1001")
        make_booking(phone="+1002")

        result = check_availability(db, "Deluxe", date(2024, 1, 12), date(2024, 1, 14))

        assert result.value.remaining_rooms == 2

    def test_cancelled_bookings_do_not_count(self, db, make_booking):
        make_booking(phone="+1001", state="cancelled")

        assert check_availability(db, "Deluxe", date(2024, 1, 10), date(2024, 1, 12)).value.remaining_rooms == 2

    def test_checkout_before_checkin(self, db, deluxe_room):
        result = check_availability(db, "Deluxe", date(2024, 1, 12), date(2024, 1, 12))

        assert not result.ok
        assert result.error_code == ErrorCode.INVALID_DATES.value

    def test_unknown_room_type(self, db, deluxe_room):
        result = check_availability(db, "Penthouse", date(2024, 1, 10), date(2024, 1, 12))

        assert result.error_code == ErrorCode.ROOM_NOT_FOUND.value

    def test_rooms_available_on_day(self, db, make_booking, suite_room):
        make_booking(phone="+1001")

        rows = {room.type: remaining for room, remaining in rooms_available_on(db, date(2024, 1, 11))}

        assert rows == {"Deluxe": 1, "Suite": 1}


class TestCreateBooking:
    def test_creates_confirmed_unpaid_booking(self, db, deluxe_room):
        result = create_booking(db, _request(), now=NOW)
        db.commit()

        assert result.ok
        booking = result.value
        assert booking.total_price == Decimal("200.00")
        assert booking.state == "confirmed"
        assert booking.paid_status == "unpaid"
        assert booking.user.name == "Jane Doe"
        assert booking.nights == 2

    def test_reuses_user_and_updates_name(self, db, deluxe_room):
        get_or_create_user(db, "+1555", "J")
        db.commit()

        create_booking(db, _request(name="Jane Doe"), now=NOW)
        db.commit()

        users = db.query(User).all()
        assert len(users) == 1
        assert users[0].name == "Jane Doe"

    def test_unavailable_when_sold_out(self, db, make_booking):
        make_booking(phone="+1001")
        make_booking(phone="+1002")

        result = create_booking(db, _request(), now=NOW)

        assert not result.ok
        assert result.error_code == ErrorCode.UNAVAILABLE.value
        assert db.query(Booking).count() == 2

    def test_invalid_dates_rejected(self, db, deluxe_room):
        result = create_booking(db, _request(check_out_date=date(2024, 1, 9)), now=NOW)

        assert result.error_code == ErrorCode.INVALID_DATES.value

    def test_second_active_booking_declined(self, db, make_booking):
        existing = make_booking()

        later = _request(check_in_date=date(2024, 2, 1), check_out_date=date(2024, 2, 3))

        result = create_booking(db, later, now=NOW)

        assert result.error_code == ErrorCode.INVALID_STATE.value
        assert f"#{existing.id}" in result.error
        assert db.query(Booking).count() == 1

    def test_cancelled_booking_does_not_block(self, db, make_booking):
        make_booking(state="cancelled")

        result = create_booking(db, _request(), now=NOW)

        assert result.ok
        assert result.value.state == "confirmed"

    def test_camel_case_payload(self):
        data = BookingCreate.model_validate(
            {
                "name": "Jane Doe",
                "phone": "+1555",
                "roomType": "Deluxe",
                "checkInDate": "2024-01-10",
                "checkOutDate": "2024-01-12",
                "guestCount": 2,
            }
        )

        assert data.room_type == "Deluxe"
        assert data.check_in_time == time(14, 0)
        assert data.check_out_time == time(11, 0)


class TestUpdateBooking:
    def test_changing_room_type_reprices(self, db, make_booking, suite_room):
        booking = make_booking()

        result = update_booking(db, booking.id, BookingUpdate(room_type="Suite"), now=NOW)
        db.commit()

        assert result.ok
        assert booking.room_type == "Suite"
        assert booking.total_price == Decimal("500.00")

    def test_extending_stay_reprices(self, db, make_booking):
        booking = make_booking()

        update_booking(db, booking.id, BookingUpdate(check_out_date=date(2024, 1, 13)), now=NOW)

        assert booking.total_price == Decimal("300.00")

    def test_own_booking_does_not_block_change(self, db, make_booking, suite_room):
        booking = make_booking(room_type="Suite", total_price=Decimal("500.00"))

        result = update_booking(db, booking.id, BookingUpdate(check_out_date=date(2024, 1, 11)), now=NOW)

        assert result.ok
        assert booking.total_price == Decimal("250.00")

    def test_change_into_full_room_type_rejected(self, db, make_booking, suite_room):
        make_booking(phone="+1001", room_type="Suite", total_price=Decimal("500.00"))
        booking = make_booking(phone="+1002")

        result = update_booking(db, booking.id, BookingUpdate(room_type="Suite"), now=NOW)

        assert result.error_code == ErrorCode.UNAVAILABLE.value
        db.refresh(booking)
        assert booking.room_type == "Deluxe"

    def test_guest_count_change_keeps_price(self, db, make_booking):
        booking = make_booking()

        update_booking(db, booking.id, BookingUpdate(guest_count=3), now=NOW)

        assert booking.guest_count == 3
        assert booking.total_price == Decimal("200.00")

    def test_missing_booking(self, db, deluxe_room):
        result = update_booking(db, 404, BookingUpdate(guest_count=1), now=NOW)
        assert result.error_code == ErrorCode.NOT_FOUND.value

    def test_cancelled_booking_cannot_change(self, db, make_booking):
        booking = make_booking(state="cancelled")

        result = update_booking(db, booking.id, BookingUpdate(guest_count=1), now=NOW)

        assert result.error_code == ErrorCode.INVALID_STATE.value

    def test_checked_in_booking_keeps_dates(self, db, make_booking):
        booking = make_booking(state="checked_in", paid_status="paid")

        result = update_booking(db, booking.id, BookingUpdate(check_out_date=date(2024, 1, 14)), now=NOW)

        assert result.error_code == ErrorCode.INVALID_STATE.value

    def test_room_number_assignment_after_checkin(self, db, make_booking):
        booking = make_booking(state="checked_in", paid_status="paid")

        result = update_booking(db, booking.id, BookingUpdate(room_number="305"), now=NOW)

        assert result.ok
        assert booking.room_number == "305"


class TestCancelBooking:
    def test_cancel_frees_the_room(self, db, make_booking):
        booking = make_booking()

        result = cancel_booking(db, booking.id)
        db.commit()

        assert result.ok
        assert booking.state == "cancelled"
        assert booking.status == "cancelled"
        assert get_active_booking(db, booking.user_id) is None

    def test_second_cancel_is_invalid(self, db, make_booking):
        booking = make_booking()
        cancel_booking(db, booking.id)

        result = cancel_booking(db, booking.id)

        assert result.error_code == ErrorCode.INVALID_STATE.value

    def test_missing_booking(self, db, deluxe_room):
        assert cancel_booking(db, 404).error_code == ErrorCode.NOT_FOUND.value


class TestRecordPayment:
    def test_payment_before_checkin(self, db, make_booking):
        booking = make_booking()

        result = record_payment(db, booking.id, now=NOW)

        assert result.ok
        assert result.value.checked_in is False
        assert booking.paid_status == "paid"
        assert booking.state == "confirmed"

    def test_payment_completes_pending_checkin(self, db, make_booking):
        booking = make_booking(state="awaiting_payment")

        result = record_payment(db, booking.id, now=NOW)
        db.commit()

        assert result.value.checked_in is True
        assert booking.state == "checked_in"
        job = db.query(ScheduledJob).one()
        assert job.job_type == CHECKIN_WELCOME
        assert job.booking_id == booking.id

    def test_cancelled_booking_cannot_be_paid(self, db, make_booking):
        booking = make_booking(state="cancelled")

        assert record_payment(db, booking.id, now=NOW).error_code == ErrorCode.INVALID_STATE.value


class TestFeedback:
    def test_feedback_stored(self, db, make_booking):
        booking = make_booking(state="checked_in", paid_status="paid")

        result = add_feedback(db, booking.id, 5, "Lovely stay")
        db.commit()

        assert result.ok
        assert result.value.rating == 5
        assert result.value.booking_id == booking.id

    def test_feedback_for_missing_booking(self, db, deluxe_room):
        assert add_feedback(db, 404, 4).error_code == ErrorCode.NOT_FOUND.value
