from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from frontdesk.config import settings
from frontdesk.models import Booking, Room, ScheduledJob
from frontdesk.services.reminder_service import BOOKING_FOLLOW_UP, schedule_job

CHECK_IN = date.today() + timedelta(days=10)
CHECK_OUT = CHECK_IN + timedelta(days=2)


@pytest.fixture
def suite_room(db):
    room = Room(type="Suite", price=Decimal("250.00"), availability=1)
    db.add(room)
    db.commit()
    return room


@pytest.fixture
def admin_token(monkeypatch):
    monkeypatch.setattr(settings, "admin_api_token", "admin-secret")
    return {"X-Admin-Token": "admin-secret"}


def _create_payload(**overrides):
    payload = {
        "name": "Jane Doe",
        "phone": "+1555",
        "roomType": "Deluxe",
        "checkInDate": CHECK_IN.isoformat(),
        "checkInTime": "14:00",
        "checkOutDate": CHECK_OUT.isoformat(),
        "checkOutTime": "11:00",
        "guestCount": 2,
    }
    payload.update(overrides)
    return payload


def _create(client, **overrides):
    response = client.post("/api/bookings", json=_create_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["booking"]


class TestCreateBookingEndpoint:
    def test_create_returns_priced_booking(self, client, gateway, deluxe_room):
        booking = _create(client)

        assert Decimal(booking["total_price"]) == Decimal("200.00")
        assert booking["nights"] == 2
        assert booking["state"] == "confirmed"
        assert booking["paid_status"] == "unpaid"
        assert booking["checkin_status"] == "pending"
        assert "Total: $200.00" in gateway.texts_to("+1555")[0]

    def test_create_cancels_pending_follow_up(self, client, db, deluxe_room):
        schedule_job(db, BOOKING_FOLLOW_UP, "+1555", datetime.now() + timedelta(minutes=5))
        db.commit()

        _create(client)

        db.expire_all()
        assert db.query(ScheduledJob).filter(ScheduledJob.job_type == BOOKING_FOLLOW_UP).count() == 0

    def test_create_schedules_reminders(self, client, deluxe_room):
        _create(client)

        reminders = client.get("/reminders").json()["reminders"]

        assert sorted(r["reminder_type"] for r in reminders) == ["1hr", "24hr"]

    def test_sold_out(self, client, deluxe_room):
        _create(client, phone="+1001")
        _create(client, phone="+1002")

        response = client.post("/api/bookings", json=_create_payload(phone="+1003"))

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "unavailable"

    def test_unknown_room(self, client, deluxe_room):
        response = client.post("/api/bookings", json=_create_payload(roomType="Penthouse"))

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "room_not_found"

    def test_invalid_dates(self, client, deluxe_room):
        response = client.post("/api/bookings", json=_create_payload(checkOutDate=CHECK_IN.isoformat()))

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_dates"

    def test_missing_fields_rejected(self, client, deluxe_room):
        response = client.post("/api/bookings", json={"name": "Jane Doe", "phone": "+1555"})
        assert response.status_code == 422

    def test_second_booking_for_same_phone_rejected(self, client, gateway, deluxe_room):
        _create(client)
        sent_before = len(gateway.sent)

        response = client.post("/api/bookings", json=_create_payload())

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_state"
        assert len(gateway.sent) == sent_before


class TestBookingEndpoints:
    def test_read(self, client, deluxe_room):
        booking = _create(client)

        response = client.get(f"/api/bookings/{booking['id']}")

        assert response.status_code == 200
        assert response.json()["room_type"] == "Deluxe"

    def test_read_missing(self, client, deluxe_room):
        assert client.get("/api/bookings/999").status_code == 404

    def test_modify_reprices_and_notifies(self, client, gateway, deluxe_room, suite_room):
        booking = _create(client)

        response = client.patch(f"/api/bookings/{booking['id']}", json={"roomType": "Suite"})

        assert response.status_code == 200
        assert Decimal(response.json()["booking"]["total_price"]) == Decimal("500.00")
        assert len(gateway.texts_to("+1555")) == 2

    def test_modify_missing(self, client, deluxe_room):
        response = client.patch("/api/bookings/999", json={"guestCount": 1})

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found"

    def test_cancel_twice(self, client, deluxe_room):
        booking = _create(client)

        first = client.delete(f"/api/bookings/{booking['id']}")
        second = client.delete(f"/api/bookings/{booking['id']}")

        assert first.status_code == 200
        assert first.json()["booking"]["status"] == "cancelled"
        assert second.status_code == 400
        assert second.json()["detail"]["code"] == "invalid_state"
        assert client.get("/reminders").json()["reminders"] == []

    def test_availability(self, client, deluxe_room):
        _create(client)

        response = client.post(
            "/api/rooms/availability",
            json={"roomType": "Deluxe", "checkInDate": CHECK_IN.isoformat(), "checkOutDate": CHECK_OUT.isoformat()},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["available"] is True
        assert body["remaining_rooms"] == 1
        assert body["number_of_nights"] == 2
        assert Decimal(body["estimated_total_price"]) == Decimal("200.00")


class TestPaymentEndpoint:
    def test_payment_completes_checkin(self, client, db, gateway, make_booking):
        booking = make_booking(state="awaiting_payment", room_number="305")

        response = client.post(f"/api/bookings/{booking.id}/payment")

        assert response.status_code == 200
        assert response.json() == {"booking_id": booking.id, "paid_status": "paid", "checked_in": True}
        assert "room number is 305" in gateway.texts_to("+1555")[-1]
        db.expire_all()
        assert db.get(Booking, booking.id).state == "checked_in"

    def test_early_payment(self, client, make_booking):
        booking = make_booking()

        response = client.post(f"/api/bookings/{booking.id}/payment")

        assert response.json()["checked_in"] is False
        assert response.json()["paid_status"] == "paid"


class TestFeedbackEndpoint:
    def test_feedback_created(self, client, make_booking):
        booking = make_booking(state="checked_in", paid_status="paid")

        response = client.post(f"/api/bookings/{booking.id}/feedback", json={"rating": 5, "comment": "Great"})

        assert response.status_code == 201
        assert response.json()["rating"] == 5

    def test_rating_out_of_range(self, client, make_booking):
        booking = make_booking()

        response = client.post(f"/api/bookings/{booking.id}/feedback", json={"rating": 6})

        assert response.status_code == 422


class TestTokenEndpoints:
    def test_booking_token_round_trip(self, client):
        issued = client.get("/generate-token", params={"phone": "+1555", "name": "Jane"}).json()

        assert issued["purpose"] == "booking"
        assert issued["url"].startswith("http://hotel.test/booking?token=")

        record = client.get(f"/tokens/{issued['token']}", params={"purpose": "booking"})
        assert record.status_code == 200
        assert record.json()["data"] == {"phone": "+1555", "name": "Jane"}

    def test_modify_token_not_valid_for_booking(self, client):
        issued = client.get("/generate-token", params={"id": 7}).json()

        assert issued["purpose"] == "modify"
        assert client.get(f"/tokens/{issued['token']}", params={"purpose": "booking"}).status_code == 404

    def test_missing_parameters(self, client):
        assert client.get("/generate-token", params={"phone": "+1555"}).status_code == 400

    def test_unknown_token(self, client):
        assert client.get("/tokens/not-a-token").status_code == 404


class TestAdminEndpoints:
    def test_summary_requires_configured_token(self, client, monkeypatch):
        monkeypatch.setattr(settings, "admin_api_token", None)
        assert client.get("/admin/summary").status_code == 500

    def test_summary_rejects_wrong_token(self, client, admin_token):
        assert client.get("/admin/summary", headers={"X-Admin-Token": "nope"}).status_code == 401

    def test_summary(self, client, admin_token, deluxe_room):
        response = client.get("/admin/summary", headers=admin_token)

        body = response.json()
        assert response.status_code == 200
        assert body["date"] == date.today().isoformat()
        assert body["total_rooms"] == 2
        assert body["occupied_rooms"] == 0

    def test_process_reminders(self, client, admin_token, gateway):
        response = client.post("/reminders/process", headers=admin_token)

        assert response.status_code == 200
        assert response.json() == {"jobs_run": 0, "reminders_sent": 0, "service_reminders_sent": 0, "tokens_swept": 0}

    def test_process_reminders_requires_token(self, client, admin_token):
        assert client.post("/reminders/process").status_code == 401


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_db_check_counts_rows(self, client, suite_room):
        body = client.get("/db-check").json()

        assert body == {"status": "ok", "users": 0, "rooms": 1, "bookings": 0}
