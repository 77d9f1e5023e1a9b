from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from conftest import option_ids, selection_event, text_event

from frontdesk.models import Feedback, HotelService, ServiceRequest
from frontdesk.services import messages
from frontdesk.services.admin_conversation import ADMIN_TEXT_HINT, INVALID_OPTION, REPORTS, AdminConversation
from frontdesk.services.commands import AdminAction

ADMIN = "+1999"


@pytest.fixture
def admin(db, gateway, clock):
    return AdminConversation(db, gateway, clock)


@pytest.fixture
def club_sandwich(db):
    service = HotelService(name="Club Sandwich", category="Food", price=Decimal("12.00"), availability=True)
    db.add(service)
    db.commit()
    return service


class TestAdminMenu:
    def test_hi_opens_reports_menu(self, admin, gateway):
        admin.handle(text_event("hi", sender=ADMIN))

        assert option_ids(gateway.last_to(ADMIN)) == [action.value for action in AdminAction]

    def test_other_text_gets_hint(self, admin, gateway):
        admin.handle(text_event("how are we doing?", sender=ADMIN))

        assert gateway.texts_to(ADMIN) == [ADMIN_TEXT_HINT]

    def test_guest_action_is_invalid_for_admin(self, admin, gateway):
        admin.handle(selection_event("book_room", sender=ADMIN))

        assert gateway.texts_to(ADMIN) == [INVALID_OPTION]

    @pytest.mark.parametrize("action", list(AdminAction))
    def test_every_report_answers(self, admin, gateway, make_booking, action):
        make_booking(state="checked_in", paid_status="paid", check_in_date=date(2024, 1, 8))

        admin.handle(selection_event(action.value, sender=ADMIN))

        texts = gateway.texts_to(ADMIN)
        assert len(texts) == 1
        assert texts[0] != messages.APOLOGY

    def test_report_failure_apologises(self, admin, gateway):
        def boom(db, today):
            raise RuntimeError("db down")

        with patch.dict(REPORTS, {AdminAction.DASHBOARD_SUMMARY: boom}):
            admin.handle(selection_event("dashboard_summary", sender=ADMIN))

        assert gateway.texts_to(ADMIN) == [messages.APOLOGY]


class TestReports:
    def _report(self, admin, gateway, action):
        admin.handle(selection_event(action.value, sender=ADMIN))
        return gateway.texts_to(ADMIN)[-1]

    def test_dashboard_counts(self, admin, gateway, make_booking):
        make_booking(phone="+1001", check_in_date=date(2024, 1, 8), check_out_date=date(2024, 1, 10))
        make_booking(phone="+1002", state="checked_in", paid_status="paid", check_in_date=date(2024, 1, 7))

        text = self._report(admin, gateway, AdminAction.DASHBOARD_SUMMARY)

        assert "Check-ins today: 1" in text
        assert "Guests in house: 1" in text
        assert "Unpaid bookings: 1" in text
        assert "Occupancy: 2/2 rooms" in text

    def test_revenue_counts_paid_arrivals(self, admin, gateway, make_booking):
        make_booking(phone="+1001", paid_status="paid", check_in_date=date(2024, 1, 8))
        make_booking(phone="+1002", paid_status="unpaid", check_in_date=date(2024, 1, 8))
        make_booking(phone="+1003", state="cancelled", paid_status="paid", check_in_date=date(2024, 1, 8))

        text = self._report(admin, gateway, AdminAction.DAILY_REVENUE)

        assert "Today: $200.00" in text

    def test_occupancy(self, admin, gateway, make_booking):
        make_booking(check_in_date=date(2024, 1, 7), check_out_date=date(2024, 1, 9))

        text = self._report(admin, gateway, AdminAction.OCCUPANCY_REPORT)

        assert "Deluxe: 1/2 occupied (50%), 1 free" in text

    def test_pending_verifications(self, admin, gateway, make_booking):
        booking = make_booking(state="verification_expired")

        text = self._report(admin, gateway, AdminAction.PENDING_VERIFICATIONS)

        assert f"#{booking.id} Jane Doe" in text

    def test_feedback_summary(self, admin, gateway, db, make_booking):
        booking = make_booking(state="checked_in", paid_status="paid")
        db.add_all([Feedback(booking_id=booking.id, rating=5, comment="Spotless"), Feedback(booking_id=booking.id, rating=4)])
        db.commit()

        text = self._report(admin, gateway, AdminAction.FEEDBACK_SUMMARY)

        assert "Responses: 2" in text
        assert "Average rating: 4.5/5" in text
        assert "Spotless" in text

    def test_urgent_actions_when_quiet(self, admin, gateway):
        text = self._report(admin, gateway, AdminAction.URGENT_ACTIONS)

        assert "Nothing needs attention" in text


class TestServiceDecisions:
    def _pending(self, db, booking, service):
        request = ServiceRequest(booking_id=booking.id, service_id=service.id, status="pending")
        db.add(request)
        db.commit()
        return request

    def test_confirm_notifies_guest(self, admin, gateway, db, make_booking, club_sandwich):
        booking = make_booking(state="checked_in", paid_status="paid", room_number="305")
        request = self._pending(db, booking, club_sandwich)

        admin.handle(selection_event(f"confirm_service_{club_sandwich.id}_{booking.id}", sender=ADMIN))

        db.refresh(request)
        assert request.status == "confirmed"
        assert request.completed_at is not None
        assert gateway.texts_to("+1555") == [messages.service_decision(True, "Food", "Club Sandwich")]
        assert "marked confirmed" in gateway.texts_to(ADMIN)[-1]

    def test_decline_notifies_guest(self, admin, gateway, db, make_booking, club_sandwich):
        booking = make_booking(state="checked_in", paid_status="paid")
        request = self._pending(db, booking, club_sandwich)

        admin.handle(selection_event(f"decline_service_{club_sandwich.id}_{booking.id}", sender=ADMIN))

        db.refresh(request)
        assert request.status == "declined"
        assert gateway.texts_to("+1555") == [messages.service_decision(False, "Food", "Club Sandwich")]
        assert "kitchen" in gateway.texts_to("+1555")[0]

    def test_decline_wording_depends_on_category(self, admin, gateway, db, make_booking, club_sandwich):
        leaking_tap = HotelService(name="Leaking Tap", category="Maintenance", price=Decimal("0.00"), availability=True)
        db.add(leaking_tap)
        db.commit()
        diner = make_booking(phone="+1555", state="checked_in", paid_status="paid")
        neighbour = make_booking(phone="+1666", name="Sam Roe", state="checked_in", paid_status="paid")
        self._pending(db, diner, club_sandwich)
        self._pending(db, neighbour, leaking_tap)

        admin.handle(selection_event(f"decline_service_{club_sandwich.id}_{diner.id}", sender=ADMIN))
        admin.handle(selection_event(f"decline_service_{leaking_tap.id}_{neighbour.id}", sender=ADMIN))

        food_reply = gateway.texts_to("+1555")[0]
        maintenance_reply = gateway.texts_to("+1666")[0]
        assert food_reply != maintenance_reply
        assert "maintenance team" in maintenance_reply
        assert messages.service_decision(False, "Spa", "Massage").startswith("Sorry, we are unable to fulfil")

    def test_second_decision_finds_nothing(self, admin, gateway, db, make_booking, club_sandwich):
        booking = make_booking(state="checked_in", paid_status="paid")
        self._pending(db, booking, club_sandwich)
        selection = f"confirm_service_{club_sandwich.id}_{booking.id}"

        admin.handle(selection_event(selection, sender=ADMIN))
        admin.handle(selection_event(selection, sender=ADMIN))

        assert len(gateway.texts_to("+1555")) == 1
        assert "No pending request" in gateway.texts_to(ADMIN)[-1]
