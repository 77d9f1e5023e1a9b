"""Admin reports over bookings, verifications, services and feedback."""

from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from frontdesk.models import Booking, Feedback, ServiceRequest
from frontdesk.services.booking_service import ACTIVE_STATE_VALUES, rooms_available_on
from frontdesk.services.booking_state import BookingState

VERIFICATION_IN_PROGRESS = [
    BookingState.AWAITING_ID_TYPE.value,
    BookingState.AWAITING_IMAGE.value,
    BookingState.AWAITING_CONFIRMATION.value,
    BookingState.VERIFICATION_EXPIRED.value,
    BookingState.VERIFICATION_DECLINED.value,
]
LIST_LIMIT = 15


def _line(booking: Booking) -> str:
    guest = booking.user.name if booking.user else "-"
    return (
        f"#{booking.id} {guest} | {booking.room_type} | "
        f"{booking.check_in_date:%d %b} - {booking.check_out_date:%d %b} | {booking.state} | {booking.paid_status}"
    )


def _listing(title: str, bookings: List[Booking], empty: str) -> str:
    if not bookings:
        return f"{title}\n\n{empty}"
    lines = [_line(booking) for booking in bookings[:LIST_LIMIT]]
    if len(bookings) > LIST_LIMIT:
        lines.append(f"... and {len(bookings) - LIST_LIMIT} more")
    return f"{title}\n\n" + "\n".join(lines)


def _active(db: Session):
    return db.query(Booking).filter(Booking.state.in_(ACTIVE_STATE_VALUES))


def arrivals(db: Session, day: date) -> List[Booking]:
    return _active(db).filter(Booking.check_in_date == day).order_by(Booking.check_in_time).all()


def departures(db: Session, day: date) -> List[Booking]:
    return _active(db).filter(Booking.check_out_date == day).order_by(Booking.check_out_time).all()


def in_house(db: Session) -> List[Booking]:
    return db.query(Booking).filter(Booking.state == BookingState.CHECKED_IN.value).all()


def pending_verification_bookings(db: Session) -> List[Booking]:
    return db.query(Booking).filter(Booking.state.in_(VERIFICATION_IN_PROGRESS)).order_by(Booking.check_in_date).all()


def unpaid(db: Session) -> List[Booking]:
    return _active(db).filter(Booking.paid_status == "unpaid").order_by(Booking.check_in_date).all()


def pending_service_requests(db: Session) -> List[ServiceRequest]:
    return db.query(ServiceRequest).filter(ServiceRequest.status == "pending").order_by(ServiceRequest.created_at).all()


def revenue_for(db: Session, day: date) -> Decimal:
    """Paid, non-cancelled bookings arriving on the given day."""
    total = (
        db.query(func.coalesce(func.sum(Booking.total_price), 0))
        .filter(
            Booking.check_in_date == day,
            Booking.paid_status == "paid",
            Booking.state != BookingState.CANCELLED.value,
        )
        .scalar()
    )
    return Decimal(str(total or 0)).quantize(Decimal("0.01"))


def summary(db: Session, today: date) -> dict:
    rooms = rooms_available_on(db, today)
    total_rooms = sum(room.availability for room, _ in rooms)
    occupied = sum(room.availability - remaining for room, remaining in rooms)
    return {
        "date": today.isoformat(),
        "checkins_today": len(arrivals(db, today)),
        "checkouts_today": len(departures(db, today)),
        "in_house": len(in_house(db)),
        "pending_verifications": len(pending_verification_bookings(db)),
        "unpaid_bookings": len(unpaid(db)),
        "pending_service_requests": len(pending_service_requests(db)),
        "revenue_today": revenue_for(db, today),
        "total_rooms": total_rooms,
        "occupied_rooms": occupied,
    }


def dashboard_summary(db: Session, today: date) -> str:
    data = summary(db, today)
    return (
        f"📊 Dashboard for {today:%d %b %Y}\n\n"
        f"Check-ins today: {data['checkins_today']}\n"
        f"Check-outs today: {data['checkouts_today']}\n"
        f"Guests in house: {data['in_house']}\n"
        f"Pending verifications: {data['pending_verifications']}\n"
        f"Unpaid bookings: {data['unpaid_bookings']}\n"
        f"Open service requests: {data['pending_service_requests']}\n"
        f"Occupancy: {data['occupied_rooms']}/{data['total_rooms']} rooms\n"
        f"Revenue today: ${data['revenue_today']:.2f}"
    )


def urgent_actions(db: Session, today: date) -> str:
    lines = ["🚨 Urgent actions"]

    late_arrivals = [b for b in arrivals(db, today) if b.state != BookingState.CHECKED_IN.value]
    if late_arrivals:
        lines.append(f"\nArrivals today not yet checked in ({len(late_arrivals)}):")
        lines.extend(_line(b) for b in late_arrivals[:LIST_LIMIT])

    stuck = (
        db.query(Booking)
        .filter(
            Booking.state.in_(
                [BookingState.VERIFICATION_EXPIRED.value, BookingState.VERIFICATION_DECLINED.value]
            )
        )
        .all()
    )
    if stuck:
        lines.append(f"\nFailed ID verifications ({len(stuck)}):")
        lines.extend(_line(b) for b in stuck[:LIST_LIMIT])

    awaiting_payment = db.query(Booking).filter(Booking.state == BookingState.AWAITING_PAYMENT.value).all()
    if awaiting_payment:
        lines.append(f"\nVerified but unpaid ({len(awaiting_payment)}):")
        lines.extend(_line(b) for b in awaiting_payment[:LIST_LIMIT])

    requests = pending_service_requests(db)
    if requests:
        lines.append(f"\nOpen service requests ({len(requests)}):")
        for request in requests[:LIST_LIMIT]:
            room = request.booking.room_number if request.booking else None
            lines.append(f"#{request.id} {request.service.name if request.service else '-'} | room {room or '-'}")

    if len(lines) == 1:
        lines.append("\nNothing needs attention right now. ✅")
    return "\n".join(lines)


def all_bookings(db: Session, today: date) -> str:
    bookings = (
        _active(db)
        .filter(Booking.check_out_date >= today)
        .order_by(Booking.check_in_date, Booking.id)
        .all()
    )
    return _listing("📋 Current and upcoming bookings", bookings, "No active bookings.")


def today_checkins(db: Session, today: date) -> str:
    return _listing(f"🛬 Check-ins for {today:%d %b}", arrivals(db, today), "No arrivals today.")


def today_checkouts(db: Session, today: date) -> str:
    return _listing(f"🛫 Check-outs for {today:%d %b}", departures(db, today), "No departures today.")


def pending_verifications(db: Session, today: Optional[date] = None) -> str:
    return _listing("🪪 ID verifications in progress", pending_verification_bookings(db), "No pending verifications.")


def unpaid_bookings(db: Session, today: Optional[date] = None) -> str:
    return _listing("💳 Unpaid bookings", unpaid(db), "All active bookings are paid.")


def daily_revenue(db: Session, today: date) -> str:
    week = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    lines = [f"💰 Revenue (paid arrivals)\n\nToday: ${revenue_for(db, today):.2f}", "", "Last 7 days:"]
    lines.extend(f"{day:%a %d %b}: ${revenue_for(db, day):.2f}" for day in week)
    return "\n".join(lines)


def occupancy_report(db: Session, today: date) -> str:
    rows = rooms_available_on(db, today)
    if not rows:
        return "🏨 Occupancy\n\nNo rooms configured."
    lines = [f"🏨 Occupancy for tonight ({today:%d %b})", ""]
    for room, remaining in rows:
        occupied = room.availability - remaining
        percent = int(occupied * 100 / room.availability) if room.availability else 0
        lines.append(f"{room.type}: {occupied}/{room.availability} occupied ({percent}%), {remaining} free")
    return "\n".join(lines)


def feedback_summary(db: Session, today: Optional[date] = None) -> str:
    count, average = db.query(func.count(Feedback.id), func.avg(Feedback.rating)).one()
    if not count:
        return "⭐ Feedback\n\nNo feedback received yet."
    lines = [f"⭐ Feedback\n\nResponses: {count}\nAverage rating: {float(average):.1f}/5"]
    recent = db.query(Feedback).order_by(Feedback.created_at.desc(), Feedback.id.desc()).limit(5).all()
    comments = [f"{'⭐' * item.rating} {item.comment}" for item in recent if item.comment]
    if comments:
        lines.append("\nRecent comments:")
        lines.extend(comments)
    return "\n".join(lines)
