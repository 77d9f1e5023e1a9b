"""Guest-facing message texts."""

from datetime import time
from decimal import Decimal
from typing import Iterable, Optional

from frontdesk.config import settings

FALLBACK = "I apologize, but I didn't understand that. Please try again."
APOLOGY = 'Sorry, I encountered an error processing your request. Please try again or type "hi" to start over.'
TEXT_HINT = 'Type "hi" to see the main menu.'
SERVICES_REFUSAL = (
    "Sorry, hotel services are only available for checked-in guests. "
    "Please contact the front desk for assistance."
)
NO_ACTIVE_BOOKING = "You don't have any active bookings. Would you like to make a new booking?"
IMAGE_NOT_EXPECTED = (
    "I received your image but I'm not expecting any images at the moment. "
    "If you're trying to verify your ID, please start the check-in process first."
)
IMAGE_PROCESSING = "Processing your ID... This may take a moment."
VERIFICATION_FAILED = (
    "Sorry, we couldn't read your ID. Please make sure the photo is clear, well lit "
    "and shows the whole document, then send it again."
)
VERIFICATION_EXPIRED = "ID verification request has expired. Please select ID type again to restart the process."
FOLLOW_UP = (
    "We noticed you haven't completed your booking. "
    "Do you need any assistance or have questions about our rooms?"
)
STAFF_ONLY = "This action is only available to hotel staff."
KEEP_BOOKING = "Great! Your booking remains unchanged. Type \"hi\" if you need anything else."
SERVICE_UNAVAILABLE = "Sorry, this service is currently unavailable. Please choose another option."
ALREADY_CHECKED_IN = "You are already checked in. Type \"services\" to see what we can do for you."

ID_TYPE_LABELS = {
    "passport": "Passport",
    "aadhar": "Aadhaar Card",
    "voter": "Voter ID",
    "license": "Driving License",
}

SERVICE_ACKNOWLEDGEMENTS = {
    "Food": "✅ Thank you for your order of {name}. Our kitchen staff will prepare and deliver your meal shortly.",
    "Housekeeping": "✅ Your {name} request has been received. Our housekeeping team will attend to your room shortly.",
    "Amenities": "✅ Your request for {name} has been received. We will deliver it to your room shortly.",
    "Maintenance": "✅ Your {name} request has been logged. Our maintenance team will visit your room shortly.",
}
DEFAULT_SERVICE_ACKNOWLEDGEMENT = "✅ Your request for {name} has been received. Our staff will attend to it shortly."

SERVICE_CONFIRMED = {
    "Food": "🍽️ Your order of {name} has been confirmed and is being prepared.",
    "Housekeeping": "🧹 Your {name} request has been confirmed. Housekeeping is on the way.",
    "Amenities": "🛎️ Your {name} request has been confirmed and will be delivered soon.",
    "Maintenance": "🔧 Your {name} request has been confirmed. A technician is on the way.",
}
DEFAULT_SERVICE_CONFIRMED = "✅ Your {name} request has been confirmed."
SERVICE_DECLINED = {
    "Food": "Sorry, the kitchen cannot prepare your {name} order right now. Please choose another dish or contact the front desk.",
    "Housekeeping": "Sorry, housekeeping cannot attend to your {name} request right now. Please contact the front desk.",
    "Amenities": "Sorry, {name} is not available right now. Please contact the front desk.",
    "Maintenance": "Sorry, our maintenance team cannot take your {name} request right now. Please contact the front desk.",
}
DEFAULT_SERVICE_DECLINED = "Sorry, we are unable to fulfil your {name} request right now. Please contact the front desk."


def _money(amount) -> str:
    return f"${Decimal(amount or 0):.2f}"


def _clock(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value else "-"


def greeting(name: Optional[str]) -> str:
    who = f" {name}" if name else ""
    return f"Hello{who}! Welcome to {settings.hotel_name}. How can I assist you today?"


def welcome_caption() -> str:
    return f"Welcome to {settings.hotel_name}!"


def booking_summary(booking) -> str:
    lines = [
        f"📋 Booking #{booking.id}",
        f"Room: {booking.room_type}",
        f"Check-in: {booking.check_in_date:%Y-%m-%d} {_clock(booking.check_in_time)}",
        f"Check-out: {booking.check_out_date:%Y-%m-%d} {_clock(booking.check_out_time)}",
        f"Guests: {booking.guest_count}",
        f"Nights: {booking.nights}",
        f"Total: {_money(booking.total_price)} ({booking.paid_status})",
        f"Check-in status: {booking.checkin_status}",
    ]
    if booking.room_number:
        lines.append(f"Room number: {booking.room_number}")
    return "\n".join(lines)


def booking_confirmation(booking) -> str:
    return f"✅ Your booking is confirmed!\n\n{booking_summary(booking)}\n\nType \"hi\" anytime to manage it."


def booking_modified(booking) -> str:
    return f"✏️ Your booking has been updated.\n\n{booking_summary(booking)}"


def booking_cancelled(booking) -> str:
    return f"Your booking #{booking.id} for {booking.room_type} has been cancelled."


def booking_link(url: str) -> str:
    return (
        f"Please use this secure link to book your room:\n{url}\n\n"
        f"The link expires in {settings.token_ttl_seconds // 60} minutes."
    )


def modify_link(url: str) -> str:
    return (
        f"Please use this secure link to modify your booking:\n{url}\n\n"
        f"The link expires in {settings.token_ttl_seconds // 60} minutes."
    )


def payment_link(booking, url: str) -> str:
    return (
        f"Thank you, your identity is verified. To complete check-in please pay "
        f"{_money(booking.total_price)} for booking #{booking.id}:\n{url}"
    )


def contact_card() -> str:
    return (
        f"📞 Contact {settings.hotel_name}\n\n"
        f"Phone: {settings.hotel_phone or '-'}\n"
        f"Email: {settings.hotel_email or '-'}\n"
        f"Address: {settings.hotel_address or '-'}"
    )


def location() -> str:
    text = f"📍 {settings.hotel_name}\n{settings.hotel_address or ''}".rstrip()
    if settings.hotel_latitude is not None and settings.hotel_longitude is not None:
        text += (
            f"\nhttps://www.google.com/maps/search/?api=1&query={settings.hotel_latitude},{settings.hotel_longitude}"
        )
    return text


def dining() -> str:
    return (
        f"🍽️ Dining at {settings.hotel_name}\n\n"
        "Our restaurant serves breakfast, lunch and dinner. Checked-in guests can order "
        'room service any time by typing "menu".'
    )


def spa() -> str:
    return (
        f"💆 Spa at {settings.hotel_name}\n\n"
        "Relax with our massages and wellness treatments. Please contact the front desk to book a slot."
    )


def availability_report(rows: Iterable[tuple]) -> str:
    """rows: (room, remaining) pairs."""
    lines = ["🛏️ Room availability for today:"]
    for room, remaining in rows:
        lines.append(f"{room.type}: {remaining} available ({_money(room.price)}/night)")
    if len(lines) == 1:
        lines.append("No rooms are configured yet.")
    return "\n".join(lines)


def room_caption(room) -> str:
    caption = f"{room.type} - {_money(room.price)}/night"
    if room.description:
        caption += f"\n{room.description}"
    return caption


def upload_instructions(id_type: str) -> str:
    label = ID_TYPE_LABELS.get(id_type, id_type)
    return (
        f"Please upload a clear photo of your {label}.\n\n"
        "Make sure all details are visible and there is no glare.\n\n"
        f"⚠️ This request will expire in {settings.id_verification_expiry_minutes} minutes for security purposes."
    )


def verification_details(name: str, id_number: str, dob: Optional[str]) -> str:
    lines = ["Please confirm the details we read from your ID:", f"Name: {name}", f"ID number: {id_number}"]
    if dob:
        lines.append(f"Date of birth: {dob}")
    return "\n".join(lines)


def checkin_complete(booking) -> str:
    room = f" Your room number is {booking.room_number}." if booking.room_number else ""
    return f"🎉 You're checked in to {settings.hotel_name}!{room} Enjoy your stay."


def checkin_welcome(booking, meal_windows: Iterable[tuple[str, time, time]]) -> str:
    lines = [f"Welcome to your room at {settings.hotel_name}!"]
    if booking.room_number:
        lines[0] = f"Welcome to room {booking.room_number} at {settings.hotel_name}!"
    windows = list(meal_windows)
    if windows:
        lines.append("")
        lines.append("🍽️ Today's meal times:")
        for name, start, end in windows:
            lines.append(f"{name}: {_clock(start)} - {_clock(end)}")
    lines.append("")
    lines.append('Type "services" for room services, "menu" for food and "help" to reach the front desk.')
    return "\n".join(lines)


def checkin_reminder(booking, reminder_type: str) -> str:
    when = "tomorrow" if reminder_type == "24hr" else "in about an hour"
    return (
        f"⏰ Reminder: your {booking.room_type} stay at {settings.hotel_name} starts {when} "
        f"({booking.check_in_date:%Y-%m-%d} {_clock(booking.check_in_time)}). "
        "You can start online check-in now."
    )


def service_acknowledgement(category: str, name: str) -> str:
    return SERVICE_ACKNOWLEDGEMENTS.get(category, DEFAULT_SERVICE_ACKNOWLEDGEMENT).format(name=name)


def service_decision(approve: bool, category: str, name: str) -> str:
    if not approve:
        return SERVICE_DECLINED.get(category, DEFAULT_SERVICE_DECLINED).format(name=name)
    return SERVICE_CONFIRMED.get(category, DEFAULT_SERVICE_CONFIRMED).format(name=name)


def admin_service_request(booking, service) -> str:
    room = booking.room_number or "-"
    return (
        f"🛎️ New service request\n\n"
        f"Service: {service.name} ({service.category})\n"
        f"Booking: #{booking.id}, room {room}\n"
        f"Guest: {booking.user.name if booking.user else '-'}"
    )
