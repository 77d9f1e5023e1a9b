"""Interactive button and list messages used by the guest and admin flows."""

from decimal import Decimal
from enum import Enum
from typing import Iterable

from frontdesk.config import settings
from frontdesk.schemas.outbound import Button, InteractiveMessage, ListRow, ListSection, MAX_LIST_ROWS
from frontdesk.services import messages
from frontdesk.services.commands import AdminAction, GuestAction, IdType, service_decision_id


def _option_id(value) -> str:
    return value.value if isinstance(value, Enum) else value


def _buttons(body: str, *buttons: tuple) -> InteractiveMessage:
    return InteractiveMessage(
        body=body,
        buttons=[Button(id=_option_id(button_id), title=title) for button_id, title in buttons],
    )


def greeting_menu(name: str | None, has_booking: bool) -> InteractiveMessage:
    first = (GuestAction.VIEW_BOOKINGS, "View Your Bookings") if has_booking else (GuestAction.BOOK_ROOM, "Book a Room")
    return _buttons(
        messages.greeting(name),
        first,
        (GuestAction.OUR_SERVICES, "Our Services"),
        (GuestAction.CONTACT_US, "Contact Us"),
    )


def follow_up_menu() -> InteractiveMessage:
    return _buttons(
        messages.FOLLOW_UP,
        (GuestAction.BOOK_ROOM, "Continue Booking"),
        (GuestAction.CONTACT_US, "Need Help"),
    )


def no_booking_menu() -> InteractiveMessage:
    return _buttons(messages.NO_ACTIVE_BOOKING, (GuestAction.BOOK_ROOM, "Book Now"))


def existing_booking_menu(booking) -> InteractiveMessage:
    return _buttons(
        f"You already have an active booking (#{booking.id}). Would you like to modify it instead?",
        (GuestAction.MODIFY_BOOKING, "Modify Existing"),
        (GuestAction.VIEW_BOOKINGS, "View Booking"),
    )


def booking_actions_menu(booking, can_check_in: bool) -> InteractiveMessage:
    buttons = [(GuestAction.MODIFY_BOOKING, "Modify"), (GuestAction.CANCEL_BOOKING, "Cancel")]
    if can_check_in:
        buttons.append((GuestAction.START_CHECKIN, "Start Check-in"))
    return _buttons(messages.booking_summary(booking), *buttons)


def cancel_confirm_menu(booking) -> InteractiveMessage:
    return _buttons(
        f"Are you sure you want to cancel booking #{booking.id} for {booking.room_type}?",
        (GuestAction.CONFIRM_CANCEL, "Yes, Cancel"),
        (GuestAction.KEEP_BOOKING, "No, Keep It"),
    )


def book_new_menu(booking) -> InteractiveMessage:
    return _buttons(messages.booking_cancelled(booking), (GuestAction.BOOK_ROOM, "Book New Room"))


def contact_menu() -> InteractiveMessage:
    return _buttons(messages.contact_card(), (GuestAction.LOCATION, "Location"))


def our_services_menu() -> InteractiveMessage:
    return InteractiveMessage(
        body=f"Discover what {settings.hotel_name} has to offer.",
        list_button="View Services",
        sections=[
            ListSection(
                title="Explore",
                rows=[
                    ListRow(id=GuestAction.ROOMS_GALLERY.value, title="Rooms Gallery", description="See our rooms"),
                    ListRow(
                        id=GuestAction.CHECK_AVAILABILITY.value,
                        title="Check Availability",
                        description="Rooms free tonight",
                    ),
                    ListRow(id=GuestAction.DINING.value, title="Dining", description="Restaurant and room service"),
                    ListRow(id=GuestAction.SPA.value, title="Spa", description="Massages and wellness"),
                ],
            )
        ],
    )


def gallery_follow_up_menu() -> InteractiveMessage:
    return _buttons(
        "Like what you see?",
        (GuestAction.BOOK_ROOM, "Book a Room"),
        (GuestAction.CHECK_AVAILABILITY, "Check Availability"),
    )


def services_menu() -> InteractiveMessage:
    return InteractiveMessage(
        body="How can we help you during your stay?",
        list_button="Choose Service",
        sections=[
            ListSection(
                title="Room Services",
                rows=[
                    ListRow(id=GuestAction.FOOD_MENU.value, title="Food & Beverages", description="Order to your room"),
                    ListRow(id=GuestAction.HOUSEKEEPING_MENU.value, title="Housekeeping", description="Cleaning, towels"),
                    ListRow(id=GuestAction.AMENITIES_MENU.value, title="Amenities", description="Toiletries, extras"),
                    ListRow(id=GuestAction.MAINTENANCE_MENU.value, title="Maintenance", description="Report an issue"),
                ],
            )
        ],
    )


def service_catalog_menu(category: str, services: Iterable) -> InteractiveMessage:
    rows = []
    for service in list(services)[:MAX_LIST_ROWS]:
        description = service.description or ""
        if service.price is not None and Decimal(service.price) > 0:
            description = f"${Decimal(service.price):.2f} {description}".strip()
        rows.append(ListRow(id=f"service_{service.id}", title=service.name[:24], description=description[:72] or None))
    return InteractiveMessage(
        body=f"{category} services available for your room:",
        list_button="Select",
        sections=[ListSection(title=category[:24], rows=rows)],
    )


def id_type_menu(body: str = "Please select the ID you will use for check-in:") -> InteractiveMessage:
    return InteractiveMessage(
        body=body,
        list_button="Select ID Type",
        sections=[
            ListSection(
                title="ID Types",
                rows=[
                    ListRow(id=f"select_{id_type.value}", title=messages.ID_TYPE_LABELS[id_type.value])
                    for id_type in IdType
                ],
            )
        ],
    )


def verification_confirm_menu(name: str, id_number: str, dob: str | None) -> InteractiveMessage:
    return _buttons(
        messages.verification_details(name, id_number, dob),
        (GuestAction.VERIFY_CORRECT, "Yes, Correct"),
        (GuestAction.VERIFY_INCORRECT, "No, Retry"),
    )


def checkin_reminder_menu(booking, reminder_type: str) -> InteractiveMessage:
    return _buttons(
        messages.checkin_reminder(booking, reminder_type),
        (GuestAction.START_CHECKIN, "Start Check-in"),
        (GuestAction.VIEW_BOOKINGS, "View Booking"),
    )


def service_decision_menu(booking, service) -> InteractiveMessage:
    return _buttons(
        messages.admin_service_request(booking, service),
        (service_decision_id(True, service.id, booking.id), "Confirm"),
        (service_decision_id(False, service.id, booking.id), "Decline"),
    )


ADMIN_MENU_ROWS = (
    (AdminAction.DASHBOARD_SUMMARY, "Dashboard Summary", "Today at a glance"),
    (AdminAction.URGENT_ACTIONS, "Urgent Actions", "Items needing attention"),
    (AdminAction.VIEW_ALL_BOOKINGS, "All Bookings", "Upcoming and in-house"),
    (AdminAction.TODAY_CHECKINS, "Today's Check-ins", "Arrivals today"),
    (AdminAction.TODAY_CHECKOUTS, "Today's Check-outs", "Departures today"),
    (AdminAction.PENDING_VERIFICATIONS, "Pending Verifications", "ID checks in progress"),
    (AdminAction.UNPAID_BOOKINGS, "Unpaid Bookings", "Awaiting payment"),
    (AdminAction.DAILY_REVENUE, "Daily Revenue", "Revenue for today"),
    (AdminAction.OCCUPANCY_REPORT, "Occupancy Report", "Rooms by type"),
    (AdminAction.FEEDBACK_SUMMARY, "Feedback Summary", "Guest ratings"),
)


def admin_menu() -> InteractiveMessage:
    return InteractiveMessage(
        header="Admin Dashboard",
        body=f"{settings.hotel_name} admin menu. Choose a report:",
        list_button="Open Menu",
        sections=[
            ListSection(
                title="Reports",
                rows=[ListRow(id=action.value, title=title, description=description)
                      for action, title, description in ADMIN_MENU_ROWS],
            )
        ],
    )
