"""Decoding of button/list reply ids into typed commands."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union


class GuestAction(str, Enum):
    BOOK_ROOM = "book_room"
    VIEW_BOOKINGS = "view_bookings"
    MODIFY_BOOKING = "modify_booking"
    CANCEL_BOOKING = "cancel_booking"
    CONFIRM_CANCEL = "confirm_cancel"
    KEEP_BOOKING = "keep_booking"
    CONTACT_US = "contact_us"
    LOCATION = "location"
    OUR_SERVICES = "our_services"
    ROOMS_GALLERY = "rooms_gallery"
    CHECK_AVAILABILITY = "check_availability"
    DINING = "dining"
    SPA = "spa"
    SERVICES = "services"
    ROOM_SERVICE = "room_service"
    FOOD_MENU = "food_menu"
    HOUSEKEEPING_MENU = "housekeeping_menu"
    AMENITIES_MENU = "amenities_menu"
    MAINTENANCE_MENU = "maintenance_menu"
    START_CHECKIN = "start_checkin"
    VERIFY_CORRECT = "verify_correct"
    VERIFY_INCORRECT = "verify_incorrect"


class AdminAction(str, Enum):
    DASHBOARD_SUMMARY = "dashboard_summary"
    URGENT_ACTIONS = "urgent_actions"
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    TODAY_CHECKINS = "today_checkins"
    TODAY_CHECKOUTS = "today_checkouts"
    PENDING_VERIFICATIONS = "pending_verifications"
    UNPAID_BOOKINGS = "unpaid_bookings"
    DAILY_REVENUE = "daily_revenue"
    OCCUPANCY_REPORT = "occupancy_report"
    FEEDBACK_SUMMARY = "feedback_summary"


class IdType(str, Enum):
    PASSPORT = "passport"
    AADHAR = "aadhar"
    VOTER = "voter"
    LICENSE = "license"


@dataclass(frozen=True)
class GuestCommand:
    action: GuestAction


@dataclass(frozen=True)
class AdminCommand:
    action: AdminAction


@dataclass(frozen=True)
class SelectIdTypeCommand:
    id_type: IdType


@dataclass(frozen=True)
class ServiceRequestCommand:
    service_id: int


@dataclass(frozen=True)
class ServiceDecisionCommand:
    approve: bool
    service_id: int
    booking_id: int


@dataclass(frozen=True)
class UnknownCommand:
    raw: str


Command = Union[
    GuestCommand,
    AdminCommand,
    SelectIdTypeCommand,
    ServiceRequestCommand,
    ServiceDecisionCommand,
    UnknownCommand,
]

_GUEST_ACTIONS = {action.value: action for action in GuestAction}
_ADMIN_ACTIONS = {action.value: action for action in AdminAction}
_ID_TYPES = {id_type.value: id_type for id_type in IdType}

SERVICE_DECISION_PATTERN = re.compile(r"^(confirm|decline)_service_(\d+)_(\d+)$")
SERVICE_REQUEST_PATTERN = re.compile(r"^service_(\d+)$")
SELECT_ID_PATTERN = re.compile(r"^select_([a-z]+)$")


def parse_selection(raw: str | None) -> Command:
    """Decode a selection id. Malformed or unknown ids become UnknownCommand."""
    selection_id = (raw or "").strip()

    if selection_id in _GUEST_ACTIONS:
        return GuestCommand(_GUEST_ACTIONS[selection_id])
    if selection_id in _ADMIN_ACTIONS:
        return AdminCommand(_ADMIN_ACTIONS[selection_id])

    match = SERVICE_DECISION_PATTERN.match(selection_id)
    if match:
        return ServiceDecisionCommand(
            approve=match.group(1) == "confirm",
            service_id=int(match.group(2)),
            booking_id=int(match.group(3)),
        )

    match = SERVICE_REQUEST_PATTERN.match(selection_id)
    if match:
        return ServiceRequestCommand(service_id=int(match.group(1)))

    match = SELECT_ID_PATTERN.match(selection_id)
    if match and match.group(1) in _ID_TYPES:
        return SelectIdTypeCommand(_ID_TYPES[match.group(1)])

    return UnknownCommand(selection_id)


def service_decision_id(approve: bool, service_id: int, booking_id: int) -> str:
    prefix = "confirm" if approve else "decline"
    return f"{prefix}_service_{service_id}_{booking_id}"
