from frontdesk.models.booking import Booking
from frontdesk.models.feedback import Feedback
from frontdesk.models.hotel_service import HotelService, ServiceReminderSent, ServiceRequest, ServiceSchedule
from frontdesk.models.reminder import Reminder, ScheduledJob
from frontdesk.models.room import Room
from frontdesk.models.user import User
from frontdesk.models.verified_id import VerifiedId

__all__ = [
    "User",
    "Room",
    "Booking",
    "Reminder",
    "ScheduledJob",
    "HotelService",
    "ServiceRequest",
    "ServiceSchedule",
    "ServiceReminderSent",
    "VerifiedId",
    "Feedback",
]
