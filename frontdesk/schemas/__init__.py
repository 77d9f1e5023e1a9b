from frontdesk.schemas.booking import BookingCreate, BookingResponse, BookingUpdate
from frontdesk.schemas.outbound import InteractiveMessage, MediaMessage, OutboundMessage, TextMessage
from frontdesk.schemas.webhook import InboundEvent, WebhookPayload

__all__ = [
    "BookingCreate",
    "BookingUpdate",
    "BookingResponse",
    "TextMessage",
    "MediaMessage",
    "InteractiveMessage",
    "OutboundMessage",
    "InboundEvent",
    "WebhookPayload",
]
