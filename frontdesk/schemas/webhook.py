from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Loose(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TextBody(_Loose):
    body: str = ""


class ReplyRef(_Loose):
    id: str
    title: Optional[str] = None


class InteractivePayload(_Loose):
    type: Optional[str] = None
    button_reply: Optional[ReplyRef] = None
    list_reply: Optional[ReplyRef] = None


class ButtonPayload(_Loose):
    payload: Optional[str] = None
    text: Optional[str] = None


class MediaRef(_Loose):
    id: str
    mime_type: Optional[str] = None
    caption: Optional[str] = None


class WhatsAppMessage(_Loose):
    id: str
    sender: str = Field(alias="from")
    timestamp: Optional[str] = None
    type: str
    text: Optional[TextBody] = None
    interactive: Optional[InteractivePayload] = None
    button: Optional[ButtonPayload] = None
    image: Optional[MediaRef] = None


class ContactProfile(_Loose):
    name: Optional[str] = None


class Contact(_Loose):
    wa_id: Optional[str] = None
    profile: Optional[ContactProfile] = None


class ValueMetadata(_Loose):
    phone_number_id: Optional[str] = None
    display_phone_number: Optional[str] = None


class ChangeValue(_Loose):
    messaging_product: Optional[str] = None
    metadata: Optional[ValueMetadata] = None
    contacts: List[Contact] = []
    messages: List[WhatsAppMessage] = []


class Change(_Loose):
    field: Optional[str] = None
    value: ChangeValue


class Entry(_Loose):
    id: Optional[str] = None
    changes: List[Change] = []


class WebhookPayload(_Loose):
    object: Optional[str] = None
    entry: List[Entry] = []


class InboundEvent(BaseModel):
    """One inbound message reduced to the three kinds the flows understand."""

    kind: Literal["text", "selection", "image"]
    sender: str
    message_id: str
    phone_number_id: Optional[str] = None
    contact_name: Optional[str] = None
    body: Optional[str] = None
    selection_id: Optional[str] = None
    media_id: Optional[str] = None


def _to_event(message: WhatsAppMessage, value: ChangeValue) -> Optional[InboundEvent]:
    base = {
        "sender": message.sender,
        "message_id": message.id,
        "phone_number_id": value.metadata.phone_number_id if value.metadata else None,
        "contact_name": next(
            (c.profile.name for c in value.contacts if c.profile and c.wa_id == message.sender),
            None,
        ),
    }

    if message.type == "text" and message.text is not None:
        return InboundEvent(kind="text", body=message.text.body, **base)
    if message.type == "interactive" and message.interactive is not None:
        reply = message.interactive.button_reply or message.interactive.list_reply
        if reply:
            return InboundEvent(kind="selection", selection_id=reply.id, **base)
    if message.type == "button" and message.button is not None:
        return InboundEvent(kind="selection", selection_id=message.button.payload or message.button.text or "", **base)
    if message.type == "image" and message.image is not None:
        return InboundEvent(kind="image", media_id=message.image.id, **base)
    return None


def extract_events(payload: WebhookPayload) -> List[InboundEvent]:
    """Flatten a Cloud API delivery into inbound events. Statuses and other message types are dropped."""
    events = []
    for entry in payload.entry:
        for change in entry.changes:
            for message in change.value.messages:
                event = _to_event(message, change.value)
                if event:
                    events.append(event)
    return events
