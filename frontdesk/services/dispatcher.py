import re
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from frontdesk.config import settings
from frontdesk.logging_config import get_logger
from frontdesk.schemas.webhook import InboundEvent
from frontdesk.services.admin_conversation import AdminConversation
from frontdesk.services.guest_conversation import GuestConversation
from frontdesk.services.id_verification_service import IdVerificationClient
from frontdesk.services.kv_store import KeyValueStore
from frontdesk.services.whatsapp_service import WhatsAppService

logger = get_logger("dispatcher")


def normalize_phone(phone: Optional[str]) -> str:
    return re.sub(r"\D", "", phone or "")


def is_admin(sender: str, admin_phone: Optional[str] = None) -> bool:
    admin = normalize_phone(admin_phone if admin_phone is not None else settings.admin_phone)
    return bool(admin) and normalize_phone(sender) == admin


def is_duplicate_message(kv_store: KeyValueStore, message_id: Optional[str]) -> bool:
    """Gateway redeliveries carry the same message id; only the first one is processed."""
    if not message_id:
        return False
    return not kv_store.add(f"inbound:{message_id}", 1, settings.inbound_dedup_ttl_seconds)


def dispatch_event(
    db: Session,
    event: InboundEvent,
    gateway: WhatsAppService,
    kv_store: KeyValueStore,
    verifier: IdVerificationClient,
    clock: Callable[[], datetime] = datetime.now,
) -> str:
    """Route an inbound event to the admin or guest flow before any guest lookups happen."""
    if is_admin(event.sender):
        logger.info("Admin event", extra={"context": {"kind": event.kind, "message_id": event.message_id}})
        AdminConversation(db, gateway, clock).handle(event)
        return "admin"

    logger.info("Guest event", extra={"context": {"kind": event.kind, "message_id": event.message_id}})
    GuestConversation(db, gateway, kv_store, verifier, clock).handle(event)
    return "guest"
