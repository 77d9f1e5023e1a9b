import secrets
from typing import Optional
from urllib.parse import urlencode

from frontdesk.config import settings
from frontdesk.logging_config import get_logger
from frontdesk.services.kv_store import KeyValueStore

logger = get_logger("token_service")

BOOKING_PURPOSE = "booking"
MODIFY_PURPOSE = "modify"
PAYMENT_PURPOSE = "payment"


def _token_key(token: str) -> str:
    return f"token:{token}"


def issue_token(store: KeyValueStore, purpose: str, data: dict, ttl_seconds: Optional[int] = None) -> str:
    """Issue an opaque token bound to one purpose."""
    token = secrets.token_urlsafe(24)
    ttl = ttl_seconds if ttl_seconds is not None else settings.token_ttl_seconds
    store.set(_token_key(token), {"purpose": purpose, "data": data}, ttl)
    logger.info("Token issued", extra={"context": {"purpose": purpose, "ttl_seconds": ttl}})
    return token


def resolve_token(store: KeyValueStore, token: str, purpose: Optional[str] = None) -> Optional[dict]:
    """Return the token's record, or None if unknown, expired, or issued for another purpose."""
    record = store.get(_token_key(token))
    if not record:
        return None
    if purpose and record.get("purpose") != purpose:
        return None
    return record


def link_for(path: str, token: str) -> str:
    return f"{settings.web_app_url.rstrip('/')}/{path}?{urlencode({'token': token})}"


def build_booking_link(store: KeyValueStore, phone: str, name: str) -> str:
    token = issue_token(store, BOOKING_PURPOSE, {"phone": phone, "name": name})
    return link_for("booking", token)


def build_modify_link(store: KeyValueStore, booking_id: int) -> str:
    token = issue_token(store, MODIFY_PURPOSE, {"booking_id": booking_id})
    return link_for("modify", token)


def build_payment_link(store: KeyValueStore, booking_id: int) -> str:
    token = issue_token(store, PAYMENT_PURPOSE, {"booking_id": booking_id})
    return link_for("payment", token)
