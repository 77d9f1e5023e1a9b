from typing import Callable, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from frontdesk.config import settings
from frontdesk.database import SessionLocal
from frontdesk.logging_config import get_logger
from frontdesk.schemas.webhook import InboundEvent, WebhookPayload, extract_events
from frontdesk.services.dispatcher import dispatch_event, is_duplicate_message
from frontdesk.services.id_verification_service import IdVerificationClient, get_id_verifier
from frontdesk.services.kv_store import KeyValueStore, get_kv_store
from frontdesk.services.whatsapp_service import WhatsAppService, get_whatsapp_service

logger = get_logger("webhook")

router = APIRouter()


class WebhookAck(BaseModel):
    status: str
    accepted: int


def get_session_factory() -> Callable[[], Session]:
    return SessionLocal


@router.get("/webhook", response_class=PlainTextResponse)
def verify_webhook(
    hub_mode: Optional[str] = Query(default=None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
):
    """Subscription handshake: echo the challenge when the verify token matches."""
    if hub_mode == "subscribe" and settings.whatsapp_verify_token and hub_verify_token == settings.whatsapp_verify_token:
        logger.info("Webhook verified")
        return PlainTextResponse(hub_challenge or "")
    logger.warning("Webhook verification failed", extra={"context": {"mode": hub_mode}})
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification failed")


def process_events(
    events: List[InboundEvent],
    session_factory: Callable[[], Session],
    gateway: WhatsAppService,
    kv_store: KeyValueStore,
    verifier: IdVerificationClient,
) -> None:
    db = session_factory()
    try:
        for event in events:
            dispatch_event(db, event, gateway, kv_store, verifier)
    finally:
        db.close()


@router.post("/webhook", response_model=WebhookAck)
def receive_webhook(
    payload: WebhookPayload,
    background_tasks: BackgroundTasks,
    gateway: WhatsAppService = Depends(get_whatsapp_service),
    kv_store: KeyValueStore = Depends(get_kv_store),
    verifier: IdVerificationClient = Depends(get_id_verifier),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Acknowledge immediately; events are handled after the response is sent."""
    accepted = []
    for event in extract_events(payload):
        context = {"message_id": event.message_id, "kind": event.kind}
        if (
            settings.whatsapp_phone_number_id
            and event.phone_number_id
            and event.phone_number_id != settings.whatsapp_phone_number_id
        ):
            logger.info("Event for another phone number ignored", extra={"context": context})
            continue
        if is_duplicate_message(kv_store, event.message_id):
            logger.info("Duplicate delivery ignored", extra={"context": context})
            continue
        accepted.append(event)

    if accepted:
        background_tasks.add_task(process_events, accepted, session_factory, gateway, kv_store, verifier)
    return WebhookAck(status="ok", accepted=len(accepted))
