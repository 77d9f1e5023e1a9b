from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from frontdesk.schemas.booking import TokenRecord, TokenResponse
from frontdesk.services.kv_store import KeyValueStore, get_kv_store
from frontdesk.services.token_service import BOOKING_PURPOSE, MODIFY_PURPOSE, issue_token, link_for, resolve_token

router = APIRouter()


@router.get("/generate-token", response_model=TokenResponse)
def generate_token(
    phone: Optional[str] = None,
    name: Optional[str] = None,
    id: Optional[int] = None,
    kv_store: KeyValueStore = Depends(get_kv_store),
):
    """Booking token for phone+name, modification token for a booking id."""
    if id is not None:
        token = issue_token(kv_store, MODIFY_PURPOSE, {"booking_id": id})
        return TokenResponse(token=token, purpose=MODIFY_PURPOSE, url=link_for("modify", token))
    if phone and name:
        token = issue_token(kv_store, BOOKING_PURPOSE, {"phone": phone, "name": name})
        return TokenResponse(token=token, purpose=BOOKING_PURPOSE, url=link_for("booking", token))
    raise HTTPException(status_code=400, detail="Provide phone and name, or a booking id")


@router.get("/tokens/{token}", response_model=TokenRecord)
def get_token(token: str, purpose: Optional[str] = None, kv_store: KeyValueStore = Depends(get_kv_store)):
    record = resolve_token(kv_store, token, purpose)
    if not record:
        raise HTTPException(status_code=404, detail="Token not found or expired")
    return TokenRecord(**record)
