from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from frontdesk.config import settings
from frontdesk.database import get_db
from frontdesk.services import report_service

router = APIRouter()


class AdminSummaryResponse(BaseModel):
    date: str
    checkins_today: int
    checkouts_today: int
    in_house: int
    pending_verifications: int
    unpaid_bookings: int
    pending_service_requests: int
    revenue_today: Decimal
    total_rooms: int
    occupied_rooms: int


def require_admin_token(x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token")) -> None:
    expected = settings.admin_api_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ADMIN_API_TOKEN not configured",
        )
    if not x_admin_token or x_admin_token != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")


@router.get("/admin/summary", response_model=AdminSummaryResponse, dependencies=[Depends(require_admin_token)])
def admin_summary(db: Session = Depends(get_db)):
    return AdminSummaryResponse(**report_service.summary(db, date.today()))
