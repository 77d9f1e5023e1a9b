from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from frontdesk.database import get_db
from frontdesk.routers.admin import require_admin_token
from frontdesk.schemas.reminder import RemindersResponse, SchedulerTickResponse
from frontdesk.services.kv_store import KeyValueStore, get_kv_store
from frontdesk.services.reminder_service import list_pending_jobs, list_pending_reminders
from frontdesk.services.scheduler_service import run_scheduler_tick
from frontdesk.services.whatsapp_service import WhatsAppService, get_whatsapp_service

router = APIRouter()


@router.get("/reminders", response_model=RemindersResponse)
def get_reminders(db: Session = Depends(get_db)):
    """Pending pre-arrival reminders and one-shot jobs."""
    return RemindersResponse(reminders=list_pending_reminders(db), jobs=list_pending_jobs(db))


@router.post("/reminders/process", response_model=SchedulerTickResponse, dependencies=[Depends(require_admin_token)])
def process_reminders(
    db: Session = Depends(get_db),
    gateway: WhatsAppService = Depends(get_whatsapp_service),
    kv_store: KeyValueStore = Depends(get_kv_store),
):
    """Run one scheduler tick now."""
    return SchedulerTickResponse(**run_scheduler_tick(db, gateway, kv_store=kv_store))
